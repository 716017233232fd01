from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .device import AudioDevice
from .models import ComparisonExercise, IdentificationExercise, Interval
from .theory import Note, as_pitch, in_range, interval_target

_LOGGER = logging.getLogger(__name__)

PAIR_GAP = 0.5


class PlaybackSequencer:
	"""Plays interval exercises note by note on a shared AudioDevice.

	Not re-entrant: the caller must wait for one sequence to finish before
	starting the next. There is no queue and no way to stop a running sequence.
	"""

	def __init__(self, device: AudioDevice, note_duration: Optional[float] = None) -> None:
		self.device = device
		self.note_duration = note_duration if note_duration is not None else device.settings.note_duration

	async def play_interval(self, root: Note, interval: Interval, ascending: bool = True, note_delay: float = 0.1) -> None:
		root_pitch = as_pitch(root)
		other = interval_target(root_pitch, interval, ascending)
		if not in_range(other):
			_LOGGER.debug("skipping %s from %s: target %s out of range", interval.name, root_pitch, other)
			return
		first, second = (root_pitch, other) if ascending else (other, root_pitch)
		await self.device.play_pitch(first, self.note_duration)
		await asyncio.sleep(note_delay)
		await self.device.play_pitch(second, self.note_duration)

	async def play_identification(self, q: IdentificationExercise) -> None:
		await self.play_interval(q.root, q.interval, q.ascending, self.device.settings.note_delay)

	async def play_comparison(self, q: ComparisonExercise, pair_gap: float = PAIR_GAP) -> None:
		await self.play_interval(q.root_a, q.interval_a, True, self.device.settings.note_delay)
		await asyncio.sleep(pair_gap)
		await self.play_interval(q.root_b, q.interval_b, True, self.device.settings.note_delay)
