from __future__ import annotations

import random
from typing import List, Optional, Union

from .device import AudioDevice
from .models import AnswerRecord, ComparisonExercise, IdentificationExercise, Stats
from .sequencer import PlaybackSequencer
from .storage import DailyStatsTracker, KeyValueStore, MemoryStore, UnlimitedPolicy
from .trainer import make_comparison, make_identification, score_comparison, score_identification

Exercise = Union[IdentificationExercise, ComparisonExercise]


class TrainingSession:
	"""One user's practice run: current exercise, playback guard, and scores."""

	def __init__(
		self,
		device: AudioDevice,
		store: Optional[KeyValueStore] = None,
		rng: Optional[random.Random] = None,
	) -> None:
		self.device = device
		self.sequencer = PlaybackSequencer(device)
		self.tracker = DailyStatsTracker(store if store is not None else MemoryStore())
		self.policy = UnlimitedPolicy()
		self.rng = rng
		self.stats = Stats()
		self.history: List[AnswerRecord] = []
		self.current: Optional[Exercise] = None
		self.answered = False
		self.is_playing = False

	def new_identification(self) -> IdentificationExercise:
		q = make_identification(rng=self.rng)
		self._set(q)
		return q

	def new_comparison(self) -> ComparisonExercise:
		q = make_comparison(rng=self.rng)
		self._set(q)
		return q

	def _set(self, q: Exercise) -> None:
		self.current = q
		self.answered = False

	async def play(self) -> bool:
		"""Play the current exercise; False if nothing to play or already playing."""
		q = self.current
		if q is None or self.is_playing:
			return False
		self.is_playing = True
		try:
			if isinstance(q, IdentificationExercise):
				await self.sequencer.play_identification(q)
			else:
				await self.sequencer.play_comparison(q)
		finally:
			self.is_playing = False
		return True

	async def submit(self, answer: str) -> AnswerRecord:
		q = self.current
		if q is None:
			raise RuntimeError("No exercise to answer")
		if self.answered:
			raise RuntimeError("Exercise already answered")
		if isinstance(q, IdentificationExercise):
			record = score_identification(q, answer, self.stats)
			mode = "identification"
		else:
			if answer not in ("A", "B", "equal"):
				raise ValueError(f"Comparison answer must be 'A', 'B' or 'equal', got {answer!r}")
			record = score_comparison(q, answer, self.stats)  # type: ignore[arg-type]
			mode = "comparison"
		self.answered = True
		self.history.append(record)
		self.tracker.record(mode, record.correct)  # type: ignore[arg-type]
		if record.correct and mode == "identification" and not self.is_playing:
			self.is_playing = True
			try:
				await self.device.play_success_sound()
			finally:
				self.is_playing = False
		return record

	@property
	def score(self) -> str:
		correct = sum(1 for r in self.history if r.correct)
		return f"{correct} / {len(self.history)}"

	def remaining_attempts(self) -> float:
		return self.policy.remaining_attempts()
