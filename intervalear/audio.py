from __future__ import annotations

import math
from typing import Sequence, cast

import numpy as np
import numpy.typing as npt

from .config import CompressorSettings

SR = 44100

ATTACK = 0.02
SILENCE = 0.0001

Buffer = npt.NDArray[np.float32]


def tone(freq: float, dur: float, sr: int = SR) -> Buffer:
	"""Sine tone with an exponential click-free envelope.

	Args:
		freq: Frequency in Hz
		dur: Duration in seconds
		sr: Sample rate
	"""
	n = int(sr * dur)
	t = np.arange(n, dtype=np.float32) / np.float32(sr)
	x = np.sin(2.0 * np.pi * freq * t).astype(np.float32)
	# exponential ramps cannot start at zero, so rise from near-silence
	attack = min(int(ATTACK * sr), n)
	env = np.empty(n, dtype=np.float32)
	env[:attack] = np.geomspace(SILENCE, 1.0, attack, endpoint=False)
	env[attack:] = np.geomspace(1.0, SILENCE, n - attack)
	return cast(Buffer, (x * env).astype(np.float32))


def mix(buffers: Sequence[Buffer]) -> Buffer:
	if not buffers:
		return np.zeros(0, dtype=np.float32)
	out = np.zeros(max(len(b) for b in buffers), dtype=np.float32)
	for b in buffers:
		out[: len(b)] += b
	return out


def to_mono(data: npt.NDArray[np.float32]) -> Buffer:
	if data.ndim == 2:
		data = data.mean(axis=1)
	return cast(Buffer, data.astype(np.float32))


class MasterGain:
	def __init__(self, gain: float) -> None:
		self.gain = gain

	def process(self, block: Buffer) -> Buffer:
		return cast(Buffer, (block * np.float32(self.gain)).astype(np.float32))


class Compressor:
	"""Soft-knee peak compressor working on whole blocks.

	The level detector runs once per block with attack/release smoothing and
	the resulting gain is ramped linearly across the block, so consecutive
	blocks join without steps.
	"""

	def __init__(self, settings: CompressorSettings, sr: int = SR) -> None:
		self.settings = settings
		self.sr = sr
		self._env_db = -120.0
		self._gain = 1.0

	def _coef(self, time_s: float, n: int) -> float:
		return math.exp(-n / (time_s * self.sr))

	def static_curve(self, level_db: float) -> float:
		s = self.settings
		over = level_db - s.threshold
		if s.knee > 0 and abs(over) <= s.knee / 2:
			return level_db + (1.0 / s.ratio - 1.0) * (over + s.knee / 2) ** 2 / (2 * s.knee)
		if over <= 0:
			return level_db
		return s.threshold + over / s.ratio

	def process(self, block: Buffer) -> Buffer:
		n = len(block)
		if n == 0:
			return block
		peak = float(np.max(np.abs(block)))
		level_db = 20.0 * math.log10(max(peak, 1e-6))
		time_s = self.settings.attack if level_db > self._env_db else self.settings.release
		coef = self._coef(time_s, n)
		self._env_db = coef * self._env_db + (1.0 - coef) * level_db
		target = 10.0 ** ((self.static_curve(self._env_db) - self._env_db) / 20.0)
		ramp = np.linspace(self._gain, target, n, endpoint=False, dtype=np.float32)
		self._gain = target
		return cast(Buffer, (block * ramp).astype(np.float32))