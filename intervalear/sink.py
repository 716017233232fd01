from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Protocol, Sequence

import numpy as np

from .audio import Buffer
from .config import EngineSettings
from .errors import DeviceResumeFailure

_LOGGER = logging.getLogger(__name__)


class Stage(Protocol):
	def process(self, block: Buffer) -> Buffer: ...


class OutputSink(Protocol):
	@property
	def state(self) -> str: ...

	def resume(self) -> None: ...

	def play(self, samples: Buffer) -> None: ...


SinkFactory = Callable[[EngineSettings, Sequence[Stage]], OutputSink]


class _Voice:
	__slots__ = ("samples", "pos")

	def __init__(self, samples: Buffer) -> None:
		self.samples = samples
		self.pos = 0


class SoundDeviceSink:
	"""Mono output stream that mixes submitted buffers through a processing chain.

	The stream is opened stopped ("suspended") and only starts on resume(),
	so nothing reaches the hardware before the first play.
	"""

	def __init__(self, settings: EngineSettings, chain: Sequence[Stage]) -> None:
		import sounddevice as sd  # PortAudio is loaded on import

		self._sd: Any = sd
		self._chain = list(chain)
		self._voices: List[_Voice] = []
		self._lock = threading.Lock()
		self._stream = sd.OutputStream(
			samplerate=settings.sample_rate,
			blocksize=settings.block_size,
			channels=1,
			dtype="float32",
			callback=self._callback,
		)

	@property
	def state(self) -> str:
		if self._stream.closed:
			return "closed"
		return "running" if self._stream.active else "suspended"

	def resume(self) -> None:
		with self._lock:
			self._voices = []
		try:
			self._stream.start()
		except self._sd.PortAudioError as exc:
			raise DeviceResumeFailure(str(exc)) from exc

	def play(self, samples: Buffer) -> None:
		# a stopped stream never drains voices, so notes sent to it are dropped
		if not self._stream.active:
			_LOGGER.debug("output %s, dropping %d samples", self.state, len(samples))
			return
		with self._lock:
			self._voices.append(_Voice(samples))

	def _callback(self, outdata: Any, frames: int, time: Any, status: Any) -> None:
		if status:
			_LOGGER.debug("output stream status: %s", status)
		block = np.zeros(frames, dtype=np.float32)
		with self._lock:
			alive = []
			for v in self._voices:
				chunk = v.samples[v.pos : v.pos + frames]
				block[: len(chunk)] += chunk
				v.pos += frames
				if v.pos < len(v.samples):
					alive.append(v)
			self._voices = alive
		for stage in self._chain:
			block = stage.process(block)
		outdata[:, 0] = block
