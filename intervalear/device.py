from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Sequence

import numpy as np

from .audio import Buffer, Compressor, MasterGain, tone
from .config import EngineSettings, load_settings
from .errors import DeviceResumeFailure, InstrumentLoadFailure
from .models import DeviceState, DeviceStatus
from .piano import SoundfontPiano
from .sink import OutputSink, SinkFactory, SoundDeviceSink
from .theory import Note, as_pitch, pitch_to_freq

_LOGGER = logging.getLogger(__name__)

SUCCESS_CHORD = ("C5", "E5", "G5")


class Instrument(Protocol):
	def load(self) -> None: ...

	def render(self, pitches: Sequence[int], duration: float) -> Buffer: ...


InstrumentFactory = Callable[[EngineSettings], Instrument]


class AudioDevice:
	"""Owns the output stream, the master gain/compressor chain and the instruments.

	Created once by the application and shared by reference. Nothing is built
	until initialize() (or the first play) runs. Plays are not serialized:
	two concurrent play calls overlap.
	"""

	def __init__(
		self,
		settings: Optional[EngineSettings] = None,
		sink_factory: SinkFactory = SoundDeviceSink,
		instrument_factory: InstrumentFactory = SoundfontPiano,
	) -> None:
		self.settings = settings or load_settings()
		self.state = DeviceState.UNINITIALIZED
		self.master_gain: Optional[MasterGain] = None
		self.compressor: Optional[Compressor] = None
		self.instrument_error: Optional[Exception] = None
		self.output_error: Optional[Exception] = None
		self._sink_factory = sink_factory
		self._instrument_factory = instrument_factory
		self._sink: Optional[OutputSink] = None
		self._instrument: Optional[Instrument] = None
		self._init_task: Optional[asyncio.Task[None]] = None

	async def initialize(self) -> None:
		if self.state is DeviceState.READY:
			return
		if self._init_task is None:
			self.state = DeviceState.INITIALIZING
			self._init_task = asyncio.ensure_future(self._initialize())
		await asyncio.shield(self._init_task)

	async def _initialize(self) -> None:
		s = self.settings
		try:
			self.master_gain = MasterGain(s.master_gain)
			self.compressor = Compressor(s.compressor, s.sample_rate)
			try:
				self._sink = self._sink_factory(s, [self.master_gain, self.compressor])
			except Exception as exc:
				self.output_error = exc
				_LOGGER.error("Audio output unavailable, playback disabled", exc_info=True)
				return
			try:
				instrument = self._instrument_factory(s)
				await asyncio.to_thread(instrument.load)
			except InstrumentLoadFailure as exc:
				self.instrument_error = exc
				_LOGGER.warning("Instrument load failed, using sine fallback: %s", exc)
			except Exception as exc:
				self.instrument_error = exc
				_LOGGER.error("Instrument load failed, using sine fallback", exc_info=True)
			else:
				self._instrument = instrument
		finally:
			self.state = DeviceState.READY

	def is_using_sampled_instrument(self) -> bool:
		return self._instrument is not None

	def is_audio_available(self) -> bool:
		return self.state is DeviceState.READY and self._sink is not None

	def status(self) -> DeviceStatus:
		return DeviceStatus(
			state=self.state,
			has_output=self._sink is not None,
			output_state=self._sink.state if self._sink is not None else None,
			using_sampled_instrument=self.is_using_sampled_instrument(),
			instrument_error=str(self.instrument_error) if self.instrument_error else None,
		)

	async def _output(self) -> Optional[OutputSink]:
		if self.state is not DeviceState.READY:
			await self.initialize()
		sink = self._sink
		if sink is not None and sink.state == "suspended":
			try:
				await asyncio.to_thread(sink.resume)
			except DeviceResumeFailure as exc:
				# keep going; the note may simply be inaudible
				_LOGGER.warning("Could not resume audio output: %s", exc)
		return sink

	async def _sampled(self, pitches: List[int], duration: float, gain: float) -> Optional[Buffer]:
		if self._instrument is None:
			return None
		try:
			x = await asyncio.to_thread(self._instrument.render, pitches, duration)
		except InstrumentLoadFailure as exc:
			_LOGGER.warning("Sampled render failed for %s, using sine fallback: %s", pitches, exc)
			return None
		except Exception:
			_LOGGER.error("Sampled render failed for %s, using sine fallback", pitches, exc_info=True)
			return None
		return (x * np.float32(gain)).astype(np.float32)

	def _tone(self, pitch: int, duration: float) -> Buffer:
		return tone(pitch_to_freq(pitch), duration, self.settings.sample_rate)

	async def play_pitch(self, note: Note, duration: float = 0.8) -> None:
		pitch = as_pitch(note)
		sink = await self._output()
		if sink is None:
			return
		samples = await self._sampled([pitch], duration, self.settings.note_gain)
		if samples is None:
			samples = self._tone(pitch, duration)
		sink.play(samples)
		await asyncio.sleep(duration)

	async def play_chord(self, notes: Sequence[Note], duration: float) -> None:
		pitches = [as_pitch(n) for n in notes]
		if not pitches:
			return
		sink = await self._output()
		if sink is None:
			return
		samples = await self._sampled(pitches, duration, self.settings.chord_gain)
		if samples is not None:
			sink.play(samples)
			await asyncio.sleep(duration)
			return
		# sine fallback arpeggiates within the same total duration
		step = duration / len(pitches)
		for p in pitches:
			sink.play(self._tone(p, step))
			await asyncio.sleep(step)

	async def play_success_sound(self) -> None:
		await self.play_chord(SUCCESS_CHORD, 0.5)
