import asyncio
from typing import List, Sequence

import numpy as np
import pytest

from intervalear.config import EngineSettings
from intervalear.device import AudioDevice
from intervalear.errors import DeviceResumeFailure, InstrumentLoadFailure


class FakeSink:
	def __init__(self, settings, chain, fail_resume=False):
		self.settings = settings
		self.chain = list(chain)
		self.fail_resume = fail_resume
		self.state = "suspended"
		self.resume_calls = 0
		self.played: List[np.ndarray] = []

	def resume(self):
		self.resume_calls += 1
		if self.fail_resume:
			raise DeviceResumeFailure("not allowed to start")
		self.state = "running"

	def play(self, samples):
		self.played.append(samples)


class FakeInstrument:
	def __init__(self, settings, fail_load=False, fail_render=False):
		self.settings = settings
		self.fail_load = fail_load
		self.fail_render = fail_render
		self.load_calls = 0
		self.rendered: List[List[int]] = []

	def load(self):
		self.load_calls += 1
		if self.fail_load:
			raise InstrumentLoadFailure("no soundfont")

	def render(self, pitches: Sequence[int], duration: float):
		if self.fail_render:
			raise InstrumentLoadFailure("fluidsynth crashed")
		self.rendered.append(list(pitches))
		return np.full(int(self.settings.sample_rate * duration), 0.5, dtype=np.float32)


class Factories:
	"""Builds fakes for AudioDevice and remembers what it built."""

	def __init__(self, fail_resume=False, fail_load=False, fail_render=False):
		self.fail_resume = fail_resume
		self.fail_load = fail_load
		self.fail_render = fail_render
		self.sinks: List[FakeSink] = []
		self.instruments: List[FakeInstrument] = []

	def sink(self, settings, chain):
		s = FakeSink(settings, chain, self.fail_resume)
		self.sinks.append(s)
		return s

	def instrument(self, settings):
		i = FakeInstrument(settings, self.fail_load, self.fail_render)
		self.instruments.append(i)
		return i

	def device(self, settings=None):
		return AudioDevice(settings or EngineSettings(), sink_factory=self.sink, instrument_factory=self.instrument)


@pytest.fixture
def settings():
	return EngineSettings()


@pytest.fixture
def sleeps(monkeypatch):
	recorded: List[float] = []

	async def fake_sleep(seconds, *args, **kwargs):
		recorded.append(seconds)

	monkeypatch.setattr(asyncio, "sleep", fake_sleep)
	return recorded


@pytest.fixture
def factories():
	return Factories()
