from __future__ import annotations

import io
import logging
import shutil
import subprocess
import tempfile
from collections import OrderedDict
from pathlib import Path
from typing import Sequence, Tuple

import mido
import numpy as np
import requests
import soundfile as sf

from .audio import Buffer, to_mono
from .config import EngineSettings
from .errors import InstrumentLoadFailure

_LOGGER = logging.getLogger(__name__)

ACOUSTIC_GRAND_PIANO = 0  # General MIDI program
VELOCITY = 100
FADE_OUT = 0.01
PROBE_PITCH = 60
# rendered buffers kept, least recently used dropped first
CACHE_SIZE = 128


def _which(cmd: str) -> bool:
	return shutil.which(cmd) is not None


def _write_midi(path: Path, pitches: Sequence[int], duration: float, program: int = ACOUSTIC_GRAND_PIANO) -> None:
	mid = mido.MidiFile()
	trk = mido.MidiTrack()
	mid.tracks.append(trk)
	tempo = mido.bpm2tempo(120)
	trk.append(mido.MetaMessage("set_tempo", tempo=tempo, time=0))
	trk.append(mido.Message("program_change", program=program, time=0))
	ticks = max(1, int(mido.second2tick(duration, mid.ticks_per_beat, tempo)))
	for p in pitches:
		trk.append(mido.Message("note_on", note=p, velocity=VELOCITY, time=0))
	for i, p in enumerate(pitches):
		trk.append(mido.Message("note_off", note=p, velocity=0, time=ticks if i == 0 else 0))
	mid.save(path.as_posix())


class SoundfontPiano:
	"""Acoustic piano rendered from a soundfont with the fluidsynth CLI."""

	def __init__(self, settings: EngineSettings) -> None:
		self.settings = settings
		self.loaded = False
		self._cache: OrderedDict[Tuple[Tuple[int, ...], float], Buffer] = OrderedDict()

	def sf2_path(self) -> Path:
		if self.settings.soundfont_path is not None:
			return self.settings.soundfont_path.expanduser()
		ydp = self.settings.sf2_dir / "YDP-GrandPiano-SF2-20160804" / "YDP-GrandPiano-20160804.sf2"
		if ydp.exists():
			return ydp
		return self.settings.sf2_dir / "FluidR3Mono_GM.sf3"

	def ensure_sf2(self) -> Path:
		p = self.sf2_path()
		if p.exists():
			return p
		# an explicit path is never replaced by a download
		if self.settings.soundfont_path is not None:
			raise InstrumentLoadFailure(f"Soundfont not found at {p}")
		_LOGGER.info("downloading soundfont from %s", self.settings.soundfont_url)
		try:
			response = requests.get(self.settings.soundfont_url, timeout=30)
			response.raise_for_status()
			p.parent.mkdir(parents=True, exist_ok=True)
			p.write_bytes(response.content)
		except (requests.RequestException, OSError) as exc:
			raise InstrumentLoadFailure(f"Soundfont download failed: {exc}") from exc
		return p

	def load(self) -> None:
		"""Make the instrument playable or raise InstrumentLoadFailure.

		Blocking (network, subprocess); the device runs it in a worker thread.
		"""
		self.ensure_sf2()
		if not _which("fluidsynth"):
			raise InstrumentLoadFailure("fluidsynth not found. Install with: brew install fluidsynth")
		probe = self.render([PROBE_PITCH], 0.2)
		if not np.any(probe):
			raise InstrumentLoadFailure("Soundfont rendered silence")
		self.loaded = True

	def render(self, pitches: Sequence[int], duration: float) -> Buffer:
		key = (tuple(pitches), round(duration, 4))
		cached = self._cache.get(key)
		if cached is not None:
			self._cache.move_to_end(key)
			return cached
		sr = self.settings.sample_rate
		try:
			with tempfile.TemporaryDirectory() as td:
				dirp = Path(td)
				midp = dirp / "tmp.mid"
				wavp = dirp / "out.wav"
				_write_midi(midp, pitches, duration)
				cmd = [
					"fluidsynth",
					"-ni",
					"-g", str(self.settings.fluidsynth_gain),
					"-R", "0",             # no reverb tail
					"-C", "0",             # no chorus
					"-r", str(sr),
					"-F", wavp.as_posix(),
					self.sf2_path().as_posix(),
					midp.as_posix(),
				]
				proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
				if proc.returncode != 0 or not wavp.exists():
					raise InstrumentLoadFailure(f"fluidsynth failed: {proc.stderr.decode(errors='ignore')}")
				data, _ = sf.read(io.BytesIO(wavp.read_bytes()), dtype="float32")
		except (OSError, RuntimeError, ValueError) as exc:
			raise InstrumentLoadFailure(f"Could not render {list(pitches)}: {exc}") from exc
		x = to_mono(data)[: int(sr * duration)].copy()
		fade = min(int(FADE_OUT * sr), len(x))
		if fade > 0:
			x[-fade:] *= np.linspace(1.0, 0.0, fade, dtype=np.float32)
		self._cache[key] = x
		if len(self._cache) > CACHE_SIZE:
			self._cache.popitem(last=False)
		return x
