from __future__ import annotations

import re
from typing import Dict, Tuple, Union

from .errors import InvalidNoteFormat, InvalidNoteName
from .models import Interval

A4_MIDI = 69
A4_FREQ = 440.0

MIN_PITCH = 60  # C4
MAX_PITCH = 84  # C6

PITCH_CLASSES: Tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

NAME_TO_OFFSET: Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

INTERVALS: Tuple[Interval, ...] = (
	Interval(name="2M", semitones=2, label="Major 2nd"),
	Interval(name="3m", semitones=3, label="Minor 3rd"),
	Interval(name="3M", semitones=4, label="Major 3rd"),
	Interval(name="4J", semitones=5, label="Perfect 4th"),
	Interval(name="5J", semitones=7, label="Perfect 5th"),
	Interval(name="8J", semitones=12, label="Perfect Octave"),
)

_NOTE_RE = re.compile(r"^([A-G][#b]?)(\d+)$")

Note = Union[str, int]


def note_to_pitch(note: str) -> int:
	match = _NOTE_RE.match(note)
	if match is None:
		raise InvalidNoteFormat(note)
	name, octave = match.group(1), int(match.group(2))
	if name not in NAME_TO_OFFSET:
		raise InvalidNoteName(name)
	return (octave + 1) * 12 + NAME_TO_OFFSET[name]


def pitch_to_note(pitch: int) -> str:
	"""Sharp-spelled note name for any integer pitch.

	Flat spellings do not survive a round trip: "Bb4" encodes to 70 and
	decodes to "A#4".
	"""
	return f"{PITCH_CLASSES[pitch % 12]}{pitch // 12 - 1}"


def as_pitch(note: Note) -> int:
	if isinstance(note, int):
		return note
	return note_to_pitch(note)


def pitch_to_freq(pitch: int) -> float:
	return float(A4_FREQ * (2.0 ** ((pitch - A4_MIDI) / 12.0)))


def in_range(pitch: int) -> bool:
	return MIN_PITCH <= pitch <= MAX_PITCH


def interval_target(root: int, interval: Interval, ascending: bool) -> int:
	if ascending:
		return root + interval.semitones
	return root - interval.semitones


def interval_by_name(name: str) -> Interval:
	for interval in INTERVALS:
		if interval.name == name:
			return interval
	raise KeyError(name)
