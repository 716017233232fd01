from __future__ import annotations


class IntervalEarError(Exception):
	"""Base class for errors raised by the interval engine."""


class InvalidNoteFormat(IntervalEarError, ValueError):
	def __init__(self, note: str) -> None:
		super().__init__(f"Invalid note: {note!r}")
		self.note = note


class InvalidNoteName(IntervalEarError, ValueError):
	def __init__(self, name: str) -> None:
		super().__init__(f"Invalid note name: {name!r}")
		self.name = name


class NoValidRoot(IntervalEarError):
	def __init__(self, interval_name: str, ascending: bool) -> None:
		direction = "ascending" if ascending else "descending"
		super().__init__(f"No root keeps {interval_name} {direction} inside the playable range")
		self.interval_name = interval_name
		self.ascending = ascending


class InstrumentLoadFailure(IntervalEarError):
	"""The sampled instrument could not be loaded or rendered."""


class DeviceResumeFailure(IntervalEarError):
	"""The output device refused to leave the suspended state."""
