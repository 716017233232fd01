from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


Comparison = Literal["A", "B", "equal"]
ExerciseMode = Literal["comparison", "identification"]


class Interval(BaseModel):
	model_config = ConfigDict(frozen=True)

	name: str
	semitones: int = Field(gt=0)
	label: str


class IdentificationExercise(BaseModel):
	model_config = ConfigDict(frozen=True)

	interval: Interval
	ascending: bool
	root: int
	options: List[Interval]

	@property
	def target(self) -> int:
		if self.ascending:
			return self.root + self.interval.semitones
		return self.root - self.interval.semitones


class ComparisonExercise(BaseModel):
	model_config = ConfigDict(frozen=True)

	interval_a: Interval
	interval_b: Interval
	root_a: int
	root_b: int
	answer: Comparison


class IntervalStats(BaseModel):
	seen: int = 0
	correct: int = 0


class Stats(BaseModel):
	by_interval: Dict[str, IntervalStats] = Field(default_factory=dict)
	confusion: Dict[str, Dict[str, int]] = Field(default_factory=dict)


class AnswerRecord(BaseModel):
	interval: str
	chosen: str
	correct: bool


class DailyStats(BaseModel):
	attempts: int = 0
	successes: int = 0
	date: str


class ExerciseResult(BaseModel):
	mode: ExerciseMode
	success: bool
	timestamp: int


class DeviceState(str, Enum):
	UNINITIALIZED = "uninitialized"
	INITIALIZING = "initializing"
	READY = "ready"


class DeviceStatus(BaseModel):
	state: DeviceState
	has_output: bool
	output_state: Optional[str] = None
	using_sampled_instrument: bool = False
	instrument_error: Optional[str] = None
