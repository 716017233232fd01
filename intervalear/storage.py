from __future__ import annotations

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol

from pydantic import ValidationError

from .models import DailyStats, ExerciseMode, ExerciseResult

STATS_KEY = "musicTraining_dailyStats"
RECENT_RESULTS_KEY = "musicTraining_recentResults"
RECENT_LIMIT = 5


class KeyValueStore(Protocol):
	def get(self, key: str) -> Optional[str]: ...

	def set(self, key: str, value: str) -> None: ...


class MemoryStore:
	def __init__(self) -> None:
		self._data: Dict[str, str] = {}

	def get(self, key: str) -> Optional[str]:
		return self._data.get(key)

	def set(self, key: str, value: str) -> None:
		self._data[key] = value


class JsonFileStore:
	"""String values kept in one JSON object on disk (~/.intervalear/data.json by default)."""

	def __init__(self, path: Optional[Path] = None) -> None:
		self.path = path or Path.home() / ".intervalear" / "data.json"

	def _load_raw(self) -> Dict[str, Any]:
		if not self.path.exists():
			return {}
		try:
			data = json.loads(self.path.read_text())
		except (OSError, json.JSONDecodeError):
			return {}
		return data if isinstance(data, dict) else {}

	def get(self, key: str) -> Optional[str]:
		value = self._load_raw().get(key)
		return value if isinstance(value, str) else None

	def set(self, key: str, value: str) -> None:
		raw = self._load_raw()
		raw[key] = value
		self.path.parent.mkdir(parents=True, exist_ok=True)
		self.path.write_text(json.dumps(raw, indent=2))


class DailyStatsTracker:
	def __init__(self, store: KeyValueStore, clock: Callable[[], datetime] = datetime.now) -> None:
		self.store = store
		self.clock = clock

	def _today(self) -> str:
		return self.clock().date().isoformat()

	def today(self) -> DailyStats:
		today = self._today()
		stored = self.store.get(STATS_KEY)
		if stored:
			try:
				stats = DailyStats.model_validate_json(stored)
			except ValidationError:
				return DailyStats(date=today)
			if stats.date == today:
				return stats
		return DailyStats(date=today)

	def record(self, mode: ExerciseMode, success: bool) -> bool:
		stats = self.today()
		stats.attempts += 1
		if success:
			stats.successes += 1
		self.store.set(STATS_KEY, stats.model_dump_json())
		ts = int(self.clock().timestamp() * 1000)
		results = [ExerciseResult(mode=mode, success=success, timestamp=ts)] + self.recent_results()
		self.store.set(RECENT_RESULTS_KEY, json.dumps([r.model_dump() for r in results[:RECENT_LIMIT]]))
		# the daily limit is disabled, so every attempt is accepted
		return True

	def recent_results(self) -> List[ExerciseResult]:
		stored = self.store.get(RECENT_RESULTS_KEY)
		if not stored:
			return []
		try:
			items = json.loads(stored)
			return [ExerciseResult.model_validate(x) for x in items]
		except (json.JSONDecodeError, TypeError, ValidationError):
			return []

	def success_rate(self) -> int:
		stats = self.today()
		if stats.attempts == 0:
			return 0
		return round(stats.successes / stats.attempts * 100)


class UnlimitedPolicy:
	"""Daily-limit policy with the limit switched off."""

	def is_limit_reached(self) -> bool:
		return False

	def remaining_attempts(self) -> float:
		return math.inf
