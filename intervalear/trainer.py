from __future__ import annotations

import random
from typing import Any, List, Optional, Sequence, Tuple

from .errors import NoValidRoot
from .models import AnswerRecord, Comparison, ComparisonExercise, IdentificationExercise, Interval, IntervalStats, Stats
from .theory import INTERVALS, PITCH_CLASSES, in_range, interval_target

ROOT_OCTAVES = (4, 5)
PAIR_RETRIES = 10


def _rng(rng: Optional[random.Random]) -> Any:
	return rng if rng is not None else random


def random_interval(catalog: Sequence[Interval] = INTERVALS, rng: Optional[random.Random] = None) -> Interval:
	return _rng(rng).choice(catalog)


def root_candidates() -> List[int]:
	# every pitch class of octaves 4 and 5, i.e. C4..B5
	return [(octave + 1) * 12 + pc for octave in ROOT_OCTAVES for pc in range(len(PITCH_CLASSES))]


def valid_roots(interval: Interval, ascending: bool) -> List[int]:
	return [p for p in root_candidates() if in_range(interval_target(p, interval, ascending))]


def valid_root_pitch(interval: Interval, ascending: bool, rng: Optional[random.Random] = None) -> int:
	roots = valid_roots(interval, ascending)
	if not roots:
		raise NoValidRoot(interval.name, ascending)
	return _rng(rng).choice(roots)


def generate_pair(
	catalog: Sequence[Interval] = INTERVALS,
	rng: Optional[random.Random] = None,
	max_retries: int = PAIR_RETRIES,
) -> Tuple[Interval, Interval]:
	"""Draw two intervals, redrawing B a bounded number of times while A == B.

	Equal pairs are still possible once the retries run out; they are a valid
	exercise whose answer is "equal".
	"""
	a = random_interval(catalog, rng)
	b = random_interval(catalog, rng)
	for _ in range(max_retries):
		if b.name != a.name:
			break
		b = random_interval(catalog, rng)
	return a, b


def compare(a: Interval, b: Interval) -> Comparison:
	if a.semitones == b.semitones:
		return "equal"
	return "A" if a.semitones > b.semitones else "B"


def generate_options(
	correct: Interval,
	count: int = 3,
	catalog: Sequence[Interval] = INTERVALS,
	rng: Optional[random.Random] = None,
) -> List[Interval]:
	distinct = {i.name for i in catalog} | {correct.name}
	if count > len(distinct):
		raise ValueError(f"Cannot build {count} distinct options from {len(distinct)} intervals")
	r = _rng(rng)
	opts = [correct]
	while len(opts) < count:
		pick = r.choice(catalog)
		if all(o.name != pick.name for o in opts):
			opts.append(pick)
	r.shuffle(opts)
	return opts


def make_identification(
	catalog: Sequence[Interval] = INTERVALS,
	rng: Optional[random.Random] = None,
	option_count: int = 3,
) -> IdentificationExercise:
	r = _rng(rng)
	interval = random_interval(catalog, rng)
	ascending = r.random() > 0.5
	root = valid_root_pitch(interval, ascending, rng)
	return IdentificationExercise(
		interval=interval,
		ascending=ascending,
		root=root,
		options=generate_options(interval, option_count, catalog, rng),
	)


def make_comparison(catalog: Sequence[Interval] = INTERVALS, rng: Optional[random.Random] = None) -> ComparisonExercise:
	a, b = generate_pair(catalog, rng)
	return ComparisonExercise(
		interval_a=a,
		interval_b=b,
		root_a=valid_root_pitch(a, True, rng),
		root_b=valid_root_pitch(b, True, rng),
		answer=compare(a, b),
	)


def _record(stats: Stats, truth: str, chosen: str, is_correct: bool) -> None:
	st_i = stats.by_interval.setdefault(truth, IntervalStats())
	st_i.seen += 1
	if is_correct:
		st_i.correct += 1
	else:
		conf = stats.confusion.setdefault(truth, {})
		conf[chosen] = conf.get(chosen, 0) + 1


def score_identification(q: IdentificationExercise, chosen: str, stats: Stats) -> AnswerRecord:
	is_correct = chosen == q.interval.name
	_record(stats, q.interval.name, chosen, is_correct)
	return AnswerRecord(interval=q.interval.name, chosen=chosen, correct=is_correct)


def score_comparison(q: ComparisonExercise, chosen: Comparison, stats: Stats) -> AnswerRecord:
	# comparison stats are keyed by the pair, e.g. "3M/5J"
	key = f"{q.interval_a.name}/{q.interval_b.name}"
	is_correct = chosen == q.answer
	_record(stats, key, chosen, is_correct)
	return AnswerRecord(interval=key, chosen=chosen, correct=is_correct)
