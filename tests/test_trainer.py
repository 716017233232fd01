import itertools
import random

import pytest

from intervalear.errors import NoValidRoot
from intervalear.models import Interval, Stats
from intervalear.theory import INTERVALS, MAX_PITCH, MIN_PITCH, interval_by_name
from intervalear.trainer import (
	compare,
	generate_options,
	generate_pair,
	make_comparison,
	make_identification,
	random_interval,
	root_candidates,
	score_comparison,
	score_identification,
	valid_root_pitch,
	valid_roots,
)


def test_root_candidates_cover_octaves_four_and_five():
	assert root_candidates() == list(range(60, 84))


@pytest.mark.parametrize("interval", INTERVALS, ids=lambda i: i.name)
@pytest.mark.parametrize("ascending", [True, False])
def test_valid_root_keeps_target_in_range(interval, ascending):
	rng = random.Random(7)
	for _ in range(200):
		root = valid_root_pitch(interval, ascending, rng)
		target = root + interval.semitones if ascending else root - interval.semitones
		assert MIN_PITCH <= target <= MAX_PITCH
		assert MIN_PITCH <= root <= MAX_PITCH


def test_valid_roots_for_octave():
	octave = interval_by_name("8J")
	assert valid_roots(octave, True) == list(range(60, 73))
	assert valid_roots(octave, False) == list(range(72, 84))


def test_no_valid_root_is_raised():
	huge = Interval(name="15ma", semitones=30, label="Two octaves and a fifth")
	with pytest.raises(NoValidRoot):
		valid_root_pitch(huge, True)
	with pytest.raises(NoValidRoot):
		valid_root_pitch(huge, False)


def test_random_interval_comes_from_catalog():
	rng = random.Random(1)
	seen = {random_interval(rng=rng).name for _ in range(300)}
	assert seen == {i.name for i in INTERVALS}


def test_compare_major_third_vs_fifth():
	assert compare(interval_by_name("3M"), interval_by_name("5J")) == "B"
	assert compare(interval_by_name("5J"), interval_by_name("3M")) == "A"


def test_compare_is_antisymmetric():
	for a, b in itertools.product(INTERVALS, repeat=2):
		assert (compare(a, b) == "A") == (compare(b, a) == "B")
		assert (compare(a, b) == "equal") == (compare(b, a) == "equal")
	for a in INTERVALS:
		assert compare(a, a) == "equal"


def test_compare_equal_distance_different_names():
	tritone = Interval(name="4A", semitones=6, label="Augmented 4th")
	flat_fifth = Interval(name="5d", semitones=6, label="Diminished 5th")
	assert compare(tritone, flat_fifth) == "equal"


def test_generate_options_shape():
	rng = random.Random(3)
	for correct in INTERVALS:
		for _ in range(50):
			opts = generate_options(correct, 3, rng=rng)
			names = [o.name for o in opts]
			assert len(opts) == 3
			assert names.count(correct.name) == 1
			assert len(set(names)) == 3


def test_generate_options_is_shuffled():
	rng = random.Random(11)
	correct = interval_by_name("4J")
	positions = {[o.name for o in generate_options(correct, rng=rng)].index("4J") for _ in range(100)}
	assert positions == {0, 1, 2}


def test_generate_options_whole_catalog():
	opts = generate_options(INTERVALS[0], len(INTERVALS), rng=random.Random(0))
	assert sorted(o.name for o in opts) == sorted(i.name for i in INTERVALS)


def test_generate_options_too_many():
	with pytest.raises(ValueError):
		generate_options(INTERVALS[0], len(INTERVALS) + 1)


def test_generate_pair_single_entry_catalog_terminates():
	only = [INTERVALS[0]]
	a, b = generate_pair(only, rng=random.Random(0))
	assert a == b == INTERVALS[0]


def test_generate_pair_rarely_equal():
	rng = random.Random(5)
	runs = 2000
	two = list(INTERVALS[:2])
	equal = sum(1 for _ in range(runs) if len({p.name for p in generate_pair(two, rng=rng)}) == 1)
	# with 10 retries the chance of an equal pair is (1/2) ** 11
	assert equal / runs < 0.01
	equal_full = sum(1 for _ in range(runs) if len({p.name for p in generate_pair(rng=rng)}) == 1)
	assert equal_full / runs < 0.01


def test_generate_pair_without_retries_is_a_plain_draw():
	rng = random.Random(9)
	two = list(INTERVALS[:2])
	equal = sum(1 for _ in range(2000) if len({p.name for p in generate_pair(two, rng=rng, max_retries=0)}) == 1)
	assert 0.4 < equal / 2000 < 0.6


def test_make_identification_structure():
	rng = random.Random(2)
	for _ in range(100):
		q = make_identification(rng=rng)
		assert q.interval in q.options
		assert len(q.options) == 3
		assert MIN_PITCH <= q.target <= MAX_PITCH


def test_make_comparison_answer_matches_intervals():
	rng = random.Random(4)
	for _ in range(100):
		q = make_comparison(rng=rng)
		assert q.answer == compare(q.interval_a, q.interval_b)
		assert q.root_a + q.interval_a.semitones <= MAX_PITCH
		assert q.root_b + q.interval_b.semitones <= MAX_PITCH


def test_score_identification_updates_stats():
	q = make_identification(rng=random.Random(8))
	before = q.model_copy(deep=True)
	stats = Stats()
	wrong = next(o.name for o in INTERVALS if o.name != q.interval.name)
	rec = score_identification(q, wrong, stats)
	assert not rec.correct
	assert stats.confusion[q.interval.name][wrong] == 1
	rec = score_identification(q, q.interval.name, stats)
	assert rec.correct
	assert stats.by_interval[q.interval.name].seen == 2
	assert stats.by_interval[q.interval.name].correct == 1
	assert q == before


def test_score_comparison():
	q = make_comparison(rng=random.Random(6))
	stats = Stats()
	rec = score_comparison(q, q.answer, stats)
	assert rec.correct
	assert rec.interval == f"{q.interval_a.name}/{q.interval_b.name}"
	other = "equal" if q.answer != "equal" else "A"
	assert not score_comparison(q, other, stats).correct
