import random

import pytest

from quizdeck.sampler import clamp_count, sample


def test_sample_returns_distinct_items_from_pool_without_mutating() -> None:
    pool = list(range(10))
    original = list(pool)
    for count in range(len(pool) + 1):
        drawn = sample(pool, count, random.Random(count))
        assert len(drawn) == count
        assert len(set(drawn)) == count
        assert set(drawn) <= set(pool)
    assert pool == original


def test_sample_full_count_is_permutation() -> None:
    pool = ("a", "b", "c", "d")
    drawn = sample(pool, 4, random.Random(7))
    assert sorted(drawn) == sorted(pool)
    assert pool == ("a", "b", "c", "d")


def test_sample_empty_pool() -> None:
    assert sample([], 0) == []


def test_sample_rejects_out_of_range_count() -> None:
    with pytest.raises(ValueError):
        sample([1, 2], 3)
    with pytest.raises(ValueError):
        sample([1, 2], -1)


def test_sample_is_reproducible_with_seeded_rng() -> None:
    pool = list(range(20))
    assert sample(pool, 5, random.Random(42)) == sample(pool, 5, random.Random(42))


def test_sample_reaches_every_permutation_of_three() -> None:
    rng = random.Random(0)
    seen = {tuple(sample([1, 2, 3], 3, rng)) for _ in range(600)}
    assert len(seen) == 6


def test_sample_first_position_is_roughly_uniform() -> None:
    rng = random.Random(1234)
    counts = {value: 0 for value in range(4)}
    trials = 4000
    for _ in range(trials):
        counts[sample([0, 1, 2, 3], 1, rng)[0]] += 1
    for value in counts.values():
        assert 800 < value < 1200


def test_clamp_count() -> None:
    assert clamp_count(5, 0) == 0
    assert clamp_count(None, 0) == 0
    assert clamp_count(None, 7) == 7
    assert clamp_count(0, 7) == 1
    assert clamp_count(3, 7) == 3
    assert clamp_count(30, 7) == 7
