import json
import random

import pytest

from duelroom.constants import STAT_KEYS, SUMMARY_MAX_LENGTH
from duelroom.modules.characters.stats import StatAnalysis, distribute, normalize_stats, parse_analysis


def _total(stats):
    return sum(getattr(stats, k) for k in STAT_KEYS)


def test_oversized_values_are_rescaled_to_100():
    raw = json.dumps({"attack": 90, "defense": 90, "magic": 90, "mana": 90, "speed": 90, "summary": "big"})
    stats = normalize_stats(parse_analysis(raw), "fallback")
    assert [getattr(stats, k) for k in STAT_KEYS] == [20, 20, 20, 20, 20]
    assert stats.summary == "big"


def test_missing_analysis_falls_back_to_flat_stats_and_description():
    stats = normalize_stats(None, "  a   fox knight  ")
    assert [getattr(stats, k) for k in STAT_KEYS] == [20, 20, 20, 20, 20]
    assert stats.summary == "a fox knight"


def test_proportions_survive_normalization():
    raw = '{"attack": 50, "defense": 25, "magic": 25, "mana": 0, "speed": 0}'
    stats = normalize_stats(parse_analysis(raw))
    assert (stats.attack, stats.defense, stats.magic, stats.mana, stats.speed) == (50, 25, 25, 0, 0)


def test_largest_remainder_breaks_ties_by_position():
    assert distribute([1, 1, 1, 0, 0]) == [34, 33, 33, 0, 0]
    assert distribute([0, 0, 0, 0, 0]) == [20, 20, 20, 20, 20]


def test_junk_values_are_coerced():
    raw = json.dumps({"attack": True, "defense": "40", "magic": -5, "mana": 1000, "speed": None})
    stats = normalize_stats(parse_analysis(raw), "x")
    assert _total(stats) == 100
    # magic clamps to 0, everything else is positive
    assert stats.magic == 0
    assert all(getattr(stats, k) >= 0 for k in STAT_KEYS)


def test_fenced_json_is_accepted():
    raw = "```json\n{\"attack\": 10, \"defense\": 10, \"magic\": 10, \"mana\": 10, \"speed\": 60}\n```"
    stats = normalize_stats(parse_analysis(raw))
    assert stats.speed == 60
    assert _total(stats) == 100


def test_non_json_output_is_rejected_by_the_parser():
    assert parse_analysis("I think this character is strong!") is None
    assert parse_analysis("[1, 2, 3]") is None
    assert parse_analysis(None) is None


def test_summary_is_truncated():
    raw = json.dumps({"summary": "x" * 200})
    stats = normalize_stats(parse_analysis(raw))
    assert len(stats.summary) == SUMMARY_MAX_LENGTH
    assert _total(stats) == 100


def test_integers_wider_than_a_float_fall_back_to_default():
    stats = normalize_stats(StatAnalysis(attack=10 ** 400, defense=50, magic=50, mana=50, speed=50))
    assert [getattr(stats, k) for k in STAT_KEYS] == [20, 20, 20, 20, 20]

    parsed = parse_analysis('{"attack": 1' + "0" * 400 + ', "defense": 50, "magic": 50, "mana": 50, "speed": 50}')
    assert parsed is not None
    assert [getattr(normalize_stats(parsed), k) for k in STAT_KEYS] == [20, 20, 20, 20, 20]


def test_deeply_nested_output_is_rejected_by_the_parser():
    raw = '{"a":' + "[" * 100000 + "]" * 100000 + "}"
    assert parse_analysis(raw) is None
    assert _total(normalize_stats(parse_analysis(raw), "fallback")) == 100


_ODD_ANALYSES = [
    "",
    "null",
    "{}",
    '{"attack": "NaN", "defense": "inf", "magic": "-inf", "mana": "1e400", "speed": "  7 "}',
    '{"attack": 1e308, "defense": 1e308, "magic": 1e308, "mana": 1e308, "speed": 1e308}',
    '{"attack": 0.1, "defense": 0.1, "magic": 0.1, "mana": 0.1, "speed": 0.1}',
    '{"attack": -1, "defense": -2, "magic": -3, "mana": -4, "speed": -5}',
    '{"attack": [1], "defense": {"x": 1}, "magic": null, "mana": false, "speed": "fast"}',
    '{"attack": 99, "defense": 1, "magic": 0, "mana": 0, "speed": 0, "summary": 42}',
    '{"attack": 1' + "0" * 400 + "}",
    '{"a":' + "[" * 100000 + "]" * 100000 + "}",
    "```json\n{\"attack\": 33, \"defense\": 33, \"magic\": 33}\n```",
]


@pytest.mark.parametrize("raw", _ODD_ANALYSES)
def test_normalized_stats_always_sum_to_100(raw):
    stats = normalize_stats(parse_analysis(raw), "a fox knight")
    values = [getattr(stats, k) for k in STAT_KEYS]
    assert sum(values) == 100
    assert all(0 <= v <= 100 for v in values)
    assert len(stats.summary) <= SUMMARY_MAX_LENGTH


def test_random_values_always_sum_to_100():
    rng = random.Random(1234)
    for _ in range(500):
        values = [rng.choice([0, rng.random() * 100, rng.randint(0, 100), 100]) for _ in STAT_KEYS]
        out = distribute(values)
        assert sum(out) == 100
        assert all(0 <= v <= 100 for v in out)
