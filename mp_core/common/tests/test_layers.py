# mp_core/common/tests/test_layers.py
from datetime import date

from mp_core.common.dates import date_range, day_of_week, is_valid_day_of_week
from mp_core.common.layers import MISSING, Layer, resolve_first


def test_first_layer_with_entry_wins():
    layers = [
        Layer.from_mapping("override", {}),
        Layer.from_mapping("template", {2: "template-value"}),
    ]
    res = resolve_first(layers, 2, default="fallback")
    assert res.kind == "template"
    assert res.value == "template-value"
    assert res.is_default is False


def test_empty_value_still_wins_over_lower_layer():
    layers = [
        Layer.from_mapping("override", {2: ()}),
        Layer.from_mapping("template", {2: ("front", 3)}),
    ]
    res = resolve_first(layers, 2, default=None)
    assert res.kind == "override"
    assert res.value == ()


def test_none_and_zero_are_explicit_entries():
    assert resolve_first([Layer.from_mapping("a", {1: None})], 1, default="d").value is None
    assert resolve_first([Layer.from_mapping("a", {1: 0})], 1, default="d").value == 0


def test_default_when_no_layer_has_entry():
    res = resolve_first([Layer.from_mapping("a", {})], "k", default=42, default_kind="none")
    assert res.value == 42
    assert res.kind == "none"
    assert res.is_default is True


def test_layer_key_mapping_mixes_date_and_weekday_layers():
    d = date(2024, 1, 8)  # Monday
    layers = [
        Layer.from_mapping("override", {date(2024, 1, 9): "x"}),
        Layer.from_mapping("weekly", {1: "monday-value"}, key=day_of_week),
    ]
    assert resolve_first(layers, d, default=None).kind == "weekly"


def test_missing_is_falsy_singleton():
    assert not MISSING
    assert repr(MISSING) == "MISSING"
    assert Layer.from_mapping("a", {}).lookup("nope") is MISSING


def test_day_of_week_is_sunday_based():
    assert day_of_week(date(2024, 1, 7)) == 0  # Sunday
    assert day_of_week(date(2024, 1, 10)) == 3  # Wednesday
    assert day_of_week(date(2024, 1, 13)) == 6  # Saturday


def test_is_valid_day_of_week():
    assert is_valid_day_of_week(0)
    assert is_valid_day_of_week(6)
    assert not is_valid_day_of_week(7)
    assert not is_valid_day_of_week(-1)
    assert not is_valid_day_of_week(True)
    assert not is_valid_day_of_week("2")


def test_date_range_is_inclusive():
    days = list(date_range(date(2024, 1, 1), date(2024, 1, 3)))
    assert days == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)]
    assert list(date_range(date(2024, 1, 2), date(2024, 1, 1))) == []
