import pytest

from backend.runs import decode_runs, encode_runs


def test_identical_items_make_one_run():
    assert encode_runs(["a", "a", "a"]) == [(3, "a")]


def test_distinct_items_make_one_run_each():
    items = [1, 2, 3, 4]
    assert encode_runs(items) == [(1, 1), (1, 2), (1, 3), (1, 4)]


def test_empty_input():
    assert encode_runs([]) == []
    assert decode_runs([]) == []


def test_only_consecutive_items_are_merged():
    items = ["x", "x", "y", "x"]
    runs = encode_runs(items)
    assert runs == [(2, "x"), (1, "y"), (1, "x")]
    assert decode_runs(runs) == items


def test_key_function_keeps_first_item_of_run():
    items = [("a", 1), ("a", 2), ("b", 3)]
    runs = encode_runs(items, key=lambda item: item[0])
    assert runs == [(2, ("a", 1)), (1, ("b", 3))]


def test_decode_skips_zero_counts_and_rejects_negative():
    assert decode_runs([(0, "a"), (2, "b")]) == ["b", "b"]
    with pytest.raises(ValueError):
        decode_runs([(-1, "a")])
