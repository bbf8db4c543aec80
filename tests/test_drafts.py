from espacos.drafts import deep_equal, merge_fragments, overlay, prune_blanks


def test_deep_equal_ignores_key_order():
    assert deep_equal({"a": 1, "b": [1, {"x": "y"}]}, {"b": [1, {"x": "y"}], "a": 1})


def test_deep_equal_is_by_value_not_identity():
    a = {"tags": ["Monitors"]}
    b = {"tags": ["Monitors"]}
    assert a is not b and deep_equal(a, b)
    assert not deep_equal({"tags": ["Monitors"]}, {"tags": ["Monitors", "Online visit"]})


def test_deep_equal_list_order_matters_and_bool_is_not_int():
    assert not deep_equal(["a", "b"], ["b", "a"])
    assert not deep_equal({"rating": 1}, {"rating": True})
    assert deep_equal({"rating": 4}, {"rating": 4.0})


def test_overlay_is_shallow_and_new_dict():
    base = {"name": "A", "contact": "1"}
    out = overlay(base, {"name": "B"})
    assert out == {"name": "B", "contact": "1"}
    assert base["name"] == "A"


def test_merge_fragments_union_later_wins():
    merged = merge_fragments([{"a": 1, "b": 1}, {"b": 2}, {"c": [3]}])
    assert merged == {"a": 1, "b": 2, "c": [3]}


def test_prune_blanks_strings_and_records():
    assert prune_blanks(["x", "", "  ", "y"]) == ["x", "y"]
    recs = [{"response": " ", "disciplines": ["Física"]}, {"response": "ok", "disciplines": []}]
    assert prune_blanks(recs, "response") == [{"response": "ok", "disciplines": []}]
    assert prune_blanks(None) == []
