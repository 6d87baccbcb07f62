"""Tests for the tagged value tree."""

from __future__ import annotations

import pytest

from secretvault.codec.values import (
    MappingNode,
    Marked,
    Scalar,
    SequenceNode,
    child_path,
    classify,
    is_markable,
    iter_marked,
    to_plain,
)
from secretvault.core.exceptions import InvalidRecordError


class TestClassify:
    """Tests for classify()."""

    def test_scalar(self):
        assert classify(5) == Scalar(5)
        assert classify(None) == Scalar(None)

    def test_marked(self):
        assert classify({"$allot": "secret"}) == Marked("secret")

    def test_nested_mapping_and_sequence(self):
        tree = classify({"a": [1, {"$allot": 2}], "b": {"c": "x"}})
        assert tree == MappingNode({
            "a": SequenceNode((Scalar(1), Marked(2))),
            "b": MappingNode({"c": Scalar("x")}),
        })

    def test_marker_with_sibling_keys_rejected(self):
        with pytest.raises(InvalidRecordError) as exc_info:
            classify({"outer": {"$allot": 1, "extra": 2}})
        assert "outer" in str(exc_info.value)

    def test_custom_marker(self):
        assert classify({"%share": 1}, marker="%share") == Marked(1)
        assert classify({"$allot": 1}, marker="%share") == MappingNode({"$allot": Scalar(1)})

    def test_to_plain_inverts_classify(self):
        record = {"a": [1, {"$allot": 2}], "b": {"c": None}, "d": True}
        assert to_plain(classify(record)) == record


class TestPathsAndMarks:
    """Tests for iter_marked(), child_path() and is_markable()."""

    def test_child_path(self):
        assert child_path("", "a") == "a"
        assert child_path("a", "b") == "a.b"
        assert child_path("a", 0) == "a[0]"

    def test_iter_marked_paths(self):
        tree = classify({"x": {"$allot": 1}, "y": [{"z": {"$allot": "s"}}], "w": 3})
        assert [path for path, _ in iter_marked(tree)] == ["x", "y[0].z"]

    def test_no_marks(self):
        assert list(iter_marked(classify({"a": [1, 2]}))) == []

    @pytest.mark.parametrize("value", [0, 42, "text", b"raw"])
    def test_markable(self, value):
        assert is_markable(value)

    @pytest.mark.parametrize("value", [True, 1.5, None, [1], {"a": 1}])
    def test_not_markable(self, value):
        assert not is_markable(value)
