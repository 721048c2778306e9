"""Тесты скоупа переменных."""

from yapl.scope import Scope
from yapl.types import UNDEFINED


class TestScope:

    def test_get(self):
        scope = Scope({"a": 1, "n": None})
        assert scope.get("a") == 1
        assert scope.get("n") is None
        assert scope.get("missing") is UNDEFINED

    def test_child_shadows_without_mutating_parent(self):
        parent = Scope({"a": 1, "b": 2})
        child = parent.child({"a": 10})
        assert child.get("a") == 10
        assert child.get("b") == 2
        assert parent.get("a") == 1
        assert child.parent is parent

    def test_source_mapping_is_copied(self):
        data = {"a": 1}
        scope = Scope(data)
        data["a"] = 2
        assert scope.get("a") == 1

    def test_lookup(self):
        scope = Scope({"user": {"langs": ["py", "go"], "0": "zero-key"}})
        assert scope.lookup(("user", "langs", 1)) == "go"
        assert scope.lookup(("user", "langs", "0")) == "py"
        assert scope.lookup(("user", 0)) == "zero-key"

    def test_lookup_never_raises(self):
        scope = Scope({"items": [1], "text": "abc", "n": None})
        assert scope.lookup(("items", 5)) is UNDEFINED
        assert scope.lookup(("items", -1)) is UNDEFINED
        assert scope.lookup(("items", "first")) is UNDEFINED
        assert scope.lookup(("text", 0)) is UNDEFINED
        assert scope.lookup(("n", "x")) is UNDEFINED
        assert scope.lookup(("missing", "x", 0)) is UNDEFINED
        assert scope.lookup(()) is UNDEFINED

    def test_flatten_and_contains(self):
        scope = Scope({"a": 1, "b": 2}).child({"b": 3})
        assert scope.flatten() == {"a": 1, "b": 3}
        assert "a" in scope
        assert "z" not in scope
