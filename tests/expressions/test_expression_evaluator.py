"""
Тесты для вычислителя выражений.
"""

import pytest

from yapl.expressions.evaluator import (
    ExpressionEvaluator,
    compare_ordered,
    evaluate_expression_string,
    is_empty,
    is_truthy,
    values_equal,
)
from yapl.expressions.parser import ExpressionParser
from yapl.scope import Scope
from yapl.types import UNDEFINED


class TestExpressionEvaluator:

    def setup_method(self):
        self.parser = ExpressionParser()
        self.scope = Scope({
            "name": "Ada",
            "count": 3,
            "zero": 0,
            "empty_str": "",
            "nothing": None,
            "flag": True,
            "items": [10, 20, 30],
            "user": {"role": "admin", "tags": ["a", "b"]},
        })
        self.evaluator = ExpressionEvaluator(self.scope)

    def _eval(self, text):
        return self.evaluator.evaluate(self.parser.parse(text))

    def test_paths(self):
        assert self._eval("name") == "Ada"
        assert self._eval("items.1") == 20
        assert self._eval("user.tags[0]") == "a"
        assert self._eval('user["role"]') == "admin"

    def test_missing_paths_are_undefined(self):
        """Обращение к несуществующему пути никогда не выбрасывает исключение"""
        assert self._eval("missing") is UNDEFINED
        assert self._eval("name.first") is UNDEFINED
        assert self._eval("items.7") is UNDEFINED
        assert self._eval("nothing.deep.path") is UNDEFINED

    def test_equality(self):
        assert self._eval("count == 3") is True
        assert self._eval("count != 3") is False
        assert self._eval('name == "Ada"') is True
        assert self._eval("nothing == null") is True

    def test_booleans_never_equal_numbers(self):
        assert self._eval("flag == 1") is False
        assert self._eval("zero == false") is False
        assert self._eval("flag != 1") is True

    def test_undefined_equals_only_itself(self):
        assert self._eval("missing == null") is False
        assert self._eval("missing == other_missing") is True

    def test_ordering(self):
        assert self._eval("count > 2") is True
        assert self._eval("count <= 2") is False
        assert self._eval("2.5 < count") is True
        assert self._eval('"apple" < "banana"') is True

    def test_ordering_incompatible_types_is_false(self):
        assert self._eval('count > "2"') is False
        assert self._eval('count < "2"') is False
        assert self._eval("missing < 1") is False
        assert self._eval("nothing >= 0") is False
        assert self._eval("flag > 0") is False

    def test_logical_operators_short_circuit(self):
        assert self._eval("flag and count") is True
        assert self._eval("zero and missing.x") is False
        assert self._eval("zero or empty_str") is False
        assert self._eval("zero or name") is True

    def test_checks(self):
        assert self._eval("name is defined") is True
        assert self._eval("missing is defined") is False
        assert self._eval("missing is not defined") is True
        assert self._eval("nothing is defined") is True
        assert self._eval("items is not empty") is True
        assert self._eval("empty_str is empty") is True
        assert self._eval("missing is empty") is True
        assert self._eval("zero is empty") is False

    def test_default(self):
        assert self._eval('missing | default("D")') == "D"
        assert self._eval('name | default("D")') == "Ada"
        # null, 0 и "" считаются определёнными
        assert self._eval('nothing | default("D")') is None
        assert self._eval('zero | default("D")') == 0

    def test_default_with_path_fallback(self):
        assert self._eval("missing | default(user.role)") == "admin"

    def test_collections(self):
        assert self._eval("[1, name, [true]]") == [1, "Ada", [True]]
        assert self._eval("{ a: count, b: missing }") == {"a": 3, "b": UNDEFINED}

    def test_condition_truthiness(self):
        for text in ("missing", "nothing", "zero", "empty_str", "[]", "{}", "false"):
            assert self.evaluator.evaluate_condition(self.parser.parse(text)) is False, text
        for text in ("name", "count", "items", "user", "true", '"0"'):
            assert self.evaluator.evaluate_condition(self.parser.parse(text)) is True, text

    def test_evaluate_expression_string(self):
        assert evaluate_expression_string("count >= 3 and name is defined", self.scope) is True


class TestValueHelpers:

    @pytest.mark.parametrize("value,expected", [
        (UNDEFINED, False), (None, False), (False, False), (0, False), (0.0, False),
        ("", False), ([], False), ({}, False),
        (True, True), (1, True), ("x", True), ([0], True), ({"a": None}, True),
    ])
    def test_is_truthy(self, value, expected):
        assert is_truthy(value) is expected

    def test_is_empty(self):
        assert is_empty(UNDEFINED)
        assert is_empty(None)
        assert is_empty(())
        assert not is_empty(False)
        assert not is_empty(" ")

    def test_values_equal(self):
        assert values_equal(1, 1.0)
        assert not values_equal(True, 1)
        assert not values_equal(UNDEFINED, None)
        assert values_equal([1, 2], [1, 2])

    def test_compare_ordered(self):
        assert compare_ordered("<", 1, 2)
        assert compare_ordered(">=", "b", "a")
        assert not compare_ordered("<", 1, "2")
        assert not compare_ordered("<", None, 1)
        assert not compare_ordered(">", True, 0)
