"""Тесты для лексера шаблонов TemplateLexer."""

import pytest

from yapl.errors import TemplateLexerError
from yapl.template.lexer import TemplateLexer, TokenType, tokenize_template


def _kinds(text):
    return [t.type for t in tokenize_template(text)]


class TestTemplateLexer:
    """Основные тесты для TemplateLexer."""

    def test_empty_template(self):
        assert _kinds("") == [TokenType.EOF]

    def test_plain_text(self):
        tokens = tokenize_template("Hello, world!")
        assert [t.type for t in tokens] == [TokenType.TEXT, TokenType.EOF]
        assert tokens[0].value == "Hello, world!"

    def test_variable(self):
        tokens = tokenize_template("Hi {{ name }}!")
        assert [t.type for t in tokens] == [
            TokenType.TEXT, TokenType.VAR_OPEN, TokenType.RAW, TokenType.VAR_CLOSE, TokenType.TEXT, TokenType.EOF,
        ]
        assert tokens[2].value == " name "

    def test_directive(self):
        tokens = tokenize_template("{% if x %}")
        assert [t.type for t in tokens] == [TokenType.TAG_OPEN, TokenType.RAW, TokenType.TAG_CLOSE, TokenType.EOF]
        assert tokens[1].value == " if x "

    def test_comment_is_single_token(self):
        tokens = tokenize_template("a{# note {{ x }} #}b")
        assert [t.type for t in tokens] == [TokenType.TEXT, TokenType.COMMENT, TokenType.TEXT, TokenType.EOF]
        assert tokens[1].value == " note {{ x }} "

    def test_single_brace_is_text(self):
        tokens = tokenize_template("{ not a tag } {")
        assert [t.type for t in tokens] == [TokenType.TEXT, TokenType.EOF]

    def test_trim_flags(self):
        tokens = tokenize_template("{{- name -}}")
        assert tokens[0].left_trim is True
        assert tokens[1].value == " name "
        assert tokens[2].right_trim is True

    def test_comment_trim_flags(self):
        tokens = tokenize_template("{#- c -#}")
        assert tokens[0].left_trim is True
        assert tokens[0].right_trim is True
        assert tokens[0].value == " c "

    def test_closer_inside_string_does_not_close(self):
        tokens = tokenize_template('{{ x | default("}}") }}tail')
        assert tokens[1].value == ' x | default("}}") '
        assert tokens[3].value == "tail"

    def test_escaped_quote_inside_string(self):
        tokens = tokenize_template(r"{% include 'it\'s %}.yapl' %}")
        assert tokens[1].value == r" include 'it\'s %}.yapl' "

    def test_positions(self):
        tokens = tokenize_template("line1\n  {{ x }}")
        var_open = tokens[1]
        assert var_open.position == 8
        assert (var_open.line, var_open.column) == (2, 3)

    def test_location(self):
        lexer = TemplateLexer("ab\ncd\n\nef")
        assert lexer.location(0) == (1, 1)
        assert lexer.location(4) == (2, 2)
        assert lexer.location(7) == (4, 1)

    @pytest.mark.parametrize("text,kind,offset", [
        ("abc {{ x", "variable", 4),
        ("{% if x", "directive", 0),
        ("ok {# never closed", "comment", 3),
        ('{{ "}}', "variable", 0),
    ])
    def test_unterminated(self, text, kind, offset):
        with pytest.raises(TemplateLexerError) as exc:
            tokenize_template(text)
        assert f"Unterminated {kind} tag opened at offset {offset}" in str(exc.value)
        assert exc.value.position == offset

    def test_iter_tokens_is_lazy(self):
        """Ошибка в конце шаблона не мешает получить начальные токены"""
        stream = TemplateLexer("text {{ x").iter_tokens()
        assert next(stream).value == "text "
        with pytest.raises(TemplateLexerError):
            next(stream)
