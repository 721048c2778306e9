"""Тесты кэша разобранных шаблонов."""

import threading
from unittest.mock import Mock

import pytest

from yapl.cache.template_cache import TemplateCache, string_key
from yapl.engine import Engine
from yapl.errors import TemplateParseError
from yapl.loader import DictLoader
from yapl.template.parser import parse_template


class TestTemplateCache:

    def test_put_and_get(self):
        cache = TemplateCache()
        parsed = parse_template("x")
        assert cache.get("/a.yapl") is None
        assert cache.put("/a.yapl", parsed) is parsed
        assert cache.get("/a.yapl") is parsed
        assert "/a.yapl" in cache
        assert len(cache) == 1

    def test_first_writer_wins(self):
        cache = TemplateCache()
        first, second = parse_template("1"), parse_template("1")
        cache.put("k", first)
        assert cache.put("k", second) is first

    def test_disabled_cache_never_stores(self):
        cache = TemplateCache(enabled=False)
        parsed = parse_template("x")
        assert cache.put("k", parsed) is parsed
        assert cache.get("k") is None
        assert len(cache) == 0

    @pytest.mark.parametrize("value,enabled", [("0", False), ("off", False), ("no", False), ("1", True), ("yes", True)])
    def test_env_override(self, monkeypatch, value, enabled):
        monkeypatch.setenv("YAPL_CACHE", value)
        assert TemplateCache(enabled=not enabled).enabled is enabled

    def test_clear(self):
        cache = TemplateCache()
        cache.put("k", parse_template(""))
        cache.clear()
        assert len(cache) == 0

    def test_string_key(self):
        assert string_key("abc") == string_key("abc")
        assert string_key("abc") != string_key("abd")
        assert string_key("abc").startswith("string:")

    def test_concurrent_population(self):
        cache = TemplateCache()
        results = []

        def worker():
            results.append(cache.put("k", parse_template("same")))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(r) for r in results}) == 1


class TestEngineCaching:

    def _engine(self, templates, cache=True):
        from yapl.config import EngineOptions
        loader = Mock(wraps=DictLoader(templates))
        return Engine(EngineOptions(cache=cache), loader=loader), loader

    def test_files_parsed_once(self):
        engine, loader = self._engine({"a.yapl": "{{ v }}"})
        assert engine.render("a", {"v": 1}).content == "1"
        assert engine.render("a", {"v": 2}).content == "2"
        assert loader.load_file.call_count == 1

    def test_cache_disabled_reloads(self):
        engine, loader = self._engine({"a.yapl": "x"}, cache=False)
        engine.render("a")
        engine.render("a")
        assert loader.load_file.call_count == 2

    def test_failed_parse_not_cached(self):
        engine, _ = self._engine({"bad.yapl": "{% if x %}"})
        with pytest.raises(TemplateParseError):
            engine.render("bad")
        assert len(engine.cache) == 0

    def test_string_sources_cached_by_content(self):
        engine, _ = self._engine({})
        engine.render_string("{{ a }}", {"a": 1})
        engine.render_string("{{ a }}", {"a": 2})
        assert len(engine.cache) == 1
