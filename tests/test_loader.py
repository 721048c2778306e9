"""Тесты загрузчиков шаблонов."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from tests.infrastructure.file_utils import write, write_templates
from yapl.engine import Engine
from yapl.errors import PathSecurityError, TemplateLoadError, TemplateNotFoundError
from yapl.loader import DictLoader, FileSystemLoader, TemplateLoader


class TestFileSystemLoader:

    def test_appends_default_extension(self, tmp_path: Path):
        loader = FileSystemLoader(tmp_path)
        assert loader.resolve_path("page", None) == str(tmp_path.resolve() / "page.yapl")
        assert loader.resolve_path("page.txt", None) == str(tmp_path.resolve() / "page.txt")

    def test_custom_extension(self, tmp_path: Path):
        loader = FileSystemLoader(tmp_path, extension=".tpl")
        assert loader.resolve_path("page", None).endswith("page.tpl")

    def test_relative_to_from_dir(self, tmp_path: Path):
        write_templates(tmp_path, {"docs/a.yapl": "", "a.yapl": ""})
        loader = FileSystemLoader(tmp_path)
        resolved = loader.resolve_path("a", str(tmp_path / "docs"))
        assert resolved == str((tmp_path / "docs" / "a.yapl").resolve())

    def test_falls_back_to_base_dir(self, tmp_path: Path):
        write(tmp_path / "shared.yapl", "")
        loader = FileSystemLoader(tmp_path)
        resolved = loader.resolve_path("shared", str(tmp_path / "docs"))
        assert resolved == str((tmp_path / "shared.yapl").resolve())

    def test_leading_slash_is_base_relative(self, tmp_path: Path):
        write_templates(tmp_path, {"docs/x.yapl": "", "x.yapl": ""})
        loader = FileSystemLoader(tmp_path)
        assert loader.resolve_path("/x", str(tmp_path / "docs")) == str((tmp_path / "x.yapl").resolve())

    def test_load_file(self, tmp_path: Path):
        write(tmp_path / "a.yapl", "content ✓")
        loader = FileSystemLoader(tmp_path)
        assert loader.load_file(loader.resolve_path("a", None)) == "content ✓"

    def test_missing_file(self, tmp_path: Path):
        loader = FileSystemLoader(tmp_path)
        with pytest.raises(TemplateNotFoundError):
            loader.load_file(str(tmp_path / "missing.yapl"))

    def test_unreadable_path(self, tmp_path: Path):
        (tmp_path / "dir.yapl").mkdir()
        loader = FileSystemLoader(tmp_path)
        with pytest.raises(TemplateLoadError) as exc:
            loader.load_file(str(tmp_path / "dir.yapl"))
        assert isinstance(exc.value.cause, OSError)

    def test_strict_paths_reject_escape(self, tmp_path: Path):
        base = tmp_path / "templates"
        base.mkdir()
        loader = FileSystemLoader(base, strict_paths=True)
        with pytest.raises(PathSecurityError, match="path escapes base directory"):
            loader.resolve_path("../../../etc/passwd", None)

    def test_lenient_mode_allows_escape(self, tmp_path: Path):
        base = tmp_path / "templates"
        write(tmp_path / "outside.yapl", "out")
        loader = FileSystemLoader(base)
        assert loader.resolve_path("../outside", None) == str((tmp_path / "outside.yapl").resolve())

    def test_strict_paths_allow_inner_paths(self, tmp_path: Path):
        loader = FileSystemLoader(tmp_path, strict_paths=True)
        assert loader.resolve_path("a/../b", None) == str((tmp_path / "b.yapl").resolve())

    def test_implements_protocol(self, tmp_path: Path):
        assert isinstance(FileSystemLoader(tmp_path), TemplateLoader)


class TestDictLoader:

    def test_keys_are_normalized(self):
        loader = DictLoader({"a.yapl": "A", "/dir/b.yapl": "B"})
        assert loader.load_file("/a.yapl") == "A"
        assert loader.load_file("/dir/b.yapl") == "B"

    def test_resolution(self):
        loader = DictLoader({"dir/b.yapl": "", "c.yapl": ""})
        assert loader.resolve_path("b", "/dir") == "/dir/b.yapl"
        assert loader.resolve_path("c", "/dir") == "/c.yapl"
        assert loader.resolve_path("/dir/b", "/elsewhere") == "/dir/b.yapl"
        assert loader.resolve_path("../c", "/dir") == "/c.yapl"

    def test_strict_paths(self):
        loader = DictLoader({}, strict_paths=True)
        with pytest.raises(PathSecurityError):
            loader.resolve_path("../../etc/passwd", "/dir")

    def test_missing(self):
        with pytest.raises(TemplateNotFoundError, match="/nope.yapl"):
            DictLoader({}).load_file("/nope.yapl")

    def test_implements_protocol(self):
        assert isinstance(DictLoader({}), TemplateLoader)


class TestStrictPathsInEngine:

    def test_escape_rejected_without_loading(self, tmp_path: Path):
        """Путь за пределами base_dir отклоняется до чтения файла"""
        real = FileSystemLoader(tmp_path, strict_paths=True)
        loader = Mock(wraps=real)
        engine = Engine(loader=loader)

        with pytest.raises(PathSecurityError):
            engine.render_string('{% extends "../../../etc/passwd" %}')

        loader.resolve_path.assert_called_once()
        loader.load_file.assert_not_called()

    def test_include_escape_rejected(self, tmp_path: Path):
        base = tmp_path / "tpl"
        write(tmp_path / "secret.yapl", "secret")
        write(base / "page.yapl", '{% include "../secret" %}')
        loader = Mock(wraps=FileSystemLoader(base, strict_paths=True))
        engine = Engine(loader=loader)

        with pytest.raises(PathSecurityError):
            engine.render("page")

        loaded = [call.args[0] for call in loader.load_file.call_args_list]
        assert loaded == [str((base / "page.yapl").resolve())]
