from pathlib import Path

import pytest

# Импорт из унифицированной инфраструктуры
from tests.infrastructure.file_utils import write_templates
from tests.infrastructure.rendering_utils import make_engine, make_fs_engine


@pytest.fixture(autouse=True)
def _no_cache_env(monkeypatch):
    # переменная окружения переопределяет опцию cache
    monkeypatch.delenv("YAPL_CACHE", raising=False)


@pytest.fixture
def tmpproj(tmp_path: Path) -> Path:
    """Минимальный проект: базовый шаблон, миксин, наследник и включаемый фрагмент."""
    return write_templates(tmp_path, {
        "base.yapl": "# {% block title %}Base{% endblock %}\n{% block body %}{% endblock %}",
        "mixins/greeting.yapl": "{% block body %}{{ super() }}Hello, {{ name | default(\"world\") }}!{% endblock %}",
        "child.yapl": (
            "{% extends \"base\" %}\n"
            "{% mixin \"mixins/greeting\" %}\n"
            "{% block title %}Child{% endblock %}"
        ),
        "parts/footer.yapl": "-- {{ sign }} --",
    })


@pytest.fixture
def fs_engine(tmpproj: Path):
    return make_fs_engine(tmpproj)


@pytest.fixture
def engine_factory():
    """Фабрика движков с загрузчиком в памяти."""
    return make_engine
