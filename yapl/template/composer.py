"""
Композиция шаблонов: наследование (extends) и миксины.

Для цели рендеринга строит упорядоченный список слоёв:
[корневой предок, ..., прямой родитель, миксины..., сам шаблон].
Каждый слой вносит свои определения блоков; итоговое содержимое блока
сворачивается по слоям при рендеринге (см. renderer).

Глубина вложенности extends/include/mixin ограничена общим для
вызова рендеринга стеком (RenderState).
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Tuple

from .nodes import BlockNode, ParsedTemplate
from ..errors import MaxDepthExceededError, TemplateResolutionError
from ..loader import TemplateLoader

logger = logging.getLogger(__name__)

# Имя строкового источника (render_string) в диагностике
STRING_SOURCE = "<string>"


class RenderState:
    """
    Изменяемое состояние одного вызова рендеринга.

    Не разделяется между вызовами: стек вложенности и список
    задействованных файлов принадлежат только текущему рендерингу.
    """

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        self.stack: List[str] = []
        self._used_files: List[str] = []
        self._seen = set()

    @contextmanager
    def enter(self, name: str) -> Iterator[None]:
        """
        Входит в шаблон, расходуя единицу общего бюджета глубины.

        Raises:
            MaxDepthExceededError: Если бюджет исчерпан
        """
        if len(self.stack) >= self.max_depth:
            raise MaxDepthExceededError(self.max_depth, self.stack + [name])
        self.stack.append(name)
        try:
            yield
        finally:
            self.stack.pop()

    def record(self, path: str) -> None:
        """Отмечает шаблон как задействованный (порядок первого обращения)."""
        if path not in self._seen:
            self._seen.add(path)
            self._used_files.append(path)

    @property
    def used_files(self) -> List[str]:
        return list(self._used_files)


@dataclass(frozen=True)
class Layer:
    """Вклад одного шаблона в композицию."""
    template: ParsedTemplate
    path: str          # Разрешённый путь или STRING_SOURCE
    directory: Optional[str]  # Директория для относительных ссылок

    def block(self, name: str) -> Optional[BlockNode]:
        return self.template.blocks.get(name)


@dataclass(frozen=True)
class ComposedTemplate:
    """
    Результат композиции цели рендеринга.

    root: слой, чьё содержимое верхнего уровня выводится.
    layers: все слои в порядке свёртки блоков.
    """
    root: Layer
    layers: Tuple[Layer, ...]

    def definitions(self, block_name: str) -> List[Tuple[Layer, BlockNode]]:
        """Слои, определяющие блок, в порядке свёртки."""
        result = []
        for layer in self.layers:
            block = layer.block(block_name)
            if block is not None:
                result.append((layer, block))
        return result


class TemplateComposer:
    """
    Строит ComposedTemplate, загружая предков и миксины через загрузчик.

    Args:
        loader: Загрузчик для разрешения ссылок
        parse_file: Функция получения разобранного шаблона по разрешённому пути
            (обычно через кэш движка)
    """

    def __init__(self, loader: TemplateLoader, parse_file: Callable[[str], ParsedTemplate]):
        self.loader = loader
        self.parse_file = parse_file

    def compose_file(self, path: str, state: RenderState) -> ComposedTemplate:
        """
        Компонует шаблон по разрешённому пути.

        Вызывающий код должен уже войти в path через state.enter().
        """
        template = self._load(path, state)
        return self.compose(template, path, os.path.dirname(path), state)

    def compose(self, template: ParsedTemplate, path: str, directory: Optional[str],
                state: RenderState) -> ComposedTemplate:
        """Компонует уже разобранный шаблон (в том числе строковый)."""
        root, layers = self._collect(template, path, directory, state)

        logger.debug(
            f"Composed '{path}': root '{root.path}', layers: {[layer.path for layer in layers]}"
        )
        return ComposedTemplate(root=root, layers=tuple(layers))

    def _collect(self, template: ParsedTemplate, path: str, directory: Optional[str],
                 state: RenderState) -> Tuple[Layer, List[Layer]]:
        """Собирает слои: сначала цепочка предков, затем миксины, затем сам шаблон."""
        layers: List[Layer] = []
        root: Optional[Layer] = None

        if template.extends is not None:
            parent_path = self.loader.resolve_path(template.extends, directory)
            with state.enter(parent_path):
                parent = self._load(parent_path, state)
                root, parent_layers = self._collect(parent, parent_path, os.path.dirname(parent_path), state)
            layers.extend(parent_layers)

        for ref in template.mixins:
            mixin_path = self.loader.resolve_path(ref, directory)
            with state.enter(mixin_path):
                mixin = self._load(mixin_path, state)
                if mixin.extends is not None:
                    raise TemplateResolutionError(
                        f"mixin '{ref}' ({mixin_path}) must not use extends"
                    )
                _, mixin_layers = self._collect(mixin, mixin_path, os.path.dirname(mixin_path), state)
            layers.extend(mixin_layers)

        own = Layer(template=template, path=path, directory=directory)
        layers.append(own)
        return root or own, layers

    def _load(self, path: str, state: RenderState) -> ParsedTemplate:
        template = self.parse_file(path)
        state.record(path)
        return template


__all__ = ["RenderState", "Layer", "ComposedTemplate", "TemplateComposer", "STRING_SOURCE"]
