"""
Рендерер шаблонов YAPL.

Обходит узлы корневого слоя композиции и собирает итоговый текст:
- текст выводится как есть (правила пробелов уже применены парсером);
- переменные вычисляются в текущем скоупе и приводятся к строке;
- блоки сворачиваются по слоям композиции в момент рендеринга,
  поэтому блок внутри цикла видит переменную цикла;
- включения компонуются и рендерятся лениво, расходуя общий
  бюджет глубины вызова.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .composer import ComposedTemplate, Layer, RenderState, TemplateComposer
from .nodes import (
    BlockNode, ExtendsNode, ForNode, IfNode, IncludeNode, MixinNode,
    SuperCallNode, TemplateNode, TextNode, VariableNode,
)
from .whitespace import WhitespaceOptions, dedent_block
from ..errors import TemplateRuntimeError
from ..expressions.evaluator import ExpressionEvaluator
from ..loader import TemplateLoader
from ..scope import Scope
from ..types import UNDEFINED, is_list, to_output, value_type_name

logger = logging.getLogger(__name__)

# Метка места вызова super() на время удаления общего отступа блока
_SUPER_SENTINEL = "\x00SUPER\x00"


@dataclass(frozen=True)
class _Frame:
    """Контекст рендеринга последовательности узлов."""
    composed: ComposedTemplate
    layer: Layer
    super_content: Optional[str] = None


class TemplateRenderer:
    """
    Рендерер одного вызова render/render_string.

    Экземпляр не переиспользуется между вызовами: он держит RenderState
    с общим стеком глубины и списком задействованных файлов.
    """

    def __init__(
        self,
        loader: TemplateLoader,
        composer: TemplateComposer,
        state: RenderState,
        whitespace: Optional[WhitespaceOptions] = None,
    ):
        self.loader = loader
        self.composer = composer
        self.state = state
        self.whitespace = whitespace or WhitespaceOptions()

    def render(self, composed: ComposedTemplate, scope: Scope) -> str:
        """
        Рендерит скомпонованный шаблон.

        Args:
            composed: Результат композиции
            scope: Скоуп переменных

        Returns:
            Отрендеренный текст

        Raises:
            TemplateRuntimeError: При ошибке типов во время рендеринга
            TemplateResolutionError: При ошибке разрешения включений
        """
        frame = _Frame(composed=composed, layer=composed.root)
        return self._render_nodes(composed.root.template.nodes, scope, frame)

    # ======= Обход узлов =======

    def _render_nodes(self, nodes: List[TemplateNode], scope: Scope, frame: _Frame) -> str:
        parts: List[str] = []
        for node in nodes:
            parts.append(self._render_node(node, scope, frame))
        return "".join(parts)

    def _render_node(self, node: TemplateNode, scope: Scope, frame: _Frame) -> str:
        if isinstance(node, TextNode):
            return node.text
        elif isinstance(node, VariableNode):
            return self._render_variable(node, scope)
        elif isinstance(node, IfNode):
            return self._render_if(node, scope, frame)
        elif isinstance(node, ForNode):
            return self._render_for(node, scope, frame)
        elif isinstance(node, BlockNode):
            return self._render_block(node, scope, frame)
        elif isinstance(node, IncludeNode):
            return self._render_include(node, scope, frame)
        elif isinstance(node, SuperCallNode):
            return frame.super_content or ""
        elif isinstance(node, (ExtendsNode, MixinNode)):
            # Обработаны композицией
            return ""
        else:
            raise TemplateRuntimeError(f"Unknown node type: {type(node).__name__}", frame.layer.path)

    def _evaluator(self, scope: Scope) -> ExpressionEvaluator:
        return ExpressionEvaluator(scope)

    def _render_variable(self, node: VariableNode, scope: Scope) -> str:
        value = scope.lookup(node.path.segments)
        if value is UNDEFINED and node.default_expr is not None:
            value = self._evaluator(scope).evaluate(node.default_expr)
        return to_output(value)

    def _render_if(self, node: IfNode, scope: Scope, frame: _Frame) -> str:
        evaluator = self._evaluator(scope)
        for branch in node.branches:
            if branch.condition is None or evaluator.evaluate_condition(branch.condition):
                return self._render_nodes(branch.body, scope, frame)
        return ""

    def _render_for(self, node: ForNode, scope: Scope, frame: _Frame) -> str:
        items = self._evaluator(scope).evaluate(node.iterable)

        if items is UNDEFINED:
            return ""
        if not is_list(items):
            raise TemplateRuntimeError(
                f"for loop iterable must be an array, got: {value_type_name(items)}",
                frame.layer.path,
            )

        parts: List[str] = []
        for item in items:
            parts.append(self._render_nodes(node.body, scope.child({node.iter_var: item}), frame))
        return "".join(parts)

    # ======= Блоки =======

    def _render_block(self, node: BlockNode, scope: Scope, frame: _Frame) -> str:
        """
        Сворачивает блок по слоям композиции.

        acc начинается с пустой строки; каждый слой, определяющий блок,
        рендерит своё тело с super() = acc, результат становится новым acc.
        """
        acc = ""
        for layer, block in frame.composed.definitions(node.name):
            layer_frame = _Frame(composed=frame.composed, layer=layer, super_content=acc)
            acc = self._render_block_body(block, scope, layer_frame)
        return acc

    def _render_block_body(self, block: BlockNode, scope: Scope, frame: _Frame) -> str:
        if not self.whitespace.dedent_blocks:
            return self._render_nodes(block.body, scope, frame)

        # Отступ считается по телу слоя без подставленного содержимого super()
        placeholder = _Frame(composed=frame.composed, layer=frame.layer, super_content=_SUPER_SENTINEL)
        rendered = dedent_block(self._render_nodes(block.body, scope, placeholder))
        return rendered.replace(_SUPER_SENTINEL, frame.super_content or "")

    # ======= Включения =======

    def _render_include(self, node: IncludeNode, scope: Scope, frame: _Frame) -> str:
        path = self.loader.resolve_path(node.template_ref, frame.layer.directory)

        include_scope = scope
        if node.with_vars is not None:
            evaluator = self._evaluator(scope)
            include_scope = scope.child({key: evaluator.evaluate(expr) for key, expr in node.with_vars})

        with self.state.enter(path):
            composed = self.composer.compose_file(path, self.state)
            logger.debug(f"Including '{path}' from '{frame.layer.path}' (depth {len(self.state.stack)})")
            return self.render(composed, include_scope)


__all__ = ["TemplateRenderer"]
