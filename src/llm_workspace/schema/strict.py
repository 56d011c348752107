"""Strict mode schema 轉換模組。

模型供應商的 strict / structured output 模式要求：
- 每個 object 節點的 required 必須列出所有屬性
- additionalProperties 必須為 false
- 不支援 format、pattern、長度限制等軟性驗證關鍵字

轉換分兩個階段（皆為深度優先）：
1. 移除不支援的關鍵字；原本的 required 集合保留在節點中
2. 將所有屬性設為 required，原本可選的屬性改為可接受 null
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from llm_workspace.schema.nodes import (
    TOP_LEVEL_ARTIFACTS,
    ArrayNode,
    ObjectNode,
    PrimitiveNode,
    SchemaNode,
    UnionNode,
    as_node,
    to_json_schema,
)

# strict 模式不支援的關鍵字
UNSUPPORTED_KEYWORDS = frozenset(
    {
        'format',
        'pattern',
        'minLength',
        'maxLength',
        'minItems',
        'maxItems',
        'uniqueItems',
        'default',
    }
)


def _strip(node: SchemaNode) -> SchemaNode:
    """第一階段：移除 strict 模式不支援的關鍵字。"""
    keywords = {k: v for k, v in node.keywords.items() if k not in UNSUPPORTED_KEYWORDS}

    if isinstance(node, ObjectNode):
        return replace(
            node,
            keywords=keywords,
            properties={name: _strip(prop) for name, prop in node.properties.items()},
        )
    if isinstance(node, ArrayNode):
        items = _strip(node.items) if node.items is not None else None
        return replace(node, keywords=keywords, items=items)
    if isinstance(node, UnionNode):
        return replace(node, keywords=keywords, variants=tuple(_strip(v) for v in node.variants))
    if isinstance(node, PrimitiveNode):
        return replace(node, keywords=keywords)
    raise TypeError(f'未知的 schema 節點: {type(node).__name__}')


def _require(node: SchemaNode) -> SchemaNode:
    """第二階段：所有屬性改為 required，原本可選的屬性加上 null。"""
    if isinstance(node, ObjectNode):
        originally_required = set(node.required)
        properties: dict[str, SchemaNode] = {}
        for name, prop in node.properties.items():
            if name not in originally_required:
                prop = replace(prop, nullable=True)
            properties[name] = _require(prop)
        return replace(
            node,
            keywords={k: v for k, v in node.keywords.items() if k != 'additionalProperties'},
            properties=properties,
            required=tuple(properties),
            additional_properties=False,
        )
    if isinstance(node, ArrayNode):
        items = _require(node.items) if node.items is not None else None
        return replace(node, items=items)
    if isinstance(node, UnionNode):
        return replace(node, variants=tuple(_require(v) for v in node.variants))
    if isinstance(node, PrimitiveNode):
        return node
    raise TypeError(f'未知的 schema 節點: {type(node).__name__}')


def strictify(schema: SchemaNode | Mapping[str, Any]) -> SchemaNode:
    """回傳 strict 版本的節點樹，原本的節點不受影響。

    最上層的 $schema、definitions、$defs、default 一併移除。
    """
    node = as_node(schema)
    node = replace(
        node,
        keywords={k: v for k, v in node.keywords.items() if k not in TOP_LEVEL_ARTIFACTS},
    )
    return _require(_strip(node))


def to_strict(schema: SchemaNode | Mapping[str, Any]) -> dict[str, Any]:
    """將 schema 轉為供應商 strict 模式可接受的 JSON Schema。

    結果與供應商無關，由 adapters 包裝成各家格式。
    對已是 strict 的 schema 再次轉換，結果不變。

    Args:
        schema: 節點樹或 JSON Schema 字典

    Returns:
        strict JSON Schema 字典
    """
    return to_json_schema(strictify(schema))


def to_loose(schema: SchemaNode | Mapping[str, Any]) -> dict[str, Any]:
    """非 strict 模式：保留原本的可選屬性與關鍵字。

    只移除最上層的 $schema 與 additionalProperties。
    """
    result = to_json_schema(as_node(schema))
    result.pop('$schema', None)
    result.pop('additionalProperties', None)
    return result
