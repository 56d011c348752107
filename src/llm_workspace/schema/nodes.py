"""工具參數 schema 的結構化表示。

將 JSON Schema 字典解析為封閉的節點型別樹（object / array / union / primitive），
讓 strict 轉換可以用結構遞迴處理，而不必在執行期探測字典形狀。
節點皆為不可變物件，轉換一律產生新樹。
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

# 只出現在最上層、與工具參數無關的欄位
TOP_LEVEL_ARTIFACTS = ('$schema', 'definitions', '$defs', 'default')

# 由節點欄位自行處理的 JSON Schema 關鍵字
_STRUCTURAL_KEYS = frozenset(
    {'type', 'description', 'properties', 'required', 'additionalProperties', 'items', 'anyOf', 'oneOf'}
)

_OBJECT_KEYS = ('properties', 'required', 'additionalProperties')
_ARRAY_KEYS = ('items',)
_UNION_KEYS = ('anyOf', 'oneOf')

_NULL_VARIANT: dict[str, Any] = {'type': 'null'}


@dataclass(frozen=True, kw_only=True)
class _BaseNode:
    """所有節點共用的欄位。

    Attributes:
        description: 參數說明
        nullable: 是否額外接受 null
        keywords: 其他 JSON Schema 關鍵字（enum、format、default 等）
    """

    description: str | None = None
    nullable: bool = False
    keywords: Mapping[str, Any] = field(default_factory=lambda: {})


@dataclass(frozen=True, kw_only=True)
class ObjectNode(_BaseNode):
    """物件節點。required 保留宣告時的順序。"""

    properties: Mapping[str, SchemaNode] = field(default_factory=lambda: {})
    required: tuple[str, ...] = ()
    additional_properties: bool | None = None


@dataclass(frozen=True, kw_only=True)
class ArrayNode(_BaseNode):
    """陣列節點。"""

    items: SchemaNode | None = None


@dataclass(frozen=True, kw_only=True)
class UnionNode(_BaseNode):
    """聯集節點（anyOf / oneOf），不含 null 變體；null 以 nullable 表示。"""

    variants: tuple[SchemaNode, ...] = ()


@dataclass(frozen=True, kw_only=True)
class PrimitiveNode(_BaseNode):
    """基本型別節點。type 為空 tuple 時代表未限制型別。"""

    type: tuple[str, ...] = ()


SchemaNode = Union[ObjectNode, ArrayNode, UnionNode, PrimitiveNode]


# =============================================================================
# JSON Schema → 節點
# =============================================================================


def from_json_schema(schema: Mapping[str, Any]) -> SchemaNode:
    """將最上層的 JSON Schema 字典解析為節點樹。

    最上層的 $schema、definitions、$defs、default 保留在根節點的 keywords 中，
    由各輸出格式自行決定是否移除。
    """
    return _parse(schema)


def as_node(schema: SchemaNode | Mapping[str, Any]) -> SchemaNode:
    """接受節點或 JSON Schema 字典，一律回傳節點。"""
    if isinstance(schema, ObjectNode | ArrayNode | UnionNode | PrimitiveNode):
        return schema
    return from_json_schema(schema)


def _split_type(raw: Any) -> tuple[tuple[str, ...], bool]:
    """將 type 欄位拆成（非 null 型別, 是否可為 null）。"""
    if raw is None:
        return (), False
    types = (raw,) if isinstance(raw, str) else tuple(raw)
    nullable = 'null' in types
    return tuple(t for t in types if t != 'null'), nullable


def _keep(keywords: dict[str, Any], schema: Mapping[str, Any], keys: tuple[str, ...]) -> None:
    """此節點型別不處理的結構關鍵字原樣保留在 keywords。"""
    for key in keys:
        if key in schema:
            keywords[key] = schema[key]


def _parse(schema: Mapping[str, Any]) -> SchemaNode:
    types, nullable = _split_type(schema.get('type'))
    description = schema.get('description')
    keywords = {k: v for k, v in schema.items() if k not in _STRUCTURAL_KEYS}

    union_key = 'anyOf' if 'anyOf' in schema else 'oneOf' if 'oneOf' in schema else None
    if union_key is not None and types:
        _keep(keywords, schema, _UNION_KEYS)
    elif union_key is not None:
        _keep(keywords, schema, _OBJECT_KEYS + _ARRAY_KEYS)
        _keep(keywords, schema, tuple(k for k in _UNION_KEYS if k != union_key))
        variants: list[SchemaNode] = []
        for variant in schema[union_key]:
            if variant == _NULL_VARIANT:
                nullable = True
                continue
            variants.append(_parse(variant))
        return UnionNode(
            description=description,
            nullable=nullable,
            keywords=keywords,
            variants=tuple(variants),
        )

    if types == ('object',) or (not types and 'properties' in schema):
        _keep(keywords, schema, _ARRAY_KEYS)
        additional = schema.get('additionalProperties')
        if additional is not None and not isinstance(additional, bool):
            keywords['additionalProperties'] = additional
            additional = None
        return ObjectNode(
            description=description,
            nullable=nullable,
            keywords=keywords,
            properties={
                name: _parse(prop) for name, prop in (schema.get('properties') or {}).items()
            },
            required=tuple(schema.get('required') or ()),
            additional_properties=additional,
        )

    if types == ('array',):
        _keep(keywords, schema, _OBJECT_KEYS)
        items = schema.get('items')
        if items is not None and not isinstance(items, Mapping):
            keywords['items'] = items
            items = None
        return ArrayNode(
            description=description,
            nullable=nullable,
            keywords=keywords,
            items=_parse(items) if items is not None else None,
        )

    # 混合型別或未指定型別時，properties / items 等原樣保留
    _keep(keywords, schema, _OBJECT_KEYS + _ARRAY_KEYS)
    return PrimitiveNode(description=description, nullable=nullable, keywords=keywords, type=types)


# =============================================================================
# 節點 → JSON Schema
# =============================================================================


def _render_type(types: tuple[str, ...], nullable: bool) -> str | list[str] | None:
    if not types:
        return None
    if nullable:
        return [*types, 'null']
    if len(types) == 1:
        return types[0]
    return list(types)


def to_json_schema(node: SchemaNode) -> dict[str, Any]:
    """將節點樹轉回 JSON Schema 字典。"""
    out: dict[str, Any] = {}

    if isinstance(node, ObjectNode):
        out['type'] = _render_type(('object',), node.nullable)
    elif isinstance(node, ArrayNode):
        out['type'] = _render_type(('array',), node.nullable)
    elif isinstance(node, PrimitiveNode):
        rendered = _render_type(node.type, node.nullable)
        if rendered is not None:
            out['type'] = rendered
    elif not isinstance(node, UnionNode):
        raise TypeError(f'未知的 schema 節點: {type(node).__name__}')

    if node.description is not None:
        out['description'] = node.description

    if isinstance(node, ObjectNode):
        out['properties'] = {name: to_json_schema(prop) for name, prop in node.properties.items()}
        out['required'] = list(node.required)
        if node.additional_properties is not None:
            out['additionalProperties'] = node.additional_properties
    elif isinstance(node, ArrayNode):
        if node.items is not None:
            out['items'] = to_json_schema(node.items)
    elif isinstance(node, UnionNode):
        variants = [to_json_schema(v) for v in node.variants]
        if node.nullable:
            variants.append(dict(_NULL_VARIANT))
        out['anyOf'] = variants

    for key, value in node.keywords.items():
        out[key] = copy.deepcopy(value)

    # nullable 的 enum 需包含 None
    if node.nullable and isinstance(out.get('enum'), list) and None not in out['enum']:
        out['enum'] = [*out['enum'], None]

    return out
