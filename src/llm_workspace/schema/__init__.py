"""工具參數 schema 模組。"""

from llm_workspace.schema.nodes import (
    ArrayNode,
    ObjectNode,
    PrimitiveNode,
    SchemaNode,
    UnionNode,
    as_node,
    from_json_schema,
    to_json_schema,
)
from llm_workspace.schema.strict import strictify, to_loose, to_strict

__all__ = [
    'ArrayNode',
    'ObjectNode',
    'PrimitiveNode',
    'SchemaNode',
    'UnionNode',
    'as_node',
    'from_json_schema',
    'strictify',
    'to_json_schema',
    'to_loose',
    'to_strict',
]
