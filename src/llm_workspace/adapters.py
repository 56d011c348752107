"""Provider adapters 模組。

將已註冊的工具轉換為各家 LLM API 的工具定義格式。
schema 轉換由 llm_workspace.schema 負責，這裡只處理各家的外層結構。
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from anthropic.types import ToolParam

from llm_workspace.schema import to_loose, to_strict
from llm_workspace.tools import Tool


def to_openai_tools(tools: Iterable[Tool], strict: bool = True) -> list[dict[str, Any]]:
    """OpenAI Chat Completions 格式。

    結構：{type: "function", function: {name, description, parameters, strict}}
    """
    return [
        {
            'type': 'function',
            'function': {
                'name': tool.name,
                'description': tool.description,
                'parameters': to_strict(tool.schema) if strict else to_loose(tool.schema),
                'strict': strict,
            },
        }
        for tool in tools
    ]


def to_anthropic_tools(tools: Iterable[Tool], strict: bool = True) -> list[ToolParam]:
    """Anthropic Messages API 格式。

    結構：{name, description, input_schema, strict}
    cache_control 等設定由呼叫端自行加上。
    """
    return [
        ToolParam(
            name=tool.name,
            description=tool.description,
            input_schema=to_strict(tool.schema) if strict else to_loose(tool.schema),
            strict=strict,
        )
        for tool in tools
    ]


def to_gemini_tools(tools: Iterable[Tool]) -> list[dict[str, Any]]:
    """Google Gemini 格式。

    結構：{name, description, parameters: {type: "OBJECT", properties, required}}
    一律使用非 strict 版本，輸出不含 [type, "null"] 形式的型別。
    """
    definitions: list[dict[str, Any]] = []
    for tool in tools:
        schema = to_loose(tool.schema)
        definitions.append(
            {
                'name': tool.name,
                'description': tool.description,
                'parameters': {
                    'type': 'OBJECT',
                    'properties': schema.get('properties', {}),
                    'required': schema.get('required', []),
                },
            }
        )
    return definitions
