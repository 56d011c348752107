"""Tool Registry 模組。

管理工具的註冊、查詢與執行。
執行前先以工具宣告的 schema 驗證參數，執行結果一律包裝為 ToolResult。
"""

from __future__ import annotations

import copy
import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from jsonschema import Draft202012Validator

from llm_workspace.errors import (
    ErrorKind,
    InvalidInputError,
    ToolResult,
    classify_exception,
)
from llm_workspace.schema import (
    ArrayNode,
    ObjectNode,
    SchemaNode,
    UnionNode,
    as_node,
    to_json_schema,
)

logger = logging.getLogger(__name__)


class LockProvider(Protocol):
    """鎖提供者介面。

    Workspace 本身不做任何鎖定；需要序列化檔案操作的呼叫端可注入此介面。
    """

    async def acquire(self, key: str) -> None:
        """取得指定 key 的鎖。"""
        ...

    async def release(self, key: str) -> None:
        """釋放指定 key 的鎖。"""
        ...


def _matches_shape(node: SchemaNode, value: Any) -> bool:
    """判斷 union 變體是否適用於此值（只看容器形狀與屬性名稱）。"""
    if isinstance(node, ObjectNode):
        return isinstance(value, Mapping) and set(value) <= set(node.properties)
    if isinstance(node, ArrayNode):
        return isinstance(value, list)
    return False


def _normalize(node: SchemaNode, value: Any) -> Any:
    """依節點樹移除 null 佔位值並補上宣告的預設值，回傳新的值。"""
    if isinstance(node, ObjectNode) and isinstance(value, Mapping):
        result: dict[str, Any] = {}
        for key, item in value.items():
            prop = node.properties.get(key)
            if prop is None:
                result[key] = item
            elif item is None and key not in node.required and not prop.nullable:
                continue
            else:
                result[key] = _normalize(prop, item)
        for key, prop in node.properties.items():
            if key not in result and 'default' in prop.keywords:
                result[key] = copy.deepcopy(prop.keywords['default'])
        return result

    if isinstance(node, ArrayNode) and node.items is not None and isinstance(value, list):
        return [_normalize(node.items, item) for item in value]

    if isinstance(node, UnionNode):
        for variant in node.variants:
            if _matches_shape(variant, value):
                return _normalize(variant, value)

    return value


@dataclass(frozen=True)
class Tool:
    """工具定義。"""

    name: str
    description: str
    schema: SchemaNode
    handler: Callable[..., Any]
    file_param: str | None = None  # 指定哪個參數是檔案路徑


@dataclass
class ToolRegistry:
    """工具註冊表。

    負責管理工具的註冊、查詢與執行。工具名稱在同一個註冊表中必須唯一。
    execute 不會因工具失敗而拋出例外，失敗會以 ToolResult 回報。
    """

    lock_provider: LockProvider | None = None
    _tools: dict[str, Tool] = field(default_factory=lambda: {})
    _validators: dict[str, Draft202012Validator] = field(default_factory=lambda: {})

    def register(
        self,
        name: str,
        description: str,
        parameters: SchemaNode | Mapping[str, Any],
        handler: Callable[..., Any],
        file_param: str | None = None,
    ) -> Tool:
        """註冊新工具。

        Args:
            name: 工具名稱
            description: 工具描述
            parameters: 參數 schema（節點樹或 JSON Schema 字典）
            handler: 工具執行函數（同步或非同步）
            file_param: 指定哪個參數是檔案路徑（用於鎖定）

        Returns:
            建立的 Tool

        Raises:
            ValueError: 名稱已被註冊
        """
        tool = Tool(
            name=name,
            description=description,
            schema=as_node(parameters),
            handler=handler,
            file_param=file_param,
        )
        self.add(tool)
        return tool

    def add(self, tool: Tool) -> None:
        """加入已建立的 Tool。"""
        if tool.name in self._tools:
            raise ValueError(f"工具 '{tool.name}' 已存在")
        self._tools[tool.name] = tool
        self._validators[tool.name] = Draft202012Validator(to_json_schema(tool.schema))
        logger.info('工具已註冊', extra={'tool_name': tool.name, 'file_param': tool.file_param})

    def clone(self, exclude: list[str] | None = None) -> ToolRegistry:
        """建立工具註冊表的副本，可選擇排除特定工具。

        副本共享 handler 閉包，也就共享同一個 workspace 狀態。
        """
        exclude_set: set[str] = set(exclude) if exclude else set()
        new_registry = ToolRegistry(lock_provider=self.lock_provider)
        for name, tool in self._tools.items():
            if name in exclude_set:
                continue
            new_registry._tools[name] = tool
            new_registry._validators[name] = self._validators[name]
        return new_registry

    def get(self, name: str) -> Tool:
        """取得指定名稱的工具。

        Raises:
            KeyError: 工具不存在
        """
        if name not in self._tools:
            raise KeyError(f"工具 '{name}' 不存在")
        return self._tools[name]

    def list_tools(self) -> list[str]:
        """列出所有已註冊的工具名稱。"""
        return list(self._tools.keys())

    @property
    def tools(self) -> list[Tool]:
        """依註冊順序回傳所有工具。"""
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # -----------------------------------------------------------------
    # 參數驗證
    # -----------------------------------------------------------------

    def _prepare_arguments(self, tool: Tool, arguments: Any) -> dict[str, Any]:
        """正規化並驗證參數。

        strict 模式下模型會以 null 填入未使用的可選參數（任意深度），
        這些值在驗證前視為未提供；未提供且宣告了 default 的屬性會補上預設值。

        Raises:
            InvalidInputError: 參數不符合 schema
        """
        if not isinstance(arguments, Mapping):
            raise InvalidInputError(f"工具 '{tool.name}' 的參數必須是物件")

        prepared = dict(_normalize(tool.schema, arguments))

        errors = sorted(
            self._validators[tool.name].iter_errors(prepared),
            key=lambda e: list(e.absolute_path),
        )
        if errors:
            first = errors[0]
            location = '.'.join(str(p) for p in first.absolute_path)
            prefix = f'{location}: ' if location else ''
            raise InvalidInputError(f"工具 '{tool.name}' 參數驗證失敗: {prefix}{first.message}")
        return prepared

    # -----------------------------------------------------------------
    # 工具執行
    # -----------------------------------------------------------------

    async def execute(self, name: str, arguments: Mapping[str, Any]) -> ToolResult:
        """驗證參數後執行指定工具。

        如果工具有指定 file_param 且有 lock_provider，
        會在執行前取得鎖，執行後釋放鎖。

        Args:
            name: 工具名稱
            arguments: 工具參數

        Returns:
            成功或失敗的 ToolResult

        Raises:
            KeyError: 工具不存在
        """
        tool = self.get(name)
        logger.debug('執行工具', extra={'tool_name': name, 'arguments': arguments})

        try:
            prepared = self._prepare_arguments(tool, arguments)
        except InvalidInputError as e:
            logger.warning('工具參數無效', extra={'tool_name': name, 'error': str(e)})
            return ToolResult.failure(e.kind, str(e))

        lock_key: str | None = None
        if tool.file_param and self.lock_provider:
            lock_key = prepared.get(tool.file_param)

        if lock_key and self.lock_provider:
            await self.lock_provider.acquire(lock_key)
            logger.debug('已取得檔案鎖', extra={'lock_key': lock_key})

        try:
            handler = tool.handler
            if inspect.iscoroutinefunction(handler):
                output = await handler(**prepared)
            else:
                output = handler(**prepared)
        except Exception as e:
            kind = classify_exception(e)
            if kind is ErrorKind.INTERNAL:
                logger.exception('工具執行發生未預期錯誤', extra={'tool_name': name})
            else:
                logger.warning(
                    '工具執行失敗',
                    extra={'tool_name': name, 'error_kind': kind.value, 'error': str(e)},
                )
            return ToolResult.failure(kind, str(e))
        finally:
            if lock_key and self.lock_provider:
                await self.lock_provider.release(lock_key)
                logger.debug('已釋放檔案鎖', extra={'lock_key': lock_key})

        return ToolResult.success(output)
