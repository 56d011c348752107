"""Workspace 模組。

Workspace 持有根目錄、環境變數字典與工具註冊表，是呼叫端唯一需要建立的物件。

同一個 Workspace 假設同時只有一個操作在執行：環境變數字典與根目錄都沒有加鎖，
並行寫入時以最後寫入者為準。需要序列化的呼叫端應自行在外層排隊。
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from types import TracebackType

from llm_workspace.config import WorkspaceOptions
from llm_workspace.errors import ToolResult
from llm_workspace.sandbox import LocalSandbox
from llm_workspace.tools import (
    LockProvider,
    Tool,
    ToolRegistry,
    register_editor_tools,
    register_fs_tools,
    register_network_tools,
    register_shell_tools,
    register_system_tools,
)

logger = logging.getLogger(__name__)


class Workspace:
    """沙箱化、具狀態的工具執行環境。

    Example:
        async with Workspace(WorkspaceOptions(root_dir='/tmp/ws')) as ws:
            result = await ws.execute('write_file', {'path': 'a.txt', 'content': 'hi'})
    """

    def __init__(
        self,
        options: WorkspaceOptions,
        lock_provider: LockProvider | None = None,
    ) -> None:
        self._options = options
        self._sandbox = LocalSandbox(options.root_dir)

        # 複製主機環境變數（不是即時檢視），之後由 set_env_var 修改
        self._env: dict[str, str] = dict(os.environ)
        self._env.update(options.env)

        self._registry = ToolRegistry(lock_provider=lock_provider)
        register_fs_tools(self._registry, self._sandbox)
        register_shell_tools(self._registry, self._sandbox, self._env, options.shell_timeout)
        register_network_tools(self._registry, options.allowed_domains)
        register_system_tools(self._registry)
        register_editor_tools(self._registry, self._sandbox)

    @property
    def root_path(self) -> Path:
        """workspace 根目錄的絕對路徑。"""
        return self._sandbox.root

    @property
    def env(self) -> dict[str, str]:
        """shell 工具共用的環境變數字典（同一個物件）。"""
        return self._env

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def tools(self) -> list[Tool]:
        return self._registry.tools

    async def initialize(self) -> None:
        """建立根目錄（可重複呼叫）。"""
        self._sandbox.root.mkdir(parents=True, exist_ok=True)
        logger.info(
            'Workspace 已初始化',
            extra={'root': str(self._sandbox.root), 'tools': self._registry.list_tools()},
        )

    async def teardown(self) -> None:
        """遞迴刪除根目錄，刪除失敗時忽略。"""
        try:
            shutil.rmtree(self._sandbox.root)
        except OSError as e:
            logger.debug(
                '刪除 workspace 失敗，已忽略',
                extra={'root': str(self._sandbox.root), 'error': str(e)},
            )
            return
        logger.info('Workspace 已刪除', extra={'root': str(self._sandbox.root)})

    async def execute(self, name: str, arguments: dict[str, object]) -> ToolResult:
        """依名稱執行工具，詳見 ToolRegistry.execute。"""
        return await self._registry.execute(name, arguments)

    async def __aenter__(self) -> Workspace:
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.teardown()
