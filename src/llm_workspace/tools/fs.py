"""檔案系統工具模組。

提供 read_file、write_file、append_file、delete_file、list_files、stat_file。
所有 handler 都只透過 sandbox 取得路徑，不會存取根目錄以外的位置。
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from llm_workspace.errors import BinaryFileError
from llm_workspace.sandbox import LocalSandbox, ensure_parent_dir, looks_binary
from llm_workspace.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def register_fs_tools(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    """註冊所有檔案系統工具。

    Args:
        registry: 工具註冊表
        sandbox: 提供路徑驗證的沙箱
    """
    _register_read_file(registry, sandbox)
    _register_write_file(registry, sandbox)
    _register_append_file(registry, sandbox)
    _register_delete_file(registry, sandbox)
    _register_list_files(registry, sandbox)
    _register_stat_file(registry, sandbox)


def _path_schema(description: str) -> dict[str, Any]:
    return {
        'type': 'object',
        'properties': {
            'path': {'type': 'string', 'description': description},
        },
        'required': ['path'],
        'additionalProperties': False,
    }


def _content_schema(content_description: str) -> dict[str, Any]:
    return {
        'type': 'object',
        'properties': {
            'path': {'type': 'string', 'description': '檔案路徑（相對於 workspace 根目錄）'},
            'content': {'type': 'string', 'description': content_description},
        },
        'required': ['path', 'content'],
        'additionalProperties': False,
    }


def _register_read_file(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    async def _handler(path: str) -> str:
        """read_file handler 閉包，綁定 sandbox。"""
        safe_path = sandbox.validate_path(path)

        if looks_binary(safe_path):
            raise BinaryFileError(f"操作已阻擋: '{path}' 看起來是二進位檔案，以文字讀取會損毀資料。")

        try:
            return safe_path.read_text(encoding='utf-8')
        except FileNotFoundError:
            raise FileNotFoundError(f'檔案不存在: {path}') from None
        except IsADirectoryError:
            raise IsADirectoryError(f'路徑是目錄而非檔案: {path}') from None
        except UnicodeDecodeError as e:
            raise BinaryFileError(f"無法以 UTF-8 解碼檔案 '{path}': {e.reason}") from e

    registry.register(
        name='read_file',
        description="""讀取檔案內容（UTF-8 文字）。

        使用時機：
        - 需要理解現有實作再進行修改
        - 檢查配置檔案內容

        二進位檔案會被拒絕。""",
        parameters=_path_schema('要讀取的檔案路徑（相對於 workspace 根目錄）'),
        handler=_handler,
        file_param='path',
    )


def _register_write_file(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    async def _handler(path: str, content: str) -> str:
        safe_path = sandbox.validate_path(path)
        try:
            ensure_parent_dir(safe_path)
            safe_path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise OSError(f"寫入檔案 '{path}' 失敗: {e.strerror}") from e
        logger.debug('檔案已寫入', extra={'path': path, 'chars': len(content)})
        return f'已寫入 {path}'

    registry.register(
        name='write_file',
        description='建立或覆寫檔案，必要時自動建立上層目錄。',
        parameters=_content_schema('要寫入的文字內容'),
        handler=_handler,
        file_param='path',
    )


def _register_append_file(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    async def _handler(path: str, content: str) -> str:
        safe_path = sandbox.validate_path(path)
        if looks_binary(safe_path):
            raise BinaryFileError(f"操作已阻擋: 無法將文字附加到二進位檔案 '{path}'。")

        try:
            ensure_parent_dir(safe_path)
            with safe_path.open('a', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            raise OSError(f"附加到檔案 '{path}' 失敗: {e.strerror}") from e
        return f'已附加內容到 {path}'

    registry.register(
        name='append_file',
        description='在檔案結尾附加內容，檔案不存在時會建立。',
        parameters=_content_schema('要附加的文字內容'),
        handler=_handler,
        file_param='path',
    )


def _register_delete_file(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    async def _handler(path: str) -> str:
        safe_path = sandbox.validate_path(path)
        try:
            safe_path.unlink()
        except FileNotFoundError:
            return f'檔案 {path} 不存在'
        return f'已刪除 {path}'

    registry.register(
        name='delete_file',
        description='刪除檔案。',
        parameters=_path_schema('要刪除的檔案路徑'),
        handler=_handler,
        file_param='path',
    )


def _register_list_files(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    async def _handler(path: str = '.') -> list[dict[str, str]]:
        safe_path = sandbox.validate_path(path)
        if not safe_path.exists():
            raise FileNotFoundError(f'目錄不存在: {path}')
        if not safe_path.is_dir():
            raise NotADirectoryError(f'路徑不是目錄: {path}')

        return [
            {'name': entry.name, 'type': 'directory' if entry.is_dir() else 'file'}
            for entry in sorted(safe_path.iterdir(), key=lambda p: p.name)
        ]

    registry.register(
        name='list_files',
        description="""列出目錄內容（不遞迴）。

        回傳：每個項目的名稱與類型（file / directory）。""",
        parameters={
            'type': 'object',
            'properties': {
                'path': {
                    'type': 'string',
                    'description': '目錄路徑（相對於 workspace 根目錄，預設為 "."）',
                    'default': '.',
                },
            },
            'required': [],
            'additionalProperties': False,
        },
        handler=_handler,
    )


def _register_stat_file(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    async def _handler(path: str) -> dict[str, Any]:
        safe_path = sandbox.validate_path(path)
        try:
            stats = safe_path.stat()
        except FileNotFoundError:
            raise FileNotFoundError(f'路徑不存在: {path}') from None

        # st_birthtime 並非所有平台都有，退回使用 st_ctime
        created = getattr(stats, 'st_birthtime', stats.st_ctime)
        return {
            'size': stats.st_size,
            'created': datetime.fromtimestamp(created, tz=UTC).isoformat(),
            'modified': datetime.fromtimestamp(stats.st_mtime, tz=UTC).isoformat(),
            'is_directory': safe_path.is_dir(),
            'is_file': safe_path.is_file(),
        }

    registry.register(
        name='stat_file',
        description='取得檔案或目錄的大小與時間資訊。',
        parameters=_path_schema('檔案或目錄路徑'),
        handler=_handler,
        file_param='path',
    )
