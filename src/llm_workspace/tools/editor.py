"""編輯器工具模組。

提供 replace_in_file（精確替換）與 search_files（遞迴搜尋）。
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any

from llm_workspace.errors import (
    AmbiguousMatchError,
    BinaryFileError,
    InvalidInputError,
    NoMatchError,
)
from llm_workspace.sandbox import LocalSandbox, looks_binary
from llm_workspace.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# 搜尋結果上限
MAX_SEARCH_RESULTS = 50

# 搜尋結果中每行內容的最大長度
MAX_LINE_CHARS = 200

# 搜尋時略過的目錄
IGNORED_DIRS = frozenset(
    {'node_modules', '.git', 'dist', 'coverage', 'build', '.DS_Store', '__pycache__', '.venv'}
)


def _uses_crlf(content: str) -> bool:
    """判斷檔案的主要換行風格是否為 CRLF。"""
    crlf = content.count('\r\n')
    return crlf > 0 and crlf >= content.count('\n') - crlf


def replace_in_file(sandbox: LocalSandbox, path: str, old_content: str, new_content: str) -> str:
    """將檔案中唯一出現的 old_content 替換為 new_content。

    比對前將換行統一為 LF，寫回時還原檔案原本的換行風格。
    找不到或出現多次時不修改檔案。

    Args:
        sandbox: 提供路徑驗證的沙箱
        path: 檔案路徑（相對於根目錄）
        old_content: 要被替換的內容（必須完全一致）
        new_content: 替換後的內容

    Returns:
        成功訊息

    Raises:
        ContainmentError: 路徑超出根目錄
        BinaryFileError: 檔案為二進位檔案
        FileNotFoundError: 檔案不存在
        NoMatchError: 找不到要替換的內容
        AmbiguousMatchError: 要替換的內容出現多次
    """
    safe_path = sandbox.validate_path(path)

    if looks_binary(safe_path):
        raise BinaryFileError(f"無法編輯二進位檔案 '{path}'")

    try:
        content = safe_path.read_bytes().decode('utf-8')
    except FileNotFoundError:
        raise FileNotFoundError(f'檔案不存在: {path}') from None
    except UnicodeDecodeError as e:
        raise BinaryFileError(f"無法以 UTF-8 解碼檔案 '{path}': {e.reason}") from e

    crlf = _uses_crlf(content)
    normalized = content.replace('\r\n', '\n')
    search = old_content.replace('\r\n', '\n')

    if not search:
        raise NoMatchError(f"要替換的內容不可為空（檔案 '{path}'）")

    # 重疊的出現位置也視為多處匹配
    first = normalized.find(search)
    if first == -1:
        raise NoMatchError(f"在 '{path}' 中找不到要替換的內容，請確認內容完全一致（包含空白）。")
    if normalized.find(search, first + 1) != -1:
        raise AmbiguousMatchError(f"要替換的內容在 '{path}' 中有多處匹配，請提供更多上下文。")

    updated = (
        normalized[:first]
        + new_content.replace('\r\n', '\n')
        + normalized[first + len(search):]
    )
    if crlf:
        updated = updated.replace('\n', '\r\n')

    safe_path.write_bytes(updated.encode('utf-8'))
    logger.debug('檔案已編輯', extra={'path': path, 'crlf': crlf})
    return f'已替換 {path} 中的內容'


def search_files(
    sandbox: LocalSandbox,
    term: str,
    path: str = '.',
    case_insensitive: bool = True,
) -> list[dict[str, Any]]:
    """在目錄中遞迴搜尋符合正規表示式的行。

    略過 IGNORED_DIRS 與二進位檔案，最多回傳 MAX_SEARCH_RESULTS 筆。
    """
    safe_dir = sandbox.validate_path(path)
    if not safe_dir.is_dir():
        raise FileNotFoundError(f'目錄不存在: {path}')

    try:
        pattern = re.compile(term, re.IGNORECASE if case_insensitive else 0)
    except re.error as e:
        raise InvalidInputError(f"無效的正規表示式 '{term}': {e}") from e

    results: list[dict[str, Any]] = []
    for current, dirnames, filenames in os.walk(safe_dir):
        dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
        for filename in sorted(filenames):
            if len(results) >= MAX_SEARCH_RESULTS:
                return results

            full_path = os.path.join(current, filename)
            if looks_binary(full_path):
                continue

            try:
                with open(full_path, encoding='utf-8', errors='replace') as f:
                    lines = f.read().splitlines()
            except OSError as e:
                logger.debug('略過無法讀取的檔案', extra={'path': full_path, 'error': str(e)})
                continue

            relative = sandbox.relative(full_path)
            for index, line in enumerate(lines, start=1):
                if pattern.search(line):
                    results.append(
                        {
                            'file': relative,
                            'line': index,
                            'content': line.strip()[:MAX_LINE_CHARS],
                        }
                    )
                    if len(results) >= MAX_SEARCH_RESULTS:
                        return results

    return results


def register_editor_tools(registry: ToolRegistry, sandbox: LocalSandbox) -> None:
    """註冊 replace_in_file 與 search_files 工具。"""

    async def _replace_handler(path: str, old_content: str, new_content: str) -> str:
        return replace_in_file(sandbox, path, old_content, new_content)

    async def _search_handler(
        term: str,
        path: str = '.',
        case_insensitive: bool = True,
    ) -> list[dict[str, Any]]:
        return search_files(sandbox, term, path=path, case_insensitive=case_insensitive)

    registry.register(
        name='replace_in_file',
        description="""替換檔案中唯一出現的一段內容。

        使用時機：
        - 修改函數實作、重新命名、刪除程式碼片段

        注意：
        - old_content 必須與檔案內容完全一致（包含縮排），且只出現一次
        - 出現多次時請提供更多上下文
        - 換行風格（LF / CRLF）會自動保留""",
        parameters={
            'type': 'object',
            'properties': {
                'path': {'type': 'string', 'description': '檔案路徑（相對於 workspace 根目錄）'},
                'old_content': {'type': 'string', 'description': '要被替換的原始內容'},
                'new_content': {'type': 'string', 'description': '替換後的新內容'},
            },
            'required': ['path', 'old_content', 'new_content'],
            'additionalProperties': False,
        },
        handler=_replace_handler,
        file_param='path',
    )

    registry.register(
        name='search_files',
        description=f"""遞迴搜尋文字內容（支援正規表示式）。

        略過二進位檔案與 node_modules、.git 等目錄，最多回傳 {MAX_SEARCH_RESULTS} 筆。

        回傳：每筆結果的檔案路徑、行號與該行內容。""",
        parameters={
            'type': 'object',
            'properties': {
                'term': {'type': 'string', 'description': '要搜尋的字串或正規表示式'},
                'path': {
                    'type': 'string',
                    'description': '搜尋的目錄（預設為 "."）',
                    'default': '.',
                },
                'case_insensitive': {
                    'type': 'boolean',
                    'description': '是否忽略大小寫（預設 true）',
                    'default': True,
                },
            },
            'required': ['term'],
            'additionalProperties': False,
        },
        handler=_search_handler,
    )
