"""LocalSandbox：本地檔案系統沙箱。

在指定的根目錄內操作，透過路徑驗證確保不超出範圍。
指令透過 subprocess 在本地執行。

路徑驗證只做字面上的正規化，不解析 symlink：
根目錄內指向外部的 symlink 仍可通過驗證。
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from llm_workspace.errors import CommandTimeoutError, ContainmentError, SpawnError
from llm_workspace.sandbox.base import ShellOutput, Sandbox

logger = logging.getLogger(__name__)


def resolve_path(root: str | Path, candidate: str) -> Path:
    """將使用者提供的路徑解析為根目錄內的絕對路徑。

    Args:
        root: 根目錄（絕對路徑）
        candidate: 使用者提供的路徑，可為相對或絕對路徑

    Returns:
        解析後的絕對路徑

    Raises:
        ContainmentError: 路徑解析後超出根目錄，訊息只包含原始輸入
    """
    root_str = os.path.abspath(root)
    resolved = os.path.normpath(os.path.join(root_str, candidate))

    try:
        relative = os.path.relpath(resolved, root_str)
    except ValueError:
        # Windows 上不同磁碟機無法計算相對路徑
        relative = resolved

    escapes = (
        relative == os.pardir
        or relative.startswith(os.pardir + os.sep)
        or os.path.isabs(relative)
    )
    if escapes:
        logger.warning('路徑穿越攻擊', extra={'path': candidate})
        raise ContainmentError(f"無法存取 workspace 外的路徑: '{candidate}'")

    return Path(resolved)


def ensure_parent_dir(path: Path) -> None:
    """建立檔案所需的上層目錄（必須先通過路徑驗證）。"""
    path.parent.mkdir(parents=True, exist_ok=True)


class LocalSandbox(Sandbox):
    """本地檔案系統沙箱。

    所有路徑操作限制在指定的根目錄內，
    指令透過 subprocess 在根目錄中執行。
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(os.path.abspath(root))

    @property
    def root(self) -> Path:
        """沙箱根目錄的絕對路徑。"""
        return self._root

    # --- 路徑驗證 ---

    def validate_path(self, path: str) -> Path:
        """驗證路徑在沙箱根目錄內並回傳絕對路徑。"""
        return resolve_path(self._root, path)

    def relative(self, path: str | Path) -> str:
        """將沙箱內的絕對路徑轉為相對於根目錄的字串。"""
        return os.path.relpath(path, self._root)

    # --- 指令執行 ---

    async def exec(
        self,
        command: str,
        args: list[str],
        env: Mapping[str, str],
        timeout: float,
    ) -> ShellOutput:
        """在沙箱根目錄內執行指令。"""
        try:
            proc = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=str(self._root),
                env=dict(env),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            logger.warning('無法啟動指令', extra={'command': command, 'error': str(e)})
            raise SpawnError(f"無法執行指令 '{command}': {e}") from e

        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                proc.communicate(),
                timeout=timeout,
            )
        except TimeoutError:
            # 子行程可能剛好在超時後結束
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            logger.warning('指令執行超時', extra={'command': command, 'timeout': timeout})
            raise CommandTimeoutError(f'命令執行超時（{timeout} 秒）: {command}')

        return ShellOutput(
            stdout=stdout_bytes.decode('utf-8', errors='replace'),
            stderr=stderr_bytes.decode('utf-8', errors='replace'),
            exit_code=proc.returncode if proc.returncode is not None else -1,
        )
