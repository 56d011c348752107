"""Sandbox 基底類別與共用型別。

定義沙箱環境的抽象介面，提供路徑驗證與指令執行的統一操作。
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import NotRequired, TypedDict

# =============================================================================
# 回傳型別
# =============================================================================


class ShellOutput(TypedDict):
    """指令執行結果。

    exit_code 為 -1 且帶有 error 時，代表指令根本沒有成功執行
    （找不到執行檔或超時）。
    """

    stdout: str
    stderr: str
    exit_code: int
    error: NotRequired[str]


# =============================================================================
# Sandbox ABC
# =============================================================================


class Sandbox(ABC):
    """沙箱環境抽象介面。

    職責範圍：
    - 路徑驗證（確保存取不超出沙箱邊界）
    - 指令執行

    不負責：
    - 檔案讀寫（由 tool handler 層直接操作）
    - 二進位檔案判斷 → 由 tool handler 層決定
    - 環境變數的保存 → 由 Workspace 持有並傳入
    """

    @property
    @abstractmethod
    def root(self) -> Path:
        """沙箱根目錄的絕對路徑。"""
        ...

    # --- 路徑驗證 ---

    @abstractmethod
    def validate_path(self, path: str) -> Path:
        """驗證路徑是否在沙箱範圍內。

        Args:
            path: 使用者提供的路徑（相對於沙箱根目錄）

        Returns:
            解析後的絕對路徑

        Raises:
            ContainmentError: 路徑超出沙箱範圍
        """
        ...

    # --- 指令執行 ---

    @abstractmethod
    async def exec(
        self,
        command: str,
        args: list[str],
        env: Mapping[str, str],
        timeout: float,
    ) -> ShellOutput:
        """在沙箱根目錄內執行指令（不經過 shell）。

        Args:
            command: 執行檔名稱
            args: 參數列表
            env: 子行程的環境變數
            timeout: 超時時間（秒）

        Returns:
            指令執行結果，非零 exit code 也視為正常回傳

        Raises:
            SpawnError: 無法啟動子行程
            CommandTimeoutError: 指令執行超時
        """
        ...
