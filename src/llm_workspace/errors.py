"""錯誤分類與工具執行結果模組。

定義所有工具可能回報的錯誤類型，以及 dispatch 邊界使用的 ToolResult。
錯誤訊息會直接回傳給呼叫端模型，因此應描述清楚、讓模型可自行修正。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """工具失敗的分類。"""

    CONTAINMENT_VIOLATION = 'containment_violation'
    NOT_FOUND = 'not_found'
    BINARY_REJECTED = 'binary_rejected'
    NO_MATCH = 'no_match'
    AMBIGUOUS_MATCH = 'ambiguous_match'
    SPAWN_FAILURE = 'spawn_failure'
    TIMEOUT = 'timeout'
    NETWORK_POLICY_VIOLATION = 'network_policy_violation'
    UPSTREAM_FAILURE = 'upstream_failure'
    INVALID_INPUT = 'invalid_input'
    IO_ERROR = 'io_error'
    INTERNAL = 'internal'


# =============================================================================
# 例外類別
# =============================================================================


class WorkspaceError(Exception):
    """所有 workspace 錯誤的基底類別。"""

    kind: ErrorKind = ErrorKind.INTERNAL


class ContainmentError(WorkspaceError, PermissionError):
    """路徑解析後超出 workspace 根目錄。"""

    kind = ErrorKind.CONTAINMENT_VIOLATION


class BinaryFileError(WorkspaceError):
    """嘗試以文字方式操作二進位檔案。"""

    kind = ErrorKind.BINARY_REJECTED


class NoMatchError(WorkspaceError, ValueError):
    """編輯時找不到要替換的內容。"""

    kind = ErrorKind.NO_MATCH


class AmbiguousMatchError(WorkspaceError, ValueError):
    """編輯時要替換的內容出現多次。"""

    kind = ErrorKind.AMBIGUOUS_MATCH


class SpawnError(WorkspaceError):
    """無法啟動子行程（例如找不到執行檔）。"""

    kind = ErrorKind.SPAWN_FAILURE


class CommandTimeoutError(WorkspaceError, TimeoutError):
    """指令執行超時。"""

    kind = ErrorKind.TIMEOUT


class NetworkPolicyError(WorkspaceError, PermissionError):
    """目標主機不在允許清單中。"""

    kind = ErrorKind.NETWORK_POLICY_VIOLATION


class UpstreamError(WorkspaceError, ConnectionError):
    """遠端主機或傳輸層失敗。"""

    kind = ErrorKind.UPSTREAM_FAILURE


class InvalidInputError(WorkspaceError, ValueError):
    """工具參數不符合規格。"""

    kind = ErrorKind.INVALID_INPUT


# =============================================================================
# Dispatch 結果
# =============================================================================


@dataclass(frozen=True)
class ToolResult:
    """工具執行結果。

    成功時 ok 為 True 並帶有 output；失敗時帶有 error 訊息與 error_kind，
    呼叫端不需要任何例外處理就能判斷結果。
    """

    ok: bool
    output: Any = None
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def success(cls, output: Any) -> ToolResult:
        return cls(ok=True, output=output)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> ToolResult:
        return cls(ok=False, error=message, error_kind=kind)

    def to_dict(self) -> dict[str, Any]:
        """轉為可序列化的字典（供回傳給模型使用）。"""
        if self.ok:
            return {'ok': True, 'output': self.output}
        kind = self.error_kind.value if self.error_kind else None
        return {'ok': False, 'error': self.error, 'error_kind': kind}


def classify_exception(exc: BaseException) -> ErrorKind:
    """將例外對應到錯誤分類。"""
    if isinstance(exc, WorkspaceError):
        return exc.kind
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, OSError):
        return ErrorKind.IO_ERROR
    return ErrorKind.INTERNAL
