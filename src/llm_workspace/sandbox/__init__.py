"""Sandbox 沙箱環境模組。

提供路徑驗證、二進位檔案偵測與本地指令執行。
"""

from llm_workspace.sandbox.base import Sandbox, ShellOutput
from llm_workspace.sandbox.binary import looks_binary, looks_binary_bytes
from llm_workspace.sandbox.local import LocalSandbox, ensure_parent_dir, resolve_path

__all__ = [
    'LocalSandbox',
    'Sandbox',
    'ShellOutput',
    'ensure_parent_dir',
    'looks_binary',
    'looks_binary_bytes',
    'resolve_path',
]
