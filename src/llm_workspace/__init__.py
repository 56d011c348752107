"""LLM Workspace：提供給 LLM agent 的沙箱化工具執行環境。

提供檔案、shell 與網路工具，並確保：
- 所有路徑都在 workspace 根目錄內
- 不以文字方式讀寫二進位檔案
- shell 環境變數在同一個 Workspace 內持續有效
- 工具 schema 可轉換為各家供應商的 strict 格式
"""

from llm_workspace import adapters
from llm_workspace.config import WorkspaceOptions
from llm_workspace.errors import ErrorKind, ToolResult, WorkspaceError
from llm_workspace.sandbox import LocalSandbox, looks_binary, resolve_path
from llm_workspace.schema import to_loose, to_strict
from llm_workspace.tools import Tool, ToolRegistry
from llm_workspace.workspace import Workspace

__all__ = [
    'ErrorKind',
    'LocalSandbox',
    'Tool',
    'ToolRegistry',
    'ToolResult',
    'Workspace',
    'WorkspaceError',
    'WorkspaceOptions',
    'adapters',
    'looks_binary',
    'resolve_path',
    'to_loose',
    'to_strict',
]
