"""內建工具模組。

每個 register_* 函數都只綁定一種能力：
sandbox（檔案 / 編輯工具）、環境變數字典（shell 工具）或主機允許清單（網路工具）。
"""

from llm_workspace.tools.editor import register_editor_tools
from llm_workspace.tools.fs import register_fs_tools
from llm_workspace.tools.network import HostAllowList, register_network_tools
from llm_workspace.tools.registry import LockProvider, Tool, ToolRegistry
from llm_workspace.tools.shell import register_shell_tools
from llm_workspace.tools.system import register_system_tools

__all__ = [
    'HostAllowList',
    'LockProvider',
    'Tool',
    'ToolRegistry',
    'register_editor_tools',
    'register_fs_tools',
    'register_network_tools',
    'register_shell_tools',
    'register_system_tools',
]
