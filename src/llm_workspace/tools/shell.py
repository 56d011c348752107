"""Shell 工具模組。

提供 run_shell_cmd 與 set_env_var。兩者共享同一個環境變數字典（by reference），
因此 set_env_var 設定的變數會在同一個 Workspace 之後的指令中生效。
"""

from __future__ import annotations

import logging

from llm_workspace.errors import CommandTimeoutError, InvalidInputError, SpawnError
from llm_workspace.sandbox import Sandbox, ShellOutput
from llm_workspace.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# 預設超時時間（秒）
DEFAULT_SHELL_TIMEOUT = 10.0


async def run_shell_cmd(
    sandbox: Sandbox,
    env: dict[str, str],
    command: str,
    args: list[str] | None = None,
    timeout: float = DEFAULT_SHELL_TIMEOUT,
) -> ShellOutput:
    """在 workspace 根目錄執行指令，永遠不拋出例外。

    非零 exit code 直接回傳；無法啟動或超時時 exit_code 為 -1 並帶有 error。
    """
    try:
        return await sandbox.exec(command, args or [], env, timeout)
    except (SpawnError, CommandTimeoutError) as e:
        return ShellOutput(stdout='', stderr='', exit_code=-1, error=str(e))


def register_shell_tools(
    registry: ToolRegistry,
    sandbox: Sandbox,
    env: dict[str, str],
    timeout: float = DEFAULT_SHELL_TIMEOUT,
) -> None:
    """註冊 shell 相關工具。

    Args:
        registry: 工具註冊表
        sandbox: 執行指令的沙箱（工作目錄固定為根目錄）
        env: Workspace 持有的環境變數字典，會被直接修改
        timeout: 指令超時時間（秒）
    """

    async def _run_handler(command: str, args: list[str] | None = None) -> ShellOutput:
        """run_shell_cmd handler 閉包，綁定 sandbox 與 env。"""
        result = await run_shell_cmd(sandbox, env, command, args, timeout=timeout)
        logger.debug(
            '指令執行完成',
            extra={'shell_command': command, 'exit_code': result['exit_code']},
        )
        return result

    async def _set_env_handler(key: str, value: str) -> str:
        if not key or '=' in key or '\x00' in key or '\x00' in value:
            raise InvalidInputError(f'無效的環境變數名稱或值: {key!r}')
        env[key] = value
        logger.debug('環境變數已設定', extra={'key': key})
        return f'環境變數 {key} 已設定'

    registry.register(
        name='run_shell_cmd',
        description=f"""執行指令（不經過 shell 解析），工作目錄固定為 workspace 根目錄。

        常見用途：
        - 執行測試：pytest, npm test
        - Git 操作：git status, git diff

        指令與參數需分開傳入，例如 command="git", args=["status"]。
        超時時間為 {timeout:g} 秒。

        回傳：exit_code、stdout、stderr；無法執行時另有 error。""",
        parameters={
            'type': 'object',
            'properties': {
                'command': {'type': 'string', 'description': '要執行的程式'},
                'args': {
                    'type': 'array',
                    'items': {'type': 'string'},
                    'description': '參數列表',
                    'default': [],
                },
            },
            'required': ['command'],
            'additionalProperties': False,
        },
        handler=_run_handler,
    )

    registry.register(
        name='set_env_var',
        description='設定環境變數，之後執行的指令都會帶入此變數。',
        parameters={
            'type': 'object',
            'properties': {
                'key': {'type': 'string', 'description': '環境變數名稱（例如 API_KEY）'},
                'value': {'type': 'string', 'description': '環境變數的值'},
            },
            'required': ['key', 'value'],
            'additionalProperties': False,
        },
        handler=_set_env_handler,
    )
