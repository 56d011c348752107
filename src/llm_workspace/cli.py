"""命令列工具。

用法：
    python -m llm_workspace tools --root ./ws [--provider openai|anthropic|gemini] [--loose]
    python -m llm_workspace call --root ./ws read_file '{"path": "README.md"}'

tools 輸出指定供應商格式的工具定義；call 直接執行單一工具並輸出 ToolResult。
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from llm_workspace.adapters import to_anthropic_tools, to_gemini_tools, to_openai_tools
from llm_workspace.config import WorkspaceOptions
from llm_workspace.tools.shell import DEFAULT_SHELL_TIMEOUT
from llm_workspace.workspace import Workspace

logger = logging.getLogger(__name__)

PROVIDERS = ('openai', 'anthropic', 'gemini')


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='llm_workspace', description='LLM Workspace 工具')
    parser.add_argument('--verbose', action='store_true', help='顯示 debug 日誌')

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--root', required=True, help='workspace 根目錄')
    common.add_argument(
        '--allowed-domain',
        action='append',
        dest='allowed_domains',
        help='允許存取的主機名稱（可重複指定）',
    )
    common.add_argument(
        '--shell-timeout',
        type=float,
        default=DEFAULT_SHELL_TIMEOUT,
        help=f'shell 指令超時秒數 (預設: {DEFAULT_SHELL_TIMEOUT:g})',
    )

    sub = parser.add_subparsers(dest='command', required=True)

    tools = sub.add_parser('tools', parents=[common], help='輸出工具定義')
    tools.add_argument('--provider', choices=PROVIDERS, default='openai', help='供應商格式')
    tools.add_argument('--loose', action='store_true', help='使用非 strict schema')

    call = sub.add_parser('call', parents=[common], help='執行單一工具')
    call.add_argument('name', help='工具名稱')
    call.add_argument('arguments', nargs='?', default='{}', help='JSON 格式的工具參數')

    return parser


def _tool_definitions(workspace: Workspace, provider: str, strict: bool) -> list[Any]:
    if provider == 'anthropic':
        return list(to_anthropic_tools(workspace.tools, strict=strict))
    if provider == 'gemini':
        return to_gemini_tools(workspace.tools)
    return to_openai_tools(workspace.tools, strict=strict)


async def _call(workspace: Workspace, name: str, raw_arguments: str) -> int:
    try:
        arguments = json.loads(raw_arguments)
    except json.JSONDecodeError as e:
        print(f'參數不是有效的 JSON: {e}', file=sys.stderr)  # noqa: T201
        return 2

    if name not in workspace.registry:
        available = ', '.join(workspace.registry.list_tools())
        print(f"工具 '{name}' 不存在，可用工具: {available}", file=sys.stderr)  # noqa: T201
        return 2

    await workspace.initialize()
    result = await workspace.execute(name, arguments)
    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))  # noqa: T201
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    """命令列進入點。"""
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    options = WorkspaceOptions(
        root_dir=args.root,
        shell_timeout=args.shell_timeout,
        allowed_domains=args.allowed_domains,
    )
    workspace = Workspace(options)

    if args.command == 'tools':
        definitions = _tool_definitions(workspace, args.provider, strict=not args.loose)
        print(json.dumps(definitions, ensure_ascii=False, indent=2))  # noqa: T201
        return 0

    return asyncio.run(_call(workspace, args.name, args.arguments))


if __name__ == '__main__':
    sys.exit(main())
