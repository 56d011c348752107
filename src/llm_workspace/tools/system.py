"""系統資訊工具模組。"""

from __future__ import annotations

import os
import platform
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from llm_workspace.errors import InvalidInputError
from llm_workspace.tools.registry import ToolRegistry


def get_current_time(timezone: str | None = None, now: datetime | None = None) -> dict[str, Any]:
    """取得目前時間的多種格式。

    Args:
        timezone: IANA 時區名稱（例如 "Asia/Taipei"），None 表示系統時區
        now: 測試用的固定時間（需帶時區）

    Raises:
        InvalidInputError: 時區名稱無效
    """
    current = now or datetime.now(UTC)

    if timezone:
        try:
            local = current.astimezone(ZoneInfo(timezone))
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidInputError(f'無效的時區: {timezone}') from e
        zone_name = timezone
    else:
        local = current.astimezone()
        zone_name = local.tzname() or 'UTC'

    return {
        'iso': current.astimezone(UTC).isoformat(),
        'locale_string': local.strftime('%A, %B %d, %Y %H:%M:%S %Z'),
        'timestamp': int(current.timestamp() * 1000),
        'timezone': zone_name,
        'utc': current.astimezone(UTC).strftime('%a, %d %b %Y %H:%M:%S GMT'),
    }


def _memory_info() -> tuple[int | None, int | None]:
    """回傳（總記憶體, 可用記憶體），無法取得時為 None。"""
    try:
        page_size = os.sysconf('SC_PAGE_SIZE')
        total = os.sysconf('SC_PHYS_PAGES') * page_size
        free = os.sysconf('SC_AVPHYS_PAGES') * page_size
    except (AttributeError, ValueError, OSError):
        return None, None
    return total, free


def get_system_info() -> dict[str, Any]:
    """取得作業系統與硬體資訊。"""
    total_memory, free_memory = _memory_info()
    return {
        'platform': sys.platform,
        'release': platform.release(),
        'arch': platform.machine(),
        'cpus': os.cpu_count() or 0,
        'total_memory': total_memory,
        'free_memory': free_memory,
        'hostname': platform.node(),
        'homedir': str(Path.home()),
        'python_version': platform.python_version(),
    }


def register_system_tools(registry: ToolRegistry) -> None:
    """註冊系統資訊工具。"""

    async def _time_handler(timezone: str | None = None) -> dict[str, Any]:
        return get_current_time(timezone)

    async def _info_handler() -> dict[str, Any]:
        return get_system_info()

    registry.register(
        name='get_current_time',
        description='取得目前日期與時間（ISO、Unix timestamp、當地時間等格式）。',
        parameters={
            'type': 'object',
            'properties': {
                'timezone': {
                    'type': 'string',
                    'description': 'IANA 時區名稱（例如 "America/New_York"），預設為系統時區',
                },
            },
            'required': [],
            'additionalProperties': False,
        },
        handler=_time_handler,
    )

    registry.register(
        name='get_system_info',
        description='取得作業系統與硬體資訊。',
        parameters={'type': 'object', 'properties': {}, 'required': [], 'additionalProperties': False},
        handler=_info_handler,
    )
