"""網路工具模組。

提供 http_request、ping_host、get_my_ip。
設定允許清單時，只接受主機名稱完全相符的目標（不支援萬用字元或後綴比對）。
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re
import sys
from typing import Any, Literal
from urllib.parse import urlsplit

import httpx

from llm_workspace.errors import InvalidInputError, NetworkPolicyError, UpstreamError
from llm_workspace.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

USER_AGENT = 'llm-workspace/1.0'

# HTTP 請求超時（秒）
HTTP_TIMEOUT = 30.0

# ping 超時（秒）
PING_TIMEOUT = 5.0

IP_INFO_URL = 'https://ipapi.co/json/'

_PING_TARGET_RE = re.compile(r'^[A-Za-z0-9][A-Za-z0-9.-]*$')

HttpMethod = Literal['GET', 'POST', 'PUT', 'DELETE']


class HostAllowList:
    """主機允許清單。

    hosts 為 None 或空清單時不限制。
    """

    def __init__(self, hosts: list[str] | None = None) -> None:
        self._hosts = frozenset(h.lower() for h in hosts) if hosts else None

    def check(self, host: str) -> None:
        """檢查主機是否允許存取。

        Raises:
            NetworkPolicyError: 主機不在允許清單中
        """
        if self._hosts is None:
            return
        if host.lower() not in self._hosts:
            logger.warning('主機不在允許清單中', extra={'host': host})
            raise NetworkPolicyError(f"安全限制: 主機 '{host}' 不在允許清單中。")


async def http_request(
    allow_list: HostAllowList,
    url: str,
    method: HttpMethod,
    headers: list[dict[str, str]] | None = None,
    body: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """發送 HTTP 請求，非 2xx 狀態碼也直接回傳。

    Args:
        allow_list: 主機允許清單（在任何網路 I/O 之前檢查）
        url: 完整 URL
        method: HTTP 方法
        headers: [{key, value}] 格式的標頭列表
        body: 請求內容（GET 時忽略）
        client: 測試時可注入的 httpx client

    Raises:
        InvalidInputError: URL 格式錯誤
        NetworkPolicyError: 主機不在允許清單中
        UpstreamError: 連線或傳輸失敗
    """
    parsed = urlsplit(url)
    if parsed.scheme not in ('http', 'https') or not parsed.hostname:
        raise InvalidInputError(f'無效的 URL: {url}')
    allow_list.check(parsed.hostname)

    request_headers = {'User-Agent': USER_AGENT}
    for header in headers or []:
        request_headers[header['key']] = header['value']

    content = body if body and method != 'GET' else None

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=httpx.Timeout(HTTP_TIMEOUT))
    try:
        response = await client.request(method, url, headers=request_headers, content=content)
    except httpx.HTTPError as e:
        logger.warning('HTTP 請求失敗', extra={'url': url, 'error': str(e)})
        raise UpstreamError(f'HTTP 請求失敗: {e}') from e
    finally:
        if owns_client:
            await client.aclose()

    return {
        'status': response.status_code,
        'status_text': response.reason_phrase,
        'headers': dict(response.headers),
        'body': response.text,
    }


async def ping_host(allow_list: HostAllowList, target: str) -> dict[str, Any]:
    """以系統 ping 指令檢查主機是否可達。"""
    if not _PING_TARGET_RE.match(target):
        raise InvalidInputError('無效的目標格式。')
    allow_list.check(target)

    count_flag = '-n' if sys.platform == 'win32' else '-c'
    try:
        proc = await asyncio.create_subprocess_exec(
            'ping',
            count_flag,
            '2',
            target,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        return {'reachable': False, 'error': f'無法執行 ping: {e}'}

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=PING_TIMEOUT)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        await proc.wait()
        return {'reachable': False, 'error': f'ping 超時（{PING_TIMEOUT:g} 秒）'}

    output = stdout.decode('utf-8', errors='replace')
    if proc.returncode != 0:
        error = stderr.decode('utf-8', errors='replace').strip() or output.strip()
        return {'reachable': False, 'error': error or 'ping 失敗'}
    return {'reachable': True, 'output': output}


async def get_my_ip(
    allow_list: HostAllowList,
    client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """查詢對外 IP 與大略位置（查詢服務的主機同樣受允許清單限制）。"""
    allow_list.check(urlsplit(IP_INFO_URL).hostname or '')

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=httpx.Timeout(HTTP_TIMEOUT))
    try:
        response = await client.get(IP_INFO_URL, headers={'User-Agent': USER_AGENT})
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        raise UpstreamError(f'無法取得 IP 資訊: {e}') from e
    finally:
        if owns_client:
            await client.aclose()

    return {
        'ip': data.get('ip'),
        'city': data.get('city'),
        'region': data.get('region'),
        'country': data.get('country_name'),
        'isp': data.get('org'),
    }


def register_network_tools(registry: ToolRegistry, allowed_domains: list[str] | None = None) -> None:
    """註冊網路工具。

    Args:
        registry: 工具註冊表
        allowed_domains: 允許存取的主機名稱（None 表示不限制）
    """
    allow_list = HostAllowList(allowed_domains)

    async def _http_handler(
        url: str,
        method: HttpMethod,
        headers: list[dict[str, str]] | None = None,
        body: str | None = None,
    ) -> dict[str, Any]:
        return await http_request(allow_list, url, method, headers=headers, body=body)

    async def _ping_handler(target: str) -> dict[str, Any]:
        return await ping_host(allow_list, target)

    async def _ip_handler() -> dict[str, Any]:
        return await get_my_ip(allow_list)

    registry.register(
        name='http_request',
        description="""對外部 API 或網站發送 HTTP 請求。

        回傳：status、status_text、headers、body。非 2xx 狀態碼不視為錯誤。""",
        parameters={
            'type': 'object',
            'properties': {
                'url': {'type': 'string', 'format': 'uri', 'description': '完整的請求 URL'},
                'method': {
                    'type': 'string',
                    'enum': ['GET', 'POST', 'PUT', 'DELETE'],
                    'description': 'HTTP 方法',
                },
                'headers': {
                    'type': 'array',
                    'description': '請求標頭列表',
                    'items': {
                        'type': 'object',
                        'properties': {
                            'key': {'type': 'string', 'description': '標頭名稱'},
                            'value': {'type': 'string', 'description': '標頭值'},
                        },
                        'required': ['key', 'value'],
                        'additionalProperties': False,
                    },
                },
                'body': {'type': 'string', 'description': '請求內容（POST / PUT 使用）'},
            },
            'required': ['url', 'method'],
            'additionalProperties': False,
        },
        handler=_http_handler,
    )

    registry.register(
        name='ping_host',
        description='使用系統 ping 檢查主機或 IP 是否可達。',
        parameters={
            'type': 'object',
            'properties': {
                'target': {'type': 'string', 'description': '主機名稱或 IP'},
            },
            'required': ['target'],
            'additionalProperties': False,
        },
        handler=_ping_handler,
    )

    registry.register(
        name='get_my_ip',
        description='取得對外 IP 與大略位置資訊。',
        parameters={'type': 'object', 'properties': {}, 'required': [], 'additionalProperties': False},
        handler=_ip_handler,
    )
