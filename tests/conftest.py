"""測試共用的 pytest 配置。

提供 --run-network flag 與 workspace 相關 fixtures。
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest

from llm_workspace import Workspace, WorkspaceOptions
from llm_workspace.sandbox import LocalSandbox


def pytest_addoption(parser: pytest.Parser) -> None:
    """新增測試專用命令列參數。"""
    parser.addoption(
        '--run-network',
        action='store_true',
        default=False,
        help='執行需要真實網路連線的測試',
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line('markers', 'network: 需要真實網路連線的測試')


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """根據 --run-network 決定是否跳過網路測試。"""
    if config.getoption('--run-network'):
        return

    skip_network = pytest.mark.skip(reason='需要加 --run-network 才會執行')
    for item in items:
        if 'network' in item.keywords:
            item.add_marker(skip_network)


# --- Fixtures ---


@pytest.fixture
def sandbox_dir(tmp_path: Path) -> Path:
    """建立測試用 sandbox 目錄。"""
    sandbox = tmp_path / 'sandbox'
    sandbox.mkdir()
    (sandbox / 'src').mkdir()
    (sandbox / 'src' / 'main.py').write_text(
        'def old_function():\n    return "old"\n', encoding='utf-8'
    )
    return sandbox


@pytest.fixture
def sandbox(sandbox_dir: Path) -> LocalSandbox:
    return LocalSandbox(sandbox_dir)


@pytest.fixture
async def workspace(sandbox_dir: Path) -> AsyncIterator[Workspace]:
    """建立已初始化的 Workspace，測試結束後刪除根目錄。"""
    ws = Workspace(WorkspaceOptions(root_dir=sandbox_dir))
    await ws.initialize()
    yield ws
    await ws.teardown()
