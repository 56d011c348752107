"""Workspace 配置模組。"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from llm_workspace.tools.shell import DEFAULT_SHELL_TIMEOUT

ENV_PREFIX = 'LLM_WORKSPACE_'


@dataclass
class WorkspaceOptions:
    """Workspace 配置。

    Attributes:
        root_dir: workspace 根目錄（不存在時由 initialize 建立）
        shell_timeout: shell 指令超時時間（秒）
        allowed_domains: 網路工具允許存取的主機名稱，None 或空清單表示不限制
        env: 額外的環境變數，覆寫從主機複製的值
    """

    root_dir: str | Path
    shell_timeout: float = DEFAULT_SHELL_TIMEOUT
    allowed_domains: list[str] | None = None
    env: dict[str, str] = field(default_factory=lambda: {})

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        prefix: str = ENV_PREFIX,
    ) -> WorkspaceOptions:
        """從環境變數讀取配置。

        讀取 {prefix}ROOT_DIR、{prefix}SHELL_TIMEOUT、{prefix}ALLOWED_DOMAINS（逗號分隔）。

        Raises:
            ValueError: 未設定根目錄或超時時間格式錯誤
        """
        source = os.environ if environ is None else environ

        root_dir = source.get(f'{prefix}ROOT_DIR')
        if not root_dir:
            raise ValueError(f'未設定 {prefix}ROOT_DIR')

        options = cls(root_dir=root_dir)

        timeout = source.get(f'{prefix}SHELL_TIMEOUT')
        if timeout:
            try:
                options.shell_timeout = float(timeout)
            except ValueError:
                raise ValueError(f'{prefix}SHELL_TIMEOUT 必須是數字: {timeout!r}') from None

        domains = source.get(f'{prefix}ALLOWED_DOMAINS')
        if domains:
            options.allowed_domains = [d.strip() for d in domains.split(',') if d.strip()]

        return options
