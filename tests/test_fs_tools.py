"""檔案系統工具測試模組。

透過 Workspace.execute 呼叫，驗證 ToolResult 的 ok / error_kind。
"""

from __future__ import annotations

from pathlib import Path

import allure

from llm_workspace import Workspace
from llm_workspace.errors import ErrorKind


@allure.feature('檔案工具')
@allure.story('讀寫檔案')
class TestReadWrite:
    """測試 read_file / write_file / append_file。"""

    @allure.title('讀取檔案')
    async def test_read_file(self, workspace: Workspace) -> None:
        result = await workspace.execute('read_file', {'path': 'src/main.py'})

        assert result.ok is True
        assert result.output == 'def old_function():\n    return "old"\n'

    @allure.title('寫入時自動建立上層目錄')
    async def test_write_creates_parents(self, workspace: Workspace, sandbox_dir: Path) -> None:
        result = await workspace.execute(
            'write_file', {'path': 'deep/nested/note.txt', 'content': '繁體中文'}
        )

        assert result.ok is True
        assert (sandbox_dir / 'deep' / 'nested' / 'note.txt').read_text(encoding='utf-8') == '繁體中文'

    @allure.title('寫入後讀取得到相同內容')
    async def test_write_then_read(self, workspace: Workspace) -> None:
        await workspace.execute('write_file', {'path': 'a.txt', 'content': 'first\nsecond\n'})
        result = await workspace.execute('read_file', {'path': 'a.txt'})
        assert result.output == 'first\nsecond\n'

    @allure.title('附加內容到檔案結尾')
    async def test_append(self, workspace: Workspace, sandbox_dir: Path) -> None:
        await workspace.execute('append_file', {'path': 'log.txt', 'content': 'one\n'})
        await workspace.execute('append_file', {'path': 'log.txt', 'content': 'two\n'})

        assert (sandbox_dir / 'log.txt').read_text(encoding='utf-8') == 'one\ntwo\n'

    @allure.title('讀取不存在的檔案')
    async def test_read_missing(self, workspace: Workspace) -> None:
        result = await workspace.execute('read_file', {'path': 'missing.txt'})

        assert result.error_kind is ErrorKind.NOT_FOUND
        assert result.error == '檔案不存在: missing.txt'

    @allure.title('讀取目錄')
    async def test_read_directory(self, workspace: Workspace) -> None:
        result = await workspace.execute('read_file', {'path': 'src'})
        assert result.error_kind is ErrorKind.IO_ERROR


@allure.feature('檔案工具')
@allure.story('二進位檔案保護')
class TestBinaryGuard:
    """測試二進位檔案不會被以文字讀寫。"""

    @allure.title('拒絕讀取二進位檔案')
    async def test_read_binary(self, workspace: Workspace, sandbox_dir: Path) -> None:
        (sandbox_dir / 'image.png').write_bytes(b'\x89PNG\x00\x00')

        result = await workspace.execute('read_file', {'path': 'image.png'})

        assert result.error_kind is ErrorKind.BINARY_REJECTED

    @allure.title('拒絕附加到二進位檔案，檔案內容不變')
    async def test_append_binary(self, workspace: Workspace, sandbox_dir: Path) -> None:
        target = sandbox_dir / 'data.bin'
        target.write_bytes(b'\x00\x01\x02')

        result = await workspace.execute('append_file', {'path': 'data.bin', 'content': 'text'})

        assert result.error_kind is ErrorKind.BINARY_REJECTED
        assert target.read_bytes() == b'\x00\x01\x02'

    @allure.title('write_file 可以覆寫二進位檔案')
    async def test_write_over_binary(self, workspace: Workspace, sandbox_dir: Path) -> None:
        (sandbox_dir / 'data.bin').write_bytes(b'\x00\x01')

        result = await workspace.execute('write_file', {'path': 'data.bin', 'content': 'text'})

        assert result.ok is True
        assert (sandbox_dir / 'data.bin').read_text(encoding='utf-8') == 'text'


@allure.feature('檔案工具')
@allure.story('路徑限制')
class TestContainment:
    """每個帶路徑的工具都不能存取根目錄之外。"""

    async def test_write_outside(self, workspace: Workspace, sandbox_dir: Path) -> None:
        result = await workspace.execute('write_file', {'path': '../escape.txt', 'content': 'x'})

        assert result.error_kind is ErrorKind.CONTAINMENT_VIOLATION
        assert not (sandbox_dir.parent / 'escape.txt').exists()

    async def test_read_absolute_outside(self, workspace: Workspace) -> None:
        result = await workspace.execute('read_file', {'path': '/etc/passwd'})
        assert result.error_kind is ErrorKind.CONTAINMENT_VIOLATION

    async def test_delete_outside(self, workspace: Workspace, tmp_path: Path) -> None:
        victim = tmp_path / 'victim.txt'
        victim.write_text('keep', encoding='utf-8')

        result = await workspace.execute('delete_file', {'path': '../victim.txt'})

        assert result.error_kind is ErrorKind.CONTAINMENT_VIOLATION
        assert victim.exists()

    async def test_list_outside(self, workspace: Workspace) -> None:
        result = await workspace.execute('list_files', {'path': '..'})
        assert result.error_kind is ErrorKind.CONTAINMENT_VIOLATION

    async def test_stat_outside(self, workspace: Workspace) -> None:
        result = await workspace.execute('stat_file', {'path': 'src/../../x'})
        assert result.error_kind is ErrorKind.CONTAINMENT_VIOLATION

    @allure.title('錯誤訊息不洩漏根目錄位置')
    async def test_error_hides_root(self, workspace: Workspace) -> None:
        result = await workspace.execute('read_file', {'path': '../secret'})
        assert str(workspace.root_path) not in (result.error or '')


@allure.feature('檔案工具')
@allure.story('目錄與檔案資訊')
class TestListStatDelete:
    """測試 list_files / stat_file / delete_file。"""

    @allure.title('預設列出根目錄')
    async def test_list_root(self, workspace: Workspace, sandbox_dir: Path) -> None:
        (sandbox_dir / 'README.md').write_text('# readme', encoding='utf-8')

        result = await workspace.execute('list_files', {})

        assert result.output == [
            {'name': 'README.md', 'type': 'file'},
            {'name': 'src', 'type': 'directory'},
        ]

    @allure.title('strict 模式的 null 路徑視為預設值')
    async def test_list_null_path(self, workspace: Workspace) -> None:
        result = await workspace.execute('list_files', {'path': None})
        assert result.output == [{'name': 'src', 'type': 'directory'}]

    async def test_list_missing(self, workspace: Workspace) -> None:
        result = await workspace.execute('list_files', {'path': 'nope'})
        assert result.error_kind is ErrorKind.NOT_FOUND

    async def test_list_file_is_not_directory(self, workspace: Workspace) -> None:
        result = await workspace.execute('list_files', {'path': 'src/main.py'})
        assert result.error_kind is ErrorKind.IO_ERROR

    @allure.title('取得檔案資訊')
    async def test_stat_file(self, workspace: Workspace, sandbox_dir: Path) -> None:
        result = await workspace.execute('stat_file', {'path': 'src/main.py'})

        assert result.ok is True
        info = result.output
        assert info['size'] == (sandbox_dir / 'src' / 'main.py').stat().st_size
        assert info['is_file'] is True
        assert info['is_directory'] is False
        assert info['modified'].endswith('+00:00')

    async def test_stat_directory(self, workspace: Workspace) -> None:
        result = await workspace.execute('stat_file', {'path': 'src'})
        assert result.output['is_directory'] is True

    async def test_stat_missing(self, workspace: Workspace) -> None:
        result = await workspace.execute('stat_file', {'path': 'missing'})
        assert result.error_kind is ErrorKind.NOT_FOUND

    @allure.title('刪除檔案')
    async def test_delete(self, workspace: Workspace, sandbox_dir: Path) -> None:
        result = await workspace.execute('delete_file', {'path': 'src/main.py'})

        assert result.ok is True
        assert not (sandbox_dir / 'src' / 'main.py').exists()

    @allure.title('刪除不存在的檔案不是錯誤')
    async def test_delete_missing(self, workspace: Workspace) -> None:
        result = await workspace.execute('delete_file', {'path': 'ghost.txt'})

        assert result.ok is True
        assert result.output == '檔案 ghost.txt 不存在'
