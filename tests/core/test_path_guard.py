"""路徑驗證測試模組。

涵蓋：
- 根目錄內的相對 / 絕對路徑應被接受
- 透過 .. 或其他根目錄逃脫的路徑應被拒絕
- 錯誤訊息只包含使用者原始輸入
"""

from __future__ import annotations

import os
from pathlib import Path

import allure
import pytest
from hypothesis import given
from hypothesis import strategies as st

from llm_workspace.errors import ContainmentError, ErrorKind
from llm_workspace.sandbox import LocalSandbox, ensure_parent_dir, resolve_path

ROOT = '/ws'


@allure.feature('路徑驗證')
@allure.story('根目錄內的路徑應被接受')
class TestResolveInside:
    """測試合法路徑。"""

    @allure.title('相對路徑解析到根目錄下')
    def test_relative_path(self) -> None:
        assert resolve_path(ROOT, 'a/b') == Path('/ws/a/b')

    @allure.title('空字串與 "." 都是根目錄本身')
    @pytest.mark.parametrize('candidate', ['', '.', './', 'a/..'])
    def test_root_itself(self, candidate: str) -> None:
        assert resolve_path(ROOT, candidate) == Path('/ws')

    @allure.title('指向根目錄內的絕對路徑')
    def test_absolute_inside(self) -> None:
        assert resolve_path(ROOT, '/ws/data/x.txt') == Path('/ws/data/x.txt')

    @allure.title('中途經過 .. 但最終仍在根目錄內')
    def test_traversal_that_stays_inside(self) -> None:
        assert resolve_path(ROOT, 'a/../b/./c') == Path('/ws/b/c')

    @allure.title('以 .. 開頭的檔名不是上層目錄')
    def test_dotdot_prefixed_name(self) -> None:
        assert resolve_path(ROOT, '..hidden') == Path('/ws/..hidden')


@allure.feature('路徑驗證')
@allure.story('逃脫根目錄的路徑應被拒絕')
class TestResolveOutside:
    """測試路徑穿越攻擊。"""

    @allure.title('上層目錄')
    @pytest.mark.parametrize('candidate', ['..', '../x', 'a/../../x', '../../../etc/hosts'])
    def test_parent_traversal(self, candidate: str) -> None:
        with pytest.raises(ContainmentError):
            resolve_path(ROOT, candidate)

    @allure.title('根目錄外的絕對路徑')
    @pytest.mark.parametrize('candidate', ['/etc/passwd', '/', '/wsx/file'])
    def test_absolute_outside(self, candidate: str) -> None:
        with pytest.raises(ContainmentError):
            resolve_path(ROOT, candidate)

    @allure.title('錯誤訊息只回顯原始輸入')
    def test_error_echoes_input_only(self) -> None:
        with pytest.raises(ContainmentError) as exc_info:
            resolve_path('/srv/secret/layout', '../x')

        message = str(exc_info.value)
        assert "'../x'" in message
        assert '/srv/secret' not in message
        assert exc_info.value.kind is ErrorKind.CONTAINMENT_VIOLATION

    @allure.title('ContainmentError 也是 PermissionError')
    def test_is_permission_error(self) -> None:
        with pytest.raises(PermissionError):
            resolve_path(ROOT, '../x')


_segments = st.lists(st.sampled_from(['a', 'b', '..', '.', 'c.txt', '']), max_size=8)


@allure.feature('路徑驗證')
@allure.story('解析成功若且唯若結果在根目錄內')
class TestContainmentProperty:
    @given(segments=_segments, absolute=st.booleans())
    def test_accepts_iff_descendant(self, segments: list[str], absolute: bool) -> None:
        candidate = '/'.join(segments)
        if absolute:
            candidate = '/' + candidate
        expected = os.path.normpath(os.path.join(ROOT, candidate))
        inside = expected == ROOT or expected.startswith(ROOT + os.sep)

        if inside:
            assert resolve_path(ROOT, candidate) == Path(expected)
        else:
            with pytest.raises(ContainmentError):
                resolve_path(ROOT, candidate)


@allure.feature('路徑驗證')
@allure.story('LocalSandbox')
class TestLocalSandbox:
    def test_root_is_absolute(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        sandbox = LocalSandbox('ws')
        assert sandbox.root == tmp_path / 'ws'

    def test_validate_path(self, sandbox: LocalSandbox, sandbox_dir: Path) -> None:
        assert sandbox.validate_path('src/main.py') == sandbox_dir / 'src' / 'main.py'
        with pytest.raises(ContainmentError):
            sandbox.validate_path('../outside.txt')

    @allure.title('建立上層目錄')
    def test_ensure_parent_dir(self, sandbox: LocalSandbox, sandbox_dir: Path) -> None:
        target = sandbox.validate_path('deep/nested/dir/file.txt')
        ensure_parent_dir(target)
        assert (sandbox_dir / 'deep' / 'nested' / 'dir').is_dir()
        assert not target.exists()

    @allure.title('symlink 目標不會被檢查')
    def test_symlink_not_resolved(self, sandbox: LocalSandbox, sandbox_dir: Path, tmp_path: Path) -> None:
        outside = tmp_path / 'outside'
        outside.mkdir()
        (sandbox_dir / 'link').symlink_to(outside, target_is_directory=True)

        # 只做字面上的驗證，連結本身的路徑在根目錄內
        assert sandbox.validate_path('link/file.txt') == sandbox_dir / 'link' / 'file.txt'
