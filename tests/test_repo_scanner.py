"""仓库扫描测试"""

import os

from muxyard.repo_scanner import is_git_repository, scan


def make_repo(root, *parts):
    path = root.joinpath(*parts)
    (path / ".git").mkdir(parents=True)
    return path


class TestScan:
    """scan 测试"""

    def test_finds_repos_sorted_by_name(self, tmp_path):
        make_repo(tmp_path, "zeta")
        make_repo(tmp_path, "group", "alpha")
        repos = scan([str(tmp_path)])
        assert [r.name for r in repos] == ["alpha", "zeta"]
        assert repos[0].path == str(tmp_path / "group" / "alpha")

    def test_depth_limit(self, tmp_path):
        make_repo(tmp_path, "a", "b", "c")
        make_repo(tmp_path, "a", "b", "c2", "too-deep")
        names = [r.name for r in scan([str(tmp_path)])]
        assert names == ["c"]

    def test_does_not_descend_into_repo(self, tmp_path):
        outer = make_repo(tmp_path, "outer")
        make_repo(outer, "vendor", "inner")
        assert [r.name for r in scan([str(tmp_path)])] == ["outer"]

    def test_skips_hidden_directories(self, tmp_path):
        make_repo(tmp_path, ".cache", "hidden")
        make_repo(tmp_path, "visible")
        assert [r.name for r in scan([str(tmp_path)])] == ["visible"]

    def test_dedup_across_roots(self, tmp_path):
        make_repo(tmp_path, "group", "api")
        repos = scan([str(tmp_path), str(tmp_path / "group")])
        assert len(repos) == 1

    def test_missing_and_empty_directories_ignored(self, tmp_path):
        make_repo(tmp_path, "api")
        repos = scan(["", str(tmp_path / "missing"), str(tmp_path)])
        assert [r.name for r in repos] == ["api"]

    def test_no_directories(self):
        assert scan([]) == []

    def test_expands_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        make_repo(tmp_path, "src", "api")
        repos = scan(["~/src"])
        assert [r.path for r in repos] == [os.path.join(str(tmp_path), "src", "api")]

    def test_git_file_is_not_repository(self, tmp_path):
        (tmp_path / "worktree").mkdir()
        (tmp_path / "worktree" / ".git").write_text("gitdir: elsewhere")
        assert is_git_repository(str(tmp_path / "worktree")) is False
        assert scan([str(tmp_path)]) == []
