"""仓库扫描 - 在配置目录下查找 git 仓库"""

import logging
import os
from pathlib import Path
from typing import Iterable

from .errors import FilesystemError
from .models import Repository

logger = logging.getLogger(__name__)

GIT_MARKER = '.git'
MAX_DEPTH = 3


def expand_home(path: str) -> str:
    return os.path.expanduser(path)


def is_git_repository(path: str) -> bool:
    """目录下是否有 .git 目录"""
    return (Path(path) / GIT_MARKER).is_dir()


def _raise_walk_error(error: OSError) -> None:
    raise FilesystemError(f"cannot read {error.filename}: {error.strerror}")


def _find_repos_in_directory(root: str) -> list[Repository]:
    """遍历单个根目录（最深 MAX_DEPTH 层）

    命中仓库后不再进入其内部；隐藏目录直接剪枝。子目录读取失败只记录日志。
    """
    repos = []
    root = os.path.abspath(root)
    root_depth = root.rstrip(os.sep).count(os.sep)

    def on_error(error: OSError) -> None:
        if os.path.abspath(error.filename or '') == root:
            _raise_walk_error(error)
        logger.debug(f"[扫描] 跳过无法读取的目录: {error.filename}")

    for dirpath, dirnames, _ in os.walk(root, onerror=on_error):
        if GIT_MARKER in dirnames and os.path.isdir(os.path.join(dirpath, GIT_MARKER)):
            repos.append(Repository(name=os.path.basename(dirpath), path=dirpath))
            dirnames[:] = []
            continue

        depth = dirpath.rstrip(os.sep).count(os.sep) - root_depth
        if depth >= MAX_DEPTH:
            dirnames[:] = []
            continue
        dirnames[:] = sorted(name for name in dirnames if not name.startswith('.'))

    return repos


def scan(directories: Iterable[str]) -> list[Repository]:
    """扫描所有配置目录

    Returns:
        按名称排序、按路径去重的仓库列表；单个目录失败时跳过，整体不抛异常。
    """
    repos: list[Repository] = []
    seen: set[str] = set()

    for directory in directories:
        if not directory:
            continue
        expanded = expand_home(directory)
        if not os.path.isdir(expanded):
            logger.debug(f"[扫描] 目录不存在，跳过: {expanded}")
            continue

        try:
            found = _find_repos_in_directory(expanded)
        except FilesystemError as e:
            logger.warning(f"[扫描] {e}")
            continue

        for repo in found:
            if repo.path not in seen:
                seen.add(repo.path)
                repos.append(repo)

    repos.sort(key=lambda r: (r.name, r.path))
    logger.info(f"[扫描] 共找到 {len(repos)} 个仓库")
    return repos
