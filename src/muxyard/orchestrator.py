"""会话编排 - 把用户意图翻译成 tmux 操作

会话生命周期：
- 创建：new-session（第一个窗口）→ new-window（其余窗口）→ select-window（可选）
- 进入：tmux 内用 switch-client，tmux 外用 attach-session（阻塞到 detach）
- 重命名 / 删除：单条 tmux 命令
"""

import logging
import os
from typing import Iterable

from .errors import ExternalToolError, ValidationError
from .models import Session, Template
from .session_directory import SessionDirectory
from .tmux_control import TmuxController

logger = logging.getLogger(__name__)


def generate_unique_name(base_path: str, existing_sessions: Iterable[Session]) -> str:
    """根据路径最后一段生成不冲突的会话名

    已存在时依次尝试 name_2、name_3 ...
    """
    base_name = os.path.basename(os.path.normpath(base_path))
    taken = {s.name for s in existing_sessions}
    name = base_name
    counter = 1
    while name in taken:
        counter += 1
        name = f"{base_name}_{counter}"
    return name


class SessionOrchestrator:
    """会话编排器

    所有调用都是同步阻塞的；每次变更后由调用方重新 query 会话目录。
    """

    def __init__(self, tmux: TmuxController, directory: SessionDirectory | None = None):
        self.tmux = tmux
        self.directory = directory or SessionDirectory(tmux)

    def list_sessions(self) -> list[Session]:
        return self.directory.query()

    def create_session(self, name: str, path: str, template: Template) -> None:
        """按模板创建会话

        Raises:
            ValidationError: 模板没有窗口（不会调用 tmux）
            ExternalToolError: 会话或某个窗口创建失败
        """
        if not template.windows:
            raise ValidationError(f"template {template.name!r} must have at least one window")

        first, rest = template.windows[0], template.windows[1:]
        logger.info(f"[创建] session={name}, path={path}, template={template.name}")
        self.tmux.new_session(name, path, window_name=first.name, command=first.command)

        for position, window in enumerate(rest, start=2):
            try:
                self.tmux.new_window(name, path, window_name=window.name, command=window.command)
            except ExternalToolError as e:
                raise ExternalToolError(f"failed to create window {position}: {e.message}") from e

        if template.focused_window:
            target = f"{name}:{template.focused_window}"
            if not self.tmux.select_window(target):
                logger.debug(f"[创建] 聚焦窗口失败（忽略）: {target}")

    def attach(self, name: str) -> None:
        """进入会话（tmux 内切换客户端，tmux 外直接 attach）"""
        if self.tmux.is_inside_tmux():
            logger.info(f"[进入] switch-client: {name}")
            self.tmux.switch_client(name)
        else:
            logger.info(f"[进入] attach-session: {name}")
            self.tmux.attach_session(name)

    def rename(self, old_name: str, new_name: str) -> None:
        """重命名（调用方保证 new_name 非空且与 old_name 不同）"""
        logger.info(f"[重命名] {old_name} → {new_name}")
        self.tmux.rename_session(old_name, new_name)

    def kill(self, name: str) -> None:
        """删除会话（attached 会话的确认由调用方负责）"""
        logger.info(f"[删除] {name}")
        self.tmux.kill_session(name)
