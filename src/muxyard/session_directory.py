"""会话目录 - 从 tmux 读取当前会话列表"""

import logging

from .errors import ExternalToolError
from .models import Session
from .tmux_control import NO_SESSIONS_EXIT_CODE, TmuxController

logger = logging.getLogger(__name__)


def parse_session_line(line: str) -> Session | None:
    """解析一行 name:windows:attached，格式不对返回 None"""
    parts = line.split(':')
    if len(parts) != 3:
        return None
    name, windows, attached = parts
    return Session(
        name=name,
        windows=int(windows) if windows.isdigit() else 0,
        attached=attached == '1',
    )


class SessionDirectory:
    """会话目录

    每次 query 都重新调用 tmux，不做任何缓存。
    """

    def __init__(self, tmux: TmuxController):
        self.tmux = tmux

    def query(self) -> list[Session]:
        """返回当前所有会话

        Raises:
            ExternalToolError: tmux 调用失败（"没有会话" 的退出码除外）
        """
        result = self.tmux.list_sessions()
        if result.returncode == NO_SESSIONS_EXIT_CODE:
            return []
        if result.returncode != 0:
            stderr = (result.stderr or '').strip()
            raise ExternalToolError(
                f"failed to load sessions: {stderr or f'exit status {result.returncode}'}"
            )

        sessions = []
        for line in result.stdout.strip().split('\n'):
            if not line:
                continue
            session = parse_session_line(line)
            if session is None:
                logger.debug(f"[会话] 跳过无法解析的行: {line!r}")
                continue
            sessions.append(session)
        return sessions
