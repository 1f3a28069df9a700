"""Tmux 控制器 - 所有 tmux 子进程调用的唯一出口

同步、阻塞的窄接口：调用方只关心成功与否，失败统一抛出 ExternalToolError。
"""

import logging
import os
import shutil
import subprocess
from typing import Optional

from .errors import ExternalToolError

logger = logging.getLogger(__name__)

# list-sessions 在没有 server / 没有会话时的退出码
NO_SESSIONS_EXIT_CODE = 1

SESSION_FORMAT = '#{session_name}:#{session_windows}:#{session_attached}'


def wrap_command(command: str) -> list[str]:
    """包装启动命令，命令退出后保留交互 shell（避免用户被踢出 tmux）"""
    return ['sh', '-c', f'{command}; exec $SHELL']


class TmuxController:
    """Tmux 控制器

    每个方法对应一条 tmux 命令；attach 以外的调用都会捕获输出并带超时。
    """

    def __init__(self, binary: str = 'tmux', timeout: float = 5.0):
        self.binary = binary
        self.timeout = timeout

    def _run(self, *args, timeout: Optional[float] = None) -> subprocess.CompletedProcess:
        """执行 tmux 命令"""
        cmd = [self.binary] + list(args)
        logger.debug(f"[tmux] {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout or self.timeout,
            )
        except subprocess.TimeoutExpired:
            return subprocess.CompletedProcess(cmd, -1, '', 'timeout')
        except FileNotFoundError:
            return subprocess.CompletedProcess(cmd, 127, '', f'{self.binary}: command not found')

    def _check(self, action: str, *args) -> subprocess.CompletedProcess:
        """执行命令，失败时抛出 ExternalToolError"""
        result = self._run(*args)
        if result.returncode != 0:
            stderr = (result.stderr or '').strip()
            logger.error(f"[tmux] {action} 失败: returncode={result.returncode}, stderr={stderr}")
            raise ExternalToolError(f"{action}: {stderr or f'exit status {result.returncode}'}")
        return result

    # ========== 查询 ==========

    def list_sessions(self) -> subprocess.CompletedProcess:
        """原始 list-sessions 结果（由 SessionDirectory 解析）"""
        return self._run('list-sessions', '-F', SESSION_FORMAT)

    def is_inside_tmux(self) -> bool:
        """当前进程是否运行在 tmux 客户端内"""
        return bool(os.environ.get('TMUX'))

    # ========== 会话管理 ==========

    def new_session(
        self,
        name: str,
        cwd: str,
        window_name: Optional[str] = None,
        command: Optional[str] = None,
    ) -> None:
        """创建后台会话"""
        args = ['new-session', '-d', '-s', name, '-c', cwd]
        if window_name:
            args += ['-n', window_name]
        if command:
            args += wrap_command(command)
        self._check('failed to create session', *args)

    def new_window(
        self,
        session: str,
        cwd: str,
        window_name: Optional[str] = None,
        command: Optional[str] = None,
    ) -> None:
        """在已有会话中追加窗口"""
        args = ['new-window', '-t', session, '-c', cwd]
        if window_name:
            args += ['-n', window_name]
        if command:
            args += wrap_command(command)
        self._check('failed to create window', *args)

    def select_window(self, target: str) -> bool:
        """聚焦窗口（session:window），失败不抛异常"""
        return self._run('select-window', '-t', target).returncode == 0

    def rename_session(self, old_name: str, new_name: str) -> None:
        self._check('failed to rename session', 'rename-session', '-t', old_name, new_name)

    def kill_session(self, name: str) -> None:
        self._check('failed to kill session', 'kill-session', '-t', name)

    def switch_client(self, name: str) -> None:
        """切换当前 tmux 客户端到目标会话"""
        self._check('failed to switch client', 'switch-client', '-t', name)

    def attach_session(self, name: str) -> None:
        """attach 到会话

        直接继承当前终端的 stdin/stdout/stderr，阻塞到用户 detach。
        """
        cmd = [self.binary, 'attach-session', '-t', name]
        logger.info(f"[attach] {' '.join(cmd)}")
        try:
            returncode = subprocess.run(cmd).returncode
        except FileNotFoundError:
            raise ExternalToolError(f"failed to attach: {self.binary} not found")
        if returncode != 0:
            raise ExternalToolError(f"failed to attach: exit status {returncode}")


def is_tmux_available(binary: str = 'tmux') -> bool:
    """tmux 是否在 PATH 中"""
    return shutil.which(binary) is not None


def check_tmux() -> tuple[bool, str]:
    """检查 tmux 是否可用"""
    try:
        result = subprocess.run(['tmux', '-V'], capture_output=True, text=True)
        if result.returncode == 0:
            return True, result.stdout.strip()
        return False, "tmux 命令执行失败"
    except FileNotFoundError:
        return False, "未找到 tmux，请安装: sudo apt install tmux"
