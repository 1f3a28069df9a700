"""测试公共夹具：记录调用的假 tmux 控制器"""

import subprocess

import pytest

from muxyard.errors import ExternalToolError
from muxyard.models import Session
from muxyard.orchestrator import SessionOrchestrator
from muxyard.session_directory import SessionDirectory
from muxyard.tmux_control import NO_SESSIONS_EXIT_CODE


class FakeTmux:
    """假 tmux：在内存中维护会话表，记录每次调用

    fail_on 中的操作名会抛出 ExternalToolError（new_window 可以指定第几次失败）。
    """

    def __init__(self, sessions=(), inside_tmux=False):
        self.sessions = {s.name: s for s in sessions}
        self.inside_tmux = inside_tmux
        self.calls = []
        self.fail_on = set()
        self.fail_window_at = None
        self.list_returncode = None
        self._windows_created = 0

    def _fail(self, op):
        if op in self.fail_on:
            raise ExternalToolError(f"{op} failed")

    def list_sessions(self):
        self.calls.append(('list_sessions',))
        if self.list_returncode is not None:
            return subprocess.CompletedProcess([], self.list_returncode, '', 'boom')
        if not self.sessions:
            return subprocess.CompletedProcess([], NO_SESSIONS_EXIT_CODE, '', 'no server running')
        lines = [
            f"{s.name}:{s.windows}:{'1' if s.attached else '0'}"
            for s in self.sessions.values()
        ]
        return subprocess.CompletedProcess([], 0, '\n'.join(lines) + '\n', '')

    def is_inside_tmux(self):
        return self.inside_tmux

    def new_session(self, name, cwd, window_name=None, command=None):
        self.calls.append(('new_session', name, cwd, window_name, command))
        self._fail('new_session')
        if name in self.sessions:
            raise ExternalToolError(f"duplicate session: {name}")
        self.sessions[name] = Session(name=name, windows=1, attached=False)

    def new_window(self, session, cwd, window_name=None, command=None):
        self.calls.append(('new_window', session, cwd, window_name, command))
        self._windows_created += 1
        if self.fail_window_at == self._windows_created:
            raise ExternalToolError("failed to create window: boom")
        current = self.sessions[session]
        self.sessions[session] = Session(current.name, current.windows + 1, current.attached)

    def select_window(self, target):
        self.calls.append(('select_window', target))
        return 'select_window' not in self.fail_on

    def rename_session(self, old_name, new_name):
        self.calls.append(('rename_session', old_name, new_name))
        self._fail('rename_session')
        session = self.sessions.pop(old_name)
        self.sessions[new_name] = Session(new_name, session.windows, session.attached)

    def kill_session(self, name):
        self.calls.append(('kill_session', name))
        self._fail('kill_session')
        self.sessions.pop(name, None)

    def switch_client(self, name):
        self.calls.append(('switch_client', name))
        self._fail('switch_client')

    def attach_session(self, name):
        self.calls.append(('attach_session', name))
        self._fail('attach_session')

    def ops(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def make_tmux():
    """按给定会话构造假 tmux"""
    def factory(*sessions, inside_tmux=False):
        return FakeTmux(sessions, inside_tmux=inside_tmux)
    return factory


@pytest.fixture
def fake_tmux(make_tmux):
    return make_tmux()


@pytest.fixture
def orchestrator(fake_tmux):
    return SessionOrchestrator(fake_tmux, SessionDirectory(fake_tmux))
