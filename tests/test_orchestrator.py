"""会话编排测试"""

import pytest

from muxyard.errors import ExternalToolError, ValidationError
from muxyard.models import DEFAULT_TEMPLATES, Session, Template, WindowSpec
from muxyard.orchestrator import SessionOrchestrator, generate_unique_name
from muxyard.session_directory import SessionDirectory


class TestGenerateUniqueName:
    """会话名生成测试"""

    def test_basename(self):
        assert generate_unique_name('/home/u/src/dev/', []) == 'dev'

    def test_suffix_when_taken(self):
        sessions = [Session('dev'), Session('dev_2')]
        assert generate_unique_name('/home/u/src/dev', sessions) == 'dev_3'

    def test_first_suffix_is_two(self):
        assert generate_unique_name('/x/dev', [Session('dev')]) == 'dev_2'


class TestCreateSession:
    """按模板创建会话测试"""

    def test_creates_all_windows_and_focuses(self, fake_tmux, orchestrator):
        coding = DEFAULT_TEMPLATES[1]
        orchestrator.create_session('api', '/srv/api', coding)

        assert fake_tmux.ops('new_session') == [
            ('new_session', 'api', '/srv/api', 'editor', 'nvim .'),
        ]
        assert [c[3] for c in fake_tmux.ops('new_window')] == ['server', 'shell']
        assert fake_tmux.ops('select_window') == [('select_window', 'api:editor')]

    def test_template_without_windows(self, fake_tmux, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.create_session('api', '/srv/api', Template(name='empty'))
        assert fake_tmux.calls == []

    def test_window_failure_reports_position(self, fake_tmux, orchestrator):
        fake_tmux.fail_window_at = 1
        with pytest.raises(ExternalToolError) as exc:
            orchestrator.create_session('api', '/srv/api', DEFAULT_TEMPLATES[2])
        assert 'window 2' in str(exc.value)
        assert isinstance(exc.value.__cause__, ExternalToolError)

    def test_focus_failure_is_ignored(self, fake_tmux, orchestrator):
        fake_tmux.fail_on.add('select_window')
        template = Template(
            name='t',
            windows=(WindowSpec(name='a'),),
            focused_window='missing',
        )
        orchestrator.create_session('api', '/srv/api', template)
        assert 'api' in fake_tmux.sessions


class TestAttach:
    """进入会话测试"""

    def test_switch_client_inside_tmux(self, make_tmux):
        tmux = make_tmux(Session('dev'), inside_tmux=True)
        SessionOrchestrator(tmux, SessionDirectory(tmux)).attach('dev')
        assert tmux.ops('switch_client') == [('switch_client', 'dev')]
        assert tmux.ops('attach_session') == []

    def test_attach_outside_tmux(self, make_tmux):
        tmux = make_tmux(Session('dev'))
        SessionOrchestrator(tmux, SessionDirectory(tmux)).attach('dev')
        assert tmux.ops('attach_session') == [('attach_session', 'dev')]


class TestRenameAndKill:
    """重命名 / 删除测试"""

    def test_rename_then_query(self, make_tmux):
        tmux = make_tmux(Session('old', 1))
        orchestrator = SessionOrchestrator(tmux, SessionDirectory(tmux))
        orchestrator.rename('old', 'new')
        assert [s.name for s in orchestrator.list_sessions()] == ['new']

    def test_kill_last_session_leaves_empty_list(self, make_tmux):
        tmux = make_tmux(Session('only', 1))
        orchestrator = SessionOrchestrator(tmux, SessionDirectory(tmux))
        orchestrator.kill('only')
        assert orchestrator.list_sessions() == []
