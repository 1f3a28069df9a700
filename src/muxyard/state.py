"""交互状态机

AppState 是不可变值：StateMachine.handle(state, event) 返回下一个状态和需要宿主
（Textual 应用）执行的命令。视图状态同一时刻只有一个：

    SESSION_LIST ──c/n──▶ CREATE_MODE ──仓库──▶ LOADING ──扫描完成──▶ REPO_LIST ─┐
         │  ▲                  │                                                   ▼
         │  └──esc─────────────┴──手动──▶ MANUAL_CREATE ──▶ MANUAL_DIRECTORY ──▶ TEMPLATE_SELECT
         ├──r──▶ RENAME_SESSION ──enter/esc──▶ SESSION_LIST                        │
         └──d（attached）──▶ CONFIRM_DELETE ──y/n──▶ SESSION_LIST          创建 + 进入 → 退出

光标和多选集合都指向当前过滤后的列表；过滤结果一旦变化就重置它们。
tmux 的增删改都是同步调用，调用后立刻重新查询会话列表（不做乐观更新）。
"""

import logging
import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple, Optional, Sequence, Union

from .errors import MuxyardError
from .fuzzy import FuzzyMatch, filter_repositories, filter_sessions
from .models import CreateOption, Repository, Session, Template
from .orchestrator import SessionOrchestrator, generate_unique_name
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)


class ViewState(Enum):
    SESSION_LIST = "session_list"
    CREATE_MODE = "create_mode"
    REPO_LIST = "repo_list"
    MANUAL_CREATE = "manual_create"
    MANUAL_DIRECTORY = "manual_directory"
    TEMPLATE_SELECT = "template_select"
    RENAME_SESSION = "rename_session"
    LOADING = "loading"
    CONFIRM_DELETE = "confirm_delete"


# ========== 事件 ==========

@dataclass(frozen=True)
class KeyPress:
    """按键事件（key 为 Textual 键名，character 为可打印字符）"""
    key: str
    character: Optional[str] = None


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Tick:
    """定时器（驱动加载动画）"""


@dataclass(frozen=True)
class SessionsLoaded:
    sessions: tuple[Session, ...]


@dataclass(frozen=True)
class ReposLoaded:
    repos: tuple[Repository, ...]


@dataclass(frozen=True)
class ErrorOccurred:
    message: str


@dataclass(frozen=True)
class AttachFinished:
    name: str
    error: Optional[str] = None


Event = Union[KeyPress, Resize, Tick, SessionsLoaded, ReposLoaded, ErrorOccurred, AttachFinished]


# ========== 命令（由宿主执行） ==========

@dataclass(frozen=True)
class ScanRepositories:
    directories: tuple[str, ...]


@dataclass(frozen=True)
class AttachSession:
    name: str


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[ScanRepositories, AttachSession, Quit]


@dataclass(frozen=True)
class AppState:
    view: ViewState = ViewState.SESSION_LIST
    sessions: tuple[Session, ...] = ()
    session_matches: tuple[FuzzyMatch, ...] = ()
    repos: tuple[Repository, ...] = ()
    repo_matches: tuple[FuzzyMatch, ...] = ()
    cursor: int = 0
    filter_query: str = ""
    repo_filter_query: str = ""
    input_focused: bool = False
    name_input: str = ""
    path_input: str = ""
    visual_mode: bool = False
    visual_anchor: int = 0
    selection: frozenset = frozenset()
    selected_repo: Optional[Repository] = None
    rename_target: Optional[Session] = None
    session_name: str = ""
    session_path: str = ""
    delete_targets: tuple[str, ...] = ()
    attached_targets: tuple[str, ...] = ()
    error: str = ""
    success: str = ""
    quitting: bool = False
    spinner_frame: int = 0
    width: int = 0
    height: int = 0

    @property
    def filtered_sessions(self) -> tuple[Session, ...]:
        return tuple(self.sessions[m.index] for m in self.session_matches)

    @property
    def filtered_repos(self) -> tuple[Repository, ...]:
        return tuple(self.repos[m.index] for m in self.repo_matches)

    @property
    def current_session(self) -> Optional[Session]:
        filtered = self.filtered_sessions
        if 0 <= self.cursor < len(filtered):
            return filtered[self.cursor]
        return None

    @property
    def current_repo(self) -> Optional[Repository]:
        filtered = self.filtered_repos
        if 0 <= self.cursor < len(filtered):
            return filtered[self.cursor]
        return None


class Transition(NamedTuple):
    state: AppState
    commands: tuple = ()


KEY_ALIASES = {
    'escape': 'esc',
    'return': 'enter',
    'ctrl+h': 'backspace',
}


def key_name(event: KeyPress) -> str:
    """可打印字符优先（区分大小写），否则用键名"""
    char = event.character
    if char and len(char) == 1 and char.isprintable():
        return char
    return KEY_ALIASES.get(event.key, event.key)


def edit_text(value: str, event: KeyPress) -> Optional[str]:
    """单行输入框编辑；不是编辑键时返回 None"""
    key = key_name(event)
    if key == 'backspace':
        return value[:-1]
    if key == 'ctrl+u':
        return ""
    if event.character and len(event.character) == 1 and event.character.isprintable():
        return value + event.character
    return None


def visual_selection(anchor: int, cursor: int, size: int) -> frozenset:
    """锚点到光标的闭区间（与中途经过哪些行无关）"""
    low, high = min(anchor, cursor), max(anchor, cursor)
    return frozenset(i for i in range(low, high + 1) if 0 <= i < size)


def default_path() -> str:
    try:
        return os.getcwd()
    except OSError:
        return os.path.expanduser('~')


def _clamp(index: int, size: int) -> int:
    if size <= 0:
        return 0
    return max(0, min(index, size - 1))


CREATE_OPTIONS = (CreateOption.FROM_REPOSITORY, CreateOption.MANUAL)


class StateMachine:
    """交互状态机

    Args:
        orchestrator: 会话编排器（同步 tmux 调用）
        templates: 模板注册表
        repo_directories: 仓库扫描根目录
    """

    def __init__(
        self,
        orchestrator: SessionOrchestrator,
        templates: TemplateRegistry,
        repo_directories: Sequence[str] = (),
    ):
        self.orchestrator = orchestrator
        self.templates = templates
        self.repo_directories = tuple(repo_directories)

    def start(self, state: Optional[AppState] = None) -> Transition:
        """初始状态：加载一次会话列表"""
        return Transition(self._refresh_sessions(state or AppState()))

    # ========== 事件分发 ==========

    def handle(self, state: AppState, event: Event) -> Transition:
        if isinstance(event, KeyPress):
            if state.error or state.success:
                state = replace(state, error="", success="")
            if state.quitting:
                return Transition(state, (Quit(),))
            handler = self._key_handlers().get(state.view)
            if handler is None:
                return Transition(state)
            return handler(state, event)

        if isinstance(event, Resize):
            return Transition(replace(state, width=event.width, height=event.height))

        if isinstance(event, Tick):
            if state.view == ViewState.LOADING:
                return Transition(replace(state, spinner_frame=state.spinner_frame + 1))
            return Transition(state)

        if isinstance(event, SessionsLoaded):
            return Transition(self._apply_sessions(state, event.sessions))

        if isinstance(event, ReposLoaded):
            return Transition(self._apply_repos(state, event.repos))

        if isinstance(event, ErrorOccurred):
            return Transition(replace(state, error=event.message))

        if isinstance(event, AttachFinished):
            if event.error:
                logger.error(f"[进入] {event.name} 失败: {event.error}")
                return Transition(replace(state, error=f"进入会话失败: {event.error}"))
            return Transition(replace(state, quitting=True), (Quit(),))

        return Transition(state)

    def _key_handlers(self) -> dict:
        return {
            ViewState.SESSION_LIST: self._session_list_keys,
            ViewState.CREATE_MODE: self._create_mode_keys,
            ViewState.REPO_LIST: self._repo_list_keys,
            ViewState.MANUAL_CREATE: self._manual_create_keys,
            ViewState.MANUAL_DIRECTORY: self._manual_directory_keys,
            ViewState.TEMPLATE_SELECT: self._template_select_keys,
            ViewState.RENAME_SESSION: self._rename_keys,
            ViewState.CONFIRM_DELETE: self._confirm_delete_keys,
            ViewState.LOADING: self._loading_keys,
        }

    # ========== 会话列表与刷新 ==========

    def _apply_sessions(self, state: AppState, sessions: Sequence[Session]) -> AppState:
        """替换会话列表：按当前查询重新过滤，光标夹紧，退出多选"""
        sessions = tuple(sessions)
        matches = tuple(filter_sessions(state.filter_query, sessions))
        return replace(
            state,
            sessions=sessions,
            session_matches=matches,
            cursor=_clamp(state.cursor, len(matches)),
            visual_mode=False,
            visual_anchor=0,
            selection=frozenset(),
        )

    def _refresh_sessions(self, state: AppState) -> AppState:
        try:
            sessions = self.orchestrator.list_sessions()
        except MuxyardError as e:
            logger.error(f"[刷新] 加载会话失败: {e}")
            return replace(state, error=state.error or f"加载会话失败: {e}")
        return self._apply_sessions(state, sessions)

    def _apply_session_filter(self, state: AppState, query: str) -> AppState:
        """每次按键都对完整列表重新过滤；选中状态随之失效"""
        matches = tuple(filter_sessions(query, state.sessions))
        return replace(
            state,
            filter_query=query,
            session_matches=matches,
            cursor=0,
            selection=frozenset(),
        )

    def _exit_visual(self, state: AppState) -> AppState:
        return replace(state, visual_mode=False, visual_anchor=0, selection=frozenset())

    def _move_cursor(self, state: AppState, delta: int, size: int) -> AppState:
        cursor = _clamp(state.cursor + delta, size)
        if state.view == ViewState.SESSION_LIST and state.visual_mode:
            return replace(
                state,
                cursor=cursor,
                selection=visual_selection(state.visual_anchor, cursor, size),
            )
        return replace(state, cursor=cursor)

    def _session_list_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)

        if state.input_focused:
            if key == 'esc':
                state = self._apply_session_filter(state, "")
                return Transition(replace(state, input_focused=False))
            if key == 'enter':
                state = self._apply_session_filter(state, state.filter_query)
                return Transition(replace(state, input_focused=False))
            edited = edit_text(state.filter_query, event)
            if edited is None:
                return Transition(state)
            return Transition(self._apply_session_filter(state, edited))

        size = len(state.session_matches)

        if key in ('q', 'ctrl+c'):
            if state.visual_mode:
                return Transition(self._exit_visual(state))
            return Transition(replace(state, quitting=True), (Quit(),))

        if key == 'esc':
            if state.visual_mode:
                return Transition(self._exit_visual(state))
            return Transition(state)

        if key in ('j', 'down'):
            return Transition(self._move_cursor(state, 1, size))

        if key in ('k', 'up'):
            return Transition(self._move_cursor(state, -1, size))

        if key == 'ctrl+v':
            if state.visual_mode:
                return Transition(self._exit_visual(state))
            return Transition(replace(
                state,
                visual_mode=True,
                visual_anchor=state.cursor,
                selection=visual_selection(state.cursor, state.cursor, size),
            ))

        if key in ('d', 'x'):
            if state.visual_mode:
                return self._delete_selected(state)
            return self._delete_current(state)

        if state.visual_mode:
            return Transition(state)

        if key == '/':
            return Transition(replace(state, input_focused=True))

        if key in ('enter', 'l'):
            session = state.current_session
            if session is None:
                return Transition(state)
            return Transition(state, (AttachSession(session.name),))

        if key in ('c', 'n'):
            return Transition(replace(state, view=ViewState.CREATE_MODE, cursor=0))

        if key == 'r':
            session = state.current_session
            if session is None:
                return Transition(state)
            return Transition(replace(
                state,
                view=ViewState.RENAME_SESSION,
                rename_target=session,
                name_input=session.name,
            ))

        return Transition(state)

    # ========== 删除 ==========

    def _kill_all(self, state: AppState, names: Sequence[str]) -> AppState:
        """依次删除，汇总失败项，然后刷新"""
        failed = []
        for name in names:
            try:
                self.orchestrator.kill(name)
            except MuxyardError as e:
                logger.error(f"[删除] {name} 失败: {e}")
                failed.append(name)

        if failed:
            if len(names) == 1:
                state = replace(state, error=f"删除会话失败: {failed[0]}")
            else:
                state = replace(state, error=f"以下会话删除失败: {', '.join(failed)}")
        elif len(names) == 1:
            state = replace(state, success=f"已删除会话: {names[0]}")
        else:
            state = replace(state, success=f"已删除 {len(names)} 个会话")
        return self._refresh_sessions(state)

    def _delete_current(self, state: AppState) -> Transition:
        session = state.current_session
        if session is None:
            return Transition(state)
        if session.attached:
            return Transition(replace(
                state,
                view=ViewState.CONFIRM_DELETE,
                delete_targets=(session.name,),
                attached_targets=(session.name,),
            ))
        return Transition(self._kill_all(state, [session.name]))

    def _delete_selected(self, state: AppState) -> Transition:
        """多选删除：批次里有 attached 会话时，整批等待一次确认"""
        filtered = state.filtered_sessions
        batch = [filtered[i] for i in sorted(state.selection) if 0 <= i < len(filtered)]
        if not batch:
            return Transition(state)

        attached = tuple(s.name for s in batch if s.attached)
        if attached:
            return Transition(replace(
                state,
                view=ViewState.CONFIRM_DELETE,
                delete_targets=tuple(s.name for s in batch),
                attached_targets=attached,
            ))
        state = self._exit_visual(state)
        return Transition(self._kill_all(state, [s.name for s in batch]))

    def _confirm_delete_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)
        if key in ('y', 'Y'):
            targets = state.delete_targets
            state = replace(
                self._exit_visual(state),
                view=ViewState.SESSION_LIST,
                delete_targets=(),
                attached_targets=(),
            )
            return Transition(self._kill_all(state, targets))
        if key in ('n', 'N', 'esc', 'q'):
            return Transition(replace(
                state,
                view=ViewState.SESSION_LIST,
                delete_targets=(),
                attached_targets=(),
            ))
        return Transition(state)

    # ========== 重命名 ==========

    def _rename_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)
        if key == 'esc':
            return Transition(replace(state, view=ViewState.SESSION_LIST, rename_target=None))

        if key == 'enter':
            old_name = state.rename_target.name if state.rename_target else ""
            new_name = state.name_input.strip()
            if not new_name or new_name == old_name:
                return Transition(replace(state, view=ViewState.SESSION_LIST, rename_target=None))
            try:
                self.orchestrator.rename(old_name, new_name)
            except MuxyardError as e:
                return Transition(replace(state, error=f"重命名失败: {e}"))
            state = replace(
                state,
                view=ViewState.SESSION_LIST,
                rename_target=None,
                success=f"已重命名为: {new_name}",
            )
            return Transition(self._refresh_sessions(state))

        edited = edit_text(state.name_input, event)
        if edited is None:
            return Transition(state)
        return Transition(replace(state, name_input=edited))

    # ========== 新建 ==========

    def _create_mode_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)
        if key in ('esc', 'q', 'h'):
            return Transition(replace(state, view=ViewState.SESSION_LIST, cursor=0))
        if key in ('j', 'down'):
            return Transition(self._move_cursor(state, 1, len(CREATE_OPTIONS)))
        if key in ('k', 'up'):
            return Transition(self._move_cursor(state, -1, len(CREATE_OPTIONS)))
        if key in ('enter', 'l'):
            option = CREATE_OPTIONS[_clamp(state.cursor, len(CREATE_OPTIONS))]
            if option == CreateOption.FROM_REPOSITORY:
                state = replace(state, view=ViewState.LOADING, spinner_frame=0, selected_repo=None)
                return Transition(state, (ScanRepositories(self.repo_directories),))
            return Transition(replace(
                state,
                view=ViewState.MANUAL_CREATE,
                selected_repo=None,
                name_input="",
            ))
        return Transition(state)

    def _loading_keys(self, state: AppState, event: KeyPress) -> Transition:
        if key_name(event) == 'ctrl+c':
            return Transition(replace(state, quitting=True), (Quit(),))
        return Transition(state)

    def _apply_repos(self, state: AppState, repos: Sequence[Repository]) -> AppState:
        repos = tuple(repos)
        state = replace(
            state,
            repos=repos,
            repo_filter_query="",
            repo_matches=tuple(filter_repositories("", repos)),
        )
        if state.view != ViewState.LOADING:
            return state
        return replace(state, view=ViewState.REPO_LIST, cursor=0, input_focused=False)

    def _apply_repo_filter(self, state: AppState, query: str) -> AppState:
        matches = tuple(filter_repositories(query, state.repos))
        return replace(state, repo_filter_query=query, repo_matches=matches, cursor=0)

    def _repo_list_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)

        if state.input_focused:
            if key == 'esc':
                state = self._apply_repo_filter(state, "")
                return Transition(replace(state, input_focused=False))
            if key == 'enter':
                state = self._apply_repo_filter(state, state.repo_filter_query)
                return Transition(replace(state, input_focused=False))
            edited = edit_text(state.repo_filter_query, event)
            if edited is None:
                return Transition(state)
            return Transition(self._apply_repo_filter(state, edited))

        if key in ('esc', 'q'):
            return Transition(replace(state, view=ViewState.SESSION_LIST, cursor=0))
        if key == '/':
            return Transition(replace(state, input_focused=True))
        if key in ('j', 'down'):
            return Transition(self._move_cursor(state, 1, len(state.repo_matches)))
        if key in ('k', 'up'):
            return Transition(self._move_cursor(state, -1, len(state.repo_matches)))
        if key in ('enter', 'l'):
            repo = state.current_repo
            if repo is None:
                return Transition(state)
            return Transition(replace(
                state,
                view=ViewState.TEMPLATE_SELECT,
                selected_repo=repo,
                cursor=0,
            ))
        return Transition(state)

    def _manual_create_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)
        if key == 'esc':
            return Transition(replace(state, view=ViewState.CREATE_MODE, cursor=1))
        if key == 'enter':
            name = state.name_input.strip()
            if not name:
                return Transition(replace(state, error="会话名称不能为空"))
            return Transition(replace(
                state,
                view=ViewState.MANUAL_DIRECTORY,
                session_name=name,
                path_input=default_path(),
            ))
        edited = edit_text(state.name_input, event)
        if edited is None:
            return Transition(state)
        return Transition(replace(state, name_input=edited))

    def _manual_directory_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)
        if key == 'esc':
            return Transition(replace(state, view=ViewState.MANUAL_CREATE))
        if key == 'enter':
            raw = state.path_input.strip()
            if not raw:
                return Transition(replace(state, error="目录不能为空"))
            path = os.path.abspath(os.path.expanduser(raw))
            if not os.path.isdir(path):
                return Transition(replace(state, error=f"目录不存在: {path}"))
            return Transition(replace(
                state,
                view=ViewState.TEMPLATE_SELECT,
                session_path=path,
                cursor=0,
            ))
        edited = edit_text(state.path_input, event)
        if edited is None:
            return Transition(state)
        return Transition(replace(state, path_input=edited))

    def _template_select_keys(self, state: AppState, event: KeyPress) -> Transition:
        key = key_name(event)
        if key in ('esc', 'q', 'h'):
            if state.selected_repo is not None:
                return Transition(replace(state, view=ViewState.REPO_LIST, cursor=0))
            return Transition(replace(state, view=ViewState.MANUAL_DIRECTORY))
        if key in ('j', 'down'):
            return Transition(self._move_cursor(state, 1, len(self.templates)))
        if key in ('k', 'up'):
            return Transition(self._move_cursor(state, -1, len(self.templates)))
        if key in ('enter', 'l'):
            if not 0 <= state.cursor < len(self.templates):
                return Transition(state)
            return self._create_session(state, self.templates[state.cursor])
        return Transition(state)

    def _create_session(self, state: AppState, template: Template) -> Transition:
        """创建会话，成功后交给宿主 attach

        失败时保持当前视图和模板光标，用户可以直接重试。
        """
        if state.selected_repo is not None:
            try:
                live = self.orchestrator.list_sessions()
            except MuxyardError as e:
                logger.error(f"[创建] 加载会话失败: {e}")
                return Transition(replace(state, error=f"加载会话失败: {e}"))
            name = generate_unique_name(state.selected_repo.path, live)
            path = state.selected_repo.path
        else:
            name = state.session_name
            path = state.session_path

        try:
            self.orchestrator.create_session(name, path, template)
        except MuxyardError as e:
            logger.error(f"[创建] {name} 失败: {e}")
            return Transition(replace(state, error=f"创建会话失败: {e}"))
        return Transition(state, (AttachSession(name),))
