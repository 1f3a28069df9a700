"""Textual TUI 主应用 - tmux 会话管理

宿主只做三件事：
- 把按键 / 定时器 / 后台结果作为事件交给 StateMachine
- 执行状态机返回的命令（扫描仓库、attach、退出）
- 把 ViewModel 渲染成 Rich 文本
"""

import logging
from pathlib import Path
from typing import Optional

from rich.style import Style
from rich.text import Text
from textual import events, work
from textual.app import App, ComposeResult, SuspendNotSupported
from textual.containers import Vertical
from textual.css.query import NoMatches
from textual.widgets import Static

from . import repo_scanner
from .config import Config
from .errors import ExternalToolError
from .models import ColorConfig, ListItem
from .orchestrator import SessionOrchestrator
from .render import ViewModel, build_view
from .session_directory import SessionDirectory
from .state import (
    AppState,
    AttachFinished,
    AttachSession,
    Event,
    KeyPress,
    Quit,
    ReposLoaded,
    Resize,
    ScanRepositories,
    StateMachine,
    Tick,
    Transition,
)
from .tmux_control import TmuxController

LOG_DIR = Path.home() / ".config" / "muxyard" / "logs"
LOG_FILE = LOG_DIR / "muxyard.log"
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

SPINNER_INTERVAL = 0.1

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """日志写文件（TUI 占用终端，不能输出到 stderr）"""
    path = log_file or LOG_FILE
    handlers: list[logging.Handler] = []
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding='utf-8'))
    except OSError:
        handlers.append(logging.NullHandler())
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


class Palette:
    """配色 → Rich Style"""

    def __init__(self, colors: ColorConfig):
        self.title = Style(bold=True, color=colors.title.foreground, bgcolor=colors.title.background)
        self.selected = Style(bold=True, color=colors.selected)
        self.dimmed = Style(color=colors.dimmed)
        self.help = Style(color=colors.help)
        self.error = Style(bold=True, color=colors.error)
        self.success = Style(bold=True, color=colors.success)
        self.input = Style(color=colors.input)
        self.focused_input = Style(color=colors.focused_input)
        self.spinner = Style(color=colors.spinner)
        self.highlight = Style(bold=True, color=colors.highlight)
        self.filter_border = Style(color=colors.filter_border)


def render_row(item: ListItem, is_cursor: bool, palette: Palette) -> Text:
    """列表项：标题一行、描述一行，命中字符高亮"""
    title_style = palette.selected if is_cursor or item.selected else Style()
    marker = "│ " if is_cursor else "  "

    title = Text(item.title, style=title_style)
    for pos in item.title_highlights:
        if pos < len(item.title):
            title.stylize(palette.highlight, pos, pos + 1)

    description = Text(item.description, style=palette.dimmed)
    for pos in item.description_highlights:
        if pos < len(item.description):
            description.stylize(palette.highlight, pos, pos + 1)

    line = Text(marker, style=palette.selected)
    line.append_text(title)
    line.append("\n")
    line.append(marker, style=palette.selected)
    line.append_text(description)
    return line


def render_body(view: ViewModel, palette: Palette) -> Text:
    body = Text()
    if view.list_title:
        body.append(view.list_title, style=palette.title)
        body.append("\n\n")
    for i, item in enumerate(view.rows):
        body.append_text(render_row(item, i == view.cursor, palette))
        body.append("\n")
    if view.spinner:
        body.append(f"{view.spinner} ", style=palette.spinner)
    if view.message:
        body.append(view.message)
        body.append("\n")
    if view.input_text is not None:
        style = palette.focused_input if view.input_focused else palette.input
        if view.list_title:
            style = palette.filter_border
        body.append("\n")
        body.append(f"{view.input_label}{view.input_text}█", style=style)
        body.append("\n")
    return body


class MuxyardApp(App, inherit_bindings=False):
    """Muxyard - tmux 会话管理

    所有按键都交给状态机处理，因此不继承 App 默认的快捷键。
    """

    CSS = """
    Screen { background: $surface; }
    #main-container { width: 100%; height: 100%; padding: 0 1; }
    #title { height: 1; margin: 0 0 1 0; }
    #body { height: 1fr; }
    #banner { height: auto; }
    #help-line { dock: bottom; height: 1; color: $text-muted; }
    """

    def __init__(self, config: Config, tmux: Optional[TmuxController] = None):
        super().__init__()
        self.config = config
        self.tmux = tmux or TmuxController()
        self.orchestrator = SessionOrchestrator(self.tmux, SessionDirectory(self.tmux))
        self.templates = config.template_registry
        self.machine = StateMachine(self.orchestrator, self.templates, config.repo_directories)
        self.palette = Palette(config.colors)
        self.app_state = AppState()

    def compose(self) -> ComposeResult:
        with Vertical(id="main-container"):
            yield Static("", id="title")
            yield Static("", id="body")
            yield Static("", id="banner")
        yield Static("", id="help-line")

    def on_mount(self) -> None:
        """启动时加载会话列表并启动动画定时器"""
        self._apply(self.machine.start(self.app_state))
        self.set_interval(SPINNER_INTERVAL, self._on_tick)

    # ========== 事件 → 状态机 ==========

    def handle_event(self, event: Event) -> None:
        self._apply(self.machine.handle(self.app_state, event))

    def _apply(self, transition: Transition) -> None:
        # 状态机对无效事件原样返回同一个状态对象（例如 LOADING 以外的 Tick）
        if transition.state is not self.app_state:
            self.app_state = transition.state
            self._render_view()
        for command in transition.commands:
            self._run_command(command)

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.handle_event(KeyPress(event.key, event.character))

    def on_resize(self, event: events.Resize) -> None:
        self.handle_event(Resize(event.size.width, event.size.height))

    def _on_tick(self) -> None:
        self.handle_event(Tick())

    # ========== 命令执行 ==========

    def _run_command(self, command) -> None:
        if isinstance(command, ScanRepositories):
            self._scan_repositories_async(command.directories)
        elif isinstance(command, AttachSession):
            self._attach(command.name)
        elif isinstance(command, Quit):
            self.exit()

    @work(thread=True, exclusive=True, group="scan")
    def _scan_repositories_async(self, directories: tuple[str, ...]) -> None:
        """后台扫描仓库，结果作为一个事件送回"""
        repos = repo_scanner.scan(directories)
        self.call_from_thread(self.handle_event, ReposLoaded(tuple(repos)))

    def _attach(self, name: str) -> None:
        """进入会话

        tmux 外需要把终端交给 attach-session，直到用户 detach 才返回。
        """
        error = None
        try:
            if self.tmux.is_inside_tmux():
                self.orchestrator.attach(name)
            else:
                with self.suspend():
                    self.orchestrator.attach(name)
        except ExternalToolError as e:
            error = e.message
        except SuspendNotSupported:
            error = "当前环境不支持挂起界面"
        self.handle_event(AttachFinished(name, error))

    # ========== 渲染 ==========

    def _render_view(self) -> None:
        view = build_view(self.app_state, self.templates)
        try:
            title = self.query_one("#title", Static)
            body = self.query_one("#body", Static)
            banner = self.query_one("#banner", Static)
            help_line = self.query_one("#help-line", Static)
        except NoMatches:
            return

        title.update(Text(f" {view.title} ", style=self.palette.title))
        body.update(render_body(view, self.palette))
        if view.error:
            banner.update(Text(f"错误: {view.error}", style=self.palette.error))
        elif view.success:
            banner.update(Text(view.success, style=self.palette.success))
        else:
            banner.update("")
        help_line.update(Text(view.help_text, style=self.palette.help))


def run_app(config: Config) -> None:
    """运行应用"""
    app = MuxyardApp(config)
    app.run()
