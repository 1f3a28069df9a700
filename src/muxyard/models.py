"""数据模型定义"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


@dataclass(frozen=True)
class Session:
    """tmux 会话

    name 是唯一键；重命名后由下一次 list-sessions 刷新。
    """
    name: str
    windows: int = 0
    attached: bool = False

    @property
    def status(self) -> str:
        return "attached" if self.attached else "detached"


@dataclass(frozen=True)
class Repository:
    """扫描到的 git 仓库（按 path 去重）"""
    name: str
    path: str

    def __str__(self) -> str:
        return self.name

    @property
    def search_text(self) -> str:
        """模糊搜索用文本：名称和路径都可以命中"""
        return f"{self.name} {self.path}"


@dataclass(frozen=True)
class WindowSpec:
    """模板中的单个窗口"""
    name: Optional[str] = None
    command: Optional[str] = None

    def to_dict(self) -> dict:
        data = {}
        if self.name:
            data['name'] = self.name
        if self.command:
            data['command'] = self.command
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'WindowSpec':
        return cls(
            name=data.get('name') or None,
            command=data.get('command') or None,
        )


@dataclass(frozen=True)
class Template:
    """会话模板

    windows 按顺序创建；第一个窗口决定会话的初始工作目录。
    """
    name: str
    description: str = ""
    windows: tuple[WindowSpec, ...] = ()
    focused_window: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            'name': self.name,
            'description': self.description,
            'windows': [w.to_dict() for w in self.windows],
        }
        if self.focused_window:
            data['focused_window'] = self.focused_window
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Template':
        return cls(
            name=data['name'],
            description=data.get('description', '') or '',
            windows=tuple(WindowSpec.from_dict(w or {}) for w in data.get('windows') or []),
            focused_window=data.get('focused_window') or None,
        )


@dataclass(frozen=True)
class ColorPair:
    foreground: str = "#FAFAFA"
    background: str = "#7D56F4"


@dataclass(frozen=True)
class ColorConfig:
    """界面配色（Rich 颜色字符串）"""
    title: ColorPair = field(default_factory=ColorPair)
    selected: str = "#EE6FF8"
    dimmed: str = "#626262"
    help: str = "#626262"
    error: str = "#FF0000"
    success: str = "#00FF00"
    border: str = "#874BFD"
    input: str = "#874BFD"
    focused_input: str = "#FF75B7"
    spinner: str = "#FF5FAF"
    highlight: str = "#FF75B7"
    filter_border: str = "#FF75B7"

    def to_dict(self) -> dict:
        return {
            'title': {
                'foreground': self.title.foreground,
                'background': self.title.background,
            },
            'selected': self.selected,
            'dimmed': self.dimmed,
            'help': self.help,
            'error': self.error,
            'success': self.success,
            'border': self.border,
            'input': self.input,
            'focused_input': self.focused_input,
            'spinner': self.spinner,
            'highlight': self.highlight,
            'filter_border': self.filter_border,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ColorConfig':
        defaults = cls()
        title_data = data.get('title') or {}
        values = {
            key: data.get(key) or getattr(defaults, key)
            for key in (
                'selected', 'dimmed', 'help', 'error', 'success', 'border',
                'input', 'focused_input', 'spinner', 'highlight', 'filter_border',
            )
        }
        return cls(
            title=ColorPair(
                foreground=title_data.get('foreground') or defaults.title.foreground,
                background=title_data.get('background') or defaults.title.background,
            ),
            **values,
        )


class ItemKind(Enum):
    SESSION = "session"
    REPOSITORY = "repository"
    TEMPLATE = "template"
    CREATE_OPTION = "create_option"


class CreateOption(Enum):
    """新建会话的两种方式（createMode 列表的两行）"""
    FROM_REPOSITORY = 0
    MANUAL = 1


Payload = Union[Session, Repository, Template, CreateOption]


@dataclass(frozen=True)
class ListItem:
    """列表行：按 kind 区分的带类型负载"""
    kind: ItemKind
    title: str
    description: str
    payload: Payload
    title_highlights: tuple[int, ...] = ()
    description_highlights: tuple[int, ...] = ()
    selected: bool = False


# 默认模板
DEFAULT_TEMPLATES = (
    Template(
        name='basic',
        description='Single window with shell',
        windows=(WindowSpec(name='main'),),
    ),
    Template(
        name='coding',
        description='Editor, server, and shell windows',
        windows=(
            WindowSpec(name='editor', command='nvim .'),
            WindowSpec(name='server'),
            WindowSpec(name='shell'),
        ),
        focused_window='editor',
    ),
    Template(
        name='monitor',
        description='App, logs, and monitoring',
        windows=(
            WindowSpec(name='app'),
            WindowSpec(name='logs', command='tail -f *.log'),
            WindowSpec(name='monitor', command='htop'),
        ),
    ),
)
