"""渲染模型 - 把 AppState 转成界面需要的纯数据（不依赖 Textual）"""

from dataclasses import dataclass
from typing import Optional

from .fuzzy import split_repository_highlights
from .models import CreateOption, ItemKind, ListItem
from .state import AppState, ViewState
from .templates import TemplateRegistry

APP_TITLE = "Muxyard - Tmux Session Manager"

# 点阵加载动画
SPINNER_FRAMES = ("⣾", "⣽", "⣻", "⢿", "⡿", "⣟", "⣯", "⣷")

# 每行列表项占两行（标题 + 描述），其余为标题栏、输入框、帮助等
LINES_PER_ROW = 2
RESERVED_LINES = 8

HELP_SESSION_LIST = "c:新建 • r:重命名 • d/x:删除 • /:过滤 • enter/l:进入 • ctrl+v:多选 • q:退出"
HELP_FILTER = "enter:应用过滤 • esc:取消过滤"
HELP_VISUAL = "j/k:选择 • d/x:删除所选 • esc/ctrl+v:退出多选 • q:退出"
HELP_CREATE_MODE = "enter/l:选择 • j/k:移动 • h/esc:返回"
HELP_REPO_LIST = "enter/l:选择 • j/k:移动 • /:过滤 • esc:返回"
HELP_INPUT = "enter:继续 • esc:返回"
HELP_TEMPLATE = "enter/l:创建会话 • j/k:移动 • h/esc:返回"
HELP_RENAME = "enter:重命名 • esc:取消"
HELP_CONFIRM = "y:确认 • n/esc:取消"

CREATE_OPTION_ITEMS = (
    ListItem(
        kind=ItemKind.CREATE_OPTION,
        title="从 Git 仓库创建",
        description="从配置的仓库目录中选择",
        payload=CreateOption.FROM_REPOSITORY,
    ),
    ListItem(
        kind=ItemKind.CREATE_OPTION,
        title="手动创建",
        description="输入会话名称和目录",
        payload=CreateOption.MANUAL,
    ),
)


@dataclass(frozen=True)
class ViewModel:
    """一帧界面

    Attributes:
        rows: 可见的列表行（已按窗口高度截取）
        cursor: 光标在 rows 中的位置（-1 表示不显示）
        input_label / input_text: 输入框（input_text 为 None 时不显示）
        message: 列表以外的正文（确认提示、加载提示等）
    """
    title: str = APP_TITLE
    list_title: str = ""
    rows: tuple[ListItem, ...] = ()
    cursor: int = -1
    input_label: str = ""
    input_text: Optional[str] = None
    input_focused: bool = False
    message: str = ""
    error: str = ""
    success: str = ""
    help_text: str = ""
    spinner: str = ""


def session_rows(state: AppState) -> tuple[ListItem, ...]:
    rows = []
    for i, found in enumerate(state.session_matches):
        session = state.sessions[found.index]
        selected = state.visual_mode and i in state.selection
        title = session.name
        description = f"{session.windows} 个窗口, {session.status}"
        highlights = found.matched_indexes if state.filter_query else ()
        offset = 0
        if selected:
            title = "● " + title
            description = "✓ " + description
            offset = 2
        rows.append(ListItem(
            kind=ItemKind.SESSION,
            title=title,
            description=description,
            payload=session,
            title_highlights=tuple(pos + offset for pos in highlights),
            selected=selected,
        ))
    return tuple(rows)


def repo_rows(state: AppState) -> tuple[ListItem, ...]:
    rows = []
    for found in state.repo_matches:
        repo = state.repos[found.index]
        name_hits, path_hits = (), ()
        if state.repo_filter_query:
            name_hits, path_hits = split_repository_highlights(repo, found)
        rows.append(ListItem(
            kind=ItemKind.REPOSITORY,
            title=repo.name,
            description=repo.path,
            payload=repo,
            title_highlights=name_hits,
            description_highlights=path_hits,
        ))
    return tuple(rows)


def template_rows(templates: TemplateRegistry) -> tuple[ListItem, ...]:
    return tuple(
        ListItem(
            kind=ItemKind.TEMPLATE,
            title=t.name,
            description=t.description,
            payload=t,
        )
        for t in templates
    )


def visible_window(rows: tuple, cursor: int, height: int) -> tuple[tuple, int]:
    """按窗口高度截取可见行，保证光标可见"""
    if not height:
        return rows, cursor
    capacity = max((height - RESERVED_LINES) // LINES_PER_ROW, 1)
    if len(rows) <= capacity:
        return rows, cursor
    start = max(0, min(cursor - capacity + 1, len(rows) - capacity))
    return rows[start:start + capacity], cursor - start


def _list_view(state: AppState, rows: tuple, **kwargs) -> ViewModel:
    visible, cursor = visible_window(rows, state.cursor if rows else -1, state.height)
    return ViewModel(
        rows=visible,
        cursor=cursor,
        error=state.error,
        success=state.success,
        **kwargs,
    )


def build_view(state: AppState, templates: TemplateRegistry) -> ViewModel:
    """根据当前视图状态生成界面数据"""
    if state.quitting:
        return ViewModel()

    view = state.view

    if view == ViewState.SESSION_LIST:
        list_title = "Tmux 会话"
        if state.visual_mode:
            list_title = f"Tmux 会话（多选: 已选 {len(state.selection)} 个）"
        help_text = HELP_SESSION_LIST
        if state.input_focused:
            help_text = HELP_FILTER
        elif state.visual_mode:
            help_text = HELP_VISUAL
        return _list_view(
            state,
            session_rows(state),
            list_title=list_title,
            input_label="过滤: ",
            input_text=state.filter_query if state.input_focused else None,
            input_focused=state.input_focused,
            message="" if state.session_matches else "没有会话",
            help_text=help_text,
        )

    if view == ViewState.CREATE_MODE:
        return _list_view(
            state,
            CREATE_OPTION_ITEMS,
            list_title="新建会话",
            help_text=HELP_CREATE_MODE,
        )

    if view == ViewState.REPO_LIST:
        return _list_view(
            state,
            repo_rows(state),
            list_title="选择仓库",
            input_label="过滤: ",
            input_text=state.repo_filter_query if state.input_focused else None,
            input_focused=state.input_focused,
            message="" if state.repo_matches else "没有找到仓库",
            help_text=HELP_FILTER if state.input_focused else HELP_REPO_LIST,
        )

    if view == ViewState.TEMPLATE_SELECT:
        return _list_view(
            state,
            template_rows(templates),
            list_title="选择模板",
            help_text=HELP_TEMPLATE,
        )

    if view == ViewState.MANUAL_CREATE:
        return ViewModel(
            message="输入会话名称:",
            input_text=state.name_input,
            input_focused=True,
            error=state.error,
            success=state.success,
            help_text=HELP_INPUT,
        )

    if view == ViewState.MANUAL_DIRECTORY:
        return ViewModel(
            message=f"会话: {state.session_name}\n\n输入目录路径:",
            input_text=state.path_input,
            input_focused=True,
            error=state.error,
            success=state.success,
            help_text=HELP_INPUT,
        )

    if view == ViewState.RENAME_SESSION:
        old_name = state.rename_target.name if state.rename_target else ""
        return ViewModel(
            message=f"重命名会话: {old_name}",
            input_text=state.name_input,
            input_focused=True,
            error=state.error,
            success=state.success,
            help_text=HELP_RENAME,
        )

    if view == ViewState.LOADING:
        return ViewModel(
            message="正在扫描仓库...",
            spinner=SPINNER_FRAMES[state.spinner_frame % len(SPINNER_FRAMES)],
        )

    if view == ViewState.CONFIRM_DELETE:
        attached = ", ".join(state.attached_targets)
        lines = [f"删除已 attach 的会话: {attached}?"]
        others = [n for n in state.delete_targets if n not in state.attached_targets]
        if others:
            lines.append(f"同时删除: {', '.join(others)}")
        lines.append("")
        lines.append("这些会话当前已被 attach，删除会关闭其中所有窗口。")
        return ViewModel(
            message="\n".join(lines),
            error=state.error,
            help_text=HELP_CONFIRM,
        )

    return ViewModel()
