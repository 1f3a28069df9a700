"""
Muxyard - tmux 会话管理器

功能：
- 浏览、进入、重命名、删除 tmux 会话（支持模糊过滤和多选删除）
- 从配置目录扫描 git 仓库，或手动输入名称和目录，按模板创建会话

架构：
- tmux_control / session_directory：tmux 子进程调用与会话查询
- orchestrator：创建 / 进入 / 重命名 / 删除
- state：交互状态机（不可变状态 + 事件 → 下一个状态）
- app：Textual 宿主（事件循环、后台扫描、渲染）
"""

__version__ = "0.1.0"

# tmux 会话管理
from .tmux_control import TmuxController
from .session_directory import SessionDirectory
from .orchestrator import SessionOrchestrator, generate_unique_name

# 数据模型
from .models import Session, Repository, Template, WindowSpec

# 状态机
from .state import AppState, StateMachine, ViewState

__all__ = [
    # tmux
    "TmuxController",
    "SessionDirectory",
    "SessionOrchestrator",
    "generate_unique_name",
    # 数据模型
    "Session",
    "Repository",
    "Template",
    "WindowSpec",
    # 状态机
    "AppState",
    "StateMachine",
    "ViewState",
]
