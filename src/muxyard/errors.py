"""错误模型与退出码约定"""

from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    RUNTIME_ERROR = 1
    INVALID_ARGS = 2


@dataclass
class MuxyardError(Exception):
    """所有业务错误的基类

    message 直接展示给用户（横幅或启动诊断），hint 为可选的下一步建议。
    """
    message: str
    hint: str = ""
    code: ExitCode = ExitCode.RUNTIME_ERROR

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} ({self.hint})"
        return self.message


class ExternalToolError(MuxyardError):
    """tmux 调用失败或输出格式无法解析"""


class FilesystemError(MuxyardError):
    """文件系统访问失败（扫描时跳过对应目录，不中断）"""


class ValidationError(MuxyardError):
    """输入校验失败：空名称、目录不存在、模板没有窗口"""


class NotFoundError(MuxyardError):
    """按名称查找模板失败"""


class ConfigError(MuxyardError):
    """配置文件无法读取或格式错误（启动阶段致命）"""


def user_facing_error(error: Exception) -> str:
    """启动阶段打印到终端的诊断信息"""
    return f"Error: {error}"
