"""配置管理模块

配置文件：$XDG_CONFIG_HOME/muxyard/config.yaml（默认 ~/.config/muxyard/config.yaml）

    repo_directories:        # 扫描 git 仓库的根目录（支持 ~）
      - ~/src
    templates:               # 会话模板（至少一个窗口）
      - name: coding
        description: Editor, server, and shell windows
        focused_window: editor
        windows:
          - name: editor
            command: nvim .
    colors:                  # 界面配色，缺省项使用默认值
      highlight: "#FF75B7"
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .errors import ConfigError
from .models import DEFAULT_TEMPLATES, ColorConfig, Template
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)

APP_NAME = 'muxyard'


def default_repo_directories() -> List[str]:
    home = Path.home()
    return [str(home / 'src'), str(home / 'code'), str(home / 'projects')]


@dataclass
class Config:
    """主配置（启动时加载一次，之后只读）"""
    repo_directories: List[str] = field(default_factory=default_repo_directories)
    templates: List[Template] = field(default_factory=lambda: list(DEFAULT_TEMPLATES))
    colors: ColorConfig = field(default_factory=ColorConfig)

    @property
    def template_registry(self) -> TemplateRegistry:
        return TemplateRegistry(self.templates)

    def get_template(self, name: str) -> Template:
        """按名称查找模板

        Raises:
            NotFoundError: 模板不存在
        """
        return self.template_registry.get(name)

    def to_dict(self) -> dict:
        return {
            'repo_directories': list(self.repo_directories),
            'templates': [t.to_dict() for t in self.templates],
            'colors': self.colors.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        if not isinstance(data, dict):
            raise ConfigError("config root must be a mapping")

        config = cls()
        if 'repo_directories' in data:
            directories = data['repo_directories'] or []
            if not isinstance(directories, list):
                raise ConfigError("repo_directories must be a list")
            config.repo_directories = [str(d) for d in directories]

        if 'templates' in data:
            templates_data = data['templates'] or []
            if not isinstance(templates_data, list):
                raise ConfigError("templates must be a list")
            try:
                config.templates = [Template.from_dict(t) for t in templates_data]
            except (KeyError, TypeError, AttributeError) as e:
                raise ConfigError(f"invalid template definition: {e}") from e

        colors_data = data.get('colors') or {}
        if not isinstance(colors_data, dict):
            raise ConfigError("colors must be a mapping")
        config.colors = ColorConfig.from_dict(colors_data)
        return config


def config_dir() -> Path:
    """配置目录（遵循 XDG_CONFIG_HOME）"""
    config_home = os.environ.get('XDG_CONFIG_HOME')
    if config_home:
        return Path(config_home) / APP_NAME
    return Path.home() / '.config' / APP_NAME


def config_path() -> Path:
    return config_dir() / 'config.yaml'


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """保存配置文件"""
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
    logger.info(f"[配置] 已保存: {path}")


def load_config(path: Optional[Path] = None) -> Config:
    """加载配置文件

    文件不存在时写入默认配置并返回默认值。

    Raises:
        ConfigError: 文件无法读取、YAML 语法错误或结构不对
    """
    path = path or config_path()

    if not path.exists():
        config = Config()
        try:
            save_config(config, path)
        except OSError as e:
            raise ConfigError(f"failed to create default config {path}: {e}") from e
        logger.info(f"[配置] 文件不存在，已生成默认配置: {path}")
        return config

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"failed to read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e

    config = Config.from_dict(data)
    logger.info(f"[配置] 已加载: {path}")
    return config
