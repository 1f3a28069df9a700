"""模板注册表 - 启动时加载一次，运行期间只读"""

from typing import Iterable, Iterator

from .errors import NotFoundError
from .models import Template


class TemplateRegistry:
    """会话模板列表（保持配置文件中的顺序）"""

    def __init__(self, templates: Iterable[Template] = ()):
        self._templates = tuple(templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def __len__(self) -> int:
        return len(self._templates)

    def __getitem__(self, index: int) -> Template:
        return self._templates[index]

    @property
    def templates(self) -> tuple[Template, ...]:
        return self._templates

    def get(self, name: str) -> Template:
        """按名称查找模板

        Raises:
            NotFoundError: 不存在同名模板
        """
        for template in self._templates:
            if template.name == name:
                return template
        raise NotFoundError(f"template {name!r} not found")
