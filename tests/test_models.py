"""模型测试"""

from muxyard.models import (
    DEFAULT_TEMPLATES,
    ColorConfig,
    Repository,
    Session,
    Template,
    WindowSpec,
)


class TestSession:
    """Session 模型测试"""

    def test_defaults(self):
        session = Session(name="dev")
        assert session.windows == 0
        assert session.attached is False
        assert session.status == "detached"

    def test_attached_status(self):
        assert Session(name="dev", windows=2, attached=True).status == "attached"


class TestRepository:
    """Repository 模型测试"""

    def test_search_text_contains_name_and_path(self):
        repo = Repository(name="api", path="/home/u/src/api")
        assert repo.search_text == "api /home/u/src/api"
        assert str(repo) == "api"


class TestTemplate:
    """Template 模型测试"""

    def test_to_dict(self):
        template = Template(
            name="coding",
            description="编辑器",
            windows=(WindowSpec(name="editor", command="nvim ."), WindowSpec()),
            focused_window="editor",
        )
        data = template.to_dict()
        assert data["name"] == "coding"
        assert data["windows"] == [{"name": "editor", "command": "nvim ."}, {}]
        assert data["focused_window"] == "editor"

    def test_from_dict(self):
        data = {
            "name": "monitor",
            "windows": [{"name": "app"}, {"name": "logs", "command": "tail -f *.log"}],
        }
        template = Template.from_dict(data)
        assert template.name == "monitor"
        assert template.description == ""
        assert template.focused_window is None
        assert template.windows[1] == WindowSpec(name="logs", command="tail -f *.log")

    def test_from_dict_without_windows(self):
        template = Template.from_dict({"name": "empty"})
        assert template.windows == ()

    def test_default_templates(self):
        names = [t.name for t in DEFAULT_TEMPLATES]
        assert names == ["basic", "coding", "monitor"]
        assert all(t.windows for t in DEFAULT_TEMPLATES)


class TestColorConfig:
    """ColorConfig 模型测试"""

    def test_partial_override_keeps_defaults(self):
        colors = ColorConfig.from_dict({"highlight": "#123456", "title": {"foreground": "#000000"}})
        defaults = ColorConfig()
        assert colors.highlight == "#123456"
        assert colors.title.foreground == "#000000"
        assert colors.title.background == defaults.title.background
        assert colors.spinner == defaults.spinner

    def test_to_dict_round_trip(self):
        colors = ColorConfig()
        assert ColorConfig.from_dict(colors.to_dict()) == colors
