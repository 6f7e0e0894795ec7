"""Project configuration: layered YAML loading and the typed render config."""
from .manager import ConfigManager, find_project_root, load_render_config
from .render import MarkdownSettings, PathConfinement, RenderConfig

__all__ = [
    "ConfigManager",
    "find_project_root",
    "load_render_config",
    "MarkdownSettings",
    "PathConfinement",
    "RenderConfig",
]
