"""
Scene planning and photo understanding collaborators built on LiteLLM.
"""

from .photo_analyzer import DEFAULT_DESCRIPTION, PhotoAnalyzer
from .scene_planner import SCENE_COUNT_RANGE, ScenePlanner, fit_scene_count
from .theme_suggester import FALLBACK_THEME, ThemeSuggester

__all__ = [
    "DEFAULT_DESCRIPTION",
    "PhotoAnalyzer",
    "SCENE_COUNT_RANGE",
    "ScenePlanner",
    "fit_scene_count",
    "FALLBACK_THEME",
    "ThemeSuggester",
]
