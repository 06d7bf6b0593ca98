"""Preview pane: command requests, background runner, layout choice."""

from .layout import Layout, PreviewGeometry, choose_layout, parse_layout
from .pipeline import PreviewPane, PreviewPipeline, PreviewSource
from .requests import PreviewRequest, PreviewResult
from .runner import PreviewScheduler

__all__ = [
    "Layout",
    "PreviewGeometry",
    "PreviewPane",
    "PreviewPipeline",
    "PreviewRequest",
    "PreviewResult",
    "PreviewScheduler",
    "PreviewSource",
    "choose_layout",
    "parse_layout",
]
