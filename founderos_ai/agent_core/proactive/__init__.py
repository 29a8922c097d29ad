"""Proactive event detection and messaging."""

from .detectors import (
    DEFAULT_DETECTORS,
    Detector,
    ProactiveSettings,
    detect_low_runway,
    detect_overdue_tasks,
    detect_recent_completions,
    detect_stale_tasks,
    detect_upcoming_deadlines,
)
from .pipeline import ProactiveCheckResult, ProactivePipeline, SweepReport, render_message

__all__ = [
    "DEFAULT_DETECTORS",
    "Detector",
    "ProactiveSettings",
    "ProactiveCheckResult",
    "ProactivePipeline",
    "SweepReport",
    "detect_low_runway",
    "detect_overdue_tasks",
    "detect_recent_completions",
    "detect_stale_tasks",
    "detect_upcoming_deadlines",
    "render_message",
]
