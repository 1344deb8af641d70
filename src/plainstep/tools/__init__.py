"""
PlainStep Tools Module

Playwright integrations:
- Browser: launch and isolated scenario contexts
- Actions: per-intent execution with stability waits
- Recorder: turns user interaction into step sentences
"""

from plainstep.tools.browser import BrowserTool, artifact_slug
from plainstep.tools.actions import ActionExecutor
from plainstep.tools.recorder import ActionRecorder, step_for_event

__all__ = [
    # Browser
    "BrowserTool",
    "artifact_slug",
    # Actions
    "ActionExecutor",
    # Recorder
    "ActionRecorder",
    "step_for_event",
]
