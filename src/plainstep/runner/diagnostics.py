"""
PlainStep Diagnostics

Captures the state of a page when a step fails: a full-page screenshot
and a bounded snapshot of the DOM. Both are written under the report
directory and returned as embeddings for the step result. Capture never
raises; a page that cannot be captured is logged and skipped.
"""

import base64
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from plainstep.core.models import Embedding, Step
from plainstep.tools.browser import artifact_slug

logger = logging.getLogger(__name__)

DOM_MAX_DEPTH = 3
DOM_MAX_CHILDREN = 10

DOM_SNAPSHOT_SCRIPT = """
([maxDepth, maxChildren]) => {
    const describe = (element, depth) => {
        if (depth > maxDepth) return null;
        const attributes = {};
        for (const attr of Array.from(element.attributes)) {
            attributes[attr.name] = attr.value;
        }
        return {
            tag: element.tagName.toLowerCase(),
            id: element.id || null,
            className: typeof element.className === "string" ? element.className || null : null,
            textContent: (element.textContent || "").trim().substring(0, 100) || null,
            attributes: attributes,
            children: Array.from(element.children)
                .slice(0, maxChildren)
                .map((child) => describe(child, depth + 1))
                .filter(Boolean),
        };
    };
    return document.body ? describe(document.body, 0) : null;
}
"""


def artifact_name(label: str, step: Step, timestamp: Optional[datetime] = None) -> str:
    """e.g. FIRST_FAILURE_When_I_click_Login_20240101-120000-123456"""
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d-%H%M%S-%f")
    return f"{label}_{artifact_slug(step.keyword)}_{artifact_slug(step.text)}_{stamp}"


class DiagnosticsCollector:
    """
    Writes failure diagnostics for step attempts.

    Args:
        report_dir: Root directory for screenshots/ and debug/
        enable_screenshots: Whether screenshots are taken at all
    """

    def __init__(self, report_dir: str, enable_screenshots: bool = True):
        self.report_dir = Path(report_dir)
        self.enable_screenshots = enable_screenshots

    @property
    def screenshot_dir(self) -> Path:
        return self.report_dir / "screenshots"

    @property
    def debug_dir(self) -> Path:
        return self.report_dir / "debug"

    async def capture(self, page: Optional[Page], step: Step, label: str) -> list[Embedding]:
        """
        Capture a screenshot and a DOM snapshot of the page.

        Args:
            page: Page the step ran on; nothing is captured without one
            step: The failing step
            label: FIRST_FAILURE or FINAL_FAILURE

        Returns:
            Embeddings for whatever could be captured
        """
        if page is None:
            return []

        name = artifact_name(label, step)
        embeddings: list[Embedding] = []

        if self.enable_screenshots:
            screenshot = await self._screenshot(page, name)
            if screenshot is not None:
                embeddings.append(screenshot)

        snapshot = await self._dom_snapshot(page, name)
        if snapshot is not None:
            embeddings.append(snapshot)

        logger.info(f"Captured {len(embeddings)} diagnostic artifact(s) for {name}")
        return embeddings

    async def _screenshot(self, page: Page, name: str) -> Optional[Embedding]:
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            path = self.screenshot_dir / f"{name}.png"
            data = await page.screenshot(path=str(path), full_page=True)
        except (PlaywrightError, OSError) as e:
            logger.warning(f"Failed to take screenshot {name}: {e}")
            return None
        return Embedding(
            data=base64.b64encode(data).decode("ascii"),
            mime_type="image/png",
            name=name,
        )

    async def _dom_snapshot(self, page: Page, name: str) -> Optional[Embedding]:
        try:
            dom: Any = await page.evaluate(DOM_SNAPSHOT_SCRIPT, [DOM_MAX_DEPTH, DOM_MAX_CHILDREN])
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            content = json.dumps(dom, indent=2)
            (self.debug_dir / f"{name}.json").write_text(content, encoding="utf-8")
        except (PlaywrightError, OSError) as e:
            logger.warning(f"Failed to capture DOM snapshot {name}: {e}")
            return None
        return Embedding(
            data=base64.b64encode(content.encode("utf-8")).decode("ascii"),
            mime_type="application/json",
            name=f"{name}.json",
        )
