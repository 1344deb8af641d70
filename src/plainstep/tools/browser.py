"""
PlainStep Browser Tool

Playwright browser lifecycle: one browser per run, one isolated
browser context per scenario.
"""

import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from plainstep.core.config import Settings

logger = logging.getLogger(__name__)


def artifact_slug(text: str, max_length: int = 60) -> str:
    """File-name-safe form of free text."""
    slug = re.sub(r"[^\w\-]+", "_", text).strip("_")
    return slug[:max_length] or "unnamed"


class BrowserTool:
    """
    Browser automation tool using Playwright.

    Provides:
    - Browser launch for the configured engine
    - Isolated per-scenario contexts (viewport, base URL, video)
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self._browser: Optional[Browser] = None

    @property
    def video_dir(self) -> Path:
        return Path(self.settings.report_dir) / "videos"

    @asynccontextmanager
    async def get_browser(self) -> AsyncIterator[Browser]:
        """Context manager for browser instance."""
        async with async_playwright() as p:
            launcher = getattr(p, self.settings.browser.value)
            browser = await launcher.launch(
                headless=self.settings.headless,
                slow_mo=self.settings.slow_mo,
            )
            logger.info(
                f"Launched {self.settings.browser.value} (headless={self.settings.headless})"
            )
            self._browser = browser
            try:
                yield browser
            finally:
                self._browser = None
                await browser.close()

    @asynccontextmanager
    async def get_page(self, browser: Browser) -> AsyncIterator[tuple[BrowserContext, Page]]:
        """
        Context manager for one scenario's isolated context and page.

        The context is closed on exit, which also finalizes any video.
        """
        options: dict = {"base_url": self.settings.base_url}
        if self.settings.viewport:
            options["viewport"] = self.settings.viewport
        if self.settings.enable_video:
            self.video_dir.mkdir(parents=True, exist_ok=True)
            options["record_video_dir"] = str(self.video_dir)

        context = await browser.new_context(**options)
        context.set_default_timeout(self.settings.timeout_ms)
        if self.settings.enable_tracing:
            await context.tracing.start(screenshots=True, snapshots=True)

        page = await context.new_page()
        try:
            yield context, page
        finally:
            await context.close()

    async def stop_tracing(self, context: BrowserContext, name: str) -> Optional[str]:
        """Write the scenario trace archive, if tracing is enabled."""
        if not self.settings.enable_tracing:
            return None
        trace_dir = Path(self.settings.report_dir) / "traces"
        trace_dir.mkdir(parents=True, exist_ok=True)
        path = trace_dir / f"{artifact_slug(name)}.zip"
        await context.tracing.stop(path=str(path))
        return str(path)

    @staticmethod
    async def video_path(page: Page) -> Optional[str]:
        """Path of the page's video recording, if one is being made."""
        if page.video is None:
            return None
        return str(await page.video.path())
