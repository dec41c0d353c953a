"""Headless page rendering and the extraction race."""
import asyncio
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright
from pydantic import ValidationError as PydanticValidationError

from workout_import.core.config import settings
from workout_import.models.extraction import CollectedPageData, ExtractionSource
from workout_import.services.url_resolver import MOBILE_SAFARI_UA
from workout_import.utils.logging import CorrelatedLogger

SCRIPTS_DIR = Path(__file__).parent / "scripts"
SCRIPT_FILES = {
    ExtractionSource.TIKTOK: "tiktok_extract.js",
    ExtractionSource.INSTAGRAM: "instagram_extract.js",
}
MESSAGE_BINDING = "postExtractionMessage"

logger = CorrelatedLogger(__name__)


@lru_cache(maxsize=None)
def load_script(platform: ExtractionSource) -> str:
    return (SCRIPTS_DIR / SCRIPT_FILES[platform]).read_text(encoding="utf-8")


def collect_timeout(platform: ExtractionSource) -> float:
    if platform == ExtractionSource.INSTAGRAM:
        return settings.instagram_collect_timeout_seconds
    return settings.tiktok_collect_timeout_seconds


def is_complete(platform: ExtractionSource, payload: Dict[str, Any]) -> bool:
    """Whether a message ends the race right away.

    TikTok is done once the hydration detail or the legacy item map is present;
    Instagram posts once per attempt and is done as soon as it has any data.
    """
    if platform == ExtractionSource.TIKTOK:
        return bool(payload.get("videoDetail") or payload.get("itemModule"))
    return bool(payload.get("hasData"))


class ExtractionRace:
    """Single-resolution wait for a page payload.

    Three triggers compete: a complete message, the timeout and a load error.
    Whichever comes first resolves the race; later triggers are no-ops. Partial
    messages carrying ``hasData`` are kept as the best fallback, which is what
    timeout and error resolve with.
    """

    def __init__(self, platform: ExtractionSource, timeout: float):
        loop = asyncio.get_running_loop()
        self.platform = platform
        self.resolved = False
        self.best_partial: Optional[Dict[str, Any]] = None
        self._future: asyncio.Future = loop.create_future()
        self._timer = loop.call_later(timeout, self.on_timeout)

    def on_message(self, raw: str) -> None:
        if self.resolved:
            return
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-JSON page message")
            return
        if not isinstance(payload, dict):
            return

        if is_complete(self.platform, payload):
            self._resolve(payload)
        elif payload.get("hasData"):
            self.best_partial = payload

    def on_timeout(self) -> None:
        if not self.resolved:
            logger.info(f"[{self.platform.value}] Page extraction timed out")
            self._resolve(self.best_partial)

    def on_error(self, reason: str) -> None:
        if not self.resolved:
            logger.warning(f"[{self.platform.value}] Page load failed: {reason}")
            self._resolve(self.best_partial)

    def cancel(self) -> None:
        """Stop the timer and ignore any later trigger."""
        self.resolved = True
        self._timer.cancel()
        self.best_partial = None
        if not self._future.done():
            self._future.cancel()

    async def wait(self) -> Optional[Dict[str, Any]]:
        return await self._future

    def _resolve(self, payload: Optional[Dict[str, Any]]) -> None:
        self.resolved = True
        self._timer.cancel()
        self.best_partial = None
        if not self._future.done():
            self._future.set_result(payload)


class PageDataCollector:
    """Loads a video page in headless Chromium and runs the platform script on it."""

    def __init__(self, headless: bool = True):
        self.headless = headless
        self.logger = CorrelatedLogger(__name__)

    async def collect(self, url: str, platform: ExtractionSource) -> Optional[CollectedPageData]:
        """Best page payload observed before the race ended, or None."""
        payload = await self._run(url, platform)
        if not payload:
            self.logger.info(f"[{platform.value}] No page data collected for {url}")
            return None

        try:
            data = CollectedPageData.model_validate(payload)
        except PydanticValidationError as e:
            self.logger.warning(f"[{platform.value}] Discarding malformed page payload: {str(e)}")
            return None

        self.logger.info(
            f"[{platform.value}] Collected page data: has_data={data.has_data} "
            f"rich={data.has_rich_payload} video={bool(data.video_play_url)}"
        )
        return data

    async def _run(self, url: str, platform: ExtractionSource) -> Optional[Dict[str, Any]]:
        script = load_script(platform)
        race: Optional[ExtractionRace] = None

        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=self.headless)
            try:
                context = await browser.new_context(user_agent=MOBILE_SAFARI_UA)
                try:
                    page = await context.new_page()
                    # The clock starts with the page, not with the browser launch
                    race = ExtractionRace(platform, collect_timeout(platform))
                    await page.expose_function(MESSAGE_BINDING, race.on_message)
                    if platform == ExtractionSource.INSTAGRAM:
                        await page.add_init_script(self._instagram_options_script())

                    # Every load re-injects, so redirects end up on the final page
                    page.on("load", lambda loaded: self._inject(loaded, script, race))
                    page.on("crash", lambda _: race.on_error("page crashed"))

                    try:
                        await page.goto(url, wait_until="domcontentloaded")
                    except PlaywrightError as e:
                        race.on_error(str(e))

                    return await race.wait()
                finally:
                    if race is not None:
                        race.cancel()
                    await context.close()
            finally:
                await browser.close()

    async def _inject(self, page: Page, script: str, race: ExtractionRace) -> None:
        await asyncio.sleep(settings.script_inject_delay_seconds)
        if race.resolved:
            return
        try:
            await page.evaluate(script)
        except PlaywrightError as e:
            # The page navigated away; the next load injects again
            self.logger.debug(f"Script injection skipped: {str(e)}")

    @staticmethod
    def _instagram_options_script() -> str:
        options = {
            "maxAttempts": settings.instagram_poll_attempts,
            "intervalMs": settings.instagram_poll_interval_ms,
            "startDelayMs": settings.instagram_poll_start_delay_ms,
        }
        return f"window.__EXTRACT_OPTIONS__ = {json.dumps(options)};"
