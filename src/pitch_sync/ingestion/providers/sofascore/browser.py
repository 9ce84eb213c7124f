from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from pitch_sync.core.config import settings
from pitch_sync.ingestion.dates import day_bounds
from pitch_sync.ingestion.providers.base.client import Json
from pitch_sync.ingestion.providers.base.errors import ProviderParseError, ProviderUnavailable
from pitch_sync.ingestion.providers.base.types import ResourceDescriptor
from pitch_sync.ingestion.providers.sofascore.resources import ResourceKind

logger = logging.getLogger(__name__)

_ID_FROM_PATH_JS = "(location.pathname.match(/\\/(\\d+)\\/?$/) || [])[1]"

# DOM extractors. Each returns the same top-level key the API resource would.
EXTRACTORS: dict[str, str] = {
    ResourceKind.TEAM.value: f"""
() => {{
  const id = {_ID_FROM_PATH_JS};
  const name = document.querySelector('h2')?.textContent?.trim() || null;
  const country = document.querySelector("img[src*='/country/']")?.getAttribute('alt') || null;
  return {{
    team: {{
      id: id ? Number(id) : null,
      name,
      country: country ? {{ name: country }} : null,
    }},
  }};
}}
""",
    ResourceKind.TEAM_PLAYERS.value: """
() => {
  const seen = new Set();
  const players = [];
  document.querySelectorAll("a[href*='/player/']").forEach((a) => {
    const m = (a.getAttribute('href') || '').match(/\\/player\\/[^/]+\\/(\\d+)/);
    if (!m || seen.has(m[1])) return;
    const name = (a.getAttribute('title') || a.textContent || '').trim();
    if (!name) return;
    seen.add(m[1]);
    players.push({ player: { id: Number(m[1]), name } });
  });
  return { players };
}
""",
    ResourceKind.PLAYER.value: f"""
() => {{
  const id = {_ID_FROM_PATH_JS};
  const name = document.querySelector('h2')?.textContent?.trim() || null;
  const teamLink = document.querySelector("a[href*='/team/']");
  const teamId = teamLink ? ((teamLink.getAttribute('href') || '').match(/\\/(\\d+)$/) || [])[1] : null;
  return {{
    player: {{
      id: id ? Number(id) : null,
      name,
      team: teamLink ? {{ id: teamId ? Number(teamId) : null, name: teamLink.textContent.trim() }} : null,
    }},
  }};
}}
""",
    ResourceKind.SCHEDULED_EVENTS.value: """
() => {
  const events = [];
  document.querySelectorAll('a[data-id]').forEach((a) => {
    const home = a.querySelector("[data-testid='left_team']")?.textContent?.trim();
    const away = a.querySelector("[data-testid='right_team']")?.textContent?.trim();
    if (!home || !away) return;
    events.push({
      id: Number(a.getAttribute('data-id')),
      homeTeam: { name: home },
      awayTeam: { name: away },
    });
  });
  return { events };
}
""",
}


def _post_process(resource: ResourceDescriptor, payload: Json) -> Json:
    """Fill fields the DOM cannot provide but downstream parsing requires."""
    if resource.extractor == ResourceKind.SCHEDULED_EVENTS.value and resource.page_path:
        day = date.fromisoformat(resource.page_path.rsplit("/", 1)[-1])
        start_ts, _ = day_bounds(day)
        events: list[Any] = payload.get("events") or []
        for event in events:
            if isinstance(event, dict):
                event.setdefault("startTimestamp", start_ts)
    return payload


@dataclass
class PlaywrightPageFetcher:
    """
    Headless Chromium retrieval of SofaScore web pages.

    Each call launches and closes its own browser, so one fetcher may be shared
    by jobs running on different threads.
    """

    base_url: str
    user_agent: str
    timeout_ms: int = 30_000
    selector_timeout_ms: int = 10_000
    headless: bool = True

    @classmethod
    def from_settings(cls) -> PlaywrightPageFetcher:
        return cls(
            base_url=settings.sofascore_web_base_url,
            user_agent=settings.user_agent,
            timeout_ms=settings.browser_timeout_ms,
            selector_timeout_ms=settings.browser_selector_timeout_ms,
        )

    def fetch_page(self, resource: ResourceDescriptor) -> Json:
        script = EXTRACTORS.get(resource.extractor or "")
        if resource.page_path is None or script is None:
            raise ProviderUnavailable(f"No page extractor for {resource.label}")

        url = f"{self.base_url.rstrip('/')}/{resource.page_path}"
        logger.info("Loading %s in headless browser", url)
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=self.headless,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                try:
                    context = browser.new_context(
                        user_agent=self.user_agent,
                        viewport={"width": 1366, "height": 768},
                    )
                    page = context.new_page()
                    page.goto(url, timeout=self.timeout_ms, wait_until="domcontentloaded")
                    if resource.wait_selector:
                        page.wait_for_selector(
                            resource.wait_selector, timeout=self.selector_timeout_ms
                        )
                    payload = page.evaluate(script)
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise ProviderUnavailable(f"Browser retrieval failed for {url}: {e}") from e

        if not isinstance(payload, dict):
            raise ProviderParseError(
                f"Extractor returned {type(payload).__name__}", context={"url": url}
            )
        return _post_process(resource, payload)

    def close(self) -> None:
        return None
