from __future__ import annotations

from typing import Protocol

from .types import Json, ResourceDescriptor


class PageFetcher(Protocol):
    """
    Browser-side retrieval. The gateway depends on this, not on Playwright.

    Implementations load the resource's page, wait for its content selector and
    return a payload with the same top-level key the API would have returned.
    """

    def fetch_page(self, resource: ResourceDescriptor) -> Json:
        ...

    def close(self) -> None:
        ...
