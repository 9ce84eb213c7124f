from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pitch_sync.db.enums import FidelityEnum

Json = dict[str, Any]

T = TypeVar("T")


class Strategy(str, Enum):
    API = "api"
    BROWSER = "browser"


@dataclass(frozen=True)
class ResourceDescriptor:
    """
    One upstream resource, addressable by both retrieval strategies.

    `required_key` / `required_type` describe the top-level shape every
    successful payload must have. `page_path` and `extractor` are None for
    resources the browser strategy cannot provide.
    """

    kind: str
    api_path: str
    required_key: str
    required_type: type
    params: Mapping[str, Any] = field(default_factory=dict)
    page_path: str | None = None
    wait_selector: str | None = None
    extractor: str | None = None

    @property
    def label(self) -> str:
        return f"{self.kind}:{self.api_path}"

    @property
    def browser_capable(self) -> bool:
        return self.page_path is not None and self.extractor is not None


@dataclass(frozen=True)
class FetchResult:
    resource: ResourceDescriptor
    payload: Json
    strategy: Strategy
    fidelity: FidelityEnum
    attempts: int

    @property
    def degraded(self) -> bool:
        return self.fidelity is FidelityEnum.DEGRADED

    @property
    def data(self) -> Any:
        return self.payload[self.resource.required_key]


@dataclass(frozen=True)
class Fetched(Generic[T]):
    """A parsed value together with the fidelity it was retrieved at."""

    value: T
    fidelity: FidelityEnum = FidelityEnum.FULL

    @property
    def degraded(self) -> bool:
        return self.fidelity is FidelityEnum.DEGRADED
