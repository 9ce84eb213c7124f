from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable

from pitch_sync.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PacingPolicy:
    """Delays (seconds) between upstream-bound units of work."""

    item_min_s: float = 1.0
    item_max_s: float = 3.0
    stage_min_s: float = 3.0
    stage_max_s: float = 5.0
    batch_s: float = 2.0
    day_s: float = 2.0
    block_s: float = 5.0

    @classmethod
    def from_settings(cls) -> PacingPolicy:
        return cls(
            item_min_s=settings.item_delay_min_s,
            item_max_s=settings.item_delay_max_s,
            stage_min_s=settings.stage_delay_min_s,
            stage_max_s=settings.stage_delay_max_s,
            batch_s=settings.batch_delay_s,
            day_s=settings.day_delay_s,
            block_s=settings.block_delay_s,
        )


NO_DELAYS = PacingPolicy(0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)


@dataclass
class Pacer:
    policy: PacingPolicy = field(default_factory=PacingPolicy.from_settings)

    _sleep: Callable[[float], Any] = field(default=time.sleep, repr=False)
    _uniform: Callable[[float, float], float] = field(default=random.uniform, repr=False)

    def between_items(self) -> None:
        self._wait(self._uniform(self.policy.item_min_s, self.policy.item_max_s))

    def between_stages(self) -> None:
        self._wait(self._uniform(self.policy.stage_min_s, self.policy.stage_max_s))

    def between_batches(self) -> None:
        self._wait(self.policy.batch_s)

    def between_days(self) -> None:
        self._wait(self.policy.day_s)

    def between_blocks(self) -> None:
        self._wait(self.policy.block_s)

    def _wait(self, seconds: float) -> None:
        if seconds <= 0:
            return
        logger.debug("Pacing for %.2fs", seconds)
        self._sleep(seconds)


def no_pacing() -> Pacer:
    return Pacer(policy=NO_DELAYS)
