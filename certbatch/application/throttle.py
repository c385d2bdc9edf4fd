from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from aiolimiter import AsyncLimiter


@dataclass
class ThrottlePolicy:
    """Pacing applied to calls against the quota-limited providers.

    ``render_limiter`` caps template renders per minute, ``settle_delay`` is
    awaited between two delivery strategies of one batch and ``email_delay``
    after every email row.
    """

    settle_delay: float = 4.0
    email_delay: float = 5.0
    renders_per_minute: float = 60.0
    render_limiter: AsyncLimiter = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.render_limiter = AsyncLimiter(max(self.renders_per_minute, 1.0), 60)

    @classmethod
    def unthrottled(cls) -> "ThrottlePolicy":
        return cls(settle_delay=0.0, email_delay=0.0, renders_per_minute=1_000_000.0)

    async def _pause(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def settle(self) -> None:
        if self.settle_delay > 0:
            await self._pause(self.settle_delay)

    async def after_row(self, mode: str) -> None:
        if mode == "email" and self.email_delay > 0:
            await self._pause(self.email_delay)
