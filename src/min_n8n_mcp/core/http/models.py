"""Resilience configuration models and protocols.

Defines the immutable policy types shared by the HTTP layer:
- RetryPolicy for the retry engine
- RateLimiterConfig / OverflowPolicy for the admission limiter
- SleepFunc protocol for injectable async sleep
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RetryPolicy(BaseModel):
    """Retry behaviour for one client. Durations are in seconds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_retries: int = Field(default=2, ge=0, description="Retries after the first attempt")
    base_delay: float = Field(default=0.2, gt=0, description="Delay before the first retry")
    max_delay: float = Field(default=5.0, gt=0, description="Cap on the un-jittered delay")
    backoff_multiplier: float = Field(default=2.0, gt=1, description="Growth factor per retry")
    jitter_factor: float = Field(default=0.1, ge=0, le=1, description="Max jitter as a fraction of the delay")

    @model_validator(mode="after")
    def validate_delay_ordering(self) -> "RetryPolicy":
        """Assert base_delay <= max_delay."""
        if self.max_delay < self.base_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be greater than or equal to "
                f"base_delay ({self.base_delay})"
            )
        return self

    def merged(self, overrides: Optional[Mapping[str, Any]] = None) -> "RetryPolicy":
        """Return a validated copy with *overrides* applied over this policy."""
        if not overrides:
            return self
        return RetryPolicy.model_validate({**self.model_dump(), **dict(overrides)})


class OverflowPolicy(str, Enum):
    """What the limiter does when its queue is full."""

    REJECT_NEWEST = "reject-newest"
    REJECT_OLDEST = "reject-oldest"


class RateLimiterConfig(BaseModel):
    """Admission-control settings shared by every call on one client."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_concurrent: int = Field(default=4, ge=1, description="Operations executing at once")
    min_interval: float = Field(default=0.25, ge=0, description="Seconds between dispatches")
    max_queue_depth: int = Field(default=50, ge=0, description="Operations allowed to wait")
    overflow_policy: OverflowPolicy = Field(default=OverflowPolicy.REJECT_NEWEST)


class SleepFunc(Protocol):
    """Protocol for injectable sleep function."""

    async def __call__(self, seconds: float) -> None: ...
