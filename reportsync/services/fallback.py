from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

import httpx
from pydantic import ValidationError

from reportsync.core.enums import DataTier
from reportsync.core.errors import RemoteUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# failures that mean "this tier cannot answer, ask the next one"
TIER_FAILURES = (
    RemoteUnavailableError,
    asyncio.TimeoutError,
    httpx.HTTPError,
    ValidationError,
)


@dataclass
class TierResult(Generic[T]):
    value: Optional[T] = None
    tier: Optional[DataTier] = None
    errors: List[BaseException] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.tier is not None


@dataclass
class _Stage:
    tier: DataTier
    loader: Callable[[], Awaitable[Any]]
    accept: Callable[[Any], bool]
    timeout: Optional[float]


def _always(_value) -> bool:
    return True


class TierChain(Generic[T]):
    """
    Ordered fallback: each stage either produces an accepted value
    or hands over to the next one.

        await try_remote(fetch, timeout=5, accept=bool).or_else(DataTier.local, load).run()
    """

    def __init__(self):
        self._stages: List[_Stage] = []

    def then(
        self,
        tier: DataTier,
        loader: Callable[[], Awaitable[T]],
        accept: Callable[[T], bool] = _always,
        timeout: Optional[float] = None,
    ) -> "TierChain[T]":
        self._stages.append(_Stage(tier, loader, accept, timeout))
        return self

    def or_else(
        self,
        tier: DataTier,
        loader: Callable[[], Awaitable[T]],
        accept: Callable[[T], bool] = _always,
    ) -> "TierChain[T]":
        return self.then(tier, loader, accept)

    async def run(self) -> TierResult[T]:
        result: TierResult[T] = TierResult()
        for stage in self._stages:
            try:
                if stage.timeout is not None:
                    value = await asyncio.wait_for(stage.loader(), timeout=stage.timeout)
                else:
                    value = await stage.loader()
            except TIER_FAILURES as exc:
                logger.debug("%s tier failed: %r", stage.tier.value, exc)
                result.errors.append(exc)
                continue

            if stage.accept(value):
                result.value = value
                result.tier = stage.tier
                return result
            logger.debug("%s tier returned an unusable answer", stage.tier.value)
        return result


def try_remote(
    loader: Callable[[], Awaitable[T]],
    timeout: Optional[float] = None,
    accept: Callable[[T], bool] = _always,
) -> TierChain[T]:
    return TierChain[T]().then(DataTier.remote, loader, accept, timeout)
