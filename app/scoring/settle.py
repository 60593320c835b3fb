"""
Settle-All Concurrency
app/scoring/settle.py

Runs independent awaitables side by side and collects every outcome as a
tagged ``Settled`` value. One unit failing or timing out never cancels its
siblings; callers fold the outcomes after all of them have finished.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Settled(Generic[T]):
    """Outcome of one unit: a value on success, the exception on failure."""

    ok: bool
    value: Optional[T] = None
    error: Optional[BaseException] = None
    label: str = ""

    @property
    def reason(self) -> str:
        if self.ok:
            return ""
        return str(self.error) or type(self.error).__name__


class UnitTimeout(Exception):
    """A settled unit exceeded its time limit."""

    def __init__(self, label: str, timeout: float):
        self.label = label
        self.timeout = timeout
        name = f"{label} " if label else ""
        super().__init__(f"{name}timed out after {timeout:g}s")


async def _settle_one(
    unit: Awaitable[T], label: str, timeout: Optional[float]
) -> Settled[T]:
    try:
        if timeout is not None:
            value = await asyncio.wait_for(unit, timeout)
        else:
            value = await unit
        return Settled(ok=True, value=value, label=label)
    except asyncio.TimeoutError:
        return Settled(ok=False, error=UnitTimeout(label, timeout), label=label)
    except Exception as exc:
        return Settled(ok=False, error=exc, label=label)


async def settle_all(
    units: Sequence[Awaitable[Any]],
    timeout: Optional[float] = None,
    labels: Optional[Sequence[str]] = None,
) -> List[Settled[Any]]:
    """
    Await every unit concurrently and return outcomes in input order.

    Args:
        units: Coroutines or futures to run.
        timeout: Optional per-unit timeout in seconds.
        labels: Optional names used in timeout messages and logs.

    Returns:
        One ``Settled`` per unit. Never raises for a unit failure;
        cancellation of the caller still propagates.
    """
    names = list(labels) if labels is not None else [""] * len(units)
    if len(names) != len(units):
        raise ValueError("labels and units must have same length")
    return list(
        await asyncio.gather(
            *(_settle_one(u, n, timeout) for u, n in zip(units, names))
        )
    )
