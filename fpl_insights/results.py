"""Per-manager outcome of an upstream fetch.

A batch of rival fetches yields exactly one of these per requested manager,
so failed managers stay visible instead of silently missing from a dict.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class FetchOk(Generic[T]):
    manager_id: int
    value: T

    ok = True


@dataclass(frozen=True)
class FetchFailed:
    manager_id: int
    reason: str

    ok = False


FetchResult = Union[FetchOk[T], FetchFailed]


def successes(results: list[FetchResult]) -> dict[int, object]:
    """manager id -> value for the successful results only."""
    return {r.manager_id: r.value for r in results if isinstance(r, FetchOk)}


def failures(results: list[FetchResult]) -> list[FetchFailed]:
    return [r for r in results if isinstance(r, FetchFailed)]
