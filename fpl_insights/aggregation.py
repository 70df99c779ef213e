"""Concurrent fetch of rival picks and chip histories.

Every requested manager ends up with exactly one result per data kind, so a
failed fetch is reported instead of quietly shrinking the batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable

import httpx

from .api import FplApiError, FplClient
from .enrichment import parse_chips, parse_picks
from .models import ManagerChip
from .results import FetchFailed, FetchOk, FetchResult, failures, successes

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 5


@dataclass
class RivalBatch:
    gameweek: int
    manager_ids: list[int]
    picks: list[FetchResult] = field(default_factory=list)
    chips: list[FetchResult] | None = None

    @property
    def successful_picks(self) -> int:
        return sum(1 for r in self.picks if r.ok)

    @property
    def failed_picks(self) -> int:
        return len(self.picks) - self.successful_picks

    def parsed_picks(self) -> list[FetchResult]:
        """Same results with each successful payload parsed into Picks."""
        return [
            FetchOk(r.manager_id, parse_picks(r.value)) if isinstance(r, FetchOk) else r
            for r in self.picks
        ]

    def chips_by_manager(self) -> dict[int, list[ManagerChip]]:
        if self.chips is None:
            return {}
        return {mid: parse_chips(data) for mid, data in successes(self.chips).items()}

    def to_response(self) -> dict:
        rival_picks = []
        for r in self.picks:
            if isinstance(r, FetchOk):
                rival_picks.append({"managerId": r.manager_id, "picks": r.value})
            else:
                rival_picks.append({"managerId": r.manager_id, "picks": None, "error": r.reason})

        stats = {
            "totalRequested": len(self.manager_ids),
            "successfulPicks": self.successful_picks,
            "failedPicks": self.failed_picks,
        }
        response = {"gameweek": self.gameweek, "rivalPicks": rival_picks}

        if self.chips is not None:
            rival_chips = []
            for r in self.chips:
                if isinstance(r, FetchOk):
                    rival_chips.append({"managerId": r.manager_id, "chips": r.value.get("chips", [])})
                else:
                    rival_chips.append({"managerId": r.manager_id, "chips": [], "error": r.reason})
            ok_chips = sum(1 for r in self.chips if r.ok)
            stats["successfulChips"] = ok_chips
            stats["failedChips"] = len(self.chips) - ok_chips
            response["rivalChips"] = rival_chips

        response["stats"] = stats
        return response


def _fetch_one(manager_id: int, fetch: Callable[[int], dict], what: str) -> FetchResult:
    try:
        return FetchOk(manager_id, fetch(manager_id))
    except FplApiError as e:
        return FetchFailed(manager_id, e.message)
    except httpx.HTTPError as e:
        logger.debug("Transport error fetching %s for manager %s: %s", what, manager_id, e)
        return FetchFailed(manager_id, f"Failed to fetch {what}")
    except ValueError:
        return FetchFailed(manager_id, f"Invalid {what} response")


def fetch_for_managers(
    manager_ids: list[int],
    fetch: Callable[[int], dict],
    what: str,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> list[FetchResult]:
    """Run ``fetch`` for every manager with at most ``max_workers`` in flight.

    Results come back in the order of ``manager_ids``.
    """
    if not manager_ids:
        return []
    max_workers = max(1, min(max_workers, len(manager_ids)))
    ordered: list[FetchResult | None] = [None] * len(manager_ids)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(_fetch_one, mid, fetch, what): idx
            for idx, mid in enumerate(manager_ids)
        }
        for future in as_completed(future_to_index):
            ordered[future_to_index[future]] = future.result()

    results = [r for r in ordered if r is not None]
    failed = failures(results)
    if failed:
        logger.warning(
            "Failed to fetch %s for %d of %d managers: %s",
            what, len(failed), len(results), ", ".join(str(f.manager_id) for f in failed),
        )
    return results


def _in_request_order(results: list[FetchResult], manager_ids: list[int]) -> list[FetchResult]:
    # a repeated id shares the result of its single fetch
    by_id = {r.manager_id: r for r in results}
    return [by_id[mid] for mid in manager_ids]


def fetch_rival_data(
    client: FplClient,
    manager_ids: list[int],
    gameweek: int,
    include_chips: bool = False,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> RivalBatch:
    """Picks (and optionally chip histories) for a batch of managers."""
    unique_ids = list(dict.fromkeys(manager_ids))
    picks = fetch_for_managers(
        unique_ids,
        lambda mid: client.manager_picks(mid, gameweek),
        "picks",
        max_workers,
    )
    chips = None
    if include_chips:
        chips = fetch_for_managers(unique_ids, client.manager_history, "history", max_workers)
        chips = _in_request_order(chips, manager_ids)

    logger.info(
        "Fetched picks for %d/%d managers in GW%d",
        sum(1 for r in picks if r.ok), len(unique_ids), gameweek,
    )
    return RivalBatch(
        gameweek=gameweek,
        manager_ids=list(manager_ids),
        picks=_in_request_order(picks, manager_ids),
        chips=chips,
    )
