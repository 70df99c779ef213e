from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .cache import TTLCache
from .config import DEFAULT_BASE_URL, Settings
from .enrichment import enrich_players, parse_fixtures, parse_gameweeks, parse_teams, validate_gameweeks
from .models import EnrichedPlayer, Fixture, Gameweek, Team

logger = logging.getLogger(__name__)


class FplApiError(Exception):
    """Upstream FPL request failed with an HTTP error status or an unreadable body."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def not_found(self) -> bool:
        return self.status_code == 404


class FplClient:
    """Thin wrapper over the public FPL endpoints.

    Responses are raw JSON; parsing lives in ``enrichment``. When a cache is
    given, each endpoint is cached under its own category so live data can
    expire faster than bootstrap data.
    """

    def __init__(self, http: httpx.Client, cache: TTLCache | None = None, base_url: str = DEFAULT_BASE_URL):
        self.http = http
        self.cache = cache
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> FplClient:
        http = httpx.Client(timeout=settings.http_timeout)
        cache = TTLCache(settings.cache_max_entries, settings.cache_ttls)
        return cls(http, cache, settings.base_url)

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> FplClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get(self, path: str):
        url = f"{self.base_url}{path}"
        try:
            resp = self.http.get(url)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.debug("FPL request %s returned %s", path, status)
            raise FplApiError(status, f"FPL API returned {status} for {path}") from e
        try:
            return resp.json()
        except ValueError as e:
            logger.debug("FPL request %s returned a non-JSON body", path)
            raise FplApiError(502, f"Invalid response from FPL API for {path}") from e

    def _cached(self, key: str, path: str, category: str):
        if self.cache is None:
            return self._get(path)
        return self.cache.get_or_load(key, lambda: self._get(path), category)

    def bootstrap(self) -> dict:
        return self._cached("bootstrap", "/bootstrap-static/", "bootstrap")

    def fixtures(self) -> list[dict]:
        return self._cached("fixtures", "/fixtures/", "fixtures")

    def manager_picks(self, manager_id: int, gameweek: int) -> dict:
        return self._cached(
            f"manager:{manager_id}:picks:{gameweek}",
            f"/entry/{manager_id}/event/{gameweek}/picks/",
            "manager",
        )

    def manager_history(self, manager_id: int) -> dict:
        return self._cached(f"manager:{manager_id}:history", f"/entry/{manager_id}/history/", "manager")

    def manager_entry(self, manager_id: int) -> dict:
        return self._cached(f"manager:{manager_id}:entry", f"/entry/{manager_id}/", "manager")

    def league_standings(self, league_id: int, page: int = 1) -> dict:
        return self._cached(
            f"league:{league_id}:{page}",
            f"/leagues-classic/{league_id}/standings/?page_standings={page}",
            "league",
        )

    def live_gameweek(self, gameweek: int) -> dict:
        return self._cached(f"live:{gameweek}", f"/event/{gameweek}/live/", "live")


@dataclass
class SeasonData:
    players: list[EnrichedPlayer]
    teams: dict[int, Team]
    gameweeks: list[Gameweek]
    fixtures: list[Fixture]
    chip_windows: list[dict]

    @property
    def team_list(self) -> list[Team]:
        return sorted(self.teams.values(), key=lambda t: t.id)


def load_season(client: FplClient) -> SeasonData:
    """Bootstrap plus fixtures, parsed into domain objects."""
    bootstrap = client.bootstrap()
    raw_fixtures = client.fixtures()
    teams = parse_teams(bootstrap)
    gameweeks = parse_gameweeks(bootstrap)
    for problem in validate_gameweeks(gameweeks):
        logger.warning("Gameweek data problem: %s", problem)
    return SeasonData(
        players=enrich_players(bootstrap),
        teams=teams,
        gameweeks=gameweeks,
        fixtures=parse_fixtures(raw_fixtures),
        chip_windows=bootstrap.get("chips", []),
    )
