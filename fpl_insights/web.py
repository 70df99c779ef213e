from __future__ import annotations

import logging

from flask import Flask, jsonify, request
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, ValidationError

from .aggregation import fetch_rival_data
from .api import FplApiError, FplClient, load_season
from .captain import score_captain_options
from .chips import analyze_chip_strategies
from .config import Settings
from .enrichment import build_player_map, next_gameweek, parse_chips, parse_history
from .fixture_swing import analyze_fixture_swings
from .fixtures import build_fixture_grid, find_special_gameweeks, sort_by_easiest_fixtures
from .league import chip_availability
from .league_report import DEFAULT_RIVAL_COUNT, ManagerNotInLeague, build_league_report, resolve_gameweek
from .models import MAX_GAMEWEEK
from .points import predict_points
from .prices import analyze_ownership_momentum, predict_price_changes, transfer_timing
from .transfers import DEFAULT_LOOK_AHEAD, score_transfer_targets

logger = logging.getLogger(__name__)

MAX_MANAGERS = 50
MAX_RIVALS = 50


class LeagueAnalysisRequest(BaseModel):
    """Body of POST /api/league-analysis."""

    model_config = ConfigDict(strict=True, populate_by_name=True)

    manager_ids: list[PositiveInt] = Field(alias="managerIds", min_length=1, max_length=MAX_MANAGERS)
    gameweek: int = Field(ge=1, le=MAX_GAMEWEEK)
    include_chips: bool = Field(default=False, alias="includeChips")


def _validation_details(e: ValidationError) -> list[dict]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in e.errors()
    ]


def _error_response(e: Exception, not_found: str = "Not found"):
    if isinstance(e, FplApiError):
        if e.not_found:
            return jsonify({"error": not_found}), 404
        logger.warning("Upstream FPL error: %s", e.message)
        return jsonify({"error": e.message}), 502
    if isinstance(e, ValueError):
        return jsonify({"error": str(e)}), 400
    logger.exception("Request failed")
    return jsonify({"error": str(e)}), 500


def _upcoming_gw(season) -> int:
    gw = next_gameweek(season.gameweeks)
    return gw.id if gw else resolve_gameweek(season)


def create_app(settings: Settings | None = None, client: FplClient | None = None) -> Flask:
    settings = settings or Settings.from_env()
    client = client or FplClient.from_settings(settings)

    app = Flask(__name__)
    app.config["FPL_SETTINGS"] = settings
    app.config["FPL_CLIENT"] = client

    @app.route("/api/cache-status")
    def api_cache_status():
        if client.cache is None:
            return jsonify({"enabled": False})
        return jsonify({"enabled": True, **client.cache.stats()})

    @app.route("/api/manager/<int:manager_id>")
    def api_manager(manager_id):
        """Manager profile: leagues, season totals, chips left and recent history."""
        try:
            season = load_season(client)
            entry = client.manager_entry(manager_id)
            history = client.manager_history(manager_id)
            gw = resolve_gameweek(season)
            chips = chip_availability(parse_chips(history), gw, season.chip_windows or None)
            return jsonify({
                "manager_name": f"{entry.get('player_first_name', '')} {entry.get('player_last_name', '')}".strip(),
                "team_name": entry.get("name", ""),
                "leagues": [
                    {"id": lg["id"], "name": lg["name"]}
                    for lg in entry.get("leagues", {}).get("classic", [])
                ],
                "overall_rank": entry.get("summary_overall_rank"),
                "overall_points": entry.get("summary_overall_points", 0),
                "chips_available": [chip for chip, ok in chips.items() if ok],
                "season_history": [
                    {"gw": h.event, "points": h.points, "bench": h.points_on_bench, "rank": h.rank}
                    for h in parse_history(history)[-10:]
                ],
            })
        except Exception as e:
            return _error_response(e, "Manager not found")

    @app.route("/api/chip-strategy/<int:manager_id>")
    def api_chip_strategy(manager_id):
        """When to play each chip the manager still holds."""
        try:
            season = load_season(client)
            history = client.manager_history(manager_id)
            gw = _upcoming_gw(season)
            available = chip_availability(parse_chips(history), gw, season.chip_windows or None)
            chips = [chip for chip, ok in available.items() if ok]
            recs = analyze_chip_strategies(season.players, season.fixtures, season.gameweeks, gw, chips)
            return jsonify({
                "gameweek": gw,
                "chips_available": chips,
                "recommendations": [r.to_dict() for r in recs],
            })
        except Exception as e:
            return _error_response(e, "Manager not found")

    @app.route("/api/live/<int:gw>")
    def api_live(gw):
        """Live points for a gameweek, highest scorers first."""
        try:
            if not 1 <= gw <= MAX_GAMEWEEK:
                raise ValueError(f"Gameweek must be between 1 and {MAX_GAMEWEEK}")
            season = load_season(client)
            limit = request.args.get("limit", 50, type=int)
            player_map = build_player_map(season.players)
            rows = []
            for element in client.live_gameweek(gw).get("elements", []):
                player = player_map.get(element.get("id"))
                if player is None:
                    continue
                stats = element.get("stats", {})
                rows.append({
                    "id": player.id,
                    "name": player.web_name,
                    "team_name": player.team_short_name,
                    "minutes": stats.get("minutes", 0),
                    "total_points": stats.get("total_points", 0),
                })
            rows.sort(key=lambda r: (-r["total_points"], r["id"]))
            return jsonify({"gameweek": gw, "players": rows[:limit]})
        except Exception as e:
            return _error_response(e, "Gameweek not found")

    @app.route("/api/league-analysis", methods=["POST"])
    def api_league_analysis():
        body = request.get_json(silent=True)
        if body is None:
            return jsonify({"error": "Request body must be JSON"}), 400
        try:
            req = LeagueAnalysisRequest.model_validate(body)
        except ValidationError as e:
            return jsonify({"error": "Invalid request", "details": _validation_details(e)}), 400

        try:
            batch = fetch_rival_data(
                client,
                req.manager_ids,
                req.gameweek,
                include_chips=req.include_chips,
                max_workers=settings.max_concurrency,
            )
            resp = jsonify(batch.to_response())
            resp.headers["Cache-Control"] = "private, max-age=60"
            return resp
        except Exception as e:
            return _error_response(e)

    @app.route("/api/league/<int:league_id>/analysis")
    def api_league_report(league_id):
        manager_id = request.args.get("manager_id", type=int)
        if manager_id is None or manager_id <= 0:
            return jsonify({"error": "manager_id query parameter is required"}), 400
        rivals = request.args.get("rivals", DEFAULT_RIVAL_COUNT, type=int)
        rivals = max(0, min(rivals, MAX_RIVALS))
        gw = request.args.get("gw", type=int)
        try:
            report = build_league_report(
                client,
                league_id,
                manager_id,
                rival_count=rivals,
                gameweek=gw,
                max_workers=settings.max_concurrency,
            )
            return jsonify(report.to_dict())
        except ManagerNotInLeague as e:
            return jsonify({"error": str(e)}), 404
        except Exception as e:
            return _error_response(e, "League not found")

    @app.route("/api/captain-picks")
    def api_captain_picks():
        try:
            season = load_season(client)
            gw = request.args.get("gw", type=int) or _upcoming_gw(season)
            limit = request.args.get("limit", 15, type=int)
            picks = score_captain_options(season.players, season.fixtures, season.teams, gw)
            return jsonify({"gameweek": gw, "picks": [p.to_dict() for p in picks[:limit]]})
        except Exception as e:
            return _error_response(e)

    @app.route("/api/transfers")
    def api_transfers():
        try:
            season = load_season(client)
            gw = request.args.get("gw", type=int) or _upcoming_gw(season)
            look_ahead = request.args.get("lookahead", DEFAULT_LOOK_AHEAD, type=int)
            limit = request.args.get("limit", 50, type=int)
            position = request.args.get("position", type=int)
            recs = score_transfer_targets(season.players, season.fixtures, gw, look_ahead)
            if position:
                recs = [r for r in recs if r.player.position == position]
            return jsonify({
                "gameweek": gw,
                "look_ahead": look_ahead,
                "recommendations": [r.to_dict() for r in recs[:limit]],
            })
        except Exception as e:
            return _error_response(e)

    @app.route("/api/price-changes")
    def api_price_changes():
        try:
            season = load_season(client)
            limit = request.args.get("limit", 20, type=int)
            forecast = predict_price_changes(season.players, limit=limit)
            out = forecast.to_dict()
            out["timing"] = [transfer_timing(c).to_dict() for c in forecast.risers]
            return jsonify(out)
        except Exception as e:
            return _error_response(e)

    @app.route("/api/ownership-momentum")
    def api_ownership_momentum():
        try:
            season = load_season(client)
            limit = request.args.get("limit", 10, type=int)
            return jsonify(analyze_ownership_momentum(season.players, limit=limit).to_dict())
        except Exception as e:
            return _error_response(e)

    @app.route("/api/points")
    def api_points():
        try:
            season = load_season(client)
            gw = request.args.get("gw", type=int) or _upcoming_gw(season)
            limit = request.args.get("limit", 50, type=int)
            predictions = predict_points(season.players, season.fixtures, gw)
            return jsonify({"gameweek": gw, "predictions": [p.to_dict() for p in predictions[:limit]]})
        except Exception as e:
            return _error_response(e)

    @app.route("/api/fixtures/grid")
    def api_fixture_grid():
        try:
            season = load_season(client)
            start = request.args.get("start", type=int) or _upcoming_gw(season)
            end = request.args.get("end", type=int) or min(start + DEFAULT_LOOK_AHEAD - 1, MAX_GAMEWEEK)
            rows = build_fixture_grid(season.team_list, season.fixtures, start, end)
            if request.args.get("sort") == "easiest":
                rows = sort_by_easiest_fixtures(rows)
            window = [gw for gw in season.gameweeks if start <= gw.id <= end]
            doubles, blanks = find_special_gameweeks(season.fixtures, season.team_list, window)
            return jsonify({
                "start": start,
                "end": end,
                "rows": [r.to_dict() for r in rows],
                "double_gameweeks": {str(k): v for k, v in doubles.items()},
                "blank_gameweeks": {str(k): v for k, v in blanks.items()},
            })
        except Exception as e:
            return _error_response(e)

    @app.route("/api/fixture-swing")
    def api_fixture_swing():
        try:
            season = load_season(client)
            start = request.args.get("start", type=int) or _upcoming_gw(season)
            window = request.args.get("window", 5, type=int)
            analysis = analyze_fixture_swings(season.team_list, season.fixtures, start, window)
            return jsonify({"start": start, "window": window, **analysis.to_dict()})
        except Exception as e:
            return _error_response(e)

    return app
