"""Price change forecasting from this gameweek's transfer activity.

Net transfers relative to the estimated owner count is the strongest public
signal; the probability curve below is a tunable heuristic, but it is always
in [0, 1] and never decreases as |net transfers| grows.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import EnrichedPlayer, Pick

MIN_OWNERSHIP = 0.1
OWNERS_PER_PERCENT = 100_000
RATIO_SCALE = 50
MAX_PROBABILITY = 0.95
MOMENTUM_BOOST = 1.3
MIN_PROBABILITY = 0.05
HIGH_VOLUME = 100_000


@dataclass
class PriceChangeCandidate:
    player: EnrichedPlayer
    direction: str  # "rise" | "fall"
    probability: float
    net_transfers: int
    transfer_ratio: float
    cost_change_momentum: int

    def to_dict(self) -> dict:
        p = self.player
        return {
            "id": p.id,
            "name": p.web_name,
            "team_name": p.team_short_name,
            "position_name": p.position_short,
            "cost": p.cost,
            "selected_by_percent": p.selected_by_percent,
            "transfers_in": p.transfers_in_event,
            "transfers_out": p.transfers_out_event,
            "net_transfers": self.net_transfers,
            "direction": self.direction,
            "probability": self.probability,
            "transfer_ratio": self.transfer_ratio,
            "cost_change_event": self.cost_change_momentum,
        }


@dataclass
class PriceForecast:
    risers: list[PriceChangeCandidate] = field(default_factory=list)
    fallers: list[PriceChangeCandidate] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "risers": [c.to_dict() for c in self.risers],
            "fallers": [c.to_dict() for c in self.fallers],
        }


@dataclass
class TransferTiming:
    player: EnrichedPlayer
    recommendation: str  # buy_now / wait / neutral
    reasoning: str
    price_risk: float
    expected_cost: float
    urgency: int

    def to_dict(self) -> dict:
        return {
            "id": self.player.id,
            "name": self.player.web_name,
            "recommendation": self.recommendation,
            "reasoning": self.reasoning,
            "price_risk": self.price_risk,
            "expected_cost": round(self.expected_cost, 1),
            "urgency": self.urgency,
        }


def change_probability(net_transfers: int, ownership: float, momentum: int = 0) -> float:
    estimated_owners = max(ownership * OWNERS_PER_PERCENT, 1.0)
    ratio = abs(net_transfers) / estimated_owners
    probability = min(ratio * RATIO_SCALE, MAX_PROBABILITY)
    if momentum != 0 and net_transfers != 0 and (momentum > 0) == (net_transfers > 0):
        probability = min(probability * MOMENTUM_BOOST, MAX_PROBABILITY)
    return max(0.0, probability)


def predict_price_changes(players: list[EnrichedPlayer], limit: int = 20) -> PriceForecast:
    candidates: list[PriceChangeCandidate] = []
    for p in players:
        if p.selected_by_percent < MIN_OWNERSHIP:
            continue
        if p.transfers_in_event + p.transfers_out_event == 0 or p.net_transfers == 0:
            continue

        probability = change_probability(p.net_transfers, p.selected_by_percent, p.cost_change_event)
        if probability < MIN_PROBABILITY:
            continue

        estimated_owners = max(p.selected_by_percent * OWNERS_PER_PERCENT, 1.0)
        candidates.append(
            PriceChangeCandidate(
                player=p,
                direction="rise" if p.net_transfers > 0 else "fall",
                probability=round(probability, 2),
                net_transfers=p.net_transfers,
                transfer_ratio=round(p.net_transfers / estimated_owners, 4),
                cost_change_momentum=p.cost_change_event,
            )
        )

    def ranked(direction: str) -> list[PriceChangeCandidate]:
        chosen = [c for c in candidates if c.direction == direction]
        chosen.sort(key=lambda c: (-c.probability, -abs(c.net_transfers), c.player.id))
        return chosen[:limit]

    return PriceForecast(risers=ranked("rise"), fallers=ranked("fall"))


def squad_price_alerts(
    picks: list[Pick],
    forecast: PriceForecast,
    threshold: float = 0.3,
) -> list[PriceChangeCandidate]:
    """Squad players likely to drop in price."""
    owned = {p.element for p in picks}
    return [c for c in forecast.fallers if c.player.id in owned and c.probability >= threshold]


def transfer_timing(candidate: PriceChangeCandidate) -> TransferTiming:
    price = candidate.player.cost
    prob = candidate.probability
    pct = round(prob * 100)
    expected_cost = price

    if candidate.direction == "rise":
        if prob >= 0.5:
            recommendation = "buy_now"
            reasoning = f"High probability ({pct}%) of price rise. Transfer in before price increases."
            urgency = min(pct, 95)
            expected_cost = price + 0.1
        elif prob >= 0.3:
            recommendation = "neutral"
            reasoning = f"Moderate chance ({pct}%) of price rise. Monitor closely."
            urgency = round(prob * 60)
        else:
            recommendation = "wait"
            reasoning = f"Low probability ({pct}%) of immediate price change. Safe to wait."
            urgency = round(prob * 30)
    else:
        if prob >= 0.5:
            recommendation = "wait"
            reasoning = f"High probability ({pct}%) of price drop. Wait for cheaper price."
            urgency = 0
            expected_cost = price - 0.1
        elif prob >= 0.3:
            recommendation = "neutral"
            reasoning = f"Moderate chance ({pct}%) of price drop. Could wait for discount."
            urgency = 20
        else:
            recommendation = "neutral"
            reasoning = f"Low probability ({pct}%) of price drop. Price likely stable."
            urgency = 30

    momentum = candidate.cost_change_momentum
    if momentum != 0 and (momentum > 0) == (candidate.direction == "rise"):
        urgency = min(urgency + 15, 95)
        reasoning += " Price already moved this GW."
    if abs(candidate.net_transfers) > HIGH_VOLUME:
        urgency = min(urgency + 10, 95)

    return TransferTiming(
        player=candidate.player,
        recommendation=recommendation,
        reasoning=reasoning,
        price_risk=prob,
        expected_cost=expected_cost,
        urgency=urgency,
    )


# ---------------------------------------------------------------------------
# Ownership momentum
# ---------------------------------------------------------------------------

MOMENTUM_MIN_TRANSFERS = 1_000
MOMENTUM_TREND = 0.2
MOMENTUM_SIGNIFICANT = 0.3
MOMENTUM_HIGH = 0.5
MOMENTUM_LOW_RISK = 0.1
DIFFERENTIAL_OWNERSHIP = 10.0
TEMPLATE_OWNERSHIP = 25.0
ACTIVE_MANAGERS = 10_000_000


@dataclass
class OwnershipMomentum:
    player: EnrichedPlayer
    net_transfers: int
    total_transfers: int
    score: float  # (in - out) / (in + out), -1 to 1
    ownership_change: float  # percentage points, rough
    trend: str  # rising / falling / stable
    risk: str  # high / medium / low / none

    @property
    def significant(self) -> bool:
        return abs(self.score) >= MOMENTUM_SIGNIFICANT

    @property
    def differential(self) -> bool:
        return self.player.selected_by_percent < DIFFERENTIAL_OWNERSHIP

    def to_dict(self) -> dict:
        p = self.player
        return {
            "id": p.id,
            "name": p.web_name,
            "team_name": p.team_short_name,
            "position_name": p.position_short,
            "selected_by_percent": p.selected_by_percent,
            "net_transfers": self.net_transfers,
            "total_transfers": self.total_transfers,
            "momentum": round(self.score, 3),
            "ownership_change": round(self.ownership_change, 3),
            "trend": self.trend,
            "risk": self.risk,
            "significant": self.significant,
            "differential": self.differential,
        }


@dataclass
class MomentumAnalysis:
    rising: list[OwnershipMomentum] = field(default_factory=list)
    falling: list[OwnershipMomentum] = field(default_factory=list)
    emerging_differentials: list[OwnershipMomentum] = field(default_factory=list)
    template_exits: list[OwnershipMomentum] = field(default_factory=list)
    analysed: int = 0
    average_momentum: float = 0.0

    def to_dict(self) -> dict:
        return {
            "rising": [m.to_dict() for m in self.rising],
            "falling": [m.to_dict() for m in self.falling],
            "emerging_differentials": [m.to_dict() for m in self.emerging_differentials],
            "template_exits": [m.to_dict() for m in self.template_exits],
            "analysed": self.analysed,
            "average_momentum": round(self.average_momentum, 3),
        }


def player_momentum(player: EnrichedPlayer) -> OwnershipMomentum | None:
    """Momentum of one player, or None when ownership or volume is too thin to read."""
    if player.selected_by_percent < MIN_OWNERSHIP:
        return None
    total = player.transfers_in_event + player.transfers_out_event
    if total < MOMENTUM_MIN_TRANSFERS:
        return None
    net = player.net_transfers
    score = net / total

    if score > MOMENTUM_TREND:
        trend = "rising"
    elif score < -MOMENTUM_TREND:
        trend = "falling"
    else:
        trend = "stable"

    if score < -MOMENTUM_HIGH:
        risk = "high"
    elif score < -MOMENTUM_TREND:
        risk = "medium"
    elif score < -MOMENTUM_LOW_RISK:
        risk = "low"
    else:
        risk = "none"

    return OwnershipMomentum(
        player=player,
        net_transfers=net,
        total_transfers=total,
        score=score,
        ownership_change=net / ACTIVE_MANAGERS * 100,
        trend=trend,
        risk=risk,
    )


def analyze_ownership_momentum(players: list[EnrichedPlayer], limit: int = 10) -> MomentumAnalysis:
    momentum = [m for m in (player_momentum(p) for p in players) if m is not None]
    momentum.sort(key=lambda m: (-m.score, m.player.id))
    rising = [m for m in momentum if m.trend == "rising"]
    falling = [m for m in reversed(momentum) if m.trend == "falling"]
    return MomentumAnalysis(
        rising=rising[:limit],
        falling=falling[:limit],
        emerging_differentials=[m for m in rising if m.differential][:limit],
        template_exits=[m for m in falling if m.player.selected_by_percent >= TEMPLATE_OWNERSHIP][:limit],
        analysed=len(momentum),
        average_momentum=sum(m.score for m in momentum) / len(momentum) if momentum else 0.0,
    )


def squad_momentum_alerts(
    squad: list[EnrichedPlayer],
    players: list[EnrichedPlayer],
) -> tuple[list[OwnershipMomentum], list[OwnershipMomentum]]:
    """Squad players being sold off, and rising players in the same positions."""
    at_risk = [m for m in (player_momentum(p) for p in squad) if m is not None and m.risk != "none"]
    at_risk.sort(key=lambda m: (m.score, m.player.id))

    rising = analyze_ownership_momentum(players).rising
    squad_ids = {p.id for p in squad}
    alternatives: list[OwnershipMomentum] = []
    for risky in at_risk[:3]:
        same_position = [
            m for m in rising
            if m.player.position == risky.player.position
            and m.player.id not in squad_ids
            and m not in alternatives
        ]
        alternatives.extend(same_position[:2])
    return at_risk, alternatives[:5]
