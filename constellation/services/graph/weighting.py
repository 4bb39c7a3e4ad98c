"""Edge weight blending and time decay."""

import math
from datetime import datetime, timezone

from constellation.models.schemas import BlendWeights, EdgeWeights, GraphEdge

SECONDS_PER_DAY = 86400.0

# Evidence channel attributes, shared by EdgeWeights and BlendWeights
CHANNELS: tuple[str, ...] = (
    "co_occurrence",
    "semantic",
    "role_prior",
    "user_history",
    "manual",
)


def blend_weights(weights: EdgeWeights, blend: BlendWeights | None = None) -> float:
    """
    Weighted average of the evidence channels.

    ``sum(evidence[c] * coeff[c]) / sum(coeff[c])``; returns 0.0 when every
    coefficient is zero.
    """
    blend = blend or BlendWeights()
    total_coeff = sum(getattr(blend, c) for c in CHANNELS)
    if total_coeff == 0:
        return 0.0
    weighted = sum(getattr(weights, c) * getattr(blend, c) for c in CHANNELS)
    return weighted / total_coeff


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def as_utc(now: datetime | None = None) -> datetime:
    """Return ``now`` as an aware datetime; naive values are taken to be UTC."""
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def decay_factor(updated_at: str, half_life_days: float, now: datetime | None = None) -> float:
    """
    Return ``0.5 ** (days_since_update / half_life_days)``.

    Stamps in the future count as zero days old, so the factor never exceeds 1.
    """
    if half_life_days <= 0:
        raise ValueError("half_life_days must be positive")
    now = as_utc(now)
    days_since = (now - _parse_timestamp(updated_at)).total_seconds() / SECONDS_PER_DAY
    days_since = max(0.0, days_since)
    return math.pow(0.5, days_since / half_life_days)


def apply_time_decay(
    edges: list[GraphEdge],
    half_life_days: float = 30.0,
    now: datetime | None = None,
) -> list[GraphEdge]:
    """
    Scale each edge's final weight by its half-life decay factor.

    Returns new edge objects; the input list and its edges are not modified.
    All edges are measured against the same ``now``.
    """
    now = as_utc(now)
    return [
        edge.model_copy(
            update={
                "final_weight": edge.final_weight
                * decay_factor(edge.updated_at, half_life_days, now=now)
            },
            deep=True,
        )
        for edge in edges
    ]
