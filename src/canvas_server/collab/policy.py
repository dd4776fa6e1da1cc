"""Collaboration policy - YAML loader, typed rule dataclasses and scoring.

The collaboration policy is a declarative description of the gates,
pricing, reward split and scoring metrics of collaborative customization.
It lives in ``data/policies/collaboration.yaml`` (overridable through
``[policies] collaboration_path`` or ``CANVAS_POLICY_PATH``) and is loaded
once when the engine is built.

Design notes:
- All dataclasses are frozen (immutable after load).
- :func:`load_collaboration_policy` raises :exc:`FileNotFoundError` if the
  file is absent and :exc:`ValueError` on schema validation failure.
  :func:`load_configured_policy` falls back to the built-in defaults when the
  configured file is absent, but never when it is malformed.
- The "advanced metrics" are constants of the policy file. They reach the
  engine through the :class:`ScoringPolicy` protocol so a computed scorer
  can replace :class:`ConstantScoringPolicy` without touching the engine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Protocol

import yaml

from canvas_server.collab.types import ScoringContext
from canvas_server.settlement.fees import PricingRules

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Typed dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CollaborationThresholds:
    """Gate thresholds.

    Attributes:
        approval_threshold:     Vote weight must be strictly greater.
        conflict_ceiling:       Conflict score must be strictly below.
        aesthetic_confirmation: Aesthetic improvement must be strictly
                                greater to confirm the enhancement.
        max_combination:        Largest accepted trait combination.
    """

    approval_threshold: int = 70
    conflict_ceiling: int = 20
    aesthetic_confirmation: int = 90
    max_combination: int = 5


@dataclass(frozen=True)
class RewardRules:
    creator_royalty_pct: int = 15
    participant_share_divisor: int = 3
    stage_reward: int = 100
    community_bonus_per_vote: int = 10


@dataclass(frozen=True)
class EvolutionRules:
    """Cooldown until the next evolution and the rarity boost percentage."""

    cooldown: int = 144
    boost_pct: int = 150


@dataclass(frozen=True)
class ScoringMetrics:
    conflict_score: int = 8
    synergy_rating: int = 85
    innovation_score: int = 92
    market_appeal: int = 88
    aesthetic_improvement: int = 95
    community_impact: int = 87


@dataclass(frozen=True)
class CollaborationPolicy:
    """Top-level container for all collaboration rules.

    Attributes:
        version: Schema version string read from the YAML file.
    """

    version: str = "1.0"
    thresholds: CollaborationThresholds = field(default_factory=CollaborationThresholds)
    pricing: PricingRules = field(default_factory=PricingRules)
    rewards: RewardRules = field(default_factory=RewardRules)
    evolution: EvolutionRules = field(default_factory=EvolutionRules)
    metrics: ScoringMetrics = field(default_factory=ScoringMetrics)


# ---------------------------------------------------------------------------
# Scoring policy
# ---------------------------------------------------------------------------


class ScoringPolicy(Protocol):
    """Source of the synergy/conflict metrics of a trait combination."""

    def conflict_score(self, context: ScoringContext) -> int: ...

    def synergy_rating(self, context: ScoringContext) -> int: ...

    def innovation_score(self, context: ScoringContext) -> int: ...

    def market_appeal(self, context: ScoringContext) -> int: ...

    def aesthetic_improvement(self, context: ScoringContext) -> int: ...

    def community_impact(self, context: ScoringContext) -> int: ...


class ConstantScoringPolicy:
    """Returns the fixed metrics of the loaded policy regardless of context."""

    def __init__(self, metrics: ScoringMetrics) -> None:
        self._metrics = metrics

    def conflict_score(self, context: ScoringContext) -> int:
        return self._metrics.conflict_score

    def synergy_rating(self, context: ScoringContext) -> int:
        return self._metrics.synergy_rating

    def innovation_score(self, context: ScoringContext) -> int:
        return self._metrics.innovation_score

    def market_appeal(self, context: ScoringContext) -> int:
        return self._metrics.market_appeal

    def aesthetic_improvement(self, context: ScoringContext) -> int:
        return self._metrics.aesthetic_improvement

    def community_impact(self, context: ScoringContext) -> int:
        return self._metrics.community_impact


# ---------------------------------------------------------------------------
# Public loaders
# ---------------------------------------------------------------------------


def load_collaboration_policy(path: Path) -> CollaborationPolicy:
    """Load and validate a collaboration policy file.

    Args:
        path: Location of the YAML file.

    Returns:
        A fully-constructed, immutable :class:`CollaborationPolicy`.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError:        On schema validation failure: missing sections or
                           keys, non-integer or negative values, or a zero
                           participant share divisor.
    """
    if not path.exists():
        raise FileNotFoundError(f"Collaboration policy not found: {path}")

    with path.open() as fh:
        raw = yaml.safe_load(fh)

    if not isinstance(raw, dict):
        raise ValueError(f"{path.name} must be a YAML mapping at the top level.")

    version = raw.get("version")
    if not version:
        raise ValueError(f"{path.name}: missing required field 'version'.")

    rewards = _parse_section(path.name, raw, "rewards", RewardRules)
    if rewards.participant_share_divisor == 0:
        raise ValueError(f"{path.name}: rewards.participant_share_divisor must be positive.")

    return CollaborationPolicy(
        version=str(version),
        thresholds=_parse_section(path.name, raw, "thresholds", CollaborationThresholds),
        pricing=_parse_section(path.name, raw, "pricing", PricingRules),
        rewards=rewards,
        evolution=_parse_section(path.name, raw, "evolution", EvolutionRules),
        metrics=_parse_section(path.name, raw, "metrics", ScoringMetrics),
    )


def load_configured_policy() -> CollaborationPolicy:
    """Load the policy named by ``config.policies``; defaults if the file is absent."""
    from canvas_server.config import config

    path = config.policies.absolute_collaboration_path
    try:
        policy = load_collaboration_policy(path)
    except FileNotFoundError:
        logger.warning("Collaboration policy %s not found; using built-in defaults.", path)
        return CollaborationPolicy()
    logger.info("Loaded collaboration policy v%s from %s", policy.version, path)
    return policy


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _parse_section(filename: str, raw: dict, section: str, cls: type):
    """Build ``cls`` from the ``section`` mapping; every field is a required int ≥ 0."""
    block = raw.get(section)
    if not isinstance(block, dict):
        raise ValueError(f"{filename}: missing required section '{section}' (must be a mapping).")

    values: dict[str, int] = {}
    for f in fields(cls):
        if f.name not in block:
            raise ValueError(f"{filename}: {section}.{f.name} is required.")
        value = block[f.name]
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{filename}: {section}.{f.name} must be an integer, got {value!r}.")
        if value < 0:
            raise ValueError(f"{filename}: {section}.{f.name} must be non-negative.")
        values[f.name] = value

    unknown = set(block) - set(values)
    if unknown:
        raise ValueError(f"{filename}: unknown keys in '{section}': {sorted(unknown)}")
    return cls(**values)
