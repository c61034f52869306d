"""Ranking configuration: weights, eligibility flags, source table.

A :class:`RankingConfig` is an immutable value built where it is used. Per-call
tuning goes through :meth:`RankingConfig.with_overrides`, which returns a new
value and never touches shared state.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml
from dotenv import load_dotenv

from jobrank.context import STRATEGIES
from jobrank.log import get_logger

log = get_logger(__name__)

load_dotenv()

ROOT_DIR: Path = Path(__file__).resolve().parent.parent
CONFIG_DIR: Path = ROOT_DIR / "config"
DEFAULT_CONFIG_PATH: Path = CONFIG_DIR / "ranking.yaml"
DATA_DIR: Path = Path(os.environ.get("JOBRANK_DATA_DIR", ROOT_DIR / "data"))

_WEIGHT_TOLERANCE = 1e-9

DEFAULT_SOURCE_QUALITY: dict[str, float] = {
    "remotive": 1.0,     # curated
    "remoteok": 0.9,
    "getonboard": 0.85,  # vetted, LATAM
    "adzuna": 0.7,       # high-volume aggregator
}
UNKNOWN_SOURCE_QUALITY = 0.5


@dataclass(frozen=True)
class RankingWeights:
    # Title dominates every other signal.
    title_match: float = 0.50
    skill_overlap: float = 0.20
    seniority_alignment: float = 0.12
    location_fit: float = 0.08
    freshness: float = 0.05
    source_quality: float = 0.03
    query_relevance: float = 0.02
    profile_context_similarity: float = 0.00

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"weight {f.name} must be a number, got {value!r}")
            if value < 0:
                raise ValueError(f"weight {f.name} must be >= 0, got {value}")
        if self.total() > 1.0 + _WEIGHT_TOLERANCE:
            raise ValueError(f"weights sum to {self.total():.3f}, must be <= 1.0")

    def total(self) -> float:
        return sum(getattr(self, f.name) for f in fields(self))

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class EligibilityFlags:
    enforce_remote_type: bool = True
    enforce_location: bool = True
    enforce_work_auth: bool = True
    enforce_language: bool = False  # soft signal only


@dataclass(frozen=True)
class RankingConfig:
    weights: RankingWeights = field(default_factory=RankingWeights)
    eligibility: EligibilityFlags = field(default_factory=EligibilityFlags)
    source_quality: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_SOURCE_QUALITY))
    unknown_source_quality: float = UNKNOWN_SOURCE_QUALITY
    context_strategy: str = "keyword"

    def __post_init__(self) -> None:
        if self.context_strategy not in STRATEGIES:
            raise ValueError(
                f"unknown context strategy {self.context_strategy!r}; "
                f"choose from {sorted(STRATEGIES)}"
            )
        table: dict[str, float] = {}
        for source, score in self.source_quality.items():
            if not 0.0 <= float(score) <= 1.0:
                raise ValueError(f"source quality for {source!r} must be in [0, 1], got {score}")
            table[str(source).lower()] = float(score)
        # Each config owns a read-only copy; derived configs never share a dict.
        object.__setattr__(self, "source_quality", MappingProxyType(table))

    @classmethod
    def default(cls) -> RankingConfig:
        return cls()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> RankingConfig:
        return cls().with_overrides(data)

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> RankingConfig:
        """Return a copy with a partial, nested override merged in.

        >>> cfg = RankingConfig().with_overrides({"weights": {"freshness": 0.0}})
        >>> cfg.weights.freshness
        0.0
        """
        if not overrides:
            return self
        unknown = set(overrides) - {f.name for f in fields(self)}
        if unknown:
            raise ValueError(f"unknown config keys: {sorted(unknown)}")

        changes: dict[str, Any] = {}
        if "weights" in overrides:
            changes["weights"] = _merge(self.weights, overrides["weights"], "weights")
        if "eligibility" in overrides:
            changes["eligibility"] = _merge(self.eligibility, overrides["eligibility"], "eligibility")
        if "source_quality" in overrides:
            table = dict(self.source_quality)
            for name, score in (overrides["source_quality"] or {}).items():
                table[str(name).lower()] = float(score)
            changes["source_quality"] = table
        for key in ("unknown_source_quality", "context_strategy"):
            if key in overrides:
                changes[key] = overrides[key]
        return replace(self, **changes)

    def source_score(self, source: str | None) -> float:
        return float(self.source_quality.get((source or "").lower(), self.unknown_source_quality))


def _merge(current: Any, partial: Mapping[str, Any] | None, section: str) -> Any:
    partial = dict(partial or {})
    allowed = {f.name for f in fields(current)}
    unknown = set(partial) - allowed
    if unknown:
        raise ValueError(f"unknown {section} keys: {sorted(unknown)}")
    return replace(current, **partial)


def get_env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def config_path() -> Path:
    return Path(get_env("RANKING_CONFIG_PATH") or DEFAULT_CONFIG_PATH)


def load_ranking_config(path: str | Path | None = None) -> RankingConfig:
    """Read weights/flags from YAML; a missing file yields the defaults."""
    path = Path(path) if path else config_path()
    if not path.exists():
        log.debug("No ranking config at %s, using defaults", path)
        return RankingConfig.default()
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    cfg = RankingConfig.from_mapping(data)
    log.info("Loaded ranking config from %s (weights total %.2f)", path.name, cfg.weights.total())
    return cfg
