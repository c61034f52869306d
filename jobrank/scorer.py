"""Score a job against a profile with explainable, weighted factors."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from jobrank.config import RankingConfig
from jobrank.log import get_logger
from jobrank.models import Job, MatchReason, Seniority, UserJobProfile
from jobrank.regions import countries_overlap

log = get_logger(__name__)

# Stripped from both titles before comparing content words.
SENIORITY_QUALIFIERS: frozenset[str] = frozenset({
    "senior", "junior", "lead", "staff", "principal", "head", "chief", "vp", "director",
})
_TITLE_FILLER: frozenset[str] = frozenset({"of", "and", "the", "for", "to", "in", "at", "a", "an"})
_TOKEN_RE = re.compile(r"[a-z0-9+#]+")

JACCARD_OVERRIDE = 0.8
MAX_REASONS = 5
NEUTRAL_SENIORITY = 0.5
UNKNOWN_AGE_FRESHNESS = 0.5
MIN_QUERY_WORD_LEN = 3

# (max age in days, raw score); anything older gets the floor.
FRESHNESS_TIERS: tuple[tuple[int, float], ...] = ((7, 1.0), (14, 0.8), (30, 0.6), (60, 0.4))
FRESHNESS_FLOOR = 0.2

SENIORITY_DISTANCE_SCORES: dict[int, float] = {0: 1.0, 1: 0.8, 2: 0.5}
SENIORITY_FAR = 0.2


def _normalize(s: str | None) -> str:
    return (s or "").lower().strip()


def _tokens(text: str) -> list[str]:
    return _TOKEN_RE.findall(_normalize(text))


def _content_words(tokens: list[str]) -> list[str]:
    return [t for t in tokens if t not in SENIORITY_QUALIFIERS and t not in _TITLE_FILLER]


def _word_jaccard(a: str, b: str) -> float:
    wa, wb = set(_tokens(a)), set(_tokens(b))
    union = wa | wb
    return len(wa & wb) / len(union) if union else 0.0


# --- Title match ---


def _title_tier(job_title: str, target: str) -> float:
    target_words = _content_words(_tokens(target))
    if not target_words:
        return 0.0
    job_content = " ".join(_content_words(_tokens(job_title)))
    matched = [w for w in target_words if w in job_content]
    n, m = len(target_words), len(matched)

    if m == n:
        # Whole phrase intact ("senior product manager, growth") beats
        # the same words scattered ("product marketing manager").
        return 1.0 if " ".join(target_words) in job_content else 0.8
    if n > 1 and m >= n - 1:
        return 0.8
    if m >= 2:
        return 0.6
    if m == 1:
        return 0.3
    return 0.0


def title_match_for(job_title: str, target: str) -> float:
    score = _title_tier(job_title, target)
    similarity = _word_jaccard(job_title, target)
    if similarity > JACCARD_OVERRIDE:
        score = max(score, similarity)
    return score


def score_title_match(job: Job, profile: UserJobProfile) -> float:
    job_title = job.display_title
    return max((title_match_for(job_title, t) for t in profile.target_titles), default=0.0)


def describe_title_match(job: Job, profile: UserJobProfile, score: float) -> str:
    title = job.display_title
    if score >= 0.9:
        return f'Job title "{title}" closely matches your target roles'
    if score >= 0.7:
        return f'Job title "{title}" aligns with your career goals'
    if score >= 0.5:
        return f'Job title "{title}" is related to your target roles'
    return "Job title is somewhat relevant to your profile"


# --- Skills ---


def matching_skills(job: Job, profile: UserJobProfile) -> list[str]:
    """Job skills the user also has, in job order, job spelling."""
    user = {s.lower() for s in profile.skills}
    return [s for s in job.skills if s.lower() in user]


def score_skill_overlap(job: Job, profile: UserJobProfile) -> float:
    # Normalized by the smaller set, not the union.
    if not job.skills or not profile.skills:
        return 0.0
    return len(matching_skills(job, profile)) / min(len(job.skills), len(profile.skills))


def describe_skill_overlap(job: Job, profile: UserJobProfile, score: float) -> str:
    matching = matching_skills(job, profile)
    if not matching:
        return "Some transferable skills may apply"
    top = ", ".join(matching[:3])
    if score >= 0.8:
        return f"Strong skill match: {top}" + (" and more" if len(matching) > 3 else "")
    if score >= 0.5:
        return f"Good skill overlap: {top}"
    return f"Matches some of your skills: {top}"


# --- Seniority ---


def score_seniority_alignment(job: Job, profile: UserJobProfile) -> float:
    job_level = Seniority.parse(job.seniority)
    user_level = Seniority.parse(profile.seniority)
    if job_level is None or user_level is None:
        return NEUTRAL_SENIORITY
    distance = abs(job_level.ordinal - user_level.ordinal)
    return SENIORITY_DISTANCE_SCORES.get(distance, SENIORITY_FAR)


def describe_seniority_alignment(job: Job, profile: UserJobProfile, score: float) -> str:
    level = job.seniority.value if job.seniority else None
    if level is None or profile.seniority is None:
        return "Seniority level not specified"
    if score >= 0.9:
        return f"Seniority level ({level}) matches your experience"
    if score >= 0.7:
        return f"Seniority level ({level}) is close to your level"
    return f"Seniority level ({level}) may be a stretch or step down"


# --- Location ---


def score_location_fit(job: Job, profile: UserJobProfile) -> float:
    if not profile.locations_allowed:
        return 1.0
    return 1.0 if countries_overlap(job.allowed_countries, profile.locations_allowed) else 0.0


def describe_location_fit(job: Job, profile: UserJobProfile, score: float) -> str:
    if not profile.locations_allowed:
        return "No location preference set"
    return "Job location matches your preferences"


# --- Freshness ---


def days_since_posted(job: Job, now: datetime | None = None) -> float | None:
    posted = job.posted
    if posted is None:
        return None
    now = now or datetime.now(timezone.utc)
    return (now - posted).total_seconds() / 86400


def score_freshness(job: Job, now: datetime | None = None) -> float:
    age = days_since_posted(job, now)
    if age is None:
        return UNKNOWN_AGE_FRESHNESS
    for max_days, score in FRESHNESS_TIERS:
        if age <= max_days:
            return score
    return FRESHNESS_FLOOR


def describe_freshness(job: Job, now: datetime | None = None) -> str:
    age = days_since_posted(job, now)
    if age is None:
        return "Posting date unknown"
    days = max(0, round(age))
    if days <= 3:
        return "Posted within the last 3 days"
    if days <= 7:
        return "Posted this week"
    if days <= 14:
        return "Posted within the last 2 weeks"
    return f"Posted {days} days ago"


# --- Source / query ---


def score_source_quality(job: Job, config: RankingConfig) -> float:
    return config.source_score(job.source_primary)


def describe_source_quality(job: Job, score: float) -> str:
    if score >= 0.85:
        return f"Job from high-quality source ({job.source_primary})"
    return f"Listed on {job.source_primary}"


def query_words(query: str) -> list[str]:
    return [w for w in _normalize(query).split() if len(w) >= MIN_QUERY_WORD_LEN]


def score_query_relevance(job: Job, query: str | None) -> float:
    words = query_words(query or "")
    if not words:
        return 0.0
    text = " ".join(
        [job.display_title, job.company_name, job.description_text, *job.skills]
    ).lower()
    return sum(1 for w in words if w in text) / len(words)


def describe_query_relevance(query: str) -> str:
    return f'Matches your search for "{query[:50]}"'


# --- Aggregation ---


@dataclass(frozen=True)
class FactorScore:
    factor: str
    raw: float
    weighted: float
    description: str


def _safe(factor: str, job: Job, fn: Callable[[], float]) -> float:
    try:
        raw = float(fn())
    except Exception as exc:  # malformed data must not abort a batch
        log.warning("Factor %s failed for job %s: %s", factor, job.id, exc)
        return 0.0
    return min(max(raw, 0.0), 1.0)


def score_factors(
    job: Job,
    profile: UserJobProfile,
    config: RankingConfig,
    *,
    query: str | None = None,
    context_score: float | None = None,
    now: datetime | None = None,
) -> list[FactorScore]:
    """Raw and weighted score for every applicable factor with raw > 0.

    ``context_score`` is computed by the caller (it may need async work);
    ``None`` means the profile-context factor does not apply.
    """
    w = config.weights
    plan: list[tuple[str, float, Callable[[], float], Callable[[float], str]]] = [
        ("title_match", w.title_match,
         lambda: score_title_match(job, profile),
         lambda s: describe_title_match(job, profile, s)),
        ("skill_overlap", w.skill_overlap,
         lambda: score_skill_overlap(job, profile),
         lambda s: describe_skill_overlap(job, profile, s)),
        ("seniority_alignment", w.seniority_alignment,
         lambda: score_seniority_alignment(job, profile),
         lambda s: describe_seniority_alignment(job, profile, s)),
        ("location_fit", w.location_fit,
         lambda: score_location_fit(job, profile),
         lambda s: describe_location_fit(job, profile, s)),
        ("freshness", w.freshness,
         lambda: score_freshness(job, now),
         lambda s: describe_freshness(job, now)),
        ("source_quality", w.source_quality,
         lambda: score_source_quality(job, config),
         lambda s: describe_source_quality(job, s)),
    ]
    if query:
        plan.append(("query_relevance", w.query_relevance,
                     lambda: score_query_relevance(job, query),
                     lambda s: describe_query_relevance(query)))
    if context_score is not None:
        plan.append(("profile_context", w.profile_context_similarity,
                     lambda: context_score,
                     lambda s: "Aligns with your career goals and preferences"))

    results: list[FactorScore] = []
    for factor, weight, score_fn, describe_fn in plan:
        raw = _safe(factor, job, score_fn)
        if raw <= 0:
            continue
        try:
            description = describe_fn(raw)
        except Exception as exc:
            log.warning("Description for %s failed on job %s: %s", factor, job.id, exc)
            description = factor.replace("_", " ").capitalize()
        results.append(FactorScore(factor, raw, raw * weight * 100, description))
    return results


def total_score(factors: list[FactorScore]) -> int:
    total = sum(f.weighted for f in factors)
    return int(math.floor(min(max(total, 0.0), 100.0) + 0.5))


def top_reasons(factors: list[FactorScore], limit: int = MAX_REASONS) -> tuple[MatchReason, ...]:
    """Highest contributions first; zero-weight factors are dropped."""
    ranked = sorted((f for f in factors if round(f.weighted, 2) > 0), key=lambda f: -f.weighted)
    return tuple(
        MatchReason(factor=f.factor, score=round(f.weighted, 2), description=f.description)
        for f in ranked[:limit]
    )
