"""Data models for jobs, profiles and match results.

Everything the ranking core reads is a frozen dataclass. Loosely typed records
(database rows, YAML, JSON) are turned into these through :func:`job_from_dict`
and :func:`profile_from_dict`, which default malformed fields instead of
raising so that one bad row never aborts a batch.
"""
from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from jobrank.log import get_logger
from jobrank.regions import allowed_countries_from_eligibility

log = get_logger(__name__)


class Seniority(str, Enum):
    INTERN = "Intern"
    JUNIOR = "Junior"
    MID = "Mid"
    SENIOR = "Senior"
    EXECUTIVE = "Executive"

    @property
    def ordinal(self) -> int:
        return _SENIORITY_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any) -> Seniority | None:
        """Lenient parse; unknown or empty input gives ``None``."""
        if isinstance(value, cls):
            return value
        key = _normalize(value)
        if not key:
            return None
        found = _SENIORITY_ALIASES.get(key)
        if found is None:
            log.debug("Unknown seniority %r, treating as unset", value)
        return found


class RemoteType(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"

    @classmethod
    def parse(cls, value: Any) -> RemoteType | None:
        if isinstance(value, cls):
            return value
        key = _normalize(value)
        if not key:
            return None
        found = _REMOTE_ALIASES.get(key)
        if found is None:
            log.debug("Unknown remote type %r, treating as unset", value)
        return found


_SENIORITY_ORDER: list[Seniority] = list(Seniority)

_SENIORITY_ALIASES: dict[str, Seniority] = {
    "intern": Seniority.INTERN,
    "internship": Seniority.INTERN,
    "junior": Seniority.JUNIOR,
    "entry": Seniority.JUNIOR,
    "entry level": Seniority.JUNIOR,
    "entry-level": Seniority.JUNIOR,
    "graduate": Seniority.JUNIOR,
    "mid": Seniority.MID,
    "mid-level": Seniority.MID,
    "mid level": Seniority.MID,
    "intermediate": Seniority.MID,
    "senior": Seniority.SENIOR,
    "lead": Seniority.SENIOR,
    "staff": Seniority.SENIOR,
    "principal": Seniority.SENIOR,
    "executive": Seniority.EXECUTIVE,
    "director": Seniority.EXECUTIVE,
    "vp": Seniority.EXECUTIVE,
    "head": Seniority.EXECUTIVE,
    "c-level": Seniority.EXECUTIVE,
}

_REMOTE_ALIASES: dict[str, RemoteType] = {
    "remote": RemoteType.REMOTE,
    "fully remote": RemoteType.REMOTE,
    "wfh": RemoteType.REMOTE,
    "anywhere": RemoteType.REMOTE,
    "hybrid": RemoteType.HYBRID,
    "onsite": RemoteType.ONSITE,
    "on-site": RemoteType.ONSITE,
    "on site": RemoteType.ONSITE,
    "in-person": RemoteType.ONSITE,
    "in person": RemoteType.ONSITE,
    "office": RemoteType.ONSITE,
}

_WS_RE = re.compile(r"\s+")


def _normalize(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    return value.strip().lower()


@dataclass(frozen=True)
class Job:
    id: str
    title: str
    normalized_title: str = ""
    company_name: str = ""
    description_text: str = ""
    seniority: Seniority | None = None
    remote_type: RemoteType | None = None
    allowed_countries: frozenset[str] = frozenset()
    skills: tuple[str, ...] = ()
    language: str | None = None
    source_primary: str = "unknown"
    posted_at: datetime | None = None
    first_seen_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.title and not self.normalized_title:
            object.__setattr__(self, "normalized_title", _WS_RE.sub(" ", self.title).strip())
        object.__setattr__(self, "allowed_countries", frozenset(self.allowed_countries))
        object.__setattr__(self, "skills", dedupe_skills(self.skills))
        # Naive timestamps are UTC; freshness compares against an aware clock.
        object.__setattr__(self, "posted_at", parse_datetime(self.posted_at))
        object.__setattr__(self, "first_seen_at", parse_datetime(self.first_seen_at))

    @property
    def display_title(self) -> str:
        return self.normalized_title or self.title

    @property
    def posted(self) -> datetime | None:
        return self.posted_at or self.first_seen_at


@dataclass(frozen=True)
class UserJobProfile:
    user_id: str
    target_titles: tuple[str, ...] = ()
    seniority: Seniority | None = None
    skills: tuple[str, ...] = ()
    locations_allowed: frozenset[str] = frozenset()
    languages: frozenset[str] = frozenset()
    work_authorization_constraints: tuple[str, ...] = ()
    profile_context_text: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "target_titles", tuple(self.target_titles))
        object.__setattr__(self, "skills", dedupe_skills(self.skills))
        object.__setattr__(self, "locations_allowed", frozenset(self.locations_allowed))
        object.__setattr__(self, "languages", frozenset(self.languages))
        object.__setattr__(
            self, "work_authorization_constraints", tuple(self.work_authorization_constraints)
        )


@dataclass(frozen=True)
class EligibilityResult:
    passed: bool
    failed_checks: tuple[str, ...] = ()


@dataclass(frozen=True)
class MatchReason:
    factor: str
    score: float
    description: str


@dataclass(frozen=True)
class InputsUsed:
    profile_basics: bool = True
    profile_context: bool = False
    query: str | None = None


@dataclass(frozen=True)
class Match:
    user_id: str
    job_id: str
    score: int
    reasons: tuple[MatchReason, ...]
    eligibility_passed: bool
    inputs_used: InputsUsed
    created_at: datetime
    updated_at: datetime

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.job_id)

    def to_record(self) -> dict[str, str]:
        """Flat storage row; nested values are JSON encoded."""
        return {
            "user_id": self.user_id,
            "job_id": self.job_id,
            "score": str(self.score),
            "reasons": json.dumps([asdict(r) for r in self.reasons]),
            "eligibility_passed": "true" if self.eligibility_passed else "false",
            "inputs_used": json.dumps(asdict(self.inputs_used)),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_record(cls, row: dict[str, Any]) -> Match:
        reasons = row.get("reasons") or "[]"
        if isinstance(reasons, str):
            reasons = json.loads(reasons)
        inputs = row.get("inputs_used") or "{}"
        if isinstance(inputs, str):
            inputs = json.loads(inputs)
        passed = row.get("eligibility_passed")
        if isinstance(passed, str):
            passed = passed.strip().lower() in ("1", "true", "yes")
        now = datetime.now(timezone.utc)
        return cls(
            user_id=str(row["user_id"]),
            job_id=str(row["job_id"]),
            score=int(float(row.get("score") or 0)),
            reasons=tuple(MatchReason(**r) for r in reasons),
            eligibility_passed=bool(passed),
            inputs_used=InputsUsed(**inputs),
            created_at=parse_datetime(row.get("created_at")) or now,
            updated_at=parse_datetime(row.get("updated_at")) or now,
        )


@dataclass(frozen=True)
class RankingInputs:
    profile: UserJobProfile | None
    query: str | None = None
    use_profile_context: bool = False


# --- Boundary helpers ---


def dedupe_skills(skills: Iterable[Any]) -> tuple[str, ...]:
    """Drop blanks and case-insensitive duplicates, keeping first spelling."""
    seen: set[str] = set()
    out: list[str] = []
    for s in skills or ():
        if not isinstance(s, str):
            continue
        text = s.strip()
        key = text.lower()
        if text and key not in seen:
            seen.add(key)
            out.append(text)
    return tuple(out)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [p.strip() for p in value.split(",") if p.strip()]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v).strip() for v in value if isinstance(v, (str, int)) and str(v).strip()]
    log.debug("Ignoring non-list value %r", value)
    return []


def _titles(value: Any) -> list[str]:
    # A bare string is one title; titles such as "Product Manager, Growth" contain commas.
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    return _as_list(value)


def parse_datetime(value: Any) -> datetime | None:
    """ISO-8601 string, datetime, or epoch seconds → aware UTC datetime."""
    if value is None or value == "":
        return None
    try:
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            dt = datetime.fromtimestamp(value, tz=timezone.utc)
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            dt = datetime.fromisoformat(text)
        else:
            log.debug("Unsupported timestamp type %r", type(value).__name__)
            return None
    except (ValueError, OverflowError, OSError):
        log.debug("Unparseable timestamp %r", value)
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def job_from_dict(data: dict[str, Any]) -> Job:
    """Build a :class:`Job` from a row / JSON object. Only ``id`` is required."""
    job_id = _opt_str(data.get("id"))
    if job_id is None:
        raise ValueError("job record has no id")

    countries = _as_list(data.get("allowed_countries"))
    if not countries and data.get("remote_region_eligibility"):
        countries = allowed_countries_from_eligibility(data.get("remote_region_eligibility"))

    title = _opt_str(data.get("title")) or ""
    return Job(
        id=job_id,
        title=title,
        normalized_title=_opt_str(data.get("normalized_title")) or "",
        company_name=_opt_str(data.get("company_name", data.get("company"))) or "",
        description_text=_opt_str(data.get("description_text", data.get("description"))) or "",
        seniority=Seniority.parse(data.get("seniority")),
        remote_type=RemoteType.parse(data.get("remote_type")),
        allowed_countries=frozenset(countries),
        skills=dedupe_skills(_as_list(data.get("skills", data.get("skills_json")))),
        language=_opt_str(data.get("language")),
        source_primary=(_opt_str(data.get("source_primary", data.get("source"))) or "unknown").lower(),
        posted_at=parse_datetime(data.get("posted_at")),
        first_seen_at=parse_datetime(data.get("first_seen_at")),
    )


def profile_from_dict(data: dict[str, Any]) -> UserJobProfile:
    """Build a :class:`UserJobProfile`; ``user_id`` (or ``clerk_id``) is required."""
    user_id = _opt_str(data.get("user_id", data.get("clerk_id")))
    if user_id is None:
        raise ValueError("profile record has no user id")
    return UserJobProfile(
        user_id=user_id,
        target_titles=tuple(_titles(data.get("target_titles"))),
        seniority=Seniority.parse(data.get("seniority")),
        skills=dedupe_skills(_as_list(data.get("skills", data.get("skills_json")))),
        locations_allowed=frozenset(_as_list(data.get("locations_allowed"))),
        languages=frozenset(_as_list(data.get("languages"))),
        work_authorization_constraints=tuple(_as_list(data.get("work_authorization_constraints"))),
        profile_context_text=_opt_str(data.get("profile_context_text")),
    )


__all__ = [
    "Seniority", "RemoteType", "Job", "UserJobProfile", "EligibilityResult",
    "MatchReason", "InputsUsed", "Match", "RankingInputs",
    "dedupe_skills", "parse_datetime", "job_from_dict", "profile_from_dict",
]
