"""Shared fixtures: job/profile factories and a fixed clock."""
from __future__ import annotations

import os

os.environ.setdefault("JOBRANK_LOG_FILE", "false")

from datetime import datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

from jobrank.models import Job, RemoteType, Seniority, UserJobProfile  # noqa: E402

NOW = datetime(2026, 2, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def make_job():
    def _make(**overrides) -> Job:
        days_old = overrides.pop("days_old", 2)
        data = dict(
            id="job-1",
            title="Senior Product Manager",
            company_name="Acme",
            description_text="Own the roadmap for our B2B SaaS analytics platform.",
            seniority=Seniority.SENIOR,
            remote_type=RemoteType.REMOTE,
            allowed_countries=frozenset({"Worldwide"}),
            skills=("SQL", "Figma"),
            language="en",
            source_primary="remotive",
            posted_at=NOW - timedelta(days=days_old) if days_old is not None else None,
        )
        data.update(overrides)
        return Job(**data)

    return _make


@pytest.fixture
def make_profile():
    def _make(**overrides) -> UserJobProfile:
        data = dict(
            user_id="user-1",
            target_titles=("Senior Product Manager",),
            seniority=Seniority.SENIOR,
            skills=("SQL", "A/B Testing"),
            locations_allowed=frozenset({"Worldwide"}),
            languages=frozenset({"en"}),
        )
        data.update(overrides)
        return UserJobProfile(**data)

    return _make
