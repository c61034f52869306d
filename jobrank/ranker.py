"""
Match ranker.

Runs: eligibility gate → factor scoring → sort → (optional) store.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from jobrank.config import RankingConfig
from jobrank.context import ContextStrategy, get_context_strategy
from jobrank.eligibility import check_eligibility
from jobrank.log import get_logger
from jobrank.models import (
    EligibilityResult,
    InputsUsed,
    Job,
    Match,
    MatchReason,
    RankingInputs,
    UserJobProfile,
)
from jobrank.scorer import score_factors, top_reasons, total_score
from jobrank.store import InMemoryMatchStore, MatchStore

log = get_logger(__name__)

ELIGIBILITY_FAILED = "eligibility_failed"
DEFAULT_FALLBACK_COUNT = 20


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MatchRanker:
    """Ranks jobs for one user at a time and persists the results."""

    def __init__(
        self,
        config: RankingConfig | None = None,
        store: MatchStore | None = None,
        context_strategy: ContextStrategy | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or RankingConfig.default()
        self.store = store if store is not None else InMemoryMatchStore()
        self.context_strategy = context_strategy or get_context_strategy(self.config.context_strategy)
        self._clock = clock or _utcnow

    def with_overrides(self, overrides: Mapping[str, Any] | None) -> MatchRanker:
        """Ranker for a single call with a partial config merged in."""
        config = self.config.with_overrides(overrides)
        strategy = self.context_strategy
        if config.context_strategy != self.config.context_strategy:
            strategy = get_context_strategy(config.context_strategy)
        return MatchRanker(config, self.store, strategy, self._clock)

    def check_eligibility(self, job: Job, profile: UserJobProfile | None) -> EligibilityResult:
        return check_eligibility(job, profile, self.config.eligibility)

    async def _context_score(self, job: Job, inputs: RankingInputs) -> float | None:
        profile = inputs.profile
        if not (inputs.use_profile_context and profile and profile.profile_context_text):
            return None
        try:
            return await self.context_strategy.score(job, profile)
        except Exception as exc:
            log.warning("Context strategy %s failed for job %s: %s", self.context_strategy.name, job.id, exc)
            return 0.0

    async def rank_job(self, job: Job, inputs: RankingInputs) -> Match | None:
        profile = inputs.profile
        if profile is None:
            return None
        now = self._clock()

        eligibility = self.check_eligibility(job, profile)
        if not eligibility.passed:
            reason = MatchReason(
                factor=ELIGIBILITY_FAILED,
                score=0,
                description=f"Job does not meet eligibility: {', '.join(eligibility.failed_checks)}",
            )
            return Match(
                user_id=profile.user_id,
                job_id=job.id,
                score=0,
                reasons=(reason,),
                eligibility_passed=False,
                inputs_used=InputsUsed(profile_basics=True),
                created_at=now,
                updated_at=now,
            )

        context_score = await self._context_score(job, inputs)
        factors = score_factors(
            job,
            profile,
            self.config,
            query=inputs.query or None,
            context_score=context_score,
            now=now,
        )
        return Match(
            user_id=profile.user_id,
            job_id=job.id,
            score=total_score(factors),
            reasons=top_reasons(factors),
            eligibility_passed=True,
            inputs_used=InputsUsed(
                profile_basics=True,
                profile_context=context_score is not None,
                query=inputs.query or None,
            ),
            created_at=now,
            updated_at=now,
        )

    async def rank_jobs(self, jobs: Iterable[Job], inputs: RankingInputs) -> list[Match]:
        """Eligible matches only, best first. Empty when nothing qualifies."""
        matches: list[Match] = []
        total = 0
        for job in jobs:
            total += 1
            match = await self.rank_job(job, inputs)
            if match and match.eligibility_passed:
                matches.append(match)
        matches.sort(key=lambda m: -m.score)
        log.info("Ranked %d jobs → %d eligible", total, len(matches))
        return matches

    def rank_jobs_sync(self, jobs: Iterable[Job], inputs: RankingInputs) -> list[Match]:
        return asyncio.run(self.rank_jobs(jobs, inputs))

    def store_matches(self, matches: list[Match]) -> int:
        """Upsert into the store. Storage errors propagate to the caller."""
        if not matches:
            return 0
        written = self.store.upsert(matches)
        log.info("Stored %d match(es)", written)
        return written


def select_matches(
    matches: list[Match],
    *,
    min_score: int | None = None,
    limit: int | None = None,
    offset: int = 0,
    fallback_count: int = DEFAULT_FALLBACK_COUNT,
) -> list[Match]:
    """Threshold and page a ranked list.

    If fewer than *fallback_count* matches clear *min_score*, the threshold is
    dropped so short lists are never emptied by it.
    """
    selected = matches
    if min_score is not None:
        above = [m for m in matches if m.score >= min_score]
        selected = above if len(above) >= fallback_count else matches
    offset = max(offset, 0)
    end = None if limit is None else offset + max(limit, 0)
    return selected[offset:end]
