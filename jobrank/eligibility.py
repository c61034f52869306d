"""Eligibility gate: hard pass/fail filter applied before scoring."""
from __future__ import annotations

from jobrank.config import EligibilityFlags
from jobrank.log import get_logger
from jobrank.models import EligibilityResult, Job, RemoteType, UserJobProfile
from jobrank.regions import countries_overlap

log = get_logger(__name__)

JOB_IS_ONSITE = "job_is_onsite"
LOCATION_NOT_ALLOWED = "location_not_allowed"
LANGUAGE_MISMATCH = "language_mismatch"

# Recorded in failed_checks but never fail the gate.
SOFT_CHECKS: frozenset[str] = frozenset({LANGUAGE_MISMATCH})


def check_eligibility(
    job: Job,
    profile: UserJobProfile | None,
    flags: EligibilityFlags | None = None,
) -> EligibilityResult:
    if profile is None:
        return EligibilityResult(passed=True, failed_checks=())
    flags = flags or EligibilityFlags()
    failed: list[str] = []

    # Hard filter: onsite jobs never reach scoring.
    if flags.enforce_remote_type and job.remote_type is RemoteType.ONSITE:
        failed.append(JOB_IS_ONSITE)

    if flags.enforce_location and profile.locations_allowed:
        if job.allowed_countries and not countries_overlap(job.allowed_countries, profile.locations_allowed):
            failed.append(LOCATION_NOT_ALLOWED)

    # Work authorization: jobs carry no authorization requirements yet, so
    # enforce_work_auth has nothing to compare against and always passes.

    if flags.enforce_language and profile.languages and job.language:
        wanted = {lang.lower() for lang in profile.languages}
        if job.language.lower() not in wanted:
            failed.append(LANGUAGE_MISMATCH)

    passed = not [c for c in failed if c not in SOFT_CHECKS]
    if failed:
        log.debug("Job %s for user %s: failed %s (passed=%s)", job.id, profile.user_id, failed, passed)
    return EligibilityResult(passed=passed, failed_checks=tuple(failed))
