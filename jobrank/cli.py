"""Command-line entry: rank a file of jobs for one profile."""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import yaml

from jobrank.config import get_env, load_ranking_config
from jobrank.log import get_logger, set_level
from jobrank.models import Job, RankingInputs, job_from_dict, profile_from_dict
from jobrank.ranker import MatchRanker, select_matches
from jobrank.report import build_match_report, write_match_report
from jobrank.store import CsvMatchStore, InMemoryMatchStore, MatchStoreError

log = get_logger(__name__)


def _read_data(path: Path) -> Any:
    """YAML or JSON by extension (YAML parser also accepts JSON)."""
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".json":
            return json.load(f)
        return yaml.safe_load(f)


def load_jobs(path: Path) -> list[Job]:
    data = _read_data(path)
    if isinstance(data, dict):
        data = data.get("jobs", [])
    jobs: list[Job] = []
    for i, row in enumerate(data or []):
        if not isinstance(row, dict):
            log.warning("Skipping job #%d: not a mapping", i)
            continue
        try:
            jobs.append(job_from_dict(row))
        except ValueError as exc:
            log.warning("Skipping job #%d: %s", i, exc)
    return jobs


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="jobrank", description="Rank job postings for a user profile.")
    p.add_argument("--profile", required=True, type=Path, help="profile YAML/JSON")
    p.add_argument("--jobs", required=True, type=Path, help="jobs YAML/JSON (list or {jobs: [...]})")
    p.add_argument("--query", default=None, help="free-text search query")
    p.add_argument("--use-profile-context", action="store_true", help="score against career narrative")
    p.add_argument("--config", type=Path, default=None, help="ranking weights YAML")
    p.add_argument("--store", type=Path, default=None, help="matches CSV (default: $MATCHES_CSV)")
    p.add_argument("--min-score", type=int, default=None)
    p.add_argument("--limit", type=int, default=20)
    p.add_argument("--report", type=Path, default=None, help="write markdown digest here")
    p.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING... (default: $LOG_LEVEL)")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.log_level:
        set_level(args.log_level)

    try:
        raw_profile = _read_data(args.profile)
        if not isinstance(raw_profile, dict):
            raise ValueError(f"{args.profile}: expected a mapping")
        profile = profile_from_dict(raw_profile)
        jobs = load_jobs(args.jobs)
        config = load_ranking_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        log.error("Could not load inputs: %s", exc)
        return 1

    store_path = args.store or get_env("MATCHES_CSV")
    store = CsvMatchStore(store_path) if store_path else InMemoryMatchStore()
    ranker = MatchRanker(config=config, store=store)

    inputs = RankingInputs(profile=profile, query=args.query, use_profile_context=args.use_profile_context)
    matches = ranker.rank_jobs_sync(jobs, inputs)
    try:
        ranker.store_matches(matches)
    except MatchStoreError as exc:
        log.error("Storing matches failed: %s", exc)
        return 1

    by_id = {j.id: j for j in jobs}
    shown = select_matches(matches, min_score=args.min_score, limit=args.limit)
    for m in shown:
        job = by_id[m.job_id]
        top = m.reasons[0].description if m.reasons else ""
        print(f"{m.score:>3}  {job.display_title} @ {job.company_name}  — {top}")

    if args.report:
        write_match_report(build_match_report(shown, by_id, query=args.query), args.report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
