from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

from jobrank.cli import main
from jobrank.store import CsvMatchStore


def _write_inputs(tmp_path):
    recent = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
    jobs = [
        {"id": "pm-1", "title": "Senior Product Manager", "company_name": "Acme",
         "seniority": "Senior", "remote_type": "remote", "allowed_countries": ["Worldwide"],
         "skills": ["SQL"], "source_primary": "remotive", "posted_at": recent},
        {"id": "ds-1", "title": "Data Scientist", "company_name": "Beta",
         "remote_type": "remote", "posted_at": recent},
        {"id": "office-1", "title": "Senior Product Manager", "company_name": "Gamma",
         "remote_type": "onsite"},
        {"title": "No id, skipped"},
    ]
    jobs_path = tmp_path / "jobs.json"
    jobs_path.write_text(json.dumps(jobs), encoding="utf-8")
    profile_path = tmp_path / "profile.yaml"
    profile_path.write_text(
        "user_id: user-1\ntarget_titles: [Senior Product Manager]\nseniority: Senior\nskills: [SQL]\n",
        encoding="utf-8",
    )
    return profile_path, jobs_path


def test_cli_ranks_stores_and_reports(tmp_path, capsys):
    profile_path, jobs_path = _write_inputs(tmp_path)
    store_path = tmp_path / "matches.csv"
    report_path = tmp_path / "report.md"

    code = main([
        "--profile", str(profile_path), "--jobs", str(jobs_path),
        "--store", str(store_path), "--report", str(report_path),
    ])

    assert code == 0
    out = [line for line in capsys.readouterr().out.splitlines() if " @ " in line]
    assert len(out) == 2
    assert "Senior Product Manager @ Acme" in out[0]
    stored = CsvMatchStore(store_path).list_for_user("user-1")
    assert [m.job_id for m in stored] == ["pm-1", "ds-1"]
    assert "## Top Matches" in report_path.read_text(encoding="utf-8")


def test_cli_missing_profile_exits_nonzero(tmp_path):
    _, jobs_path = _write_inputs(tmp_path)
    assert main(["--profile", str(tmp_path / "nope.yaml"), "--jobs", str(jobs_path)]) == 1
