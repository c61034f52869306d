"""Markdown digest of ranked matches."""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from jobrank.config import ROOT_DIR
from jobrank.log import get_logger
from jobrank.models import Job, Match

log = get_logger(__name__)

REPORTS_DIR: Path = ROOT_DIR / "reports"
TOP_N = 15


def _clip(text: str, width: int) -> str:
    return text[:width] + ("…" if len(text) > width else "")


def build_match_report(matches: list[Match], jobs: dict[str, Job], *, query: str | None = None) -> str:
    date = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    lines: list[str] = [f"# Job Matches — {date}", ""]
    if query:
        lines.append(f"Search: _{query}_")
        lines.append("")
    lines.append(f"**{len(matches)}** eligible jobs ranked")
    lines.append("")

    top = matches[:TOP_N]
    if not top:
        lines.append("No eligible jobs for this profile.")
        return "\n".join(lines)

    lines.append("## Top Matches")
    lines.append("")
    for m in top:
        job = jobs.get(m.job_id)
        title = job.display_title if job else m.job_id
        company = job.company_name if job else ""
        lines.append(f"### {title}" + (f" @ {company}" if company else ""))
        lines.append(f"- **Score:** {m.score}/100")
        for r in m.reasons:
            lines.append(f"- {r.description} _(+{r.score:.1f})_")
        lines.append("")

    lines.append("---")
    lines.append("")
    lines.append("| # | Role | Company | Score | Top reason |")
    lines.append("|--:|------|---------|------:|------------|")
    for i, m in enumerate(top, 1):
        job = jobs.get(m.job_id)
        title = _clip(job.display_title if job else m.job_id, 40)
        company = _clip(job.company_name if job else "", 22)
        reason = m.reasons[0].factor if m.reasons else "—"
        lines.append(f"| {i} | {title} | {company} | {m.score} | {reason} |")
    lines.append("")

    log.info("Built match report: %d matches", len(matches))
    return "\n".join(lines)


def write_match_report(content: str, path: str | Path | None = None) -> Path:
    if path is None:
        REPORTS_DIR.mkdir(parents=True, exist_ok=True)
        path = REPORTS_DIR / f"matches_{datetime.now(timezone.utc).strftime('%Y-%m-%d')}.md"
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path
