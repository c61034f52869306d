"""Persist matches keyed by (user_id, job_id) with upsert semantics.

A rerun for the same pair overwrites the stored row; matches are snapshots,
not an append log.
"""
from __future__ import annotations

import csv
import fcntl
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable

from jobrank.config import DATA_DIR, get_env
from jobrank.log import get_logger
from jobrank.models import Match
from jobrank.retry import retry

log = get_logger(__name__)

MATCHES_CSV: Path = DATA_DIR / "matches.csv"
HEADERS: list[str] = [
    "user_id", "job_id", "score", "reasons", "eligibility_passed",
    "inputs_used", "created_at", "updated_at",
]


class MatchStoreError(RuntimeError):
    """Persisting matches failed; the batch must be treated as not stored."""


class MatchStore(ABC):
    @abstractmethod
    def upsert(self, matches: Iterable[Match]) -> int:
        """Insert or overwrite each match by key; return the number written."""

    @abstractmethod
    def get(self, user_id: str, job_id: str) -> Match | None:
        pass

    @abstractmethod
    def list_for_user(self, user_id: str) -> list[Match]:
        pass


class InMemoryMatchStore(MatchStore):
    def __init__(self) -> None:
        self._rows: dict[tuple[str, str], Match] = {}

    def upsert(self, matches: Iterable[Match]) -> int:
        batch = {m.key: m for m in matches}
        self._rows.update(batch)
        return len(batch)

    def get(self, user_id: str, job_id: str) -> Match | None:
        return self._rows.get((user_id, job_id))

    def list_for_user(self, user_id: str) -> list[Match]:
        return sorted(
            (m for (uid, _), m in self._rows.items() if uid == user_id),
            key=lambda m: -m.score,
        )

    def __len__(self) -> int:
        return len(self._rows)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    fcntl.flock(f.fileno(), fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH)


def _unlock(f) -> None:
    fcntl.flock(f.fileno(), fcntl.LOCK_UN)


class CsvMatchStore(MatchStore):
    """CSV-backed store. Each upsert rewrites the file atomically under a lock."""

    def __init__(self, path: str | Path | None = None, *, max_attempts: int = 3, base_delay: float = 0.2) -> None:
        self.path = Path(path or get_env("MATCHES_CSV") or MATCHES_CSV)
        self._lock_path = self.path.with_name(self.path.name + ".lock")
        self._write = retry(max_attempts=max_attempts, base_delay=base_delay, retryable=(OSError,))(
            self._write_batch
        )

    def _read_rows(self) -> dict[tuple[str, str], dict[str, str]]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        return {(r["user_id"], r["job_id"]): r for r in rows}

    def _write_batch(self, records: list[dict[str, str]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._lock_path, "a", encoding="utf-8") as lock_file:
            _lock(lock_file)
            try:
                rows = self._read_rows()
                for rec in records:
                    rows[(rec["user_id"], rec["job_id"])] = rec
                fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
                try:
                    with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
                        w = csv.DictWriter(f, fieldnames=HEADERS)
                        w.writeheader()
                        w.writerows(rows.values())
                    os.replace(tmp, self.path)
                except BaseException:
                    Path(tmp).unlink(missing_ok=True)
                    raise
            finally:
                _unlock(lock_file)

    def upsert(self, matches: Iterable[Match]) -> int:
        records = list({m.key: m.to_record() for m in matches}.values())
        if not records:
            return 0
        try:
            self._write(records)
        except OSError as exc:
            raise MatchStoreError(f"could not write {len(records)} matches to {self.path}: {exc}") from exc
        log.debug("Upserted %d match(es) → %s", len(records), self.path.name)
        return len(records)

    def _load(self) -> list[Match]:
        if not self.path.exists():
            return []
        try:
            with open(self._lock_path, "a", encoding="utf-8") as lock_file:
                _lock(lock_file, exclusive=False)
                try:
                    rows = list(self._read_rows().values())
                finally:
                    _unlock(lock_file)
        except OSError as exc:
            raise MatchStoreError(f"could not read {self.path}: {exc}") from exc
        try:
            return [Match.from_record(r) for r in rows]
        except (ValueError, TypeError, KeyError) as exc:
            raise MatchStoreError(f"corrupt match row in {self.path}: {exc}") from exc

    def get(self, user_id: str, job_id: str) -> Match | None:
        for m in self._load():
            if m.key == (user_id, job_id):
                return m
        return None

    def list_for_user(self, user_id: str) -> list[Match]:
        return sorted((m for m in self._load() if m.user_id == user_id), key=lambda m: -m.score)
