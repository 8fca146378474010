from __future__ import annotations

import datetime as dt
import json
import logging
import os
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .dedup import dedup_key, deduplicate
from .errors import RunLockedError, StoreError
from .models import Job, iso_utc, parse_iso_utc, utcnow


log = logging.getLogger(__name__)


@dataclass
class Corpus:
    jobs: List[Job] = field(default_factory=list)
    last_updated: Optional[dt.datetime] = None
    stats: Dict[str, Any] = field(default_factory=dict)


def merge_jobs(new_jobs: Iterable[Job], existing: Iterable[Job]) -> List[Job]:
    """New run output goes first, then the persisted jobs, then one dedup pass.

    When a fresh record replaces a persisted one, the persisted record's user
    state (status, metadata, createdAt) is carried over.
    """
    existing = list(existing)
    previous = {dedup_key(j): j for j in existing}
    existing_ids = {id(j) for j in existing}

    now = utcnow()
    out: List[Job] = []
    for job in deduplicate([*new_jobs, *existing]):
        old = previous.get(dedup_key(job))
        if old is not None and id(job) not in existing_ids:
            job = replace(job, status=old.status, metadata=old.metadata, created_at=old.created_at, updated_at=now)
        out.append(job)
    return out


class CorpusStore:
    """The persisted corpus: one JSON document, rewritten in full on every save.

    Single writer only. Collection runs take a ``RunLock`` around load/merge/save.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Corpus:
        if not self.path.exists():
            return Corpus()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StoreError(f"cannot read corpus {self.path}: {e}") from e

        # Older exports were a bare list of jobs.
        if isinstance(raw, list):
            raw = {"jobs": raw}
        if not isinstance(raw, dict):
            raise StoreError(f"unexpected corpus format in {self.path}")

        try:
            jobs = [Job.from_dict(d) for d in raw.get("jobs") or []]
            last_updated = parse_iso_utc(raw.get("lastUpdated"))
        except (TypeError, ValueError, AttributeError) as e:
            raise StoreError(f"corrupt job record in {self.path}: {e}") from e

        return Corpus(jobs=jobs, last_updated=last_updated, stats=raw.get("stats") or {})

    def save(self, corpus: Corpus) -> None:
        doc = {
            "jobs": [j.to_dict() for j in corpus.jobs],
            "lastUpdated": iso_utc(corpus.last_updated or utcnow()),
            "stats": corpus.stats,
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"cannot write corpus {self.path}: {e}") from e
        log.info("saved %d jobs to %s", len(corpus.jobs), self.path)


class RunLock:
    """Exclusive lock file guarding the corpus read-modify-write.

    The file holds the owner's PID. A lock whose owner is gone, or which is
    older than ``max_age_s``, is treated as left behind by a crashed run and
    taken over.
    """

    def __init__(self, path: str | Path, max_age_s: float = 6 * 3600):
        self.path = Path(path)
        self.max_age_s = max_age_s
        self._held = False

    def _owner_pid(self) -> Optional[int]:
        try:
            return int(self.path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None

    def _is_stale(self) -> bool:
        try:
            age = time.time() - self.path.stat().st_mtime
        except FileNotFoundError:
            return True
        if age > self.max_age_s:
            return True

        pid = self._owner_pid()
        if pid is None:
            # Owner may still be writing its PID.
            return False
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return True
        except PermissionError:
            # Alive, owned by another user.
            return False
        return False

    def _create(self) -> int:
        return os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)

    def __enter__(self) -> "RunLock":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            fd = self._create()
        except FileExistsError as e:
            if not self._is_stale():
                raise RunLockedError(f"another collection run holds {self.path}") from e
            log.warning("removing stale lock %s (owner pid %s)", self.path, self._owner_pid())
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
            try:
                fd = self._create()
            except FileExistsError as e2:
                raise RunLockedError(f"another collection run holds {self.path}") from e2
        with os.fdopen(fd, "w") as f:
            f.write(str(os.getpid()))
        self._held = True
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._held:
            self._held = False
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass


@dataclass
class RunLogEntry:
    """One collection run, as appended to the history file."""

    last_run: dt.datetime
    total_collected: int
    new_jobs: int = 0
    duration_ms: int = 0
    # {"name", "count", "error"} per source, in run order
    sources: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastRun": iso_utc(self.last_run),
            "totalCollected": self.total_collected,
            "newJobs": self.new_jobs,
            "duration": self.duration_ms,
            "sources": list(self.sources),
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RunLogEntry":
        last_run = parse_iso_utc(d["lastRun"])
        if last_run is None:
            raise ValueError("lastRun missing")
        return cls(
            last_run=last_run,
            total_collected=int(d.get("totalCollected") or 0),
            new_jobs=int(d.get("newJobs") or 0),
            duration_ms=int(d.get("duration") or 0),
            sources=[dict(s) for s in d.get("sources") or []],
        )


class CollectionHistory:
    """Append-only JSON list of past runs, oldest first."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> List[RunLogEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, list):
                raise ValueError("expected a list of runs")
            return [RunLogEntry.from_dict(d) for d in raw]
        except (OSError, TypeError, KeyError, ValueError, AttributeError) as e:
            raise StoreError(f"cannot read collection history {self.path}: {e}") from e

    def latest(self) -> Optional[RunLogEntry]:
        entries = self.load()
        return entries[-1] if entries else None

    def append(self, entry: RunLogEntry) -> None:
        entries = self.load()
        entries.append(entry)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"cannot write collection history {self.path}: {e}") from e
