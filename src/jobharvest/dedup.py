from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from .models import Job


def dedup_key(job: Job) -> str:
    return f"{job.title.lower()}_{job.company.lower()}_{job.location.lower()}"


def _is_more_recent(incoming: Job, kept: Job) -> bool:
    # An undated record never displaces anything; a dated one always beats an undated one.
    if incoming.posted_at is None:
        return False
    if kept.posted_at is None:
        return True
    return incoming.posted_at > kept.posted_at


def deduplicate(jobs: Iterable[Job]) -> List[Job]:
    """Collapse records sharing a dedup key.

    The first record seen for a key holds the key's position in the output; it is
    replaced in place only by a record with a strictly later ``posted_at``.
    Running this on its own output returns the same list.
    """
    seen: Dict[str, Job] = {}
    for job in jobs:
        key = dedup_key(job)
        kept = seen.get(key)
        if kept is None or _is_more_recent(job, kept):
            seen[key] = job
    return list(seen.values())


def dedupe_by_title_company(jobs: Iterable[Job]) -> List[Job]:
    """Keep the first occurrence per exact (title, company) pair."""
    seen: Set[Tuple[str, str]] = set()
    out: List[Job] = []
    for job in jobs:
        key = (job.title, job.company)
        if key in seen:
            continue
        seen.add(key)
        out.append(job)
    return out
