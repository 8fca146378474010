from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional

from .models import Category, ContractType, Job, Region, enum_from_text


_OLDEST = dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def newest_first(jobs: Iterable[Job]) -> List[Job]:
    # Undated records sort as oldest; ties keep their input order.
    return sorted(jobs, key=lambda j: j.posted_at or _OLDEST, reverse=True)


def matches_text(job: Job, query: str) -> bool:
    term = query.lower()
    return (
        term in job.title.lower()
        or term in job.company.lower()
        or term in job.description.lower()
        or any(term in s.lower() for s in job.skills)
    )


def search_corpus(
    jobs: Iterable[Job],
    query: str = "",
    location: Optional[str] = None,
    source: Optional[str] = None,
    category: Optional[str] = None,
    region: Optional[str] = None,
    contract_type: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Job]:
    """Filter a persisted corpus the way the read API does, newest first."""
    out = list(jobs)
    if query:
        out = [j for j in out if matches_text(j, query)]
    if location:
        loc = location.lower()
        out = [j for j in out if loc in j.location.lower()]
    if source:
        out = [j for j in out if j.source == source]
    if category:
        cat = enum_from_text(Category, category)
        out = [j for j in out if j.category == cat]
    if region:
        reg = enum_from_text(Region, region)
        out = [j for j in out if j.region == reg]
    if contract_type:
        ct = enum_from_text(ContractType, contract_type)
        out = [j for j in out if j.contract_type == ct]

    out = newest_first(out)
    if limit:
        out = out[:limit]
    return out
