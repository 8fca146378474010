from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .dedup import dedupe_by_title_company
from .models import Job, jobs_to_dicts
from .registry import aggregator_sources
from .search import newest_first
from .sources.common import SourceAdapter


log = logging.getLogger(__name__)


@dataclass
class SourceSearchResult:
    source: str
    jobs: List[Job] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobs": jobs_to_dicts(self.jobs),
            "total": len(self.jobs),
            "hasMore": False,
            "source": self.source,
            "error": self.error,
        }


@dataclass
class AggregatedSearch:
    jobs: List[Job]
    sources: Dict[str, SourceSearchResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jobs": jobs_to_dicts(self.jobs),
            "sources": {name: r.to_dict() for name, r in self.sources.items()},
        }


def merge_results(results: Sequence[SourceSearchResult], limit: Optional[int] = None) -> List[Job]:
    combined = [j for r in results for j in r.jobs]
    out = dedupe_by_title_company(newest_first(combined))
    if limit:
        out = out[:limit]
    return out


def search_all(
    query: str,
    location: Optional[str] = None,
    limit: Optional[int] = None,
    sources: Optional[Sequence[SourceAdapter]] = None,
    timeout_s: float = 15,
) -> AggregatedSearch:
    """Query a few sources concurrently for an interactive search. Nothing is persisted.

    A source that raises, or is still running when ``timeout_s`` elapses,
    contributes no jobs and an error string.
    """
    adapters = list(sources) if sources is not None else aggregator_sources(timeout_s=timeout_s)
    if not adapters:
        return AggregatedSearch(jobs=[], sources={})

    pool = ThreadPoolExecutor(max_workers=len(adapters))
    futs = {pool.submit(a.search_jobs, query, location): a for a in adapters}
    done, _pending = wait(futs, timeout=timeout_s)
    # Stragglers keep their thread until the HTTP timeout fires; don't block on them.
    pool.shutdown(wait=False, cancel_futures=True)

    results: List[SourceSearchResult] = []
    for fut, adapter in futs.items():
        name = adapter.name
        if fut not in done:
            log.warning("%s: no answer within %.0fs", name, timeout_s)
            results.append(SourceSearchResult(source=name, error=f"timed out after {timeout_s:g}s"))
            continue
        try:
            jobs = list(fut.result())
        except Exception as e:
            log.warning("%s: search failed: %s", name, e)
            results.append(SourceSearchResult(source=name, error=str(e) or type(e).__name__))
            continue
        results.append(SourceSearchResult(source=name, jobs=jobs))

    return AggregatedSearch(jobs=merge_results(results, limit), sources={r.source: r for r in results})
