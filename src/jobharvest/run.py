from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .collector import CollectionRequest, CollectionResult, Collector
from .dedup import dedup_key
from .errors import JobHarvestError, StoreError
from .models import iso_utc, utcnow
from .stats import available_values, compute_stats
from .store import CollectionHistory, Corpus, CorpusStore, RunLock, RunLogEntry, merge_jobs


log = logging.getLogger(__name__)


@dataclass
class CollectionResponse:
    result: CollectionResult
    corpus_total: int
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d = self.result.to_dict()
        d["corpusTotal"] = self.corpus_total
        d["stats"] = self.stats
        return d


def collect_and_store(
    request: CollectionRequest,
    collector: Collector,
    store: CorpusStore,
    lock: Optional[RunLock] = None,
    history: Optional[CollectionHistory] = None,
) -> CollectionResponse:
    """One collection run, persisted: collect, merge into the corpus, save.

    A run whose orchestration failed leaves the corpus untouched and raises.
    Store failures propagate as ``StoreError``. When ``history`` is given, the
    run is appended to it after the corpus is saved.
    """
    lock = lock or RunLock(store.path.with_name(store.path.name + ".lock"))
    with lock:
        result = collector.collect(request)
        if not result.success:
            raise JobHarvestError("collection run failed; corpus not updated")

        corpus = store.load()
        known = {dedup_key(j) for j in corpus.jobs}
        result.new_jobs = sum(1 for j in result.jobs if dedup_key(j) not in known)

        merged = merge_jobs(result.jobs, corpus.jobs)
        stats = compute_stats(merged)
        store.save(Corpus(jobs=merged, last_updated=utcnow(), stats=stats))

        if history is not None:
            _log_run(history, result)

    log.info(
        "stored run: %d collected, %d new, corpus now %d jobs",
        result.total_jobs,
        result.new_jobs,
        len(merged),
    )
    return CollectionResponse(result=result, corpus_total=len(merged), stats=stats)


def corpus_summary(corpus: Corpus) -> Dict[str, Any]:
    return {
        "totalJobs": len(corpus.jobs),
        "lastUpdated": iso_utc(corpus.last_updated),
        "stats": corpus.stats or compute_stats(corpus.jobs),
        "available": available_values(corpus.jobs),
    }


def run_log_entry(result: CollectionResult) -> RunLogEntry:
    return RunLogEntry(
        last_run=utcnow(),
        total_collected=result.total_jobs,
        new_jobs=result.new_jobs,
        duration_ms=result.duration_ms,
        sources=[
            {"name": name, "count": o.jobs_collected, "error": o.errors[0] if o.errors else None}
            for name, o in result.per_source.items()
        ],
    )


def _log_run(history: CollectionHistory, result: CollectionResult) -> None:
    # The corpus is already saved; a history write failure must not undo the run.
    try:
        history.append(run_log_entry(result))
    except StoreError as e:
        log.warning("run not recorded in history: %s", e)
