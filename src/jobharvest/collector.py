from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from .classify import enrich
from .config import CollectionConfig
from .dedup import deduplicate
from .models import Category, ContractType, Job, enum_from_text
from .ratelimit import RateLimiter
from .registry import PROFESSIONAL_NETWORKS, SourceRegistration
from .retry import RetryController
from .stats import compute_stats


log = logging.getLogger(__name__)

# Searched first by global boards and professional networks, before caller locations.
BROAD_LOCATIONS = ["Remote", "Global", "APAC", "EU", "NA"]


@dataclass
class CollectionRequest:
    queries: List[str]
    locations: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    contract_types: Optional[List[str]] = None
    max_jobs_per_source: Optional[int] = None
    # Restrict the run to these registry names.
    sources: Optional[List[str]] = None


@dataclass
class SourceOutcome:
    success: bool
    jobs_collected: int
    errors: List[str] = field(default_factory=list)
    attempts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"success": self.success, "jobsCollected": self.jobs_collected}
        if self.errors:
            d["errors"] = list(self.errors)
        return d


@dataclass
class CollectionResult:
    success: bool
    total_jobs: int = 0
    new_jobs: int = 0
    per_source: Dict[str, SourceOutcome] = field(default_factory=dict)
    duration_ms: int = 0
    jobs: List[Job] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "totalJobs": self.total_jobs,
            "newJobs": self.new_jobs,
            "sources": {name: o.to_dict() for name, o in self.per_source.items()},
            "duration": self.duration_ms,
        }


def effective_locations(priority: int, locations: Optional[Sequence[str]]) -> List[str]:
    if priority <= PROFESSIONAL_NETWORKS:
        return BROAD_LOCATIONS + list(locations or [])
    return list(locations) if locations else [""]


def apply_filters(
    jobs: List[Job],
    categories: Optional[Sequence[str]] = None,
    contract_types: Optional[Sequence[str]] = None,
) -> List[Job]:
    """Keep jobs whose category and contract type are in the allow-lists.

    Values match case-insensitively; an unknown value raises ValueError.
    """
    if categories:
        cats = {enum_from_text(Category, c) for c in categories}
        jobs = [j for j in jobs if j.category in cats]
    if contract_types:
        types = {enum_from_text(ContractType, c) for c in contract_types}
        jobs = [j for j in jobs if j.contract_type in types]
    return jobs


class Collector:
    """Drives the registered sources one at a time, in priority order.

    Sequential on purpose: one source, one query/location at a time, with a pause
    between requests. The rate limiter is owned by this instance, so separate
    collectors never share windows.
    """

    def __init__(
        self,
        registry: Sequence[SourceRegistration],
        config: Optional[CollectionConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = list(registry)
        self.config = config or CollectionConfig()
        self._sleep = sleep
        self._clock = clock
        self.rate_limiter = rate_limiter or RateLimiter(sleep=sleep, clock=clock)

    def enabled_sources(self, only: Optional[Sequence[str]] = None) -> List[SourceRegistration]:
        regs = [r for r in self.registry if r.enabled and (not only or r.name in only)]
        # sorted() is stable: equal priorities keep registry order.
        return sorted(regs, key=lambda r: r.priority)

    def _collect_source(self, reg: SourceRegistration, queries: Sequence[str], locations: Sequence[str], cap: int) -> List[Job]:
        delay_s = self.config.delay_between_requests_ms / 1000
        jobs: List[Job] = []
        first = True
        for query in queries:
            for location in locations:
                if not first and delay_s > 0:
                    self._sleep(delay_s)
                first = False

                found = reg.adapter.search_jobs(query, location or None)
                jobs.extend(j if j.source == reg.name else replace(j, source=reg.name) for j in found)
                if len(jobs) >= cap:
                    return jobs[:cap]
        return jobs

    def collect(self, request: CollectionRequest) -> CollectionResult:
        started = self._clock()
        result = CollectionResult(success=True)
        cap = request.max_jobs_per_source or self.config.max_jobs_per_source

        try:
            all_jobs: List[Job] = []
            for reg in self.enabled_sources(request.sources):
                log.info("collecting from %s (priority %d)", reg.name, reg.priority)
                self.rate_limiter.acquire(reg.name, reg.rate_limit)

                locations = effective_locations(reg.priority, request.locations)
                retry = RetryController(self.config.retry_attempts, sleep=self._sleep, label=reg.name)
                outcome = retry.run(lambda reg=reg: self._collect_source(reg, request.queries, locations, cap))

                if not outcome.ok:
                    log.error("%s failed after %d attempts: %s", reg.name, outcome.attempts, outcome.error)
                    result.per_source[reg.name] = SourceOutcome(
                        success=False, jobs_collected=0, errors=[outcome.error or "unknown error"], attempts=outcome.attempts
                    )
                    continue

                raw = outcome.value or []
                unique = deduplicate(apply_filters(raw, request.categories, request.contract_types))
                all_jobs.extend(unique)
                result.per_source[reg.name] = SourceOutcome(success=True, jobs_collected=len(unique), attempts=outcome.attempts)
                log.info("collected %d jobs from %s", len(unique), reg.name)

            final = [enrich(j) for j in deduplicate(all_jobs)]
            result.jobs = final
            result.total_jobs = len(final)
            result.new_jobs = len(final)
            result.stats = compute_stats(final)
        except Exception:
            log.exception("collection failed")
            result.success = False

        result.duration_ms = int((self._clock() - started) * 1000)
        log.info("collection completed: %d jobs in %dms", result.total_jobs, result.duration_ms)
        return result
