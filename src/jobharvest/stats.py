from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Iterable, List

from .models import Job


def compute_stats(jobs: Iterable[Job]) -> Dict[str, Any]:
    """Breakdown counts for a job set. Always recomputed, never accumulated."""
    jobs = list(jobs)
    with_salary = sum(1 for j in jobs if j.has_salary)
    return {
        "total": len(jobs),
        "bySource": dict(Counter(j.source for j in jobs)),
        "byCategory": dict(Counter(j.category.value for j in jobs)),
        "byRegion": dict(Counter(j.region.value for j in jobs)),
        "byContractType": dict(Counter(j.contract_type.value for j in jobs)),
        "bySalary": {"withSalary": with_salary, "withoutSalary": len(jobs) - with_salary},
    }


def available_values(jobs: Iterable[Job]) -> Dict[str, List[str]]:
    jobs = list(jobs)
    return {
        "sources": sorted({j.source for j in jobs}),
        "categories": sorted({j.category.value for j in jobs}),
        "regions": sorted({j.region.value for j in jobs}),
    }
