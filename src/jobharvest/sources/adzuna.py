from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from ..errors import SourceConfigError
from ..models import Job, SalaryPeriod, SalaryRange, utcnow
from ..page_fetch import http_get, new_session
from .common import Clock, make_job, parse_iso_date


log = logging.getLogger(__name__)

# Tokens the orchestrator uses for broad searches; Adzuna's "where" wants a real place.
_BROAD_LOCATIONS = {"remote", "global", "apac", "eu", "na", "worldwide", ""}

_COUNTRY_CURRENCY = {"gb": "GBP", "us": "USD", "de": "EUR", "fr": "EUR", "nl": "EUR", "au": "AUD", "ca": "CAD", "sg": "SGD", "in": "INR"}


@dataclass
class AdzunaConfig:
    app_id: str = ""
    app_key: str = ""
    country: str = "gb"
    results_per_page: int = 50
    timeout_s: float = 30

    @property
    def search_url(self) -> str:
        # Adzuna paginates with integer pages: /search/1, /search/2, ...
        return f"https://api.adzuna.com/v1/api/jobs/{self.country}/search/1"


class AdzunaSource:
    """Adzuna's jobs API. Needs ADZUNA_APP_ID / ADZUNA_APP_KEY."""

    name = "adzuna"

    def __init__(self, cfg: Optional[AdzunaConfig] = None, session: Any = None, clock: Clock = utcnow) -> None:
        self.cfg = cfg or AdzunaConfig()
        self.session = session or new_session()
        self.clock = clock

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        if not (self.cfg.app_id and self.cfg.app_key):
            raise SourceConfigError("adzuna: ADZUNA_APP_ID and ADZUNA_APP_KEY are not set")

        params: Dict[str, Any] = {
            "app_id": self.cfg.app_id,
            "app_key": self.cfg.app_key,
            "what": query,
            "results_per_page": self.cfg.results_per_page,
            "content-type": "application/json",
        }
        where = (location or "").strip()
        if where.lower() not in _BROAD_LOCATIONS:
            params["where"] = where

        resp = http_get(self.session, self.cfg.search_url, params=params, timeout_s=self.cfg.timeout_s)
        data = resp.json()

        now = self.clock()
        jobs: List[Job] = []
        for x in data.get("results", []) or []:
            try:
                job = self._parse(x, now)
            except Exception as e:
                log.debug("adzuna: skipping listing %r: %s", x.get("id") if isinstance(x, dict) else x, e)
                continue
            if job is not None:
                jobs.append(job)
        return jobs

    def _parse(self, x: Dict[str, Any], now) -> Optional[Job]:
        title = (x.get("title") or "").strip()
        url = (x.get("redirect_url") or "").strip()
        if not (title and url):
            return None

        job = make_job(
            source=self.name,
            original_id=str(x.get("id") or ""),
            title=title,
            company=((x.get("company") or {}).get("display_name") or "").strip(),
            location=((x.get("location") or {}).get("display_name") or "").strip(),
            description=(x.get("description") or "").strip(),
            url=url,
            posted_at=parse_iso_date(x.get("created") or ""),
            original_posted_date=x.get("created") or "",
            contract_hint=" ".join(
                p for p in ((x.get("location") or {}).get("display_name"), x.get("contract_type")) if p
            ),
            now=now,
        )

        lo, hi = x.get("salary_min"), x.get("salary_max")
        if lo is None and hi is None:
            return job
        lo = float(lo if lo is not None else hi)
        hi = float(hi if hi is not None else lo)
        salary = SalaryRange(
            min=lo,
            max=hi,
            currency=_COUNTRY_CURRENCY.get(self.cfg.country, "USD"),
            period=SalaryPeriod.YEAR,
        )
        return replace(job, salary=salary, salary_text="")
