from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from selectolax.parser import HTMLParser, Node

from ..ids import absolute_url
from ..models import ContractType, Job, Region, SalaryPeriod, utcnow
from ..page_fetch import http_get, new_session, node_attr, node_text
from ..salary import parse_salary
from .common import Clock, make_job, parse_iso_date


log = logging.getLogger(__name__)

SEARCH_URL = "https://www.upwork.com/nx/jobs/search"
BASE_URL = "https://www.upwork.com"


@dataclass
class UpworkConfig:
    search_url: str = SEARCH_URL
    # Intermediate and Expert
    contractor_tier: str = "2,3"
    timeout_s: float = 30


class UpworkSource:
    """Upwork freelance postings. Clients are anonymous, every gig is remote."""

    name = "upwork"

    def __init__(self, cfg: Optional[UpworkConfig] = None, session: Any = None, clock: Clock = utcnow) -> None:
        self.cfg = cfg or UpworkConfig()
        self.session = session or new_session()
        self.clock = clock

    def _params(self, query: str) -> Dict[str, str]:
        return {
            "q": query,
            "sort": "recency",
            "contractor_tier": self.cfg.contractor_tier,
            # Both hourly and fixed price
            "t": "0,1",
        }

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        # Upwork search has no location filter.
        resp = http_get(self.session, self.cfg.search_url, params=self._params(query), timeout_s=self.cfg.timeout_s)
        return self.parse_page(resp.text)

    def parse_page(self, html: str) -> List[Job]:
        tree = HTMLParser(html or "")
        now = self.clock()
        jobs: List[Job] = []
        for tile in tree.css(".job-tile"):
            try:
                job = self._parse_tile(tile, now)
            except Exception as e:
                log.debug("upwork: skipping tile: %s", e)
                continue
            if job is not None:
                jobs.append(job)
        return jobs

    def _parse_tile(self, tile: Node, now) -> Optional[Job]:
        title = node_text(tile, ".job-title")
        description = node_text(tile, ".job-description")
        link = node_attr(tile, "a.job-link", "href") or node_attr(tile, ".job-title a", "href")
        if not (title and description and link):
            return None

        posted_raw = node_attr(tile, ".job-date", "datetime")
        budget = node_text(tile, ".budget")

        job = make_job(
            source=self.name,
            original_id=link.split("?", 1)[0],
            title=title,
            company="Upwork Client",
            location="Remote",
            description=description,
            url=absolute_url(link, BASE_URL),
            posted_at=parse_iso_date(posted_raw),
            original_posted_date=posted_raw,
            salary_text=budget,
            region=Region.OTHER,
            contract_type=ContractType.REMOTE,
            now=now,
        )

        # Budgets without an explicit period are hourly rates on Upwork.
        salary = parse_salary(budget)
        if salary is not None and "fixed" not in budget.lower() and salary.period is SalaryPeriod.YEAR:
            job = replace(job, salary=replace(salary, period=SalaryPeriod.HOUR))
        return job
