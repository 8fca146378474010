from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from requests import RequestException
from selectolax.parser import HTMLParser, Node

from ..models import Job, utcnow
from ..page_fetch import http_get, new_session, node_attr, node_text
from .common import Clock, make_job, parse_iso_date


log = logging.getLogger(__name__)

SEARCH_URL = "https://www.linkedin.com/jobs-guest/jobs/api/seeMoreJobPostings/search"
DETAIL_URL = "https://www.linkedin.com/jobs-guest/jobs/api/jobPosting/{job_id}"
VIEW_URL = "https://www.linkedin.com/jobs/view/{job_id}"


@dataclass
class LinkedInConfig:
    search_url: str = SEARCH_URL
    # Guest pages hold 25 cards; each extra page is one more request.
    max_pages: int = 1
    # One extra request per card; off by default to stay polite.
    fetch_details: bool = False
    remote_only: bool = True
    timeout_s: float = 30


def job_id_from_href(href: str) -> str:
    # .../jobs/view/devops-engineer-at-acme-3812345678?refId=... -> 3812345678
    tail = href.split("?", 1)[0].rstrip("/")
    return tail.rsplit("-", 1)[-1].rsplit("/", 1)[-1]


class LinkedInSource:
    """LinkedIn's public (guest) job search endpoint; no login needed."""

    name = "linkedin"

    def __init__(self, cfg: Optional[LinkedInConfig] = None, session: Any = None, clock: Clock = utcnow) -> None:
        self.cfg = cfg or LinkedInConfig()
        self.session = session or new_session()
        self.clock = clock

    def _params(self, query: str, location: Optional[str], start: int) -> Dict[str, str]:
        params = {
            "keywords": query,
            "location": location or "Worldwide",
            "sortBy": "DD",
            "f_TPR": "r86400",
            "start": str(start),
        }
        if self.cfg.remote_only:
            params["f_WT"] = "2"
        return params

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        jobs: List[Job] = []
        for page in range(max(1, self.cfg.max_pages)):
            resp = http_get(
                self.session,
                self.cfg.search_url,
                params=self._params(query, location, page * 25),
                timeout_s=self.cfg.timeout_s,
            )
            page_jobs = self.parse_page(resp.text)
            if not page_jobs:
                break
            jobs.extend(page_jobs)
        return jobs

    def parse_page(self, html: str) -> List[Job]:
        tree = HTMLParser(html or "")
        now = self.clock()
        jobs: List[Job] = []
        for card in tree.css(".base-search-card, .job-search-card"):
            try:
                job = self._parse_card(card, now)
            except Exception as e:
                log.debug("linkedin: skipping card: %s", e)
                continue
            if job is not None:
                jobs.append(job)
        return jobs

    def _description(self, job_id: str) -> str:
        if not self.cfg.fetch_details:
            return ""
        try:
            resp = http_get(self.session, DETAIL_URL.format(job_id=job_id), timeout_s=self.cfg.timeout_s)
        except RequestException as e:
            # A missing description only degrades one listing.
            log.debug("linkedin: no details for %s: %s", job_id, e)
            return ""
        return node_text(HTMLParser(resp.text).root, ".show-more-less-html__markup")

    def _parse_card(self, card: Node, now) -> Optional[Job]:
        title = node_text(card, ".base-search-card__title") or node_text(card, ".job-search-card__title")
        company = node_text(card, ".base-search-card__subtitle") or node_text(card, ".job-search-card__company-name")
        location = node_text(card, ".job-search-card__location")
        href = node_attr(card, "a.base-card__full-link", "href") or node_attr(card, "a", "href")
        job_id = (card.attributes.get("data-entity-urn") or "").rsplit(":", 1)[-1] or job_id_from_href(href)
        if not (title and company and job_id):
            return None

        posted_raw = node_attr(card, "time", "datetime")
        return make_job(
            source=self.name,
            original_id=job_id,
            title=title,
            company=company,
            location=location or "Worldwide",
            description=self._description(job_id),
            url=VIEW_URL.format(job_id=job_id),
            posted_at=parse_iso_date(posted_raw),
            original_posted_date=posted_raw,
            salary_text=node_text(card, ".job-search-card__salary-info"),
            contract_hint=f"{location} {'remote' if self.cfg.remote_only else ''}",
            now=now,
        )
