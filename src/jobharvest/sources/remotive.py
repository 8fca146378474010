from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..models import Job, utcnow
from ..page_fetch import html_to_text, http_get, new_session
from .common import Clock, make_job, parse_iso_date


log = logging.getLogger(__name__)

API_URL = "https://remotive.com/api/remote-jobs"


@dataclass
class RemotiveConfig:
    api_url: str = API_URL
    limit: int = 100
    timeout_s: float = 30


class RemotiveSource:
    """Remotive's public JSON API.

    Note: Remotive states their public API results can be delayed by ~24h.
    """

    name = "remotive"

    def __init__(self, cfg: Optional[RemotiveConfig] = None, session: Any = None, clock: Clock = utcnow) -> None:
        self.cfg = cfg or RemotiveConfig()
        self.session = session or new_session()
        self.clock = clock

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        params: Dict[str, Any] = {"limit": self.cfg.limit}
        if query:
            params["search"] = query

        resp = http_get(self.session, self.cfg.api_url, params=params, timeout_s=self.cfg.timeout_s)
        data = resp.json()

        now = self.clock()
        jobs: List[Job] = []
        for j in data.get("jobs", []) or []:
            try:
                job = self._parse(j, now)
            except Exception as e:
                log.debug("remotive: skipping listing %r: %s", j.get("id") if isinstance(j, dict) else j, e)
                continue
            if job is not None:
                jobs.append(job)
        return jobs

    def _parse(self, j: Dict[str, Any], now) -> Optional[Job]:
        url = (j.get("url") or "").strip()
        title = (j.get("title") or "").strip()
        if not (url and title):
            return None

        location = (j.get("candidate_required_location") or "").strip() or "Remote"
        job_type = (j.get("job_type") or "").replace("_", " ")

        return make_job(
            source=self.name,
            original_id=str(j.get("id") or ""),
            title=title,
            company=(j.get("company_name") or "").strip(),
            location=location,
            description=html_to_text(j.get("description") or ""),
            url=url,
            posted_at=parse_iso_date(j.get("publication_date") or ""),
            original_posted_date=j.get("publication_date") or "",
            salary_text=(j.get("salary") or "").strip(),
            # Every Remotive listing is remote; job_type refines contract vs permanent.
            contract_hint=f"remote {job_type}",
            now=now,
        )
