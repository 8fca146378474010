from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, List, Optional

from ..models import ContractType, Job, utcnow
from ..page_fetch import html_to_text, http_get, new_session
from .common import Clock, make_job, matches_query, parse_rfc2822_date


log = logging.getLogger(__name__)

RSS_URL = "https://weworkremotely.com/categories/remote-devops-sysadmin-jobs.rss"


@dataclass
class WWRConfig:
    # We Work Remotely provides RSS per category.
    rss_url: str = RSS_URL
    timeout_s: float = 30


class WeWorkRemotelySource:
    name = "weworkremotely"

    def __init__(self, cfg: Optional[WWRConfig] = None, session: Any = None, clock: Clock = utcnow) -> None:
        self.cfg = cfg or WWRConfig()
        self.session = session or new_session()
        self.clock = clock

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        resp = http_get(self.session, self.cfg.rss_url, timeout_s=self.cfg.timeout_s)
        root = ET.fromstring(resp.content)
        channel = root.find("channel")
        if channel is None:
            return []

        now = self.clock()
        jobs: List[Job] = []
        for item in channel.findall("item"):
            try:
                job = self._parse_item(item, now)
            except Exception as e:
                log.debug("weworkremotely: skipping item: %s", e)
                continue
            if job is not None and matches_query(query, job.title, job.description, job.company):
                jobs.append(job)
        return jobs

    def _parse_item(self, item: ET.Element, now) -> Optional[Job]:
        title = (item.findtext("title") or "").strip()
        link = (item.findtext("link") or "").strip()
        if not (title and link):
            return None

        # Company is usually before the colon in the RSS title: "Company: Role"
        company, role = "", title
        if ":" in title:
            company, role = [x.strip() for x in title.split(":", 1)]

        return make_job(
            source=self.name,
            original_id=(item.findtext("guid") or "").strip() or link,
            title=role or title,
            company=company,
            location=(item.findtext("region") or "").strip() or "Remote",
            description=html_to_text(item.findtext("description") or ""),
            url=link,
            posted_at=parse_rfc2822_date(item.findtext("pubDate") or ""),
            contract_type=ContractType.REMOTE,
            now=now,
        )
