from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any, List, Optional

from ..models import ContractType, Job, utcnow
from ..page_fetch import html_to_text, http_get, new_session
from .common import Clock, make_job, matches_query, parse_rfc2822_date


log = logging.getLogger(__name__)

RSS_URL = "https://remoteok.com/remote-jobs.rss"


@dataclass
class RemoteOKConfig:
    rss_url: str = RSS_URL
    timeout_s: float = 30


class RemoteOKSource:
    """RemoteOK's public RSS feed. The feed has no search, so the query is matched locally."""

    name = "remoteok"

    def __init__(self, cfg: Optional[RemoteOKConfig] = None, session: Any = None, clock: Clock = utcnow) -> None:
        self.cfg = cfg or RemoteOKConfig()
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
                log.debug("remoteok: skipping item: %s", e)
                continue
            if job is not None and matches_query(query, job.title, job.description, job.company):
                jobs.append(job)
        return jobs

    def _parse_item(self, item: ET.Element, now) -> Optional[Job]:
        title = (item.findtext("title") or "").strip()
        link = (item.findtext("link") or "").strip()
        if not (title and link):
            return None

        return make_job(
            source=self.name,
            original_id=(item.findtext("guid") or "").strip() or link,
            title=title,
            company=(item.findtext("company") or "").strip(),
            location=(item.findtext("location") or "").strip() or "Remote",
            description=html_to_text(item.findtext("description") or ""),
            url=link,
            posted_at=parse_rfc2822_date(item.findtext("pubDate") or ""),
            contract_type=ContractType.REMOTE,
            now=now,
        )
