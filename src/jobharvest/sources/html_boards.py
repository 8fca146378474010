"""Job boards scraped from a server-rendered search result page.

Each board is a ``BoardSpec``: where to send the query and which selectors pick
the fields out of one result card. ``HtmlBoard`` runs any spec, so adding a
board means adding data, not a class.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from selectolax.parser import HTMLParser, Node

from ..ids import absolute_url
from ..models import Job, Region, utcnow
from ..page_fetch import http_get, new_session, node_attr, node_text
from .common import Clock, make_job, parse_iso_date, parse_relative_date


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoardSpec:
    name: str
    search_url: str
    base_url: str
    card: str
    title: str
    link: str
    company: str = ""
    location: str = ""
    salary: str = ""
    description: str = ""
    posted: str = ""
    # Attribute holding a machine-readable date on the ``posted`` node, if any.
    posted_attr: str = ""
    # Attribute on the card holding the board's own listing id, if any.
    id_attr: str = ""
    query_param: str = "q"
    location_param: str = ""
    location_extra: Dict[str, str] = field(default_factory=dict)
    extra_params: Dict[str, str] = field(default_factory=dict)
    default_location: str = "Remote"
    region: Optional[Region] = None


INDEED = BoardSpec(
    name="indeed",
    search_url="https://www.indeed.com/jobs",
    base_url="https://www.indeed.com",
    card=".job_seen_beacon",
    title=".jobTitle a",
    link=".jobTitle a",
    company=".companyName",
    location=".companyLocation",
    salary=".salary-snippet",
    description=".job-snippet",
    posted=".date",
    id_attr="data-jk",
    location_param="l",
)

GLASSDOOR = BoardSpec(
    name="glassdoor",
    search_url="https://www.glassdoor.com/Job/jobs.htm",
    base_url="https://www.glassdoor.com",
    card=".react-job-listing",
    title=".jobLink",
    link=".jobLink",
    company=".jobInfoItem .employerName",
    location=".jobInfoItem .loc",
    salary=".salaryText",
    description=".jobDescriptionContent",
    posted=".listing-age",
    id_attr="data-id",
    query_param="sc.keyword",
    location_param="locId",
    location_extra={"locT": "C"},
)

WELLFOUND = BoardSpec(
    name="wellfound",
    search_url="https://wellfound.com/role_locations",
    base_url="https://wellfound.com",
    card=".job-card",
    title=".job-title",
    link=".job-link",
    company=".company-name",
    location=".job-location",
    salary=".salary",
    description=".job-description",
    query_param="search",
    location_param="location",
)

VIETNAMWORKS = BoardSpec(
    name="vietnamworks",
    search_url="https://www.vietnamworks.com/tim-viec-lam",
    base_url="https://www.vietnamworks.com",
    card=".job-item",
    title=".job-title a",
    link=".job-title a",
    company=".company-name",
    location=".job-location",
    salary=".salary",
    description=".job-description",
    posted=".job-posted",
    location_param="location",
    default_location="Vietnam",
    region=Region.APAC,
)

TOPCV = BoardSpec(
    name="topcv",
    search_url="https://www.topcv.vn/tim-viec-lam",
    base_url="https://www.topcv.vn",
    card=".job-item",
    title=".job-title a",
    link=".job-title a",
    company=".company-name",
    location=".job-location",
    salary=".salary",
    description=".job-description",
    posted=".job-posted",
    location_param="location",
    default_location="Vietnam",
    region=Region.APAC,
)

ITVIEC = BoardSpec(
    name="itviec",
    search_url="https://itviec.com/it-jobs",
    base_url="https://itviec.com",
    card=".job",
    title=".job-title a",
    link=".job-title a",
    company=".company-name",
    location=".job-location",
    salary=".salary",
    description=".job-description",
    posted=".distance-time",
    query_param="query",
    location_param="city",
    default_location="Vietnam",
    region=Region.APAC,
)

CAREERBUILDER_VN = BoardSpec(
    name="careerbuilder",
    search_url="https://careerbuilder.vn/viec-lam",
    base_url="https://careerbuilder.vn",
    card=".job-item",
    title=".job-title a",
    link=".job-title a",
    company=".company-name",
    location=".job-location",
    salary=".salary",
    description=".job-description",
    query_param="keyword",
    location_param="location",
    default_location="Vietnam",
    region=Region.APAC,
)

BOARDS: Dict[str, BoardSpec] = {
    b.name: b for b in (INDEED, GLASSDOOR, WELLFOUND, VIETNAMWORKS, TOPCV, ITVIEC, CAREERBUILDER_VN)
}


class HtmlBoard:
    def __init__(self, spec: BoardSpec, session: Any = None, clock: Clock = utcnow, timeout_s: float = 30) -> None:
        self.spec = spec
        self.name = spec.name
        self.session = session or new_session()
        self.clock = clock
        self.timeout_s = timeout_s

    def build_params(self, query: str, location: Optional[str] = None) -> Dict[str, str]:
        params: Dict[str, str] = {self.spec.query_param: query, **self.spec.extra_params}
        if location and self.spec.location_param:
            params.update(self.spec.location_extra)
            params[self.spec.location_param] = location
        return params

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        resp = http_get(
            self.session,
            self.spec.search_url,
            params=self.build_params(query, location),
            timeout_s=self.timeout_s,
        )
        return self.parse_page(resp.text)

    def parse_page(self, html: str) -> List[Job]:
        tree = HTMLParser(html or "")
        now = self.clock()
        jobs: List[Job] = []
        for card in tree.css(self.spec.card):
            try:
                job = self._parse_card(card, now)
            except Exception as e:
                log.debug("%s: skipping card: %s", self.name, e)
                continue
            if job is not None:
                jobs.append(job)
        return jobs

    def _parse_card(self, card: Node, now) -> Optional[Job]:
        s = self.spec
        title = node_text(card, s.title)
        company = node_text(card, s.company)
        href = node_attr(card, s.link, "href")
        if not (title and company and href):
            log.debug("%s: card missing title/company/link", self.name)
            return None

        posted_at = None
        posted_raw = ""
        if s.posted:
            if s.posted_attr:
                posted_raw = node_attr(card, s.posted, s.posted_attr)
                posted_at = parse_iso_date(posted_raw)
            else:
                posted_raw = node_text(card, s.posted)
                posted_at = parse_relative_date(posted_raw, now)

        location = node_text(card, s.location) or s.default_location
        return make_job(
            source=self.name,
            original_id=(card.attributes.get(s.id_attr) or "") if s.id_attr else "",
            title=title,
            company=company,
            location=location,
            description=node_text(card, s.description),
            url=absolute_url(href, s.base_url),
            posted_at=posted_at,
            original_posted_date=posted_raw,
            salary_text=node_text(card, s.salary),
            region=s.region,
            now=now,
        )
