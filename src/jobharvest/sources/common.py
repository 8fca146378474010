"""What every source adapter shares.

Adapters differ only in how they build a request and how they read fields out
of the response; turning those fields into a canonical ``Job`` happens here.
"""

from __future__ import annotations

import datetime as dt
import re
from email.utils import parsedate_to_datetime
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from ..classify import categorize, determine_contract_type, determine_region, extract_skills
from ..ids import canonicalize_url, stable_job_id
from ..models import ContractType, Job, Region, SourceData, as_utc, utcnow
from ..salary import parse_salary


Clock = Callable[[], dt.datetime]


class SourceAdapter(Protocol):
    name: str

    def search_jobs(self, query: str, location: Optional[str] = None) -> List[Job]:
        """Return canonical jobs for one query/location.

        Must raise on transport failures (network error, non-2xx, timeout) and
        must not raise because one listing could not be parsed.
        """
        ...


def make_job(
    *,
    source: str,
    title: str,
    company: str,
    location: str,
    url: str,
    description: str = "",
    original_id: str = "",
    posted_at: Optional[dt.datetime] = None,
    original_posted_date: str = "",
    salary_text: str = "",
    contract_hint: str = "",
    region: Optional[Region] = None,
    contract_type: Optional[ContractType] = None,
    application_url: Optional[str] = None,
    requirements: Sequence[str] = (),
    now: Optional[dt.datetime] = None,
) -> Job:
    """Build a canonical job and apply the shared classification helpers."""
    original_id = (original_id or "").strip() or canonicalize_url(url)
    posted_at = as_utc(posted_at)
    now = now or utcnow()
    salary = parse_salary(salary_text)

    return Job(
        id=stable_job_id(source, original_id),
        title=title,
        company=company,
        location=location,
        description=description,
        url=canonicalize_url(url) or url,
        source=source,
        source_data=SourceData(
            original_id=original_id,
            original_url=url,
            original_posted_date=original_posted_date or (posted_at.isoformat() if posted_at else ""),
            application_url=application_url,
            requirements=tuple(requirements),
        ),
        category=categorize(title, description),
        region=region or determine_region(location),
        contract_type=contract_type or determine_contract_type(contract_hint or location),
        skills=extract_skills(description),
        salary=salary,
        salary_text="" if salary is not None else (salary_text or "").strip(),
        posted_at=posted_at,
        created_at=now,
        updated_at=now,
    )


def matches_query(query: str, *texts: str) -> bool:
    """Every whitespace-separated query term appears somewhere in ``texts``."""
    terms = [t for t in (query or "").lower().split() if t]
    if not terms:
        return True
    blob = " ".join(texts).lower()
    return all(t in blob for t in terms)


def parse_iso_date(s: str) -> Optional[dt.datetime]:
    s = (s or "").strip()
    if not s:
        return None
    try:
        return as_utc(dt.datetime.fromisoformat(s.replace("Z", "+00:00")))
    except ValueError:
        return None


def parse_rfc2822_date(s: str) -> Optional[dt.datetime]:
    # RSS pubDate is RFC2822. Example: "Fri, 31 Jan 2026 19:42:10 +0000"
    s = (s or "").strip()
    if not s:
        return None
    try:
        return as_utc(parsedate_to_datetime(s))
    except (TypeError, ValueError):
        return None


# (unit words, seconds per unit). English and Vietnamese boards.
RELATIVE_UNITS: List[Tuple[Tuple[str, ...], int]] = [
    (("minute", "min", "phút"), 60),
    (("hour", "giờ"), 3600),
    (("day", "ngày"), 86400),
    (("week", "tuần"), 7 * 86400),
    (("month", "tháng"), 30 * 86400),
]

_NUM_RE = re.compile(r"\d+")


def parse_relative_date(text: str, now: dt.datetime) -> Optional[dt.datetime]:
    """Resolve "3 days ago" / "30+ days ago" / "5 giờ trước" / "Just posted"."""
    t = (text or "").strip().lower()
    if not t:
        return None
    if any(w in t for w in ("just posted", "today", "hôm nay", "vừa đăng")):
        return now
    m = _NUM_RE.search(t)
    amount = int(m.group(0)) if m else 1
    for words, seconds in RELATIVE_UNITS:
        if any(w in t for w in words):
            return now - dt.timedelta(seconds=amount * seconds)
    return None
