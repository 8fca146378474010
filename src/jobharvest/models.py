from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar


class Category(str, Enum):
    DEVSECOPS = "DevSecOps"
    DEVOPS = "DevOps"
    SRE = "SRE"
    CLOUD = "Cloud"
    OTHER = "Other"


class Region(str, Enum):
    APAC = "APAC"
    EU = "EU"
    NA = "NA"
    OTHER = "OTHER"


class ContractType(str, Enum):
    REMOTE = "remote"
    HYBRID = "hybrid"
    ONSITE = "onsite"
    CONTRACT = "contract"
    PERMANENT = "permanent"


class JobStatus(str, Enum):
    ACTIVE = "active"
    EXPIRED = "expired"
    IGNORED = "ignored"
    APPLIED = "applied"


class SalaryPeriod(str, Enum):
    HOUR = "hour"
    MONTH = "month"
    YEAR = "year"


E = TypeVar("E", bound=Enum)


def enum_from_text(cls: Type[E], text: str) -> E:
    """Case-insensitive lookup by value or member name ("devops", "DEVSECOPS", "Remote")."""
    key = text.strip().lower()
    for member in cls:
        if member.value.lower() == key or member.name.lower() == key:
            return member
    choices = ", ".join(m.value for m in cls)
    raise ValueError(f"unknown {cls.__name__} {text!r} (expected one of: {choices})")


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(d: Optional[dt.datetime]) -> Optional[dt.datetime]:
    if d is None:
        return None
    if d.tzinfo is None:
        d = d.replace(tzinfo=dt.timezone.utc)
    return d.astimezone(dt.timezone.utc)


def iso_utc(d: Optional[dt.datetime]) -> Optional[str]:
    d = as_utc(d)
    if d is None:
        return None
    return d.isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_iso_utc(s: Any) -> Optional[dt.datetime]:
    if not s:
        return None
    return as_utc(dt.datetime.fromisoformat(str(s).replace("Z", "+00:00")))


def _category(value: Any) -> Category:
    try:
        return Category(value)
    except ValueError:
        return Category.OTHER


def _region(value: Any) -> Region:
    try:
        return Region(value)
    except ValueError:
        return Region.OTHER


def _contract_type(value: Any) -> ContractType:
    try:
        return ContractType(value)
    except ValueError:
        return ContractType.PERMANENT


@dataclass(frozen=True)
class SalaryRange:
    min: float
    max: float
    currency: str = "USD"
    period: SalaryPeriod = SalaryPeriod.YEAR

    def to_dict(self) -> Dict[str, Any]:
        return {"min": self.min, "max": self.max, "currency": self.currency, "period": self.period.value}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SalaryRange":
        return cls(
            min=float(d.get("min") or 0),
            max=float(d.get("max") or 0),
            currency=d.get("currency") or "USD",
            period=SalaryPeriod(d.get("period") or "year"),
        )


@dataclass(frozen=True)
class SourceData:
    original_id: str
    original_url: str
    original_posted_date: str = ""
    application_url: Optional[str] = None
    requirements: Tuple[str, ...] = ()
    benefits: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "originalId": self.original_id,
            "originalUrl": self.original_url,
            "originalPostedDate": self.original_posted_date,
        }
        if self.application_url:
            d["applicationUrl"] = self.application_url
        if self.requirements:
            d["requirements"] = list(self.requirements)
        if self.benefits:
            d["benefits"] = list(self.benefits)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SourceData":
        return cls(
            original_id=str(d.get("originalId") or ""),
            original_url=d.get("originalUrl") or "",
            original_posted_date=d.get("originalPostedDate") or "",
            application_url=d.get("applicationUrl"),
            requirements=tuple(d.get("requirements") or ()),
            benefits=tuple(d.get("benefits") or ()),
        )


@dataclass(frozen=True)
class JobMetadata:
    is_bookmarked: bool = False
    is_ignored: bool = False
    notes: str = ""
    tags: Tuple[str, ...] = ()
    # Unknown keys written by other tools survive a load/save cycle.
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = dict(self.extra)
        d.update({"isBookmarked": self.is_bookmarked, "isIgnored": self.is_ignored})
        if self.notes:
            d["notes"] = self.notes
        if self.tags:
            d["tags"] = list(self.tags)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "JobMetadata":
        known = {"isBookmarked", "isIgnored", "notes", "tags"}
        return cls(
            is_bookmarked=bool(d.get("isBookmarked", False)),
            is_ignored=bool(d.get("isIgnored", False)),
            notes=d.get("notes") or "",
            tags=tuple(d.get("tags") or ()),
            extra={k: v for k, v in d.items() if k not in known},
        )


@dataclass(frozen=True)
class Classification:
    """Category/region/contract type as one adapter produced them."""

    category: Category
    region: Region
    contract_type: ContractType

    def to_dict(self) -> Dict[str, str]:
        return {
            "category": self.category.value,
            "region": self.region.value,
            "contractType": self.contract_type.value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Classification":
        return cls(
            category=_category(d.get("category")),
            region=_region(d.get("region")),
            contract_type=_contract_type(d.get("contractType")),
        )


@dataclass(frozen=True)
class Job:
    id: str
    title: str
    company: str
    location: str
    description: str
    url: str
    source: str
    source_data: SourceData
    category: Category = Category.OTHER
    region: Region = Region.OTHER
    contract_type: ContractType = ContractType.PERMANENT
    skills: Tuple[str, ...] = ()
    salary: Optional[SalaryRange] = None
    salary_text: str = ""
    posted_at: Optional[dt.datetime] = None
    status: JobStatus = JobStatus.ACTIVE
    metadata: JobMetadata = field(default_factory=JobMetadata)
    adapter_classification: Optional[Classification] = None
    created_at: dt.datetime = field(default_factory=utcnow)
    updated_at: dt.datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        # Mixed naive/aware datetimes would make recency comparisons raise.
        object.__setattr__(self, "posted_at", as_utc(self.posted_at))
        object.__setattr__(self, "created_at", as_utc(self.created_at))
        object.__setattr__(self, "updated_at", as_utc(self.updated_at))

    @property
    def has_salary(self) -> bool:
        return self.salary is not None or bool(self.salary_text.strip())

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "description": self.description,
            "url": self.url,
            "source": self.source,
            "sourceData": self.source_data.to_dict(),
            "category": self.category.value,
            "region": self.region.value,
            "contractType": self.contract_type.value,
            "skills": list(self.skills),
            "postedAt": iso_utc(self.posted_at),
            "status": self.status.value,
            "metadata": self.metadata.to_dict(),
            "createdAt": iso_utc(self.created_at),
            "updatedAt": iso_utc(self.updated_at),
        }
        if self.salary is not None:
            d["salary"] = self.salary.to_dict()
        if self.salary_text:
            d["salaryText"] = self.salary_text
        if self.adapter_classification is not None:
            d["adapterClassification"] = self.adapter_classification.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Job":
        salary = d.get("salary")
        adapter_cls = d.get("adapterClassification")
        created = parse_iso_utc(d.get("createdAt")) or utcnow()
        return cls(
            id=str(d.get("id") or ""),
            title=d.get("title") or "",
            company=d.get("company") or "",
            location=d.get("location") or "",
            description=d.get("description") or "",
            url=d.get("url") or "",
            source=d.get("source") or "",
            source_data=SourceData.from_dict(d.get("sourceData") or {}),
            category=_category(d.get("category")),
            region=_region(d.get("region")),
            contract_type=_contract_type(d.get("contractType")),
            skills=tuple(d.get("skills") or ()),
            salary=SalaryRange.from_dict(salary) if isinstance(salary, dict) else None,
            salary_text=d.get("salaryText") or (salary if isinstance(salary, str) else ""),
            posted_at=parse_iso_utc(d.get("postedAt")),
            status=JobStatus(d.get("status") or "active"),
            metadata=JobMetadata.from_dict(d.get("metadata") or {}),
            adapter_classification=Classification.from_dict(adapter_cls) if adapter_cls else None,
            created_at=created,
            updated_at=parse_iso_utc(d.get("updatedAt")) or created,
        )


def jobs_to_dicts(jobs: List[Job]) -> List[Dict[str, Any]]:
    return [j.to_dict() for j in jobs]
