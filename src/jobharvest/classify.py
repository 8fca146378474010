from __future__ import annotations

import unicodedata
from dataclasses import dataclass, replace
from typing import Iterable, List, Tuple

from .models import Category, Classification, ContractType, Job, Region


# Shared by every adapter and by the enrichment pass.
# All matching is plain substring matching on lowercased text; rule order matters.


@dataclass(frozen=True)
class KeywordRule:
    label: str
    keywords: List[str]

    def matches(self, text: str) -> bool:
        return any(k in text for k in self.keywords)


CATEGORY_RULES: List[KeywordRule] = [
    KeywordRule(Category.DEVSECOPS.value, ["security", "devsecops", "compliance", "audit"]),
    KeywordRule(Category.DEVOPS.value, ["devops", "ci/cd", "pipeline", "automation"]),
    KeywordRule(Category.SRE.value, ["sre", "reliability", "infrastructure"]),
    KeywordRule(Category.CLOUD.value, ["cloud", "aws", "azure", "gcp"]),
]

REGION_RULES: List[KeywordRule] = [
    KeywordRule(
        Region.APAC.value,
        [
            "asia",
            "pacific",
            "singapore",
            "japan",
            "korea",
            "australia",
            "india",
            "vietnam",
            "viet nam",
            "ho chi minh",
            "hanoi",
            "da nang",
            # Vietnamese boards keep the diacritics.
            "việt nam",
            "hồ chí minh",
            "hà nội",
            "đà nẵng",
            "thailand",
            "malaysia",
            "philippines",
            "indonesia",
            "china",
            "hong kong",
            "taiwan",
        ],
    ),
    KeywordRule(
        Region.EU.value,
        [
            "europe",
            "germany",
            "france",
            "uk",
            "spain",
            "italy",
            "netherlands",
            "sweden",
            "norway",
            "denmark",
            "finland",
            "poland",
            "portugal",
            "austria",
            "belgium",
            "switzerland",
        ],
    ),
    KeywordRule(Region.NA.value, ["united states", "usa", "canada", "mexico"]),
]

CONTRACT_RULES: List[KeywordRule] = [
    KeywordRule(ContractType.REMOTE.value, ["remote"]),
    KeywordRule(ContractType.CONTRACT.value, ["contract"]),
    KeywordRule(ContractType.HYBRID.value, ["hybrid"]),
    KeywordRule(ContractType.ONSITE.value, ["onsite"]),
]

SKILL_VOCABULARY: List[str] = [
    # Cloud platforms
    "AWS",
    "Azure",
    "GCP",
    "Google Cloud",
    "Amazon Web Services",
    # Containers & orchestration
    "Docker",
    "Kubernetes",
    "K8s",
    "OpenShift",
    "Rancher",
    "Helm",
    # Infrastructure as code
    "Terraform",
    "CloudFormation",
    "Ansible",
    "Pulumi",
    "CDK",
    # CI/CD
    "Jenkins",
    "GitLab CI",
    "GitHub Actions",
    "Azure DevOps",
    "CircleCI",
    "Travis CI",
    "CI/CD",
    # Observability
    "Prometheus",
    "Grafana",
    "ELK Stack",
    "Datadog",
    "New Relic",
    "Splunk",
    "Jaeger",
    "Zipkin",
    "OpenTelemetry",
    # Languages
    "Python",
    "Go",
    "Bash",
    "Shell",
    "PowerShell",
    "YAML",
    "JSON",
    # Databases
    "PostgreSQL",
    "MySQL",
    "MongoDB",
    "Redis",
    "Elasticsearch",
    # Tooling
    "Git",
    "GitHub",
    "GitLab",
    "Bitbucket",
    "Jira",
    "Confluence",
    "Linux",
    # SRE
    "SRE",
    "Site Reliability",
    "SLI",
    "SLO",
    "Error Budget",
    "Incident Response",
    # FinOps
    "FinOps",
    "Cloud Cost",
    "Cost Optimization",
    # Security
    "DevSecOps",
    "Security",
    "Compliance",
    "SOC2",
    "ISO27001",
]

_SKILLS_LOWER: List[Tuple[str, str]] = [(s, s.lower()) for s in SKILL_VOCABULARY]


def _first_match(rules: Iterable[KeywordRule], text: str) -> str:
    # NFC so decomposed Vietnamese text matches the composed keywords.
    t = unicodedata.normalize("NFC", text or "").lower()
    for rule in rules:
        if rule.matches(t):
            return rule.label
    return ""


def categorize(title: str, description: str) -> Category:
    label = _first_match(CATEGORY_RULES, f"{title or ''} {description or ''}")
    return Category(label) if label else Category.OTHER


def determine_region(location: str) -> Region:
    label = _first_match(REGION_RULES, location)
    return Region(label) if label else Region.OTHER


def determine_contract_type(text: str) -> ContractType:
    label = _first_match(CONTRACT_RULES, text)
    return ContractType(label) if label else ContractType.PERMANENT


def extract_skills(description: str) -> Tuple[str, ...]:
    t = (description or "").lower()
    return tuple(skill for skill, low in _SKILLS_LOWER if low in t)


def classification_of(job: Job) -> Classification:
    return Classification(category=job.category, region=job.region, contract_type=job.contract_type)


def enrich(job: Job) -> Job:
    """Re-derive classification from free text, keeping what the adapter said.

    The first enrichment records the adapter's values; later passes (e.g. over an
    already-enriched corpus) leave that record untouched.
    """
    original = job.adapter_classification or classification_of(job)
    return replace(
        job,
        skills=extract_skills(job.description),
        category=categorize(job.title, job.description),
        region=determine_region(job.location),
        contract_type=determine_contract_type(f"{job.location} {job.title}"),
        adapter_classification=original,
    )
