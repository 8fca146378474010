from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from .config import AppConfig
from .page_fetch import new_session
from .sources.adzuna import AdzunaConfig, AdzunaSource
from .sources.common import SourceAdapter
from .sources.html_boards import BOARDS, HtmlBoard
from .sources.linkedin import LinkedInConfig, LinkedInSource
from .sources.remoteok import RemoteOKConfig, RemoteOKSource
from .sources.remotive import RemotiveConfig, RemotiveSource
from .sources.upwork import UpworkConfig, UpworkSource
from .sources.weworkremotely import WeWorkRemotelySource, WWRConfig


# Priority tiers (lower runs first).
GLOBAL_BOARDS = 1
PROFESSIONAL_NETWORKS = 2
REGIONAL_BOARDS = 3


@dataclass
class SourceRegistration:
    name: str
    adapter: SourceAdapter
    enabled: bool = True
    priority: int = GLOBAL_BOARDS
    # Requests admitted per 60-second window.
    rate_limit: int = 10


def default_registry(cfg: Optional[AppConfig] = None, session: Any = None) -> List[SourceRegistration]:
    """Every known source, wired with one shared HTTP session."""
    session = session or new_session()
    timeout_s = (cfg.timeout_ms / 1000) if cfg else 30
    disabled = cfg.disabled_sources if cfg else frozenset()

    def board(name: str) -> HtmlBoard:
        return HtmlBoard(BOARDS[name], session=session, timeout_s=timeout_s)

    regs = [
        SourceRegistration("remoteok", RemoteOKSource(RemoteOKConfig(timeout_s=timeout_s), session=session), priority=GLOBAL_BOARDS, rate_limit=15),
        SourceRegistration("weworkremotely", WeWorkRemotelySource(WWRConfig(timeout_s=timeout_s), session=session), priority=GLOBAL_BOARDS, rate_limit=10),
        SourceRegistration("remotive", RemotiveSource(RemotiveConfig(timeout_s=timeout_s), session=session), priority=GLOBAL_BOARDS, rate_limit=10),
        SourceRegistration(
            "adzuna",
            AdzunaSource(
                AdzunaConfig(
                    app_id=cfg.adzuna_app_id if cfg else "",
                    app_key=cfg.adzuna_app_key if cfg else "",
                    country=cfg.adzuna_country if cfg else "gb",
                    timeout_s=timeout_s,
                ),
                session=session,
            ),
            priority=GLOBAL_BOARDS,
            rate_limit=20,
        ),
        SourceRegistration("indeed", board("indeed"), priority=GLOBAL_BOARDS, rate_limit=20),
        SourceRegistration("glassdoor", board("glassdoor"), priority=GLOBAL_BOARDS, rate_limit=15),
        SourceRegistration("wellfound", board("wellfound"), priority=GLOBAL_BOARDS, rate_limit=10),
        SourceRegistration("linkedin", LinkedInSource(LinkedInConfig(timeout_s=timeout_s), session=session), priority=PROFESSIONAL_NETWORKS, rate_limit=25),
        SourceRegistration("upwork", UpworkSource(UpworkConfig(timeout_s=timeout_s), session=session), priority=PROFESSIONAL_NETWORKS, rate_limit=20),
        SourceRegistration("vietnamworks", board("vietnamworks"), priority=REGIONAL_BOARDS, rate_limit=30),
        SourceRegistration("topcv", board("topcv"), priority=REGIONAL_BOARDS, rate_limit=30),
        SourceRegistration("itviec", board("itviec"), priority=REGIONAL_BOARDS, rate_limit=30),
        SourceRegistration("careerbuilder", board("careerbuilder"), priority=REGIONAL_BOARDS, rate_limit=20),
    ]
    for r in regs:
        if r.name in disabled:
            r.enabled = False
    return regs


def aggregator_sources(session: Any = None, timeout_s: float = 30) -> List[SourceAdapter]:
    """The small fixed set used for interactive multi-source search."""
    session = session or new_session()
    return [
        LinkedInSource(LinkedInConfig(timeout_s=timeout_s), session=session),
        UpworkSource(UpworkConfig(timeout_s=timeout_s), session=session),
    ]
