from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional


CONFIG_ENV_VAR = "JOBHARVEST_CONFIG"
CONFIG_NAME = "config.env"


def config_candidates() -> List[Path]:
    """Where config.env may live, most specific first.

    An explicit JOBHARVEST_CONFIG path is the only candidate when set. Otherwise
    a repo checkout (./data) is tried before the per-user locations, so a global
    install still finds its settings.
    """
    explicit = (os.getenv(CONFIG_ENV_VAR) or "").strip()
    if explicit:
        return [Path(explicit)]

    xdg_root = Path(os.getenv("XDG_CONFIG_HOME") or (Path.home() / ".config"))
    return [
        Path.cwd() / "data" / CONFIG_NAME,
        Path.home() / ".jobharvest" / CONFIG_NAME,
        xdg_root / "jobharvest" / CONFIG_NAME,
    ]


def find_config_env() -> Path:
    explicit = (os.getenv(CONFIG_ENV_VAR) or "").strip()
    if explicit:
        # Honoured even before the file exists, so a fresh install can point at it.
        return Path(explicit)
    found = next((p for p in config_candidates() if p.exists()), None)
    return found or Path.home() / ".jobharvest" / CONFIG_NAME


@dataclass(frozen=True)
class CollectionConfig:
    """Per-run collection knobs. Immutable for the duration of a run."""

    max_jobs_per_source: int = 100
    delay_between_requests_ms: int = 2000
    retry_attempts: int = 3
    timeout_ms: int = 30_000


@dataclass(frozen=True)
class AppConfig:
    # Base directory for relative paths (data/)
    base_dir: Path

    corpus_file: str = "data/collected-jobs.json"
    lock_file: str = "data/collect.lock"
    history_file: str = "data/collection-log.json"

    max_jobs_per_source: int = 100
    delay_between_requests_ms: int = 2000
    retry_attempts: int = 3
    timeout_ms: int = 30_000

    # Interactive multi-source search (no persistence).
    aggregator_timeout_s: int = 15

    log_level: str = "INFO"

    adzuna_app_id: str = ""
    adzuna_app_key: str = ""
    adzuna_country: str = "gb"

    disabled_sources: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def corpus_path(self) -> Path:
        return self.base_dir / self.corpus_file

    @property
    def history_path(self) -> Path:
        return self.base_dir / self.history_file

    @property
    def lock_path(self) -> Path:
        return self.base_dir / self.lock_file

    def collection_config(self, max_jobs_per_source: Optional[int] = None) -> CollectionConfig:
        return CollectionConfig(
            max_jobs_per_source=max_jobs_per_source or self.max_jobs_per_source,
            delay_between_requests_ms=self.delay_between_requests_ms,
            retry_attempts=self.retry_attempts,
            timeout_ms=self.timeout_ms,
        )


def read_envfile(path: Path) -> Dict[str, str]:
    """KEY=VALUE lines; blank lines and # comments ignored, surrounding quotes stripped."""
    values: Dict[str, str] = {}
    if not path.exists():
        return values
    for raw in path.read_text(encoding="utf-8").splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line[len("export "):]
        key, sep, value = line.partition("=")
        if not sep or not key.strip() or line.startswith("#"):
            continue
        values[key.strip()] = value.strip().strip("\"'")
    return values


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or default).strip()


def _env_int(name: str, default: int) -> int:
    # Malformed numbers fall back to the default rather than failing startup.
    try:
        return int(_env_str(name, str(default)))
    except ValueError:
        return default


def _env_set(name: str) -> FrozenSet[str]:
    return frozenset(s.strip().lower() for s in _env_str(name, "").split(",") if s.strip())


def base_dir_for(env_path: Path) -> Path:
    # <base>/data/config.env belongs to a checkout rooted at <base>;
    # anywhere else the file's own directory is the base (e.g. ~/.jobharvest).
    if env_path.name == CONFIG_NAME and env_path.parent.name == "data":
        return env_path.parent.parent
    return env_path.parent


def load_config(env_path: Optional[Path] = None) -> AppConfig:
    """Settings from the process environment, falling back to config.env values."""
    env_path = env_path or find_config_env()
    for key, value in read_envfile(env_path).items():
        os.environ.setdefault(key, value)

    return AppConfig(
        base_dir=base_dir_for(env_path),
        corpus_file=_env_str("CORPUS_FILE", AppConfig.corpus_file),
        lock_file=_env_str("LOCK_FILE", AppConfig.lock_file),
        history_file=_env_str("HISTORY_FILE", AppConfig.history_file),
        max_jobs_per_source=_env_int("MAX_JOBS_PER_SOURCE", AppConfig.max_jobs_per_source),
        delay_between_requests_ms=_env_int("DELAY_BETWEEN_REQUESTS_MS", AppConfig.delay_between_requests_ms),
        retry_attempts=_env_int("RETRY_ATTEMPTS", AppConfig.retry_attempts),
        timeout_ms=_env_int("TIMEOUT_MS", AppConfig.timeout_ms),
        aggregator_timeout_s=_env_int("AGGREGATOR_TIMEOUT_S", AppConfig.aggregator_timeout_s),
        log_level=_env_str("LOG_LEVEL", AppConfig.log_level).upper(),
        adzuna_app_id=_env_str("ADZUNA_APP_ID", ""),
        adzuna_app_key=_env_str("ADZUNA_APP_KEY", ""),
        adzuna_country=_env_str("ADZUNA_COUNTRY", AppConfig.adzuna_country).lower(),
        disabled_sources=_env_set("DISABLED_SOURCES"),
    )
