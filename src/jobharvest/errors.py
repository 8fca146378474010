from __future__ import annotations


class JobHarvestError(Exception):
    """Base class for errors raised by jobharvest itself."""


class SourceConfigError(JobHarvestError):
    """A source cannot run with the current configuration (e.g. missing credentials).

    Raised at call time, so the orchestrator treats it like any transport failure
    of that one source.
    """


class StoreError(JobHarvestError):
    """Reading or writing the persisted corpus failed."""


class RunLockedError(StoreError):
    """Another collection run holds the corpus lock."""
