from __future__ import annotations

import logging
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .aggregator import search_all
from .collector import CollectionRequest, Collector
from .config import AppConfig, load_config
from .errors import JobHarvestError
from .models import Category, ContractType, Job, Region, enum_from_text
from .registry import default_registry
from .run import collect_and_store, corpus_summary
from .search import search_corpus
from .store import CollectionHistory, CorpusStore, RunLock


app = typer.Typer(add_completion=False)
console = Console()


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    root = logging.getLogger()
    root.handlers[:] = [RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)]
    root.setLevel(logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO))
    # urllib3 is chatty at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _setup(verbose: bool) -> AppConfig:
    cfg = load_config()
    configure_logging(cfg.log_level, verbose)
    return cfg


def _checked(cls, values: List[str], option: str) -> List[str]:
    try:
        return [enum_from_text(cls, v).value for v in values]
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint=option)


def _jobs_table(jobs: List[Job], title: str) -> Table:
    table = Table(title=title, expand=True)
    table.add_column("Posted", no_wrap=True)
    table.add_column("Title")
    table.add_column("Company")
    table.add_column("Location")
    table.add_column("Source", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("URL", overflow="fold")
    for j in jobs:
        table.add_row(
            j.posted_at.date().isoformat() if j.posted_at else "",
            j.title,
            j.company,
            j.location,
            j.source,
            j.category.value,
            j.url,
        )
    return table


@app.command()
def collect(
    queries: List[str] = typer.Argument(..., help="Search terms; each one is run against every source."),
    location: List[str] = typer.Option([], "--location", "-l", help="Location (repeatable)."),
    category: List[str] = typer.Option([], "--category", help="Keep only these categories (repeatable)."),
    contract_type: List[str] = typer.Option([], "--contract-type", help="Keep only these contract types (repeatable)."),
    max_jobs_per_source: int = typer.Option(0, help="Per-source cap (0 = config default)."),
    source: List[str] = typer.Option([], "--source", "-s", help="Only run these sources (repeatable)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Collect from every enabled source and merge into the stored corpus."""
    cfg = _setup(verbose)

    request = CollectionRequest(
        queries=queries,
        locations=location or None,
        categories=_checked(Category, category, "--category") or None,
        contract_types=_checked(ContractType, contract_type, "--contract-type") or None,
        max_jobs_per_source=max_jobs_per_source or None,
        sources=source or None,
    )
    collector = Collector(default_registry(cfg), cfg.collection_config(request.max_jobs_per_source))
    store = CorpusStore(cfg.corpus_path)

    try:
        response = collect_and_store(
            request, collector, store, RunLock(cfg.lock_path), CollectionHistory(cfg.history_path)
        )
    except JobHarvestError as e:
        console.print(f"[red]collect failed:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Collection run", expand=True)
    table.add_column("Source", no_wrap=True)
    table.add_column("OK", width=4)
    table.add_column("Jobs", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Error")
    for name, outcome in response.result.per_source.items():
        table.add_row(
            name,
            "yes" if outcome.success else "[red]no[/red]",
            str(outcome.jobs_collected),
            str(outcome.attempts),
            "; ".join(outcome.errors),
        )
    console.print(table)
    console.print(
        f"total={response.result.total_jobs} new={response.result.new_jobs} "
        f"corpus={response.corpus_total} duration={response.result.duration_ms}ms"
    )


@app.command()
def search(
    query: str = typer.Argument("", help="Free text matched against title, company, description and skills."),
    location: Optional[str] = typer.Option(None, "--location", "-l"),
    source: Optional[str] = typer.Option(None, "--source", "-s"),
    category: Optional[str] = typer.Option(None, "--category"),
    region: Optional[str] = typer.Option(None, "--region"),
    contract_type: Optional[str] = typer.Option(None, "--contract-type"),
    limit: int = typer.Option(50, help="Max rows (0 = all)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Search the stored corpus, newest first."""
    category = _checked(Category, [category], "--category")[0] if category else None
    region = _checked(Region, [region], "--region")[0] if region else None
    contract_type = _checked(ContractType, [contract_type], "--contract-type")[0] if contract_type else None
    cfg = _setup(verbose)
    try:
        corpus = CorpusStore(cfg.corpus_path).load()
    except JobHarvestError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    jobs = search_corpus(
        corpus.jobs,
        query,
        location=location,
        source=source,
        category=category,
        region=region,
        contract_type=contract_type,
        limit=limit or None,
    )
    console.print(_jobs_table(jobs, f"{len(jobs)} matching jobs"))


@app.command()
def live(
    query: str = typer.Argument(..., help="Search terms."),
    location: Optional[str] = typer.Option(None, "--location", "-l"),
    limit: int = typer.Option(50, help="Max rows (0 = all)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Query LinkedIn and Upwork concurrently without touching the corpus."""
    cfg = _setup(verbose)
    res = search_all(query, location=location, limit=limit or None, timeout_s=cfg.aggregator_timeout_s)

    for name, r in res.sources.items():
        if r.error:
            console.print(f"[yellow]{name}: {r.error}[/yellow]")
    console.print(_jobs_table(res.jobs, f"{len(res.jobs)} live results"))


@app.command()
def stats(verbose: bool = typer.Option(False, "--verbose", "-v")) -> None:
    """Show corpus totals and breakdowns."""
    cfg = _setup(verbose)
    try:
        summary = corpus_summary(CorpusStore(cfg.corpus_path).load())
    except JobHarvestError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"corpus: {cfg.corpus_path}")
    console.print(f"jobs={summary['totalJobs']} last_updated={summary['lastUpdated'] or '-'}")

    st = summary["stats"]
    for key in ("bySource", "byCategory", "byRegion", "byContractType", "bySalary"):
        counts = st.get(key) or {}
        table = Table(title=key)
        table.add_column("Value")
        table.add_column("Jobs", justify="right")
        for value, n in sorted(counts.items(), key=lambda kv: -kv[1]):
            table.add_row(str(value), str(n))
        console.print(table)


@app.command()
def history(
    limit: int = typer.Option(20, help="Most recent runs to show (0 = all)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show past collection runs, newest first."""
    cfg = _setup(verbose)
    try:
        entries = CollectionHistory(cfg.history_path).load()
    except JobHarvestError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    entries = list(reversed(entries))
    if limit:
        entries = entries[:limit]

    table = Table(title=f"{len(entries)} collection runs", expand=True)
    table.add_column("Run (UTC)", no_wrap=True)
    table.add_column("Collected", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("Failed sources")
    for e in entries:
        failed = [f"{s.get('name')}: {s.get('error')}" for s in e.sources if s.get("error")]
        table.add_row(
            e.last_run.strftime("%Y-%m-%d %H:%M"),
            str(e.total_collected),
            str(e.new_jobs),
            f"{e.duration_ms}ms",
            "; ".join(failed) or "-",
        )
    console.print(table)


@app.command()
def sources() -> None:
    """List registered sources in run order."""
    cfg = load_config()
    table = Table(title="Sources")
    table.add_column("Name", no_wrap=True)
    table.add_column("Priority", justify="right")
    table.add_column("Rate/min", justify="right")
    table.add_column("Enabled")
    for reg in sorted(default_registry(cfg), key=lambda r: r.priority):
        table.add_row(reg.name, str(reg.priority), str(reg.rate_limit), "yes" if reg.enabled else "no")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
