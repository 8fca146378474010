import os
import threading

import pytest
from conftest import FakeAdapter, make_test_job, utc
from typer.testing import CliRunner

import jobharvest.aggregator as aggregator
import jobharvest.cli as cli
from jobharvest.cli import app
from jobharvest.models import Category
from jobharvest.registry import SourceRegistration
from jobharvest.store import CollectionHistory, Corpus, CorpusStore


runner = CliRunner()


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    env = tmp_path / "config.env"
    env.write_text("DISABLED_SOURCES=adzuna\n", encoding="utf-8")
    monkeypatch.setenv("JOBHARVEST_CONFIG", str(env))
    monkeypatch.setenv("CORPUS_FILE", "data/collected-jobs.json")
    monkeypatch.setenv("DISABLED_SOURCES", "adzuna")
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("DELAY_BETWEEN_REQUESTS_MS", "0")
    monkeypatch.setenv("RETRY_ATTEMPTS", "1")
    monkeypatch.setenv("AGGREGATOR_TIMEOUT_S", "1")
    return tmp_path


@pytest.fixture
def fake_registry(monkeypatch):
    alpha = FakeAdapter("alpha", default=[
        make_test_job("SRE Engineer", "Acme", "Singapore", source="alpha", category=Category.SRE),
        make_test_job("DevOps Engineer", "Globex", "Berlin", source="alpha", category=Category.DEVOPS),
    ])
    beta = FakeAdapter("beta", default=RuntimeError("403 blocked"))
    regs = [SourceRegistration("alpha", alpha, priority=3), SourceRegistration("beta", beta, priority=4)]
    monkeypatch.setattr(cli, "default_registry", lambda cfg=None, session=None: regs)
    return regs


class Hanging:
    name = "upwork"

    def __init__(self):
        self.release = threading.Event()

    def search_jobs(self, query, location=None):
        self.release.wait(5)
        return []


class TestCli:
    def test_sources_lists_registry(self, workdir):
        result = runner.invoke(app, ["sources"])
        assert result.exit_code == 0, result.output
        assert "remoteok" in result.output
        assert "careerbuilder" in result.output

    def test_search_reads_corpus(self, workdir):
        store = CorpusStore(workdir / "data" / "collected-jobs.json")
        store.save(Corpus(jobs=[
            make_test_job("SRE Engineer", "Acme", posted_at=utc(2024, 1, 2), source="linkedin"),
            make_test_job("Frontend Dev", "Foo", source="remoteok"),
        ]))

        result = runner.invoke(app, ["search", "sre"])
        assert result.exit_code == 0, result.output
        assert "Acme" in result.output
        assert "Foo" not in result.output

    def test_search_rejects_unknown_region(self, workdir):
        result = runner.invoke(app, ["search", "sre", "--region", "mars"])
        assert result.exit_code == 2

    def test_stats_on_empty_corpus(self, workdir):
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 0, result.output
        assert "jobs=0" in result.output

    def test_corrupt_corpus_exits_nonzero(self, workdir):
        path = workdir / "data" / "collected-jobs.json"
        path.parent.mkdir()
        path.write_text("{broken", encoding="utf-8")
        result = runner.invoke(app, ["stats"])
        assert result.exit_code == 1


class TestCollectCommand:
    def test_collect_stores_and_reports(self, workdir, fake_registry):
        result = runner.invoke(app, ["collect", "sre"])
        assert result.exit_code == 0, result.output
        assert "alpha" in result.output
        assert "blocked" in result.output
        assert "total=2 new=2 corpus=2" in result.output

        assert len(CorpusStore(workdir / "data" / "collected-jobs.json").load().jobs) == 2
        (entry,) = CollectionHistory(workdir / "data" / "collection-log.json").load()
        assert entry.total_collected == 2
        assert not (workdir / "data" / "collect.lock").exists()

    def test_collect_filters_ignore_case(self, workdir, fake_registry):
        result = runner.invoke(app, ["collect", "sre", "--category", "devops"])
        assert result.exit_code == 0, result.output
        assert "total=1" in result.output

    def test_collect_rejects_unknown_category(self, workdir, fake_registry):
        result = runner.invoke(app, ["collect", "sre", "--category", "frontend"])
        assert result.exit_code == 2
        assert not (workdir / "data" / "collected-jobs.json").exists()

    def test_collect_refused_while_lock_held(self, workdir, fake_registry):
        lock = workdir / "data" / "collect.lock"
        lock.parent.mkdir()
        lock.write_text(str(os.getpid()), encoding="utf-8")

        result = runner.invoke(app, ["collect", "sre"])
        assert result.exit_code == 1
        assert "collect failed" in result.output
        assert fake_registry[0].adapter.calls == []
        assert lock.exists()

    def test_history_lists_runs_newest_first(self, workdir, fake_registry):
        assert runner.invoke(app, ["collect", "sre"]).exit_code == 0
        assert runner.invoke(app, ["collect", "devops"]).exit_code == 0

        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0, result.output
        assert "2 collection runs" in result.output
        assert "beta:" in result.output
        assert "blocked" in result.output

    def test_history_when_never_run(self, workdir):
        result = runner.invoke(app, ["history"])
        assert result.exit_code == 0, result.output
        assert "0 collection runs" in result.output


class TestLiveCommand:
    def test_live_reports_timed_out_source(self, workdir, monkeypatch):
        slow = Hanging()
        fast = FakeAdapter("linkedin", default=[make_test_job("SRE Engineer", "Acme", source="linkedin")])
        monkeypatch.setattr(aggregator, "aggregator_sources", lambda session=None, timeout_s=30: [fast, slow])
        try:
            result = runner.invoke(app, ["live", "sre"])
        finally:
            slow.release.set()

        assert result.exit_code == 0, result.output
        assert "upwork: timed out after 1s" in result.output
        assert "Acme" in result.output
        assert "1 live results" in result.output
