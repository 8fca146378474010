import pytest
from conftest import FakeAdapter, FakeClock, make_test_job, utc

from jobharvest.collector import CollectionRequest, CollectionResult, Collector
from jobharvest.config import CollectionConfig
from jobharvest.errors import JobHarvestError, RunLockedError
from jobharvest.registry import SourceRegistration
from jobharvest.run import collect_and_store, corpus_summary
from jobharvest.store import CollectionHistory, Corpus, CorpusStore, RunLock


def make_collector(*adapters):
    clock = FakeClock()
    regs = [SourceRegistration(a.name, a, priority=3) for a in adapters]
    return Collector(regs, CollectionConfig(delay_between_requests_ms=0, retry_attempts=1), sleep=clock.sleep, clock=clock)


class TestCollectAndStore:
    def test_merges_into_existing_corpus(self, tmp_path):
        store = CorpusStore(tmp_path / "jobs.json")
        store.save(Corpus(jobs=[make_test_job("K1", posted_at=utc(2024, 1, 1), source="a")]))

        adapter = FakeAdapter("a", default=[
            make_test_job("K1", posted_at=utc(2024, 1, 10), source="a"),
            make_test_job("K2", source="a"),
        ])
        response = collect_and_store(CollectionRequest(queries=["x"]), make_collector(adapter), store, RunLock(tmp_path / "lock"))

        assert response.result.total_jobs == 2
        assert response.result.new_jobs == 1
        assert response.corpus_total == 2

        saved = store.load()
        assert len(saved.jobs) == 2
        k1 = next(j for j in saved.jobs if j.title == "K1")
        assert k1.posted_at == utc(2024, 1, 10)
        assert saved.stats["total"] == 2
        assert saved.last_updated is not None
        assert response.to_dict()["corpusTotal"] == 2

    def test_first_run_counts_everything_new(self, tmp_path):
        store = CorpusStore(tmp_path / "jobs.json")
        adapter = FakeAdapter("a", default=[make_test_job("K1", source="a"), make_test_job("K2", source="a")])
        response = collect_and_store(CollectionRequest(queries=["x"]), make_collector(adapter), store)
        assert response.result.new_jobs == 2
        # Default lock sits beside the corpus and is released afterwards.
        assert not (tmp_path / "jobs.json.lock").exists()

    def test_failed_run_leaves_corpus_untouched(self, tmp_path):
        store = CorpusStore(tmp_path / "jobs.json")

        class Broken(Collector):
            def collect(self, request):
                return CollectionResult(success=False)

        with pytest.raises(JobHarvestError):
            collect_and_store(CollectionRequest(queries=["x"]), Broken([]), store)
        assert not store.path.exists()

    def test_concurrent_run_is_refused(self, tmp_path):
        store = CorpusStore(tmp_path / "jobs.json")
        lock_path = tmp_path / "lock"
        with RunLock(lock_path):
            with pytest.raises(RunLockedError):
                collect_and_store(CollectionRequest(queries=["x"]), make_collector(), store, RunLock(lock_path))


class TestCorpusSummary:
    def test_summary(self):
        jobs = [make_test_job("SRE Lead", source="linkedin"), make_test_job("Cloud Eng", source="remoteok")]
        summary = corpus_summary(Corpus(jobs=jobs, last_updated=utc(2024, 5, 1)))
        assert summary["totalJobs"] == 2
        assert summary["lastUpdated"] == "2024-05-01T00:00:00Z"
        assert summary["stats"]["bySource"] == {"linkedin": 1, "remoteok": 1}
        assert summary["available"]["sources"] == ["linkedin", "remoteok"]


def test_stale_lock_from_crashed_run_does_not_block(tmp_path, monkeypatch):
    import jobharvest.store as store_mod

    def no_such_process(pid, sig):
        raise ProcessLookupError(pid)

    monkeypatch.setattr(store_mod.os, "kill", no_such_process)
    lock_path = tmp_path / "collect.lock"
    lock_path.write_text("999999", encoding="utf-8")

    store = CorpusStore(tmp_path / "jobs.json")
    adapter = FakeAdapter("a", default=[make_test_job("K1", source="a")])
    response = collect_and_store(CollectionRequest(queries=["x"]), make_collector(adapter), store, RunLock(lock_path))
    assert response.corpus_total == 1
    assert not lock_path.exists()


class TestRunHistory:
    def test_successful_run_is_appended(self, tmp_path):
        store = CorpusStore(tmp_path / "jobs.json")
        history = CollectionHistory(tmp_path / "collection-log.json")
        good = FakeAdapter("good", default=[make_test_job("K1", source="good"), make_test_job("K2", source="good")])
        bad = FakeAdapter("bad", default=RuntimeError("blocked"))

        collect_and_store(CollectionRequest(queries=["x"]), make_collector(good, bad), store, history=history)
        collect_and_store(CollectionRequest(queries=["x"]), make_collector(good, bad), store, history=history)

        first, second = history.load()
        assert (first.total_collected, first.new_jobs) == (2, 2)
        assert (second.total_collected, second.new_jobs) == (2, 0)
        assert first.sources == [
            {"name": "good", "count": 2, "error": None},
            {"name": "bad", "count": 0, "error": "blocked"},
        ]

    def test_failed_run_is_not_recorded(self, tmp_path):
        history = CollectionHistory(tmp_path / "collection-log.json")

        class Broken(Collector):
            def collect(self, request):
                return CollectionResult(success=False)

        with pytest.raises(JobHarvestError):
            collect_and_store(CollectionRequest(queries=["x"]), Broken([]), CorpusStore(tmp_path / "jobs.json"), history=history)
        assert history.load() == []

    def test_unreadable_history_does_not_undo_the_run(self, tmp_path):
        store = CorpusStore(tmp_path / "jobs.json")
        history = CollectionHistory(tmp_path / "collection-log.json")
        history.path.write_text("{broken", encoding="utf-8")

        adapter = FakeAdapter("a", default=[make_test_job("K1", source="a")])
        response = collect_and_store(CollectionRequest(queries=["x"]), make_collector(adapter), store, history=history)
        assert response.corpus_total == 1
        assert len(store.load().jobs) == 1
