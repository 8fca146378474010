from conftest import make_test_job, utc

from jobharvest.dedup import dedup_key, dedupe_by_title_company, deduplicate


class TestDedupKey:
    def test_case_insensitive(self):
        a = make_test_job("SRE Engineer", "Acme", "Remote")
        b = make_test_job("sre engineer", "ACME", "remote")
        assert dedup_key(a) == dedup_key(b) == "sre engineer_acme_remote"

    def test_location_is_part_of_key(self):
        a = make_test_job(location="Remote")
        b = make_test_job(location="Berlin")
        assert dedup_key(a) != dedup_key(b)


class TestDeduplicate:
    def test_later_posting_wins(self):
        old = make_test_job(posted_at=utc(2024, 1, 1), source="a")
        new = make_test_job(posted_at=utc(2024, 1, 5), source="b")
        out = deduplicate([old, new])
        assert len(out) == 1
        assert out[0].posted_at == utc(2024, 1, 5)
        assert out[0].source == "b"

    def test_earlier_posting_does_not_replace(self):
        new = make_test_job(posted_at=utc(2024, 1, 5), source="a")
        old = make_test_job(posted_at=utc(2024, 1, 1), source="b")
        assert deduplicate([new, old]) == [new]

    def test_equal_dates_keep_first_seen(self):
        first = make_test_job(posted_at=utc(2024, 1, 1), source="a")
        second = make_test_job(posted_at=utc(2024, 1, 1), source="b")
        assert deduplicate([first, second]) == [first]

    def test_undated_never_displaces_dated(self):
        dated = make_test_job(posted_at=utc(2024, 1, 1), source="a")
        undated = make_test_job(posted_at=None, source="b")
        assert deduplicate([dated, undated]) == [dated]

    def test_dated_displaces_undated(self):
        undated = make_test_job(posted_at=None, source="a")
        dated = make_test_job(posted_at=utc(2024, 1, 1), source="b")
        assert deduplicate([undated, dated]) == [dated]

    def test_undated_pair_keeps_first(self):
        first = make_test_job(source="a")
        second = make_test_job(source="b")
        assert deduplicate([first, second]) == [first]

    def test_replacement_keeps_position(self):
        x1 = make_test_job("X", posted_at=utc(2024, 1, 1), source="a")
        y = make_test_job("Y", source="a")
        x2 = make_test_job("X", posted_at=utc(2024, 2, 1), source="b")
        out = deduplicate([x1, y, x2])
        assert [j.title for j in out] == ["X", "Y"]
        assert out[0] is x2

    def test_idempotent(self):
        jobs = [
            make_test_job("A", posted_at=utc(2024, 1, 3)),
            make_test_job("a", posted_at=utc(2024, 1, 1)),
            make_test_job("B"),
            make_test_job("b", posted_at=utc(2024, 1, 2)),
            make_test_job("C", company="Other"),
        ]
        once = deduplicate(jobs)
        assert deduplicate(once) == once
        assert len(once) == 3

    def test_empty(self):
        assert deduplicate([]) == []


class TestDedupeByTitleCompany:
    def test_first_occurrence_wins(self):
        a = make_test_job(location="Remote", source="linkedin")
        b = make_test_job(location="Berlin", source="upwork")
        assert dedupe_by_title_company([a, b]) == [a]

    def test_exact_match_only(self):
        a = make_test_job("SRE Engineer", "Acme")
        b = make_test_job("sre engineer", "Acme")
        assert len(dedupe_by_title_company([a, b])) == 2
