"""Tests for the change-detection notice cache."""

import threading

import pytest

from lawcast.models.cache import CacheConfig
from lawcast.models.notice import Notice
from lawcast.services.notice_cache import NoticeCache


def make_notices(*nums):
    return [Notice(num=n, subject=f"Notice {n}") for n in nums]


def nums(notices):
    return [n.num for n in notices]


@pytest.fixture
def cache():
    return NoticeCache(CacheConfig(max_size=5, default_limit=3))


class TestInitialize:
    """Tests for initialize()."""

    def test_sorted_descending(self, cache):
        cache.initialize(make_notices(3, 9, 1, 7))

        assert nums(cache.recent(10)) == [9, 7, 3, 1]
        assert cache.is_initialized

    def test_truncates_to_max_size(self, cache):
        cache.initialize(make_notices(*range(1, 11)))

        assert nums(cache.recent(10)) == [10, 9, 8, 7, 6]

    def test_replaces_existing_snapshot(self, cache):
        cache.initialize(make_notices(1, 2))
        cache.initialize(make_notices(50))

        assert nums(cache.recent(10)) == [50]

    def test_empty_initialize_marks_initialized(self, cache):
        cache.initialize([])

        assert cache.is_initialized
        assert cache.info().size == 0
        assert cache.info().last_updated is not None


class TestUpdate:
    """Tests for update()."""

    def test_update_before_initialize_seeds(self, cache):
        cache.update(make_notices(4, 5))

        assert cache.is_initialized
        assert nums(cache.recent(10)) == [5, 4]

    def test_merge_and_sort(self, cache):
        cache.initialize(make_notices(2, 4))
        cache.update(make_notices(3, 5))

        assert nums(cache.recent(10)) == [5, 4, 3, 2]

    def test_idempotent(self, cache):
        cache.initialize(make_notices(1, 2))
        batch = make_notices(2, 3, 4)

        cache.update(batch)
        first = cache.recent(10)
        cache.update(batch)

        assert cache.recent(10) == first

    def test_existing_entry_wins(self, cache):
        cache.initialize([Notice(num=1, subject="original")])
        cache.update([Notice(num=1, subject="changed")])

        assert cache.recent(1)[0].subject == "original"

    def test_duplicate_in_batch_first_wins(self, cache):
        cache.initialize(make_notices(1))
        cache.update(
            [Notice(num=2, subject="first"), Notice(num=2, subject="second")]
        )

        recent = cache.recent(10)
        assert nums(recent) == [2, 1]
        assert recent[0].subject == "first"

    def test_cap_evicts_oldest(self, cache):
        cache.initialize(make_notices(1, 2, 3, 4, 5))
        cache.update(make_notices(6, 7))

        assert nums(cache.recent(10)) == [7, 6, 5, 4, 3]
        assert cache.info().size == 5

    def test_invariants_after_many_updates(self, cache):
        cache.initialize(make_notices(10, 20))
        for batch in ([15, 5], [30, 20, 25], [1], [40, 35, 30]):
            cache.update(make_notices(*batch))

            snapshot = nums(cache.recent(100))
            assert snapshot == sorted(snapshot, reverse=True)
            assert len(snapshot) == len(set(snapshot))
            assert len(snapshot) <= 5


class TestDiffNew:
    """Tests for diff_new()."""

    def test_not_initialized_returns_empty(self, cache):
        assert cache.diff_new(make_notices(1, 2, 3)) == []

    def test_returns_unseen_in_input_order(self, cache):
        cache.initialize(make_notices(5, 6, 7))

        new = cache.diff_new(make_notices(9, 5, 8, 6, 7))

        assert nums(new) == [9, 8]

    def test_does_not_mutate(self, cache):
        cache.initialize(make_notices(5))
        cache.diff_new(make_notices(6))

        assert nums(cache.recent(10)) == [5]


class TestMerge:
    """Tests for merge() (diff then update, atomically)."""

    def test_uninitialized_seeds_silently(self, cache):
        new = cache.merge(make_notices(1, 2))

        assert new == []
        assert cache.is_initialized
        assert nums(cache.recent(10)) == [2, 1]

    def test_reports_new_and_updates(self, cache):
        cache.initialize(make_notices(5, 6, 7))

        new = cache.merge(make_notices(5, 6, 7, 8, 9))

        assert sorted(nums(new)) == [8, 9]
        assert nums(cache.recent(10)) == [9, 8, 7, 6, 5]

    def test_second_merge_reports_nothing(self, cache):
        cache.initialize(make_notices(1))
        cache.merge(make_notices(1, 2))

        assert cache.merge(make_notices(1, 2)) == []

    def test_new_notice_evicted_by_cap_still_reported(self):
        cache = NoticeCache(CacheConfig(max_size=2))
        cache.initialize(make_notices(10, 11))

        new = cache.merge(make_notices(10, 11, 12, 3))

        # 3 is older than everything cached, so the cap drops it immediately
        assert sorted(nums(new)) == [3, 12]
        assert nums(cache.recent(10)) == [12, 11]

    def test_duplicates_in_batch_reported_once(self, cache):
        cache.initialize(make_notices(1))

        new = cache.merge(make_notices(2, 2, 3))

        assert sorted(nums(new)) == [2, 3]


class TestRecentAndInfo:
    """Tests for read-only accessors."""

    def test_default_limit(self, cache):
        cache.initialize(make_notices(1, 2, 3, 4, 5))

        assert nums(cache.recent()) == [5, 4, 3]

    def test_limit_capped_by_max_size(self, cache):
        cache.initialize(make_notices(*range(1, 20)))

        assert len(cache.recent(100)) == 5

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit(self, cache, limit):
        cache.initialize(make_notices(1, 2))

        assert cache.recent(limit) == []

    def test_info(self, cache):
        info = cache.info()
        assert info.size == 0
        assert info.max_size == 5
        assert info.is_initialized is False

        cache.initialize(make_notices(1, 2))
        info = cache.info()
        assert info.size == 2
        assert info.is_initialized is True

    def test_clear(self, cache):
        cache.initialize(make_notices(1, 2))
        cache.clear()

        info = cache.info()
        assert info.size == 0
        assert info.is_initialized is False
        assert info.last_updated is None
        assert cache.diff_new(make_notices(3)) == []


class TestConcurrentReaders:
    """Readers never observe a partially updated snapshot."""

    def test_readers_see_sorted_snapshots(self):
        cache = NoticeCache(CacheConfig(max_size=50))
        cache.initialize(make_notices(*range(1, 30)))
        errors = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                snapshot = nums(cache.recent(50))
                if snapshot != sorted(snapshot, reverse=True):
                    errors.append(snapshot)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for start in range(30, 200, 7):
            cache.update(make_notices(*range(start, start + 7)))
        stop.set()
        for t in threads:
            t.join()

        assert errors == []
