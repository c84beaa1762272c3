"""
Unit tests for the grade result cache.
"""
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError

from database import CachedGradeResult
from services import ResultCache


PAYLOAD = {"courses": [{"id": 1, "fullname": "Calculus I", "final_grade": 88.5}]}


class TestResultCache:

    def test_miss_when_empty(self, db, dataset):
        assert ResultCache(db).get(dataset["alice"]) is None

    def test_put_then_get(self, db, dataset):
        cache = ResultCache(db)
        assert cache.put(dataset["alice"], PAYLOAD) is True
        assert cache.get(dataset["alice"]) == PAYLOAD
        assert cache.get(dataset["bob"]) is None

    def test_default_ttl_is_one_hour(self, db, dataset):
        start = datetime(2025, 1, 1, 12, 0, 0)
        ResultCache(db).put(dataset["alice"], PAYLOAD, now=start)
        entry = db.query(CachedGradeResult).one()
        assert entry.timeexpires - entry.timecreated == timedelta(hours=1)

    def test_expired_entry_is_never_returned(self, db, dataset):
        cache = ResultCache(db)
        start = datetime(2025, 1, 1, 12, 0, 0)
        cache.put(dataset["alice"], PAYLOAD, ttl_seconds=60, now=start)

        assert cache.get(dataset["alice"], now=start + timedelta(seconds=59)) == PAYLOAD
        # Expiry equal to now counts as expired
        assert cache.get(dataset["alice"], now=start + timedelta(seconds=60)) is None
        assert cache.get(dataset["alice"], now=start + timedelta(days=1)) is None

    def test_newest_entry_wins(self, db, dataset):
        cache = ResultCache(db)
        start = datetime(2025, 1, 1, 12, 0, 0)
        cache.put(dataset["alice"], {"courses": []}, now=start)
        cache.put(dataset["alice"], PAYLOAD, now=start + timedelta(minutes=5))

        assert cache.get(dataset["alice"], now=start + timedelta(minutes=10)) == PAYLOAD
        # Insert-only: both rows are kept
        assert db.query(CachedGradeResult).count() == 2

    def test_corrupt_entry_is_a_miss(self, db, dataset):
        now = datetime.now()
        db.add(CachedGradeResult(
            studentid=dataset["alice"], data="{not json",
            timecreated=now, timeexpires=now + timedelta(hours=1),
        ))
        db.commit()
        assert ResultCache(db).get(dataset["alice"]) is None

    def test_unserializable_payload_is_skipped(self, db, dataset):
        cache = ResultCache(db)
        assert cache.put(dataset["alice"], {"courses": [object()]}) is False
        assert db.query(CachedGradeResult).count() == 0

    def test_purge_expired(self, db, dataset):
        cache = ResultCache(db)
        start = datetime(2025, 1, 1, 12, 0, 0)
        cache.put(dataset["alice"], PAYLOAD, ttl_seconds=60, now=start)
        cache.put(dataset["bob"], PAYLOAD, ttl_seconds=3600, now=start)

        assert cache.purge_expired(now=start + timedelta(minutes=5)) == 1
        assert cache.get(dataset["bob"], now=start + timedelta(minutes=5)) == PAYLOAD
        assert db.query(CachedGradeResult).count() == 1

    def test_read_failure_rolls_back_and_misses(self, db, dataset, monkeypatch):
        def broken(*args, **kwargs):
            raise SQLAlchemyError("database unavailable")

        rollbacks = []
        monkeypatch.setattr(db, "query", broken)
        monkeypatch.setattr(db, "rollback", lambda: rollbacks.append(True))
        assert ResultCache(db).get(dataset["alice"]) is None
        assert rollbacks == [True]
