"""
Tests for the failed-job ledger.
"""

import threading

import pytest

from relaybot.errors import InputValidationFailure
from relaybot.services.failed_jobs import FailedJobLedger
from relaybot.services.jobs import Job, UrlBatchPayload


def job(job_id: str) -> Job:
    return Job(payload=UrlBatchPayload(urls=[f"https://y/{job_id}"]), job_id=job_id)


class TestFailedJobLedger:
    def test_record_and_find_by_user(self):
        ledger = FailedJobLedger()
        first, second = job("a"), job("b")

        assert ledger.record(1, first) is True
        assert ledger.record(2, second) is True

        assert ledger.find(1, "a") is first
        assert ledger.find(1, "b") is None
        assert ledger.for_user(2) == [second]
        assert len(ledger) == 2

    def test_same_job_is_never_recorded_twice(self):
        ledger = FailedJobLedger()
        target = job("a")

        assert ledger.record(1, target) is True
        assert ledger.record(1, target) is False
        assert ledger.record(1, job("a")) is False
        assert len(ledger) == 1

    def test_same_id_for_other_user_is_separate(self):
        ledger = FailedJobLedger()
        ledger.record(1, job("a"))
        assert ledger.record(2, job("a")) is True

    def test_remove_matches_identity(self):
        ledger = FailedJobLedger()
        target = job("a")
        ledger.record(1, target)

        assert ledger.remove(1, job("a")) is False
        assert ledger.remove(2, target) is False
        assert ledger.remove(1, target) is True
        assert ledger.for_user(1) == []

    def test_claimed_entry_cannot_be_claimed_again(self):
        ledger = FailedJobLedger()
        target = job("a")
        ledger.record(1, target)

        assert ledger.claim(1, "a") is target
        with pytest.raises(InputValidationFailure):
            ledger.claim(1, "a")
        assert ledger.claim(1, "missing") is None

        ledger.release(1, target)
        assert ledger.claim(1, "a") is target

    def test_remove_drops_the_claim(self):
        ledger = FailedJobLedger()
        target = job("a")
        ledger.record(1, target)
        ledger.claim(1, "a")

        ledger.remove(1, target)
        ledger.record(1, target)

        assert ledger.claim(1, "a") is target

    def test_concurrent_records(self):
        ledger = FailedJobLedger()
        jobs = [job(str(i)) for i in range(200)]

        threads = [threading.Thread(target=ledger.record, args=(i % 3, j)) for i, j in enumerate(jobs)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ledger) == 200
