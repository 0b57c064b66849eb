import pytest
from sqlalchemy.exc import OperationalError

from boutique_pos.services.concurrency import run_with_retry


def locked():
    return OperationalError("INSERT INTO sales", {}, Exception("database is locked"))


def test_retries_locked_database_then_succeeds(db_session):
    calls = []

    def op():
        calls.append(1)
        if len(calls) < 3:
            raise locked()
        return "ok"

    assert run_with_retry(op, attempts=3, backoff_base=0) == "ok"
    assert len(calls) == 3


def test_gives_up_after_attempts(db_session):
    calls = []

    def op():
        calls.append(1)
        raise locked()

    with pytest.raises(OperationalError):
        run_with_retry(op, attempts=2, backoff_base=0)
    assert len(calls) == 2


def test_other_errors_are_not_retried(db_session):
    calls = []

    def op():
        calls.append(1)
        raise KeyError("sku")

    with pytest.raises(KeyError):
        run_with_retry(op, backoff_base=0)
    assert len(calls) == 1
