import pytest

from cloudstep.utils import retry as retry_mod
from cloudstep.utils.retry import RetryError, retry


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(retry_mod.time, "sleep", lambda _s: None)


def test_returns_once_call_succeeds():
    attempts = []

    @retry(retries=3, delay=1, retry_on=(ConnectionError,))
    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise ConnectionError("not yet")
        return "up"

    assert flaky() == "up"
    assert len(attempts) == 3


def test_gives_up_after_retries_and_chains_cause():
    seen = []

    @retry(retries=2, delay=1, retry_on=(ConnectionError,), on_retry=lambda n, e: seen.append(n))
    def down():
        raise ConnectionError("refused")

    with pytest.raises(RetryError) as ei:
        down()
    assert isinstance(ei.value.__cause__, ConnectionError)
    assert seen == [1, 2]


def test_other_exceptions_propagate_immediately():
    attempts = []

    @retry(retries=5, delay=1, retry_on=(ConnectionError,))
    def broken():
        attempts.append(1)
        raise ValueError("bad input")

    with pytest.raises(ValueError):
        broken()
    assert len(attempts) == 1
