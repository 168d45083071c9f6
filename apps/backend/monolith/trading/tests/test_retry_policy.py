import pytest

from trading.application.retry import RetryPolicy


class Boom(Exception):
    pass


def flaky(failures, result="ok", exc=Boom):
    calls = {"n": 0}

    def fn():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise exc(f"failure {calls['n']}")
        return result

    return fn, calls


def test_delays_grow_and_are_capped():
    sleeps = []
    fn, calls = flaky(4)
    policy = RetryPolicy(max_attempts=5, initial_delay_seconds=1, backoff_multiplier=3, max_delay_seconds=5)

    assert policy.run(fn, retry_on=(Boom,), sleep=sleeps.append) == "ok"
    assert sleeps == [1, 3, 5, 5]


def test_single_attempt_never_sleeps():
    sleeps = []
    fn, calls = flaky(1)
    with pytest.raises(Boom):
        RetryPolicy(max_attempts=1, initial_delay_seconds=1).run(fn, retry_on=(Boom,), sleep=sleeps.append)
    assert calls["n"] == 1
    assert sleeps == []


def test_retrying_controller_can_wrap_a_callable():
    fn, calls = flaky(1)
    retrying = RetryPolicy(max_attempts=2).retrying((Boom,), sleep=lambda s: None)

    assert retrying(fn) == "ok"
    assert retrying.statistics["attempt_number"] == 2


@pytest.mark.parametrize("kwargs", [
    {"max_attempts": 0},
    {"initial_delay_seconds": -1},
    {"max_delay_seconds": -0.5},
])
def test_invalid_configuration(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)


def test_run_returns_after_retries():
    sleeps = []
    fn, calls = flaky(2)
    policy = RetryPolicy(max_attempts=3, initial_delay_seconds=0.5)

    assert policy.run(fn, retry_on=(Boom,), sleep=sleeps.append) == "ok"
    assert calls["n"] == 3
    assert sleeps == [0.5, 1.0]


def test_run_reraises_last_error_when_exhausted():
    fn, calls = flaky(5)
    with pytest.raises(Boom, match="failure 3"):
        RetryPolicy(max_attempts=3).run(fn, retry_on=(Boom,), sleep=lambda s: None)
    assert calls["n"] == 3


def test_run_does_not_retry_other_errors():
    fn, calls = flaky(1, exc=KeyError)
    with pytest.raises(KeyError):
        RetryPolicy(max_attempts=3).run(fn, retry_on=(Boom,), sleep=lambda s: None)
    assert calls["n"] == 1


def test_zero_delay_does_not_sleep():
    sleeps = []
    fn, _ = flaky(2)
    RetryPolicy(max_attempts=3).run(fn, retry_on=(Boom,), sleep=sleeps.append)
    assert sleeps == []


def test_from_settings():
    policy = RetryPolicy.from_settings({"MAX_ATTEMPTS": "4", "INITIAL_DELAY_SECONDS": 0.2})
    assert policy.max_attempts == 4
    assert policy.initial_delay_seconds == 0.2
    assert policy.backoff_multiplier == 2.0
    assert policy.max_delay_seconds == 30.0
