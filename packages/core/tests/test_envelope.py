import logging
from datetime import datetime, timedelta, timezone

from indirector_core import Indirected, is_expired, stamp_expiration
from indirector_core.domain.envelope import utcnow
from indirector_core.utils import benchmark, log_failure


class Fact(Indirected):
    value: str = ""


def test_instance_without_expiration_never_expires() -> None:
    assert not Fact(name="os").expired
    assert not is_expired(Fact(name="os"))


def test_expire_now_pushes_expiration_into_the_past() -> None:
    fact = Fact(name="os")

    fact.expire_now()

    assert fact.expired
    assert (utcnow() - fact.expiration) >= timedelta(seconds=60)


def test_naive_expiration_is_treated_as_utc() -> None:
    fact = Fact(name="os", expiration=datetime(2000, 1, 1))

    assert fact.expiration.tzinfo is timezone.utc
    assert fact.expired


def test_render_and_convert_from() -> None:
    fact = Fact(name="os", value="linux", request_id="abc")

    restored = Fact.convert_from(fact.render())

    assert restored == fact


def test_stamp_expiration_only_sets_missing_value() -> None:
    fact = Fact(name="os")
    first = utcnow() + timedelta(seconds=10)

    stamp_expiration(fact, first)
    stamp_expiration(fact, first + timedelta(seconds=10))

    assert fact.expiration == first


def test_stamp_expiration_ignores_objects_without_the_field() -> None:
    plain = ("not", "a", "model")

    stamp_expiration(plain, utcnow())

    assert not is_expired(plain)


def test_is_expired_on_plain_objects() -> None:
    class Plain:
        expiration = datetime(2000, 1, 1)

    assert is_expired(Plain())


def test_benchmark_logs_elapsed_time(caplog) -> None:
    logger = logging.getLogger("indirector.test")
    caplog.set_level(logging.INFO, logger="indirector.test")

    with benchmark(logger, logging.INFO, "Compiled catalog"):
        pass

    assert "Compiled catalog in 0.0" in caplog.text


def test_log_failure_attaches_traceback_only_with_trace(caplog) -> None:
    logger = logging.getLogger("indirector.test")
    error = RuntimeError("boom")

    log_failure(logger, "Cache write failed", error, trace=False)
    log_failure(logger, "Cache write failed", error, trace=True)

    first, second = caplog.records
    assert first.getMessage() == "Cache write failed: boom"
    assert first.exc_info is None
    assert second.exc_info is not None
