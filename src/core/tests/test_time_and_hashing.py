from datetime import datetime, timedelta, timezone

import pytest

from src.core.hashing.content_digester import Sha256ContentDigester
from src.core.time.frozen_time_source import FrozenTimeSource
from src.core.time.system_time_source import SystemTimeSource


def test_frozen_time_source_requires_aware_datetime():
    with pytest.raises(ValueError):
        FrozenTimeSource(datetime(2024, 1, 1))


def test_frozen_time_source_millis_and_advance():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    source = FrozenTimeSource(start)

    assert source.now_millis() == 1704067200000
    source.advance(timedelta(milliseconds=250))
    assert source.now_millis() == 1704067200250

    with pytest.raises(ValueError):
        source.advance(timedelta(seconds=-1))


def test_system_time_source_is_non_decreasing():
    source = SystemTimeSource()
    readings = [source.now_millis() for _ in range(100)]
    assert readings == sorted(readings)
    assert source.now().tzinfo is not None


def test_sha256_digester():
    digester = Sha256ContentDigester()
    digest = digester.digest(b"paw")

    assert len(digest) == 64
    assert digest == digest.lower()
    assert digester.digest_text("paw") == digest
    assert digester.digest(b"claw") != digest
