"""AudioCache（ローカル音声キャッシュ）のテスト"""

from datetime import timedelta

import pytest

from src.chat_client.audio_cache import AudioCache

DAY = 24 * 60 * 60


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache_path(tmp_path):
    return tmp_path / "audio_cache.db"


def test_get_missing_returns_none(cache_path, clock):
    cache = AudioCache(db_path=cache_path, clock=clock)

    assert cache.get(1) is None
    assert cache.get(1) is None
    assert len(cache) == 0


def test_set_and_get(cache_path, clock):
    cache = AudioCache(db_path=cache_path, clock=clock)

    cache.set(42, "QUJD")
    assert cache.get(42) == "QUJD"

    cache.set(42, "REVG")
    assert cache.get(42) == "REVG"
    assert len(cache) == 1


def test_env_path(tmp_path, monkeypatch):
    path = tmp_path / "env_cache.db"
    monkeypatch.setenv("AI_CHAT_AUDIO_CACHE_PATH", str(path))

    cache = AudioCache()

    assert cache.db_path == path
    assert path.exists()


def test_sweep_removes_expired_entries(cache_path, clock):
    cache = AudioCache(db_path=cache_path, max_age=timedelta(days=30), clock=clock)
    cache.set(1, "old")
    clock.now += 20 * DAY
    cache.set(2, "recent")

    clock.now += 15 * DAY
    removed = cache.sweep()

    assert removed == 1
    assert cache.get(1) is None
    assert cache.get(2) == "recent"


def test_set_refreshes_timestamp(cache_path, clock):
    cache = AudioCache(db_path=cache_path, max_age=timedelta(days=30), clock=clock)
    cache.set(1, "audio")
    clock.now += 25 * DAY
    cache.set(1, "audio")

    clock.now += 10 * DAY

    assert cache.sweep() == 0
    assert cache.get(1) == "audio"


def test_sweep_runs_when_cache_is_opened(cache_path, clock):
    cache = AudioCache(db_path=cache_path, clock=clock)
    cache.set(1, "audio")

    clock.now += 31 * DAY
    reopened = AudioCache(db_path=cache_path, clock=clock)

    assert reopened.get(1) is None


def test_clear(cache_path, clock):
    cache = AudioCache(db_path=cache_path, clock=clock)
    cache.set(1, "a")
    cache.set(2, "b")

    cache.clear()

    assert len(cache) == 0


def test_sweep_with_zero_max_age_removes_older_entries(cache_path, clock):
    cache = AudioCache(db_path=cache_path, clock=clock)
    cache.set(1, "audio")
    clock.now += 60 * 60

    removed = cache.sweep(timedelta(0))

    assert removed == 1
    assert cache.get(1) is None
