"""
Tests for the Redis section store

Tests for showrunner/storage/redis_store.py
"""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from showrunner.core.state import GenerationResult, PipelineRun, SUCCEEDED, FAILED
from showrunner.storage import RedisSectionStore, section_key


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    def hset(self, key, field=None, value=None, mapping=None):
        self.commands.append(("hset", key, field, value, mapping))
        return self

    def expire(self, key, seconds):
        self.commands.append(("expire", key, seconds))
        return self

    async def execute(self):
        if self.redis.fail:
            raise RedisConnectionError("connection refused")
        for command in self.commands:
            if command[0] == "hset":
                _, key, field, value, mapping = command
                bucket = self.redis.hashes.setdefault(key, {})
                if mapping:
                    bucket.update(mapping)
                else:
                    bucket[field] = value
            else:
                self.redis.expiries[command[1]] = command[2]
        return [True] * len(self.commands)


class FakeRedis:
    """Minimal async hash store with an on/off failure switch."""

    def __init__(self, fail=False):
        self.fail = fail
        self.hashes = {}
        self.expiries = {}
        self.closed = False

    def pipeline(self):
        return FakePipeline(self)

    async def hget(self, key, field):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return self.hashes.get(key, {}).get(field)

    async def hgetall(self, key):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return dict(self.hashes.get(key, {}))

    async def ping(self):
        if self.fail:
            raise RedisConnectionError("connection refused")
        return True

    async def aclose(self):
        self.closed = True


def make_run():
    run = PipelineRun(requested=["casting", "locations"])
    run.results["casting"] = GenerationResult(stage="casting", success=True, status=SUCCEEDED,
                                              payload={"roles": [{"character": "Maya"}]})
    run.results["locations"] = GenerationResult(stage="locations", success=False, status=FAILED, error="boom")
    return run


class TestRedisSectionStore:
    """Tests for RedisSectionStore."""

    def test_section_key(self):
        assert section_key("u1", "sb1", "arc0") == "preproduction:u1:sb1:arc0"

    def test_requires_url_or_client(self):
        with pytest.raises(ValueError):
            RedisSectionStore()

    @pytest.mark.asyncio
    async def test_save_and_load_section(self):
        """Test a section round-trips as JSON in the scope hash."""
        redis = FakeRedis()
        store = RedisSectionStore(client=redis, ttl_seconds=60)

        saved = await store.save_section("u1", "sb1", "episode1", "permits", {"permits": []})
        loaded = await store.load_section("u1", "sb1", "episode1", "permits")

        assert saved is True
        assert loaded == {"permits": []}
        assert redis.expiries["preproduction:u1:sb1:episode1"] == 60

    @pytest.mark.asyncio
    async def test_save_run_writes_succeeded_sections_only(self):
        """Test failed stages are not written so earlier saves survive."""
        redis = FakeRedis()
        redis.hashes["preproduction:u1:sb1:arc0"] = {"locations": json.dumps({"old": True})}
        store = RedisSectionStore(client=redis)

        result = await store.save_run("u1", "sb1", "arc0", make_run())
        sections = await store.load_sections("u1", "sb1", "arc0")

        assert result == {"casting": True}
        assert sections["casting"] == {"roles": [{"character": "Maya"}]}
        assert sections["locations"] == {"old": True}
        assert redis.expiries == {}

    @pytest.mark.asyncio
    async def test_errors_are_reported_not_raised(self):
        """Test Redis failures come back as False/None/empty."""
        store = RedisSectionStore(client=FakeRedis(fail=True))

        assert await store.save_section("u1", "sb1", "arc0", "casting", {}) is False
        assert await store.save_run("u1", "sb1", "arc0", make_run()) == {"casting": False}
        assert await store.load_section("u1", "sb1", "arc0", "casting") is None
        assert await store.load_sections("u1", "sb1", "arc0") == {}
        assert await store.ping() is False

    @pytest.mark.asyncio
    async def test_missing_section_and_close(self):
        redis = FakeRedis()
        store = RedisSectionStore(client=redis)

        assert await store.load_section("u1", "sb1", "arc0", "budget") is None
        assert await store.ping() is True
        await store.close()
        assert redis.closed
