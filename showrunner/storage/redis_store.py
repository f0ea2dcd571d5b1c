"""Redis section store: the persistence boundary for finished stage payloads"""

import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..core.state import PipelineRun

logger = logging.getLogger(__name__)

KEY_PREFIX = "preproduction"


def section_key(user_id: str, story_bible_id: str, scope: str) -> str:
    """Hash key holding every section of one scope (arc, episode or series)"""
    return f"{KEY_PREFIX}:{user_id}:{story_bible_id}:{scope}"


class RedisSectionStore:
    """
    Stores section payloads in Redis hashes, one field per section.
    The store only reports success or failure; it never raises on Redis errors.
    """

    def __init__(self, redis_url: Optional[str] = None, client: Any = None,
                 ttl_seconds: Optional[int] = None):
        if client is None:
            if not redis_url:
                raise ValueError("RedisSectionStore needs a redis_url or a client")
            # Create connection pool with optimized settings
            pool = redis.ConnectionPool.from_url(
                redis_url,
                max_connections=30,
                decode_responses=True,
                socket_keepalive=True
            )
            client = redis.Redis(connection_pool=pool)
        self.redis = client
        self.ttl_seconds = ttl_seconds

    async def save_section(self, user_id: str, story_bible_id: str, scope: str,
                           section: str, payload: Any) -> bool:
        """Write one section; returns False when Redis rejects it"""
        key = section_key(user_id, story_bible_id, scope)
        try:
            pipe = self.redis.pipeline()
            pipe.hset(key, section, json.dumps(payload, default=str))
            if self.ttl_seconds:
                pipe.expire(key, self.ttl_seconds)
            await pipe.execute()
        except RedisError as e:
            logger.error(f"[RedisStore] Failed to save {section} under {key}: {e}")
            return False
        logger.info(f"[RedisStore] Saved {section} under {key}")
        return True

    async def load_section(self, user_id: str, story_bible_id: str, scope: str,
                           section: str) -> Optional[Any]:
        key = section_key(user_id, story_bible_id, scope)
        try:
            raw = await self.redis.hget(key, section)
        except RedisError as e:
            logger.error(f"[RedisStore] Failed to load {section} from {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"[RedisStore] {key}/{section} is not JSON, returning raw value")
            return raw

    async def load_sections(self, user_id: str, story_bible_id: str, scope: str) -> Dict[str, Any]:
        """Every stored section of a scope"""
        key = section_key(user_id, story_bible_id, scope)
        try:
            raw_sections = await self.redis.hgetall(key)
        except RedisError as e:
            logger.error(f"[RedisStore] Failed to load sections from {key}: {e}")
            return {}

        sections = {}
        for field, value in raw_sections.items():
            try:
                sections[field] = json.loads(value)
            except json.JSONDecodeError:
                sections[field] = value
        return sections

    async def save_run(self, user_id: str, story_bible_id: str, scope: str,
                       run: PipelineRun) -> Dict[str, bool]:
        """Write every succeeded section of a run in one round trip

        Failed and pending stages are not written, so earlier saved versions
        of those sections survive a partial run.
        """
        payloads = run.payloads()
        if not payloads:
            return {}
        key = section_key(user_id, story_bible_id, scope)
        try:
            pipe = self.redis.pipeline()
            pipe.hset(key, mapping={
                section: json.dumps(payload, default=str) for section, payload in payloads.items()
            })
            if self.ttl_seconds:
                pipe.expire(key, self.ttl_seconds)
            await pipe.execute()
        except RedisError as e:
            logger.error(f"[RedisStore] Failed to save run under {key}: {e}")
            return {section: False for section in payloads}
        logger.info(f"[RedisStore] Saved {len(payloads)} sections under {key}")
        return {section: True for section in payloads}

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logger.warning(f"[RedisStore] Ping failed: {e}")
            return False

    async def close(self):
        await self.redis.aclose()
