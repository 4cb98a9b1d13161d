"""
Keyed store adapter over Redis.

Every record is a JSON document stored under a plain string key. The adapter
knows nothing about rides or users: key schemes, filtering and ordering are
the caller's job.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import redis

from . import config

logger = logging.getLogger(__name__)

SCAN_BATCH = 500
_GLOB_SPECIAL = "\\*?[]"


def _escape_glob(prefix: str) -> str:
    return "".join("\\" + ch if ch in _GLOB_SPECIAL else ch for ch in prefix)


class KeyedStore:
    def __init__(self, client: redis.Redis):
        self.client = client

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Dict[str, Any]) -> None:
        self.client.set(key, json.dumps(value))

    def set_if_absent(self, key: str, value: Dict[str, Any]) -> bool:
        """Create ``key`` only if nobody has. Returns True for the one caller that did."""
        return bool(self.client.set(key, json.dumps(value), nx=True))

    def delete(self, key: str) -> None:
        self.client.delete(key)

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        """All current values whose key starts with ``prefix``, in no particular order."""
        keys = list(self.client.scan_iter(match=_escape_glob(prefix) + "*", count=SCAN_BATCH))
        if not keys:
            return []
        values = []
        for start in range(0, len(keys), SCAN_BATCH):
            # a key deleted between SCAN and MGET comes back as None
            for raw in self.client.mget(keys[start:start + SCAN_BATCH]):
                if raw is not None:
                    values.append(json.loads(raw))
        return values


def create_redis_client() -> redis.Redis:
    if config.REDIS_URL:
        logger.info("[Store] Using Redis from REDIS_URL")
        return redis.Redis.from_url(config.REDIS_URL, decode_responses=True)
    logger.info("[Store] Using Redis at %s:%s/%s", config.REDIS_HOST, config.REDIS_PORT, config.REDIS_DB)
    return redis.Redis(
        host=config.REDIS_HOST,
        port=config.REDIS_PORT,
        db=config.REDIS_DB,
        decode_responses=True,
        socket_connect_timeout=2,
    )


_store: Optional[KeyedStore] = None


# Dependency for FastAPI
def get_store() -> KeyedStore:
    global _store
    if _store is None:
        _store = KeyedStore(create_redis_client())
    return _store
