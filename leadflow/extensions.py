"""
Shared client instances — Redis.

redis.from_url() does not open a socket until the first command, so importing
this module is always safe (even when Redis is absent during tests).
"""
import redis

from leadflow.config import REDIS_URL

# ── Redis ─────────────────────────────────────────────────────────────────────
# RQ pickles job payloads, so responses must stay bytes (no decode_responses)
redis_client = redis.from_url(REDIS_URL)
