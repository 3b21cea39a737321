#!/usr/bin/env python3
"""
Script to clear cached geocoder answers from Redis.
"""
import asyncio
from redis.asyncio import Redis
from app.config import settings

async def clear_cache():
    redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)

    keys = await redis.keys("geocode:*")

    if keys:
        deleted = await redis.delete(*keys)
        print(f"Cleared {deleted} cache keys")
    else:
        print("No cache keys found")

    await redis.aclose()

if __name__ == "__main__":
    asyncio.run(clear_cache())
