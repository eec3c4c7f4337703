from src.platform.cache.ttl_cache import TTLCache


__all__ = ['TTLCache']
