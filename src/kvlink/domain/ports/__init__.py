from .cache import CacheClientPort

__all__ = ["CacheClientPort"]
