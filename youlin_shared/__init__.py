from .env import env_bool, env_int, env_list
from .env_loader import ensure_loaded
from .rate_limit import SlidingWindowLimiter, RedisRateLimiter

__all__ = [
    "env_bool",
    "env_int",
    "env_list",
    "ensure_loaded",
    "SlidingWindowLimiter",
    "RedisRateLimiter",
]
