from .rate_limiter import RateLimitDecision, WindowRateLimiter, get_client_identifier

__all__ = ["RateLimitDecision", "WindowRateLimiter", "get_client_identifier"]
