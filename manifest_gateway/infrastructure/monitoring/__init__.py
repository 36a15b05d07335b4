from .metrics_collector import CacheMetrics

__all__ = ["CacheMetrics"]
