from .fetcher import UpstreamFetcher

__all__ = ["UpstreamFetcher"]
