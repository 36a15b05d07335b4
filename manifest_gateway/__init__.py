"""Manifest Gateway: caching gateway for media manifests."""

__version__ = "1.0.0"
