"""
Integration tests.

Tests here exercise the gateway against a real Redis server and are skipped
unless USE_REAL_REDIS is set.
"""
