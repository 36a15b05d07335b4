from .constants import CacheState, CacheStatus, Stage
from .settings import Settings, get_settings, reload_settings

__all__ = [
    "CacheState",
    "CacheStatus",
    "Settings",
    "Stage",
    "get_settings",
    "reload_settings",
]
