"""
Manifest Registry

Static mapping from manifest type to canonical upstream URL. The registry
is configuration, not runtime state: it is built from settings once and
never mutated.

Author: System Architect
Date: 2025-12-08
"""

from manifest_gateway.core.config.constants import DEFAULT_MANIFEST_PATHS, MANIFEST_KEY_PREFIX
from manifest_gateway.core.config.settings import Settings
from manifest_gateway.core.exceptions import ConfigurationError, UnknownManifestTypeError


class ManifestRegistry:
    """
    Known manifest types and where each one lives upstream.

    Usage:
        registry = ManifestRegistry.from_settings(settings)
        registry.source_url("concert")
        # "https://cdn.example.com/manifests/Concert/concert-manifest.json"
    """

    def __init__(
        self,
        types: list[str],
        base_url: str | None,
        paths: dict[str, str] | None = None,
    ):
        self._types = tuple(t.lower() for t in types)
        self._base_url = base_url
        self._paths = dict(DEFAULT_MANIFEST_PATHS)
        if paths:
            self._paths.update(paths)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ManifestRegistry":
        return cls(
            types=settings.MANIFEST_TYPES,
            base_url=settings.MANIFEST_BASE_URL,
            paths=settings.MANIFEST_PATHS,
        )

    @property
    def types(self) -> tuple[str, ...]:
        return self._types

    @property
    def base_url(self) -> str | None:
        return self._base_url

    def __contains__(self, manifest_type: str) -> bool:
        return manifest_type.lower() in self._types

    def require(self, manifest_type: str) -> str:
        """
        Normalize a type name and check that it is configured.

        Raises:
            UnknownManifestTypeError: If the type is not in the catalogue
        """
        name = manifest_type.lower()
        if name not in self._types:
            raise UnknownManifestTypeError(
                f"Unknown manifest type: {manifest_type}",
                details={"type": manifest_type, "available": list(self._types)},
            )
        return name

    def source_url(self, manifest_type: str) -> str:
        """
        Canonical upstream URL for a manifest type.

        Types missing from the path table use their own name as the path.

        Raises:
            ConfigurationError: If no upstream base URL is configured
        """
        if not self._base_url:
            raise ConfigurationError(
                "MANIFEST_BASE_URL is not configured",
                details={"type": manifest_type},
            )
        return f"{self._base_url.rstrip('/')}/{self.path_for(manifest_type)}.json"

    def path_for(self, manifest_type: str) -> str:
        name = manifest_type.lower()
        return self._paths.get(name, name)

    def types_sharing(self, manifest_type: str) -> tuple[str, ...]:
        """
        Configured types served from the same upstream document, the type
        itself included (portfolio and universal share one file).
        """
        path = self.path_for(manifest_type)
        return tuple(name for name in self._types if self.path_for(name) == path)

    @staticmethod
    def cache_key(manifest_type: str) -> str:
        return f"{MANIFEST_KEY_PREFIX}{manifest_type.lower()}"
