"""Package registries that supply candidate versions and changelogs."""

from .base import Registry, filter_versions
from .local import LocalRegistry
from .composer import ComposerRegistry

__all__ = ["Registry", "filter_versions", "LocalRegistry", "ComposerRegistry"]
