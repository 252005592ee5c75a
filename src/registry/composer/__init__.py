"""Composer registry package.

- client.py: Packagist v2 metadata and GitHub-hosted changelog retrieval
"""

from .client import ComposerRegistry, expand_minified, github_raw_url

__all__ = ["ComposerRegistry", "expand_minified", "github_raw_url"]
