"""gws.git — Repository provider (git command line)."""

from gws.git.provider import (
    RepositoryProvider, GitProvider, GitSettings,
    RepositoryStatus, ProviderError, parse_porcelain_v2,
)
from gws.git.discover import (
    DiscoveredRepo, discover_repositories, find_unknown_repositories, list_remotes,
)

__all__ = [
    "RepositoryProvider", "GitProvider", "GitSettings",
    "RepositoryStatus", "ProviderError", "parse_porcelain_v2",
    "DiscoveredRepo", "discover_repositories", "find_unknown_repositories",
    "list_remotes",
]
