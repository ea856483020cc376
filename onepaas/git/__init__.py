"""Source control: reference resolution and shallow clones.

Usage:
    from onepaas.git import SourceFetcher, resolve_reference

    reference = resolve_reference(branch="main", tag="", ref="").unwrap()
    path = SourceFetcher().fetch(url, reference, workspace)
"""

from onepaas.git.fetcher import SourceFetcher
from onepaas.git.reference import RefKind, SourceReference, resolve_reference

__all__ = [
    "RefKind",
    "SourceFetcher",
    "SourceReference",
    "resolve_reference",
]
