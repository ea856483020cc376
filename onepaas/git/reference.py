"""Turn the branch/tag/ref fields of a request into one source reference.

When more than one field is set, the first non-empty one in the order
branch, tag, ref wins. A request setting several of them is accepted, but
the others are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from onepaas.core.result import Err, Ok, Result
from onepaas.core.step_errors import NoReferenceSpecified

__all__ = ["RefKind", "SourceReference", "resolve_reference"]


class RefKind(StrEnum):
    BRANCH = "branch"
    TAG = "tag"
    REF = "ref"


@dataclass(frozen=True, slots=True)
class SourceReference:
    """A resolved pointer into the remote repository."""

    kind: RefKind
    name: str

    @property
    def full_name(self) -> str:
        """Fully qualified ref name as understood by `git fetch`."""
        match self.kind:
            case RefKind.BRANCH:
                return f"refs/heads/{self.name}"
            case RefKind.TAG:
                return f"refs/tags/{self.name}"
            case RefKind.REF:
                return self.name

    def __str__(self) -> str:
        return self.full_name


def resolve_reference(
    branch: str,
    tag: str,
    ref: str,
    *,
    url: str = "",
) -> Result[SourceReference, NoReferenceSpecified]:
    """Pick the reference to clone: branch, else tag, else raw ref.

    Returns:
        Ok(SourceReference), or Err(NoReferenceSpecified) if all three are empty.
    """
    for kind, value in ((RefKind.BRANCH, branch), (RefKind.TAG, tag), (RefKind.REF, ref)):
        name = value.strip()
        if name:
            return Ok(SourceReference(kind=kind, name=name))
    return Err(NoReferenceSpecified(url=url))
