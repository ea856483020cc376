"""Per-run workspaces.

Each pipeline run gets its own workspace, named by a fresh UUID under the
configured base storage:

    <base>/<id>/        working tree (the cloned checkout)
    <base>/<id>/.git/   object store

Two runs never share a workspace, so nothing on disk is shared between
concurrent runs. Workspaces are owned by the caller: nothing here removes them.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from uuid import UUID, uuid4

from onepaas.platform.storage import Storage

from .result import Err, Ok, Result
from .step_errors import IdentifierGenerationFailed

__all__ = ["OBJECT_STORE_DIRNAME", "Workspace", "WorkspaceAllocator"]

OBJECT_STORE_DIRNAME = ".git"


@dataclass(frozen=True, slots=True)
class Workspace:
    """Isolated storage root of one pipeline run."""

    id: str
    worktree: Storage = field(repr=False)

    @property
    def object_store(self) -> Storage:
        """Storage holding the git object database, nested in the working tree."""
        return self.worktree.chroot(OBJECT_STORE_DIRNAME)

    @property
    def path(self) -> str:
        """Location of the working tree, handed to the later pipeline steps."""
        return self.worktree.location()

    def __str__(self) -> str:
        return self.path


class WorkspaceAllocator:
    """Hands out uniquely named workspaces under a base storage.

    Allocation performs no I/O; the fetcher creates the directories when it
    clones.
    """

    def __init__(self, storage: Storage, *, new_id: Callable[[], UUID] = uuid4) -> None:
        self._storage = storage
        self._new_id = new_id

    def allocate(self) -> Result[Workspace, IdentifierGenerationFailed]:
        try:
            token = str(self._new_id())
        except (OSError, NotImplementedError, ValueError) as e:
            return Err(IdentifierGenerationFailed(reason=str(e)))
        return Ok(Workspace(id=token, worktree=self._storage.chroot(token)))
