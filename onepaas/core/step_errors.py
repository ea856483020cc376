"""Typed errors returned by the units of work.

Each error carries a class-level `retryable` flag read by the step runner:
input and release errors are final, infrastructure errors may be
re-attempted when the step policy allows it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal

__all__ = [
    "ChartMaterializeFailed",
    "CloneFailed",
    "EngineUnavailable",
    "HelmUpgradeFailed",
    "IdentifierGenerationFailed",
    "ImagePublishFailed",
    "NoReferenceSpecified",
    "OperationTimedOut",
    "StepError",
    "StorageFailed",
    "UnknownActivity",
    "is_retryable",
]


@dataclass(frozen=True, slots=True)
class NoReferenceSpecified:
    url: str

    kind: ClassVar[str] = "ErrNoReferenceSpecified"
    retryable: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return f"no reference specified for {self.url or 'repository'}"


@dataclass(frozen=True, slots=True)
class IdentifierGenerationFailed:
    reason: str

    kind: ClassVar[str] = "ErrIdentifierGenerationFailed"
    retryable: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return f"unable to generate a workspace identifier: {self.reason}"


@dataclass(frozen=True, slots=True)
class CloneFailed:
    """Git error, passed through as git reported it."""

    url: str
    reference: str
    command: str
    stderr: str
    returncode: int

    kind: ClassVar[str] = "ErrCloneFailed"
    retryable: ClassVar[bool] = True

    @property
    def message(self) -> str:
        detail = self.stderr.strip()
        if detail:
            return f"git {self.command} failed for {self.url}@{self.reference}: {detail}"
        return f"git {self.command} failed for {self.url}@{self.reference} (exit {self.returncode})"


@dataclass(frozen=True, slots=True)
class StorageFailed:
    path: str
    reason: str

    kind: ClassVar[str] = "ErrStorageFailed"
    retryable: ClassVar[bool] = True

    @property
    def message(self) -> str:
        return f"storage error at {self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class ImagePublishFailed:
    stage: Literal["build", "login", "push"]
    address: str
    stderr: str
    returncode: int

    kind: ClassVar[str] = "ErrImagePublishFailed"
    retryable: ClassVar[bool] = True

    @property
    def message(self) -> str:
        detail = self.stderr.strip()
        base = f"image {self.stage} failed for {self.address} (exit {self.returncode})"
        return f"{base}: {detail}" if detail else base


@dataclass(frozen=True, slots=True)
class EngineUnavailable:
    """The container engine could not be launched or reached."""

    operation: str
    reason: str

    kind: ClassVar[str] = "ErrEngineUnavailable"
    retryable: ClassVar[bool] = True

    @property
    def message(self) -> str:
        return f"container engine unavailable during {self.operation}: {self.reason}"


@dataclass(frozen=True, slots=True)
class ChartMaterializeFailed:
    path: str
    reason: str

    kind: ClassVar[str] = "ErrChartMaterializeFailed"
    retryable: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return f"unable to materialize chart at {self.path}: {self.reason}"


@dataclass(frozen=True, slots=True)
class HelmUpgradeFailed:
    """Helm ran and returned a non-zero exit code."""

    release: str
    namespace: str
    exit_code: int

    kind: ClassVar[str] = "ErrHelmUpgradeFailed"
    retryable: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return (
            f"the Helm command returned non-zero exit code {self.exit_code} "
            f"for release {self.release} in namespace {self.namespace}"
        )


@dataclass(frozen=True, slots=True)
class OperationTimedOut:
    """Deadline elapsed; the operation was cancelled and counts as failed."""

    operation: str
    timeout: float | None

    kind: ClassVar[str] = "ErrOperationTimedOut"
    retryable: ClassVar[bool] = True

    @property
    def message(self) -> str:
        if self.timeout is None:
            return f"{self.operation} timed out"
        return f"{self.operation} timed out after {self.timeout:.0f}s"


@dataclass(frozen=True, slots=True)
class UnknownActivity:
    name: str

    kind: ClassVar[str] = "ErrUnknownActivity"
    retryable: ClassVar[bool] = False

    @property
    def message(self) -> str:
        return f"no activity registered under {self.name!r}"


StepError = (
    NoReferenceSpecified
    | IdentifierGenerationFailed
    | CloneFailed
    | StorageFailed
    | ImagePublishFailed
    | EngineUnavailable
    | ChartMaterializeFailed
    | HelmUpgradeFailed
    | OperationTimedOut
    | UnknownActivity
)


def is_retryable(error: StepError) -> bool:
    return error.retryable
