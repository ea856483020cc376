"""Tests for onepaas.git.reference module."""

from __future__ import annotations

import pytest

from onepaas.core.result import Err, Ok
from onepaas.core.step_errors import NoReferenceSpecified
from onepaas.git.reference import RefKind, SourceReference, resolve_reference


class TestResolveReference:
    def test_branch(self) -> None:
        assert resolve_reference("main", "", "") == Ok(SourceReference(RefKind.BRANCH, "main"))

    def test_tag(self) -> None:
        assert resolve_reference("", "v1.0.0", "") == Ok(SourceReference(RefKind.TAG, "v1.0.0"))

    def test_raw_ref(self) -> None:
        assert resolve_reference("", "", "refs/pull/42/head") == Ok(
            SourceReference(RefKind.REF, "refs/pull/42/head")
        )

    @pytest.mark.parametrize(
        ("branch", "tag", "ref", "expected"),
        [
            ("main", "v1", "refs/x", RefKind.BRANCH),
            ("", "v1", "refs/x", RefKind.TAG),
            ("main", "", "refs/x", RefKind.BRANCH),
        ],
    )
    def test_priority(self, branch: str, tag: str, ref: str, expected: RefKind) -> None:
        result = resolve_reference(branch, tag, ref)

        assert isinstance(result, Ok)
        assert result.value.kind == expected

    def test_whitespace_counts_as_empty(self) -> None:
        assert resolve_reference("  ", "v2", "") == Ok(SourceReference(RefKind.TAG, "v2"))

    def test_nothing_specified(self) -> None:
        result = resolve_reference("", "", "", url="https://example.com/acme/app.git")

        assert isinstance(result, Err)
        assert result.error == NoReferenceSpecified(url="https://example.com/acme/app.git")
        assert not result.error.retryable


class TestFullName:
    def test_branch(self) -> None:
        assert SourceReference(RefKind.BRANCH, "main").full_name == "refs/heads/main"

    def test_tag(self) -> None:
        assert SourceReference(RefKind.TAG, "v1.0.0").full_name == "refs/tags/v1.0.0"

    def test_raw_ref_unchanged(self) -> None:
        assert SourceReference(RefKind.REF, "refs/changes/1").full_name == "refs/changes/1"
