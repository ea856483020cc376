from __future__ import annotations

from onepaas.core.deadline import Deadline


def test_unbounded() -> None:
    deadline = Deadline.unbounded()

    assert deadline.remaining() is None
    assert not deadline.expired


def test_after() -> None:
    deadline = Deadline.after(60.0)

    remaining = deadline.remaining()
    assert remaining is not None
    assert 0.0 < remaining <= 60.0
    assert not deadline.expired


def test_elapsed_deadline_is_expired() -> None:
    deadline = Deadline.after(0.0)

    assert deadline.remaining() == 0.0
    assert deadline.expired


def test_earliest() -> None:
    short = Deadline.after(1.0)
    long = Deadline.after(100.0)
    unbounded = Deadline.unbounded()

    assert short.earliest(long) is short
    assert long.earliest(short) is short
    assert unbounded.earliest(short) is short
    assert short.earliest(unbounded) is short
