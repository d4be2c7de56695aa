"""Tests for request fingerprinting."""

from jeff.cache.fingerprint import compute_fingerprint
from jeff.chat.models import ConversationMessage
from jeff.chat.sanitize import sanitize_text


def _history(*pairs: tuple[str, str]) -> list[ConversationMessage]:
    return [ConversationMessage(role=r, content=c) for r, c in pairs]


def test_fingerprint_is_sha256_hex() -> None:
    key = compute_fingerprint("western", [])
    assert len(key) == 64
    assert all(c in "0123456789abcdef" for c in key)


def test_fingerprint_is_deterministic() -> None:
    history = _history(("user", "how much is tuition"), ("assistant", "Which school?"))
    assert compute_fingerprint("western", history) == compute_fingerprint("western", history)


def test_message_change_changes_fingerprint() -> None:
    assert compute_fingerprint("western", []) != compute_fingerprint("westerm", [])


def test_role_change_changes_fingerprint() -> None:
    a = _history(("user", "tuition?"))
    b = _history(("assistant", "tuition?"))
    assert compute_fingerprint("western", a) != compute_fingerprint("western", b)


def test_history_changes_fingerprint() -> None:
    a = _history(("user", "how much is tuition"))
    assert compute_fingerprint("western", a) != compute_fingerprint("western", [])


def test_turns_outside_window_ignored() -> None:
    recent = [("user", "a"), ("assistant", "b"), ("user", "c")]
    a = _history(("user", "first"), *recent)
    b = _history(("user", "something else entirely"), *recent)
    assert compute_fingerprint("western", a) == compute_fingerprint("western", b)


def test_custom_window() -> None:
    a = _history(("user", "x"), ("user", "y"))
    b = _history(("user", "z"), ("user", "y"))
    assert compute_fingerprint("m", a, window=1) == compute_fingerprint("m", b, window=1)
    assert compute_fingerprint("m", a, window=2) != compute_fingerprint("m", b, window=2)


def test_messages_differing_beyond_cap_share_fingerprint() -> None:
    base = "a" * 1000
    first = sanitize_text(base + "tail one")
    second = sanitize_text(base + "a completely different tail")
    assert compute_fingerprint(first, []) == compute_fingerprint(second, [])


def test_separator_in_content_does_not_merge_turns() -> None:
    packed = _history(("user", "a|user:b"))
    split = _history(("user", "a"), ("user", "b"))
    assert compute_fingerprint("c", packed) != compute_fingerprint("c", split)


def test_message_cannot_impersonate_history() -> None:
    assert compute_fingerprint("user:x|y", []) != compute_fingerprint(
        "y", _history(("user", "x"))
    )
