"""Nickname exemption matching."""

from typing import Iterable


def is_exempt(nickname: str, exemptions: Iterable[str]) -> bool:
    """Return True if ``nickname`` matches an exemption entry.

    A nickname matches an entry when it equals the entry case-insensitively,
    or equals the entry followed by a single ``_`` (the usual fallback when
    the nick is already taken). No other suffixes are recognized.
    """
    folded = nickname.lower()
    for entry in exemptions:
        base = entry.lower()
        if folded == base or folded == base + "_":
            return True
    return False
