"""
IRC event and action types exchanged between the transport and the pipeline.

This module defines the JoinEvent produced by the IRC client and the
ModerationAction the join handler hands back to it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True, slots=True)
class JoinEvent:
    """A user joining a channel.

    Attributes:
        nickname: Nickname of the joining user.
        hostname: Raw host part of the user's prefix; may be empty.
        channel: Channel that was joined.
    """
    nickname: str
    hostname: str
    channel: str


@dataclass(frozen=True, slots=True)
class QuietCommand:
    channel: str
    nickname: str


@dataclass(frozen=True, slots=True)
class Notification:
    recipient: str
    text: str


@dataclass(frozen=True, slots=True)
class ModerationAction:
    """A quiet command plus the operator notifications that accompany it."""
    quiet: QuietCommand
    notifications: Tuple[Notification, ...] = field(default_factory=tuple)
