# SPDX-License-Identifier: EUPL-1.2
# SPDX-FileCopyrightText: © 2025-present Jürgen Mülbert

"""
Feedback record exchanged between trade participants.

Only the value type lives here; its wire encoding belongs to the protocol
layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from operator import attrgetter
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

NULL_HASH: Final[bytes] = bytes(32)


class FeedbackRole(IntEnum):
    """Who gave or received the feedback."""

    NONE = 0
    BUYER = 1
    SELLER = 2
    ARBITER = 3


@dataclass
class Feedback:
    """A rating with free-form payload, anchored to a transaction."""

    payload: bytes = b""
    rating: int = 0
    role_from: FeedbackRole = FeedbackRole.NONE
    role_to: FeedbackRole = FeedbackRole.NONE
    height: int = 0
    tx_hash: bytes = NULL_HASH

    @classmethod
    def for_roles(cls, role_from: FeedbackRole, role_to: FeedbackRole) -> Feedback:
        """Return an otherwise empty record between two roles."""
        return cls(role_from=role_from, role_to=role_to)

    def set_null(self) -> None:
        """Reset every field to its empty value."""
        self.payload = b""
        self.rating = 0
        self.role_from = FeedbackRole.NONE
        self.role_to = FeedbackRole.NONE
        self.height = 0
        self.tx_hash = NULL_HASH

    def is_null(self) -> bool:
        """Return True if every field is empty."""
        return (
            self.tx_hash == NULL_HASH
            and self.height == 0
            and self.rating == 0
            and self.role_from == FeedbackRole.NONE
            and self.role_to == FeedbackRole.NONE
            and not self.payload
        )


def sort_by_height(records: Iterable[Feedback]) -> list[Feedback]:
    """Return `records` ordered by block height, oldest first."""
    return sorted(records, key=attrgetter("height"))
