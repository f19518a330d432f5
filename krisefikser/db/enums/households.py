"""Household and membership request enums."""

from enum import Enum


class RequestType(str, Enum):
    """Direction of a membership request."""

    JOIN_REQUEST = "join_request"  # user asks to join a household
    INVITATION = "invitation"  # household invites a user


class RequestStatus(str, Enum):
    """
    Membership request lifecycle.

    PENDING is the only non-terminal state.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING
