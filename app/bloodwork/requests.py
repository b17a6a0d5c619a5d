"""
Blood-work request review transitions.

pending  -> approved | denied
approved -> completed

denied and completed are terminal.
"""

from .models import BloodWorkRequestStatus

REVIEW_TRANSITIONS = {
    BloodWorkRequestStatus.PENDING: {
        BloodWorkRequestStatus.APPROVED,
        BloodWorkRequestStatus.DENIED,
    },
    BloodWorkRequestStatus.APPROVED: {
        BloodWorkRequestStatus.COMPLETED,
    },
}


class RequestTransitionError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def check_review_transition(
    current: BloodWorkRequestStatus,
    target: BloodWorkRequestStatus,
) -> None:
    allowed = REVIEW_TRANSITIONS.get(BloodWorkRequestStatus(current), set())
    if BloodWorkRequestStatus(target) not in allowed:
        raise RequestTransitionError(
            f"Cannot change request from {BloodWorkRequestStatus(current).value} "
            f"to {BloodWorkRequestStatus(target).value}"
        )
