"""
Blood-Work Request Review Tests
"""

import pytest

from app.bloodwork.models import BloodWorkRequestStatus as Status
from app.bloodwork.requests import RequestTransitionError, check_review_transition


@pytest.mark.parametrize("current,target", [
    (Status.PENDING, Status.APPROVED),
    (Status.PENDING, Status.DENIED),
    (Status.APPROVED, Status.COMPLETED),
])
def test_allowed_transitions(current, target):
    check_review_transition(current, target)


@pytest.mark.parametrize("current,target", [
    (Status.PENDING, Status.COMPLETED),
    (Status.APPROVED, Status.DENIED),
    (Status.DENIED, Status.APPROVED),
    (Status.COMPLETED, Status.PENDING),
])
def test_rejected_transitions(current, target):
    with pytest.raises(RequestTransitionError):
        check_review_transition(current, target)


def test_accepts_stored_strings():
    with pytest.raises(RequestTransitionError) as exc:
        check_review_transition("denied", "approved")
    assert exc.value.message == "Cannot change request from denied to approved"
