"""Freelancer verification workflow."""
from datetime import date

import pytest
from django.contrib.auth import get_user_model

from apps.management.models import ManagementLog
from apps.users import services
from apps.users.models import FreelancerProfile
from core.exceptions import NotFoundError, ValidationError

User = get_user_model()

PROFILE_DATA = {
    "full_name": "Ravi Kumar",
    "date_of_birth": date(1994, 2, 11),
    "gender": "male",
    "address": "22 Lake View",
    "pincode": "500081",
}


@pytest.fixture
def applicant(db):
    return User.objects.create_user(
        username="ravi", email="ravi@test.com", password="TestPass123!", role="freelancer"
    )


@pytest.mark.django_db
def test_new_profile_waits_for_approval(applicant):
    profile = services.submit_freelancer_profile(applicant, PROFILE_DATA)

    assert profile.verification_status == "pending"
    assert profile.is_profile_complete is True
    assert profile.freelancer_code is None
    assert services.is_approved(applicant) is False
    assert services.verification_summary(applicant)["next_action"] == "wait_for_approval"


@pytest.mark.django_db
def test_approval_assigns_freelancer_code(applicant, superuser):
    profile = services.submit_freelancer_profile(applicant, PROFILE_DATA)

    profile = services.review_freelancer_profile(superuser, profile.id, "approve")

    assert profile.verification_status == "approved"
    assert profile.freelancer_code.startswith("FL")
    assert services.is_approved(applicant) is True
    summary = services.verification_summary(applicant)
    assert summary["next_action"] == "navigate_to_dashboard"
    assert profile.freelancer_code in summary["message"]
    assert ManagementLog.objects.filter(admin=superuser, action="freelancer_approve").exists()


@pytest.mark.django_db
def test_rejection_needs_reason(applicant, superuser):
    profile = services.submit_freelancer_profile(applicant, PROFILE_DATA)

    with pytest.raises(ValidationError):
        services.review_freelancer_profile(superuser, profile.id, "reject")


@pytest.mark.django_db
def test_rejected_profile_is_resubmitted(applicant, superuser):
    profile = services.submit_freelancer_profile(applicant, PROFILE_DATA)
    services.review_freelancer_profile(superuser, profile.id, "reject", "Blurry address proof")

    profile = services.submit_freelancer_profile(applicant, {**PROFILE_DATA, "address": "23 Lake View"})

    assert profile.verification_status == "resubmitted"
    assert profile.rejection_reason is None
    assert FreelancerProfile.objects.get(pk=profile.pk).address == "23 Lake View"


@pytest.mark.django_db
def test_review_of_missing_profile(superuser):
    with pytest.raises(NotFoundError):
        services.review_freelancer_profile(superuser, 999999, "approve")


@pytest.mark.django_db
def test_summary_without_profile(applicant):
    summary = services.verification_summary(applicant)

    assert summary["verification_status"] == "not_found"
    assert summary["next_action"] == "create_profile"
