"""Profile management and the freelancer verification workflow."""
import logging

from django.db import transaction
from django.utils import timezone

from apps.management.models import ManagementLog
from core.exceptions import NotFoundError, ValidationError
from .models import ClientProfile, FreelancerProfile

logger = logging.getLogger(__name__)

REVIEW_ACTIONS = {
    'approve': 'approved',
    'reject': 'rejected',
    'under_review': 'under_review',
}

STATUS_MESSAGES = {
    'pending': ('Your profile is pending verification. Please wait for admin approval.', 'wait_for_approval'),
    'under_review': ('Your profile is currently under review by our admin team.', 'wait_for_approval'),
    'resubmitted': ('Your resubmitted profile is waiting for admin review.', 'wait_for_approval'),
    'rejected': ('Your profile was rejected. Please update your details and resubmit.', 'resubmit_profile'),
}


def is_approved(freelancer):
    profile = FreelancerProfile.objects.filter(user=freelancer).first()
    return profile is not None and profile.is_approved


def save_client_profile(user, data):
    profile, created = ClientProfile.objects.update_or_create(
        user=user,
        defaults={**data, 'is_profile_complete': True},
    )
    logger.info(f"Client profile {'created' if created else 'updated'} for user {user.id}")
    return profile


def submit_freelancer_profile(user, data):
    """Create or update a freelancer profile and queue it for verification.

    A profile that was rejected goes back in as ``resubmitted``; any other
    non-approved profile is reset to ``pending``. Approved profiles keep their
    status and freelancer code.
    """
    profile = FreelancerProfile.objects.filter(user=user).first()
    if profile is None:
        profile = FreelancerProfile(user=user, **data)
        profile.verification_status = 'pending'
    else:
        for attr, value in data.items():
            setattr(profile, attr, value)
        if profile.verification_status == 'rejected':
            profile.verification_status = 'resubmitted'
            profile.rejection_reason = None
        elif profile.verification_status != 'approved':
            profile.verification_status = 'pending'
    profile.is_profile_complete = True
    profile.save()
    logger.info(f"Freelancer profile for user {user.id} submitted, status={profile.verification_status}")
    return profile


@transaction.atomic
def review_freelancer_profile(admin, profile_id, action, reason=None):
    try:
        profile = FreelancerProfile.objects.select_for_update().get(pk=profile_id)
    except FreelancerProfile.DoesNotExist:
        raise NotFoundError("Freelancer profile not found")

    if action not in REVIEW_ACTIONS:
        raise ValidationError(f"Unknown review action '{action}'", allowed=sorted(REVIEW_ACTIONS))
    if action == 'reject' and not reason:
        raise ValidationError("A rejection reason is required")

    profile.verification_status = REVIEW_ACTIONS[action]
    profile.rejection_reason = reason if action == 'reject' else None
    profile.save()

    ManagementLog.objects.create(
        admin=admin,
        action=f'freelancer_{action}',
        details=f"Profile {profile.id} (user {profile.user_id}) set to {profile.verification_status}"
                + (f": {reason}" if reason else ''),
    )
    logger.info(f"Admin {admin.id} set freelancer profile {profile.id} to {profile.verification_status}")
    return profile


def verification_summary(user):
    profile = FreelancerProfile.objects.filter(user=user).first()
    if profile is None:
        return {
            'has_profile': False,
            'verification_status': 'not_found',
            'message': 'No profile found. Please create your freelancer profile.',
            'next_action': 'create_profile',
            'can_navigate_to_dashboard': False,
        }

    if profile.is_approved:
        message = f"Your profile has been approved! Your Freelancer ID is: {profile.freelancer_code}"
        next_action = 'navigate_to_dashboard'
    else:
        message, next_action = STATUS_MESSAGES[profile.verification_status]

    return {
        'has_profile': True,
        'verification_status': profile.verification_status,
        'freelancer_code': profile.freelancer_code,
        'rejection_reason': profile.rejection_reason,
        'message': message,
        'next_action': next_action,
        'can_navigate_to_dashboard': profile.is_approved,
        'checked_at': timezone.now(),
    }


def search_freelancers(freelancer_code=None):
    """Approved freelancers, optionally narrowed to one freelancer code."""
    profiles = FreelancerProfile.objects.filter(verification_status='approved').select_related('user')
    if freelancer_code:
        profiles = profiles.filter(freelancer_code__iexact=freelancer_code.strip())
    return profiles.order_by('-created_at', '-id')
