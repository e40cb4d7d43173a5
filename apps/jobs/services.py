"""Job and offer lifecycle.

open -> assigned -> waiting_for_payment -> paid -> completed, with
cancellation reachable from every non-terminal state. Assignment is done
with a conditional UPDATE on ``status='open'`` so two concurrent
assignments of the same job cannot both succeed.
"""
import logging

from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from apps.payments.ledger import eligibility
from apps.payments.settlement import calculate_commission
from apps.users.models import ClientProfile, FreelancerProfile
from core.constants import ACTIVE_JOB_STATUSES, ACTIVE_OFFER_STATUSES, OFFER_TYPE_CHOICES
from core.exceptions import (
    ConflictError, ForbiddenError, InvalidStateError, NotFoundError,
    PaymentRequiredError, ValidationError
)
from core.notifications import send_notification
from .models import Job, Offer

logger = logging.getLogger(__name__)

OFFER_TYPES = {value for value, _ in OFFER_TYPE_CHOICES}
OTHER_OFFER_ACCEPTED = 'Another offer was accepted'
JOB_CANCELLED = 'Job was cancelled'

SORT_OPTIONS = {
    'price_desc': ['-amount'],
    'price_asc': ['amount'],
    'date_asc': ['created_at'],
}


def get_active_job(freelancer):
    return Job.objects.filter(freelancer=freelancer, status__in=ACTIVE_JOB_STATUSES).first()


def _job_summary(job):
    return {
        'id': job.id,
        'title': job.title,
        'status': job.status,
        'assigned_at': job.assigned_at,
    }


def _assign(job, freelancer, now):
    """Compare-and-swap the job from open to assigned."""
    try:
        with transaction.atomic():
            updated = Job.objects.filter(pk=job.pk, status='open').update(
                freelancer=freelancer,
                status='assigned',
                assigned_at=now,
                updated_at=now,
            )
    except IntegrityError:
        logger.warning(f"Freelancer {freelancer.id} already holds an active job; job {job.pk} not assigned")
        raise ConflictError("Freelancer already has an active job", job_id=job.pk)
    if not updated:
        raise InvalidStateError("Job is no longer open", job_id=job.pk)
    job.refresh_from_db()
    return job


def _reject_pending_offers(job, message, now, exclude=None):
    pending = Offer.objects.filter(job=job, status='pending')
    if exclude is not None:
        pending = pending.exclude(pk=exclude.pk)
    return pending.update(status='rejected', responded_at=now, response_message=message)


@transaction.atomic
def post_job(client, **attrs):
    profile = ClientProfile.objects.filter(user=client).first()
    if profile is None or not profile.is_profile_complete:
        raise ValidationError("Please complete your profile before posting jobs")

    job = Job.objects.create(client=client, status='open', **attrs)
    ClientProfile.objects.filter(pk=profile.pk).update(total_jobs_posted=F('total_jobs_posted') + 1)
    logger.info(f"Client {client.id} posted job {job.id} for {job.amount}")
    return job


@transaction.atomic
def apply_for_job(freelancer, job_id, offered_amount=None, message='', offer_type='direct_apply'):
    if offer_type not in OFFER_TYPES:
        raise ValidationError(f"Unknown offer type '{offer_type}'")

    # Serialises concurrent applications by the same freelancer
    profile = FreelancerProfile.objects.select_for_update().filter(user=freelancer).first()
    if profile is None or not profile.is_approved:
        raise ForbiddenError(
            "Your profile must be approved before you can apply for jobs",
            verification_status=profile.verification_status if profile else 'not_found',
        )

    active_job = get_active_job(freelancer)
    if active_job is not None:
        raise ConflictError(
            "You already have an active job. Please complete your current job before applying for new ones.",
            active_job=_job_summary(active_job),
        )

    dues = eligibility(freelancer)
    if not dues['can_work']:
        raise PaymentRequiredError(
            f"You have {dues['total_due']} in commission dues. Please clear dues to continue working.",
            commission_due=dues['total_due'],
            threshold=dues['threshold'],
            can_work=False,
        )

    job = Job.objects.filter(pk=job_id).first()
    if job is None:
        raise NotFoundError("Job not available")
    if job.status != 'open' or not job.is_active:
        raise InvalidStateError("Job not available", job_status=job.status)

    if Offer.objects.filter(job=job, freelancer=freelancer, status__in=ACTIVE_OFFER_STATUSES).exists():
        raise ConflictError("You have already applied for this job")

    offer = Offer.objects.create(
        job=job,
        freelancer=freelancer,
        client_id=job.client_id,
        original_amount=job.amount,
        offered_amount=offered_amount if offered_amount is not None else job.amount,
        message=message or '',
        offer_type=offer_type,
    )

    if offer_type == 'direct_apply':
        now = timezone.now()
        _assign(job, freelancer, now)
        offer.status = 'accepted'
        offer.responded_at = now
        offer.save(update_fields=['status', 'responded_at'])
        _reject_pending_offers(job, OTHER_OFFER_ACCEPTED, now, exclude=offer)
        logger.info(f"Freelancer {freelancer.id} direct-applied and was assigned job {job.id}")
        transaction.on_commit(lambda: send_notification(
            job.client,
            f"Job Assigned: {job.title}",
            f"Your job '{job.title}' has been picked up by a freelancer and is now assigned.",
            f"Job '{job.title}' has been assigned to a freelancer.",
        ))
    else:
        logger.info(f"Freelancer {freelancer.id} made a {offer_type} offer {offer.id} on job {job.id}")
        transaction.on_commit(lambda: send_notification(
            job.client,
            f"New Offer for Job: {job.title}",
            f"A freelancer has sent an offer of {offer.offered_amount} for your job '{job.title}'.",
            f"New offer for job '{job.title}'.",
        ))

    return offer


@transaction.atomic
def respond_to_offer(client, offer_id, action, response_message=''):
    if action not in ('accept', 'reject'):
        raise ValidationError("Action must be 'accept' or 'reject'")

    offer = Offer.objects.select_for_update().select_related('job').filter(pk=offer_id).first()
    if offer is None or offer.job.client_id != client.id:
        raise NotFoundError("Offer not found")
    if offer.status != 'pending':
        raise InvalidStateError("Offer has already been responded to", offer_status=offer.status)

    now = timezone.now()
    job = offer.job

    if action == 'accept':
        # Serialises assignments of this freelancer, as in apply_for_job
        FreelancerProfile.objects.select_for_update().filter(user_id=offer.freelancer_id).first()
        active_job = get_active_job(offer.freelancer)
        if active_job is not None:
            raise ConflictError("Freelancer already has an active job", active_job=_job_summary(active_job))
        _assign(job, offer.freelancer, now)
        offer.status = 'accepted'
        rejected = _reject_pending_offers(job, OTHER_OFFER_ACCEPTED, now, exclude=offer)
        logger.info(f"Client {client.id} accepted offer {offer.id} on job {job.id}; auto-rejected {rejected}")
    else:
        offer.status = 'rejected'
        logger.info(f"Client {client.id} rejected offer {offer.id} on job {job.id}")

    offer.responded_at = now
    offer.response_message = response_message
    offer.save(update_fields=['status', 'responded_at', 'response_message'])

    freelancer = offer.freelancer
    verb = 'accepted' if offer.status == 'accepted' else 'rejected'
    transaction.on_commit(lambda: send_notification(
        freelancer,
        f"Offer {verb.capitalize()} for {job.title}",
        f"Your offer for job '{job.title}' has been {verb} by the client.",
        f"Your offer for '{job.title}' was {verb}.",
    ))
    return offer


def _freelancer_job_for_update(freelancer, job_id):
    job = Job.objects.select_for_update().filter(pk=job_id, freelancer=freelancer).first()
    if job is None:
        raise NotFoundError("Job not found or not assigned to you")
    return job


@transaction.atomic
def mark_work_done(freelancer, job_id):
    job = _freelancer_job_for_update(freelancer, job_id)
    if job.status != 'assigned':
        raise InvalidStateError("Only assigned jobs can be marked as done", job_status=job.status)

    job.status = 'waiting_for_payment'
    job.work_completed_at = timezone.now()
    job.save(update_fields=['status', 'work_completed_at', 'updated_at'])
    logger.info(f"Freelancer {freelancer.id} marked job {job.id} as done")

    transaction.on_commit(lambda: send_notification(
        job.client,
        f"Work Completed: {job.title}",
        f"The freelancer has finished the job '{job.title}'. Please complete the payment of {job.amount}.",
        f"Work on '{job.title}' is done. Please pay {job.amount}.",
    ))
    return job


@transaction.atomic
def mark_completed(freelancer, job_id):
    job = _freelancer_job_for_update(freelancer, job_id)
    if job.status != 'paid':
        raise InvalidStateError("Job not paid yet", job_status=job.status)

    job.status = 'completed'
    job.completed_at = timezone.now()
    job.save(update_fields=['status', 'completed_at', 'updated_at'])

    # Earnings are net of commission, whatever the payment method
    payment = job.transactions.filter(type='payment', status='completed').first()
    _, net_amount = calculate_commission(payment.amount if payment else job.amount)
    FreelancerProfile.objects.filter(user=freelancer).update(
        completed_jobs=F('completed_jobs') + 1,
        total_earnings=F('total_earnings') + net_amount,
    )
    logger.info(f"Freelancer {freelancer.id} completed job {job.id}, earning {net_amount}")
    return job


@transaction.atomic
def cancel_job(user, job_id, reason):
    if not reason:
        raise ValidationError("A cancellation reason is required")

    job = Job.objects.select_for_update().filter(pk=job_id).first()
    if job is None or user.id not in (job.client_id, job.freelancer_id):
        raise NotFoundError("Job not found")
    if job.is_terminal:
        raise InvalidStateError("Job can no longer be cancelled", job_status=job.status)

    now = timezone.now()
    job.status = 'cancelled'
    job.cancelled_at = now
    job.cancellation_reason = reason
    job.is_active = False
    job.save(update_fields=['status', 'cancelled_at', 'cancellation_reason', 'is_active', 'updated_at'])
    _reject_pending_offers(job, JOB_CANCELLED, now)
    logger.info(f"User {user.id} cancelled job {job.id}: {reason}")

    other_party = job.freelancer if user.id == job.client_id else job.client
    transaction.on_commit(lambda: send_notification(
        other_party,
        f"Job Cancelled: {job.title}",
        f"The job '{job.title}' has been cancelled.\nReason: {reason}",
        f"Job '{job.title}' has been cancelled.",
    ))
    return job


def list_client_jobs(client, status=None):
    jobs = Job.objects.filter(client=client).select_related('freelancer')
    if status:
        jobs = jobs.filter(status=status)
    return jobs


def list_available_jobs(gender=None, sort=None):
    jobs = Job.objects.filter(status='open', is_active=True).select_related('client')
    if gender and gender != 'any':
        jobs = jobs.filter(gender_preference__in=['any', gender])
    return jobs.order_by(*SORT_OPTIONS.get(sort, ['-created_at']))


def list_assigned_jobs(freelancer, status=None):
    jobs = Job.objects.filter(freelancer=freelancer).select_related('client')
    if status:
        jobs = jobs.filter(status=status)
    return jobs


def list_job_offers(client, job_id, status=None):
    job = Job.objects.filter(pk=job_id, client=client).first()
    if job is None:
        raise NotFoundError("Job not found")
    offers = job.offers.select_related('freelancer')
    if status:
        offers = offers.filter(status=status)
    return offers
