from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator
from core.constants import (
    JOB_STATUS_CHOICES, ACTIVE_JOB_STATUSES, TERMINAL_JOB_STATUSES, JOB_PAYMENT_STATUS_CHOICES,
    PAYMENT_METHOD_CHOICES, GENDER_PREFERENCE_CHOICES, OFFER_STATUS_CHOICES,
    ACTIVE_OFFER_STATUSES, OFFER_TYPE_CHOICES
)


class Job(models.Model):
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='posted_jobs')
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_jobs'
    )
    title = models.CharField(max_length=200)
    description = models.TextField()
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    number_of_people = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    location = models.CharField(max_length=255, blank=True)
    pincode = models.CharField(max_length=6, blank=True)
    gender_preference = models.CharField(max_length=10, choices=GENDER_PREFERENCE_CHOICES, default='any')
    status = models.CharField(max_length=20, choices=JOB_STATUS_CHOICES, default='open')
    is_active = models.BooleanField(default=True)

    assigned_at = models.DateTimeField(null=True, blank=True)
    work_completed_at = models.DateTimeField(null=True, blank=True)

    payment_order_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    payment_status = models.CharField(max_length=20, choices=JOB_PAYMENT_STATUS_CHOICES, null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    payment_transaction_id = models.CharField(max_length=100, null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'is_active']),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['freelancer'],
                condition=models.Q(status__in=ACTIVE_JOB_STATUSES),
                name='one_active_job_per_freelancer',
            ),
        ]

    def __str__(self):
        return f"{self.title} - {self.client.username}"

    @property
    def is_terminal(self):
        return self.status in TERMINAL_JOB_STATUSES


class Offer(models.Model):
    job = models.ForeignKey(Job, on_delete=models.CASCADE, related_name='offers')
    freelancer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='offers')
    # Denormalized from job for client-side queries
    client = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='received_offers')
    original_amount = models.DecimalField(max_digits=12, decimal_places=2)
    offered_amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    message = models.TextField(blank=True)
    offer_type = models.CharField(max_length=20, choices=OFFER_TYPE_CHOICES, default='direct_apply')
    status = models.CharField(max_length=20, choices=OFFER_STATUS_CHOICES, default='pending')
    response_message = models.TextField(blank=True, null=True)
    responded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['job', 'freelancer'],
                condition=models.Q(status__in=ACTIVE_OFFER_STATUSES),
                name='one_active_offer_per_freelancer_and_job',
            ),
        ]

    def __str__(self):
        return f"{self.freelancer.username} offer on {self.job.title} ({self.status})"
