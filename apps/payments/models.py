from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Count, Sum
from django.utils import timezone

from core.constants import (
    LEDGER_ENTRY_STATUS_CHOICES, LEDGER_ENTRY_TYPE_CHOICES, PAYMENT_METHOD_CHOICES, PAYMENT_ORDER_STATUS_CHOICES,
    TRANSACTION_STATUS_CHOICES, TRANSACTION_TYPE_CHOICES
)


class Wallet(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='wallet')
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Wallet of {self.user.username}: {self.balance}"


class Transaction(models.Model):
    """Audit record of a money movement. Written once, never edited afterwards
    except for the status of pending withdrawals."""
    job = models.ForeignKey('jobs.Job', on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    client = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='client_transactions'
    )
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='freelancer_transactions'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, default='INR')
    type = models.CharField(max_length=30, choices=TRANSACTION_TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=TRANSACTION_STATUS_CHOICES, default='pending')
    description = models.CharField(max_length=255, blank=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES)
    # External id from the gateway, unique so a replayed callback cannot record twice
    transaction_id = models.CharField(max_length=100, unique=True, null=True, blank=True)
    reference_id = models.CharField(max_length=100, unique=True)
    bank_details = models.JSONField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"Transaction {self.reference_id} ({self.type}, {self.amount})"


class PaymentOrder(models.Model):
    """Every gateway order issued for a job. A job can be re-initiated, so any
    of its orders may come back paid; the first success settles the job."""
    job = models.ForeignKey('jobs.Job', on_delete=models.CASCADE, related_name='payment_orders')
    order_id = models.CharField(max_length=100, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=PAYMENT_ORDER_STATUS_CHOICES, default='initiated')
    payment_url = models.URLField(max_length=500, blank=True)
    transaction_id = models.CharField(max_length=100, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Order {self.order_id} for job {self.job_id} ({self.status})"


class CommissionLedgerQuerySet(models.QuerySet):
    def pending(self):
        return self.filter(status='pending')

    def for_freelancer(self, freelancer):
        return self.filter(freelancer=freelancer)

    def get_total_due(self, freelancer):
        result = self.for_freelancer(freelancer).pending().aggregate(
            total_due=Sum('amount'), count=Count('id')
        )
        return {
            'total_due': result['total_due'] or Decimal('0.00'),
            'count': result['count'],
        }

    def can_freelancer_work(self, freelancer, threshold=None):
        if threshold is None:
            threshold = settings.COMMISSION_THRESHOLD
        return self.get_total_due(freelancer)['total_due'] < Decimal(str(threshold))


def default_due_date():
    return timezone.now() + timedelta(days=settings.COMMISSION_DUE_DAYS)


class CommissionLedgerEntry(models.Model):
    freelancer = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='commission_entries'
    )
    job = models.ForeignKey('jobs.Job', on_delete=models.CASCADE, related_name='commission_entries')
    amount = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    type = models.CharField(max_length=30, choices=LEDGER_ENTRY_TYPE_CHOICES)
    status = models.CharField(max_length=20, choices=LEDGER_ENTRY_STATUS_CHOICES, default='pending')
    description = models.CharField(max_length=255)
    due_date = models.DateTimeField(default=default_due_date)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, null=True, blank=True)
    payment_transaction_id = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CommissionLedgerQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at', '-id']
        verbose_name_plural = 'Commission ledger entries'
        indexes = [
            models.Index(fields=['freelancer', 'status']),
            models.Index(fields=['due_date']),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} for {self.freelancer.username} ({self.status})"

    @property
    def is_overdue(self):
        return self.status == 'pending' and timezone.now() > self.due_date

    def mark_paid(self, payment_method, transaction_id):
        self.status = 'paid'
        self.paid_at = timezone.now()
        self.payment_method = payment_method
        self.payment_transaction_id = transaction_id
        self.save()
