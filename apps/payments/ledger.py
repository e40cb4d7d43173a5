"""
Commission ledger: per-freelancer commission debt and the work eligibility gate.

A freelancer may take new work while the sum of their *pending* ledger
entries is strictly below ``settings.COMMISSION_THRESHOLD``. Entries are
never deleted; settling debt marks entries paid (or waived) instead.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.management.models import ManagementLog
from core.exceptions import InsufficientFundsError, InvalidStateError, NotFoundError, ValidationError
from core.utils import timestamp_ms
from .models import CommissionLedgerEntry, Transaction
from .wallet import debit, get_wallet, new_reference

logger = logging.getLogger(__name__)

FULLY_PAID = 'fully_paid'
PARTIALLY_PAID = 'partially_paid'


def get_total_due(freelancer):
    return CommissionLedgerEntry.objects.get_total_due(freelancer)


def can_freelancer_work(freelancer, threshold=None):
    return CommissionLedgerEntry.objects.can_freelancer_work(freelancer, threshold)


def eligibility(freelancer, threshold=None):
    """Dues, threshold and the resulting gate in one read."""
    if threshold is None:
        threshold = settings.COMMISSION_THRESHOLD
    dues = get_total_due(freelancer)
    total_due = dues['total_due']
    return {
        'can_work': total_due < Decimal(str(threshold)),
        'total_due': total_due,
        'pending_count': dues['count'],
        'threshold': threshold,
        'is_over_threshold': total_due >= Decimal(str(threshold)),
    }


def record_commission_due(freelancer, job, amount, description):
    entry = CommissionLedgerEntry.objects.create(
        freelancer=freelancer,
        job=job,
        amount=amount,
        type='commission_due',
        status='pending',
        description=description,
    )
    logger.info(f"Commission due {amount} recorded for freelancer {freelancer.id} on job {job.id}")
    return entry


def record_commission_paid(freelancer, job, amount, description, payment_method, transaction_id):
    """Audit entry for commission deducted at source; it is never owed."""
    now = timezone.now()
    return CommissionLedgerEntry.objects.create(
        freelancer=freelancer,
        job=job,
        amount=amount,
        type='commission_paid',
        status='paid',
        description=description,
        due_date=now,
        paid_at=now,
        payment_method=payment_method,
        payment_transaction_id=transaction_id,
    )


def ledger_entries(freelancer):
    return CommissionLedgerEntry.objects.for_freelancer(freelancer).select_related('job')


@transaction.atomic
def clear_due(freelancer, amount, payment_method='wallet'):
    """Pay ``amount`` off the freelancer's pending entries, oldest first.

    Entries that fit in the remaining amount are marked paid whole. The
    first entry that does not fit is split: a new pending entry keeps the
    unpaid remainder and the original, reduced to the remaining amount, is
    marked paid. Nothing after the split is touched.

    The wallet is debited once and a single ``commission_payment``
    transaction is recorded for the whole amount.
    """
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError("Amount must be positive", amount=amount)

    wallet = get_wallet(freelancer, lock=True)
    pending_entries = list(
        CommissionLedgerEntry.objects.select_for_update()
        .for_freelancer(freelancer).pending()
        .order_by('created_at', 'id')
    )
    total_due = sum((entry.amount for entry in pending_entries), Decimal('0.00'))

    if amount > total_due:
        raise ValidationError(
            "Amount cannot exceed total due amount",
            amount=amount,
            total_due=total_due,
        )
    if wallet.balance < amount:
        raise InsufficientFundsError(
            "Insufficient wallet balance to clear dues",
            balance=wallet.balance,
            requested=amount,
        )

    settlement_ref = f"CLEAR_DUE_{timestamp_ms()}"
    remaining = amount
    processed_entries = []

    for entry in pending_entries:
        if remaining <= 0:
            break

        if remaining >= entry.amount:
            entry.mark_paid(payment_method, settlement_ref)
            processed_entries.append({'id': entry.id, 'amount': entry.amount, 'status': FULLY_PAID})
            remaining -= entry.amount
        else:
            residual = CommissionLedgerEntry.objects.create(
                freelancer_id=entry.freelancer_id,
                job_id=entry.job_id,
                amount=entry.amount - remaining,
                type=entry.type,
                description=entry.description,
                status='pending',
                due_date=entry.due_date,
            )
            # Keeps the residual in the parent's queue position
            CommissionLedgerEntry.objects.filter(pk=residual.pk).update(created_at=entry.created_at)
            entry.amount = remaining
            entry.mark_paid(payment_method, settlement_ref)
            processed_entries.append({
                'id': entry.id,
                'amount': remaining,
                'status': PARTIALLY_PAID,
                'residual_entry_id': residual.id,
            })
            remaining = Decimal('0.00')

    debit(wallet, amount)

    payment = Transaction.objects.create(
        freelancer=freelancer,
        amount=amount,
        type='commission_payment',
        status='completed',
        description=f"Commission payment - {amount}",
        payment_method=payment_method,
        reference_id=new_reference('COMM_PAY'),
        currency=settings.CURRENCY,
        completed_at=timezone.now(),
    )
    logger.info(
        f"Freelancer {freelancer.id} cleared {amount} of commission dues across "
        f"{len(processed_entries)} entries ({payment.reference_id})"
    )

    status = eligibility(freelancer)
    return {
        'amount_paid': amount,
        'processed_entries': processed_entries,
        'ledger': ledger_entries(freelancer),
        'total_due': status['total_due'],
        'can_work': status['can_work'],
        'wallet': wallet,
        'transaction': payment,
    }


@transaction.atomic
def waive_entry(admin, entry_id, notes=''):
    entry = CommissionLedgerEntry.objects.select_for_update().filter(pk=entry_id).first()
    if entry is None:
        raise NotFoundError("Ledger entry not found")
    if entry.status != 'pending':
        raise InvalidStateError("Only pending entries can be waived", entry_status=entry.status)

    entry.status = 'waived'
    entry.type = 'commission_waived'
    entry.notes = notes
    entry.save(update_fields=['status', 'type', 'notes', 'updated_at'])

    ManagementLog.objects.create(
        admin=admin,
        action='commission_waived',
        details=f"Waived ledger entry {entry.id} ({entry.amount}) for freelancer {entry.freelancer_id}: {notes}",
    )
    logger.info(f"Admin {admin.id} waived ledger entry {entry.id}")
    return entry
