"""Wallet bookkeeping.

Balances are only changed on rows locked with ``select_for_update`` inside
the caller's transaction; ``debit`` refuses to take a balance below zero.
"""
import logging
import uuid
from decimal import Decimal

from django.db import transaction

from core.exceptions import InsufficientFundsError, ValidationError
from core.utils import timestamp_ms
from .models import Transaction, Wallet

logger = logging.getLogger(__name__)


def new_reference(prefix):
    return f"{prefix}_{timestamp_ms()}_{uuid.uuid4().hex[:8]}"


def get_wallet(user, lock=False):
    """Return the user's wallet, creating an empty one on first access."""
    wallet, created = Wallet.objects.get_or_create(user=user)
    if created:
        logger.info(f"Created wallet for user {user.id}")
    if lock:
        wallet = Wallet.objects.select_for_update().get(pk=wallet.pk)
    return wallet


def credit(wallet, amount):
    amount = Decimal(amount)
    if amount < 0:
        raise ValidationError("Credit amount cannot be negative", amount=amount)
    wallet.balance += amount
    wallet.save(update_fields=['balance', 'updated_at'])
    return wallet


def debit(wallet, amount):
    amount = Decimal(amount)
    if amount < 0:
        raise ValidationError("Debit amount cannot be negative", amount=amount)
    if wallet.balance < amount:
        raise InsufficientFundsError(
            "Insufficient wallet balance",
            balance=wallet.balance,
            requested=amount,
        )
    wallet.balance -= amount
    wallet.save(update_fields=['balance', 'updated_at'])
    return wallet


@transaction.atomic
def withdraw(freelancer, amount, bank_details=None):
    amount = Decimal(amount)
    if amount <= 0:
        raise ValidationError("Withdrawal amount must be positive", amount=amount)

    wallet = get_wallet(freelancer, lock=True)
    debit(wallet, amount)
    withdrawal = Transaction.objects.create(
        freelancer=freelancer,
        amount=amount,
        type='withdrawal',
        status='pending',
        description='Withdrawal request',
        payment_method='bank_transfer',
        reference_id=new_reference('WITHDRAW'),
        bank_details=bank_details,
    )
    logger.info(f"Freelancer {freelancer.id} requested withdrawal {withdrawal.reference_id} of {amount}")
    return withdrawal, wallet
