"""
Job settlement.

Three ways to pay for a job, all ending with the job paid or completed,
exactly one ``payment`` Transaction, the freelancer's wallet credited with
the net amount and the platform commission on the ledger:

* wallet: the client's wallet pays; commission is taken at source.
* cash: the client pays the freelancer directly; commission is owed and
  recorded as a pending ``commission_due`` ledger entry.
* gateway: PhonePe collects the money and reports back through an
  unauthenticated, checksummed callback; commission is taken at source.

The money movement of each path runs in one database transaction with the
job row locked. Profile statistics and notifications run after commit and
only log on failure.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import DatabaseError, transaction
from django.db.models import Exists, F, OuterRef
from django.utils import timezone

from apps.jobs.models import Job
from apps.users.models import ClientProfile, FreelancerProfile
from core.exceptions import InvalidStateError, NotFoundError, ValidationError
from core.notifications import send_notification
from core.utils import timestamp_ms
from .gateway import PaymentGateway
from .ledger import record_commission_due, record_commission_paid
from .models import PaymentOrder, Transaction
from .wallet import credit, debit, get_wallet, new_reference

logger = logging.getLogger(__name__)

WALLET_PAYABLE_STATUSES = ('work_done', 'waiting_for_payment')
SETTLED_STATUSES = ('paid', 'completed')


def calculate_commission(amount, rate=None):
    """Split ``amount`` into ``(commission, net)``.

    Commission is rounded half-up to whole currency units, so commission
    and net always add back up to ``amount``.
    """
    if rate is None:
        rate = settings.COMMISSION_RATE
    amount = Decimal(amount)
    commission = (amount * Decimal(str(rate))).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    return commission, amount - commission


def _client_job_for_update(client, job_id):
    job = Job.objects.select_for_update().filter(pk=job_id, client=client).first()
    if job is None:
        raise NotFoundError("Job not found")
    return job


def _lock_wallets(*users):
    # Fixed lock order so two settlements between the same pair cannot deadlock
    wallets = {user.id: get_wallet(user, lock=True) for user in sorted(users, key=lambda u: u.id)}
    return [wallets[user.id] for user in users]


def _payment_transaction(job, amount, payment_method, description, transaction_id=None):
    return Transaction.objects.create(
        job=job,
        client_id=job.client_id,
        freelancer_id=job.freelancer_id,
        amount=amount,
        currency=settings.CURRENCY,
        type='payment',
        status='completed',
        description=description,
        payment_method=payment_method,
        transaction_id=transaction_id,
        reference_id=new_reference('PAY'),
        completed_at=timezone.now(),
    )


def _update_profile_stats(job, client_spent, **freelancer_increments):
    try:
        FreelancerProfile.objects.filter(user_id=job.freelancer_id).update(
            **{field: F(field) + value for field, value in freelancer_increments.items()}
        )
        ClientProfile.objects.filter(user_id=job.client_id).update(total_spent=F('total_spent') + client_spent)
    except DatabaseError:
        logger.exception(f"Failed to update profile statistics for job {job.id}")


def _after_settlement(job, client_spent, net_amount, **freelancer_increments):
    freelancer = job.freelancer

    def run():
        _update_profile_stats(job, client_spent, **freelancer_increments)
        send_notification(
            freelancer,
            f"Payment Received: {job.title}",
            f"Payment for '{job.title}' has been settled. {net_amount} has been credited to your wallet.",
            f"Payment for '{job.title}' settled. {net_amount} credited.",
        )

    transaction.on_commit(run)


@transaction.atomic
def pay_with_wallet(client, job_id):
    job = _client_job_for_update(client, job_id)
    if job.status not in WALLET_PAYABLE_STATUSES or job.freelancer_id is None:
        raise InvalidStateError("Job not ready for payment", job_status=job.status)

    commission, net_amount = calculate_commission(job.amount)
    client_wallet, freelancer_wallet = _lock_wallets(client, job.freelancer)
    debit(client_wallet, job.amount)
    credit(freelancer_wallet, net_amount)

    payment = _payment_transaction(job, job.amount, 'wallet', f"Payment for job: {job.title}")
    ledger_entry = record_commission_paid(
        job.freelancer, job, commission,
        f"Commission deducted from wallet payment - Job: {job.title}",
        'wallet', payment.reference_id,
    )

    now = timezone.now()
    job.status = 'completed'
    job.payment_status = 'completed'
    job.payment_method = 'wallet'
    job.payment_transaction_id = payment.reference_id
    job.paid_at = now
    job.completed_at = now
    job.save()
    logger.info(f"Job {job.id} paid from wallet: {job.amount} (commission {commission}, net {net_amount})")

    _after_settlement(
        job, job.amount, net_amount,
        total_jobs=1, completed_jobs=1, total_earnings=net_amount,
    )
    return {
        'job': job,
        'transaction': payment,
        'commission_amount': commission,
        'freelancer_amount': net_amount,
        'ledger_entry': ledger_entry,
        'wallet': client_wallet,
    }


@transaction.atomic
def pay_with_cash(client, job_id):
    job = _client_job_for_update(client, job_id)
    if job.status != 'waiting_for_payment':
        raise InvalidStateError("Job not ready for payment", job_status=job.status)

    commission, net_amount = calculate_commission(job.amount)
    cash_id = f"CASH_{job.id}_{timestamp_ms()}"
    payment = _payment_transaction(job, job.amount, 'cash', f"Cash payment for job: {job.title}", cash_id)
    ledger_entry = record_commission_due(
        job.freelancer, job, commission,
        f"Commission due for cash payment - Job: {job.title}",
    )
    freelancer_wallet = get_wallet(job.freelancer, lock=True)
    credit(freelancer_wallet, net_amount)

    job.status = 'paid'
    job.payment_status = 'completed'
    job.payment_method = 'cash'
    job.payment_transaction_id = cash_id
    job.paid_at = timezone.now()
    job.save()
    logger.info(f"Job {job.id} paid in cash: {job.amount} (commission due {commission})")

    _after_settlement(job, job.amount, net_amount, total_jobs=1)
    return {
        'job': job,
        'transaction': payment,
        'commission_amount': commission,
        'freelancer_amount': net_amount,
        'ledger_entry': ledger_entry,
    }


def initiate_gateway_payment(client, job_id, gateway=None):
    """Create a gateway order for the job and return where to send the payer.

    The gateway is called outside any transaction; the order id is stored
    afterwards under a row lock, provided the job is still awaiting payment.
    """
    job = Job.objects.filter(pk=job_id, client=client).first()
    if job is None:
        raise NotFoundError("Job not found")
    if job.status != 'waiting_for_payment':
        raise InvalidStateError("Job not ready for payment", job_status=job.status)

    profile = ClientProfile.objects.filter(user=client).first()
    if profile is None:
        raise ValidationError("Client profile not found")

    gateway = gateway or PaymentGateway()
    order_id = new_reference(f"ORDER_{job.id}")
    result = gateway.create_payment_request(
        amount=job.amount,
        order_id=order_id,
        payer_contact=client.phone_number or '',
        payer_name=profile.full_name,
        description=f"Payment for job: {job.title}",
    )

    with transaction.atomic():
        job = Job.objects.select_for_update().get(pk=job.pk)
        if job.status != 'waiting_for_payment':
            raise InvalidStateError("Job not ready for payment", job_status=job.status)
        PaymentOrder.objects.create(
            job=job, order_id=order_id, amount=job.amount, payment_url=result['payment_url'],
        )
        # Earlier orders stay valid; the job tracks the latest one
        job.payment_order_id = order_id
        job.payment_status = 'initiated'
        job.payment_method = 'upi'
        job.save(update_fields=['payment_order_id', 'payment_status', 'payment_method', 'updated_at'])

    logger.info(f"Initiated gateway payment {order_id} for job {job.id}")
    return {
        'payment_url': result['payment_url'],
        'order_id': order_id,
        'amount': job.amount,
        'job_id': job.id,
    }


def handle_gateway_callback(payload, gateway=None):
    """Apply a gateway callback. Raises SignatureError on a bad checksum.

    Any order ever issued for the job can settle it; the first success wins.
    Replays are no-ops: an order that is already completed, or a gateway
    transaction id that is already recorded, is acknowledged without moving
    money again. A success on a job that is already settled is money the
    client paid twice; the order is marked ``unapplied`` for a refund.
    """
    gateway = gateway or PaymentGateway()
    data = gateway.process_callback(payload)
    order_id = data['order_id']
    transaction_id = data['transaction_id']
    succeeded = data['status'] == 'success'

    with transaction.atomic():
        order = PaymentOrder.objects.select_for_update().filter(order_id=order_id).first()
        if order is None:
            if succeeded:
                logger.error(f"Successful payment {transaction_id} for unknown order {order_id}")
            else:
                logger.warning(f"Callback for unknown order {order_id}")
            return {'status': 'ignored', 'order_id': order_id}

        job = Job.objects.select_for_update().get(pk=order.job_id)

        replayed = Transaction.objects.filter(transaction_id=transaction_id).exists()
        if order.status in ('completed', 'unapplied') or replayed:
            logger.info(f"Duplicate callback for order {order_id} ignored")
            return {'status': 'duplicate', 'order_id': order_id, 'job_id': job.id}

        if not succeeded:
            order.status = 'failed'
            order.transaction_id = transaction_id
            order.save(update_fields=['status', 'transaction_id', 'updated_at'])
            if job.payment_order_id == order_id and job.status not in SETTLED_STATUSES:
                job.payment_status = 'failed'
                job.save(update_fields=['payment_status', 'updated_at'])
            logger.warning(f"Gateway reported failed payment for order {order_id}: {data['response_code']}")
            return {'status': 'failed', 'order_id': order_id, 'job_id': job.id}

        if job.status != 'waiting_for_payment':
            order.status = 'unapplied'
            order.transaction_id = transaction_id
            order.save(update_fields=['status', 'transaction_id', 'updated_at'])
            logger.error(
                f"Successful payment {transaction_id} on order {order_id} for job {job.id} in status "
                f"{job.status}; needs manual reconciliation"
            )
            return {'status': 'unapplied', 'order_id': order_id, 'job_id': job.id}

        amount = data['amount']
        if amount != job.amount:
            logger.warning(f"Gateway amount {amount} differs from job {job.id} amount {job.amount}")

        commission, net_amount = calculate_commission(amount)
        _payment_transaction(job, amount, 'upi', f"Payment for job: {job.title}", transaction_id)
        record_commission_paid(
            job.freelancer, job, commission,
            f"Commission deducted from gateway payment - Job: {job.title}",
            'upi', transaction_id,
        )
        credit(get_wallet(job.freelancer, lock=True), net_amount)

        order.status = 'completed'
        order.transaction_id = transaction_id
        order.save(update_fields=['status', 'transaction_id', 'updated_at'])

        job.status = 'paid'
        job.payment_status = 'completed'
        job.payment_method = 'upi'
        job.payment_order_id = order_id
        job.payment_transaction_id = transaction_id
        job.paid_at = timezone.now()
        job.save()
        logger.info(f"Gateway payment {transaction_id} settled job {job.id}: {amount} (commission {commission})")

        _after_settlement(job, amount, net_amount, total_jobs=1)

    return {'status': 'processed', 'order_id': order_id, 'job_id': job.id}


def find_unreconciled_jobs():
    """Settled jobs that have no completed payment transaction."""
    payments = Transaction.objects.filter(job=OuterRef('pk'), type='payment', status='completed')
    return Job.objects.filter(status__in=SETTLED_STATUSES).filter(~Exists(payments))


def find_unapplied_orders():
    """Gateway orders paid after their job had already been settled."""
    return PaymentOrder.objects.filter(status='unapplied').select_related('job')
