"""Report settled jobs whose payment transaction is missing, and gateway
payments that arrived after their job was already settled."""
import logging

from django.core.management.base import BaseCommand

from apps.payments.gateway import PaymentGateway
from apps.payments.settlement import find_unapplied_orders, find_unreconciled_jobs
from core.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "List paid or completed jobs that have no completed payment transaction."

    def add_arguments(self, parser):
        parser.add_argument(
            "--verify",
            action="store_true",
            help="Look up gateway payments with the payment provider.",
        )

    def handle(self, *args, **options):
        jobs = list(find_unreconciled_jobs().order_by("paid_at", "id"))
        orders = list(find_unapplied_orders().order_by("created_at", "id"))
        if not jobs and not orders:
            self.stdout.write(self.style.SUCCESS("All settled jobs are reconciled."))
            return

        gateway = PaymentGateway() if options.get("verify") else None
        for job in jobs:
            line = (
                f"[UNRECONCILED] job={job.id} status={job.status} amount={job.amount} "
                f"method={job.payment_method} order={job.payment_order_id} txn={job.payment_transaction_id}"
            )
            logger.warning(line)
            self.stdout.write(self.style.WARNING(line))

            if gateway and job.payment_method == 'upi' and job.payment_order_id:
                try:
                    result = gateway.verify_payment(job.payment_order_id)
                    self.stdout.write(f"  gateway: {result.get('code')} {result.get('message', '')}")
                except ExternalServiceError as e:
                    self.stdout.write(self.style.ERROR(f"  gateway lookup failed: {e.detail}"))

        for order in orders:
            line = (
                f"[UNAPPLIED] order={order.order_id} job={order.job_id} amount={order.amount} "
                f"txn={order.transaction_id} job_status={order.job.status}"
            )
            logger.warning(line)
            self.stdout.write(self.style.WARNING(line))

        if jobs:
            self.stdout.write(f"{len(jobs)} job(s) need reconciliation.")
        if orders:
            self.stdout.write(f"{len(orders)} gateway payment(s) need a refund.")
