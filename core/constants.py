# core/constants.py
USER_ROLE_CHOICES = (
    ('client', 'Client'),
    ('freelancer', 'Freelancer'),
)

GENDER_CHOICES = (
    ('male', 'Male'),
    ('female', 'Female'),
)

GENDER_PREFERENCE_CHOICES = (
    ('male', 'Male'),
    ('female', 'Female'),
    ('any', 'Any'),
)

JOB_STATUS_CHOICES = (
    ('open', 'Open'),                                # Posted, accepting offers
    ('assigned', 'Assigned'),                        # A freelancer holds the job
    ('work_done', 'Work Done'),                      # Legacy state, payable by wallet
    ('waiting_for_payment', 'Waiting for Payment'),  # Freelancer finished, client to pay
    ('paid', 'Paid'),                                # Payment settled
    ('completed', 'Completed'),                      # Freelancer confirmed receipt
    ('cancelled', 'Cancelled'),
)

# A freelancer may hold at most one job in these states
ACTIVE_JOB_STATUSES = ('assigned', 'work_done', 'waiting_for_payment')
TERMINAL_JOB_STATUSES = ('paid', 'completed', 'cancelled')

JOB_PAYMENT_STATUS_CHOICES = (
    ('initiated', 'Initiated'),
    ('completed', 'Completed'),
    ('failed', 'Failed'),
)

PAYMENT_METHOD_CHOICES = (
    ('upi', 'UPI'),
    ('cash', 'Cash'),
    ('wallet', 'Wallet'),
    ('bank_transfer', 'Bank Transfer'),
)

OFFER_STATUS_CHOICES = (
    ('pending', 'Pending'),      # Freelancer applied, awaiting client response
    ('accepted', 'Accepted'),
    ('rejected', 'Rejected'),
)

ACTIVE_OFFER_STATUSES = ('pending', 'accepted')

OFFER_TYPE_CHOICES = (
    ('direct_apply', 'Direct Apply'),  # Self-accepts, assigns the job immediately
    ('pickup', 'Pickup'),
    ('negotiate', 'Negotiate'),
)

VERIFICATION_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('under_review', 'Under Review'),
    ('approved', 'Approved'),
    ('rejected', 'Rejected'),
    ('resubmitted', 'Resubmitted'),
)

LEDGER_ENTRY_TYPE_CHOICES = (
    ('commission_due', 'Commission Due'),
    ('commission_paid', 'Commission Paid'),
    ('commission_waived', 'Commission Waived'),
)

LEDGER_ENTRY_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('paid', 'Paid'),
    ('overdue', 'Overdue'),
    ('waived', 'Waived'),
)

TRANSACTION_TYPE_CHOICES = (
    ('payment', 'Payment'),
    ('withdrawal', 'Withdrawal'),
    ('commission_payment', 'Commission Payment'),
    ('refund', 'Refund'),
)

TRANSACTION_STATUS_CHOICES = (
    ('pending', 'Pending'),
    ('completed', 'Completed'),
    ('failed', 'Failed'),
)

PAYMENT_ORDER_STATUS_CHOICES = (
    ('initiated', 'Initiated'),
    ('completed', 'Completed'),    # Settled the job
    ('failed', 'Failed'),
    ('unapplied', 'Unapplied'),    # Paid after the job was already settled, needs a refund
)
