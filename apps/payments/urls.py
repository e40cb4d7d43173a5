from django.urls import path
from .views import (
    WalletPaymentView, CashPaymentView, GatewayPaymentView, PaymentCallbackView, WalletView,
    TransactionListView, WithdrawView, CommissionLedgerView, ClearDueView, CanWorkView
)

urlpatterns = [
    path('jobs/<int:id>/pay/', WalletPaymentView.as_view(), name='job_pay_wallet'),
    path('jobs/<int:id>/pay-cash/', CashPaymentView.as_view(), name='job_pay_cash'),
    path('jobs/<int:id>/pay-phonepe/', GatewayPaymentView.as_view(), name='job_pay_phonepe'),
    path('callback/', PaymentCallbackView.as_view(), name='payment_callback'),
    path('wallet/', WalletView.as_view(), name='wallet'),
    path('transactions/', TransactionListView.as_view(), name='transactions'),
    path('withdraw/', WithdrawView.as_view(), name='withdraw'),
    path('commission-ledger/', CommissionLedgerView.as_view(), name='commission_ledger'),
    path('commission-ledger/clear-due/', ClearDueView.as_view(), name='commission_clear_due'),
    path('can-work/', CanWorkView.as_view(), name='can_work'),
]
