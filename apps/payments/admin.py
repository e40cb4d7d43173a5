from django.contrib import admin
from .models import Wallet, Transaction, CommissionLedgerEntry, PaymentOrder

@admin.register(Wallet)
class WalletAdmin(admin.ModelAdmin):
    list_display = ('user', 'balance', 'updated_at')
    search_fields = ('user__username',)

@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('reference_id', 'type', 'status', 'amount', 'payment_method', 'job', 'created_at')
    list_filter = ('type', 'status', 'payment_method')
    search_fields = ('reference_id', 'transaction_id')

@admin.register(CommissionLedgerEntry)
class CommissionLedgerEntryAdmin(admin.ModelAdmin):
    list_display = ('freelancer', 'job', 'amount', 'type', 'status', 'due_date', 'paid_at')
    list_filter = ('type', 'status')
    search_fields = ('freelancer__username', 'job__title', 'payment_transaction_id')

@admin.register(PaymentOrder)
class PaymentOrderAdmin(admin.ModelAdmin):
    list_display = ('order_id', 'job', 'amount', 'status', 'transaction_id', 'created_at')
    list_filter = ('status',)
    search_fields = ('order_id', 'transaction_id', 'job__title')
