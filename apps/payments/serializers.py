from decimal import Decimal

from rest_framework import serializers

from .models import CommissionLedgerEntry, Transaction, Wallet


class WalletSerializer(serializers.ModelSerializer):
    class Meta:
        model = Wallet
        fields = ['id', 'balance', 'created_at', 'updated_at']
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    job_title = serializers.CharField(source='job.title', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = [
            'id', 'job', 'job_title', 'client', 'freelancer', 'amount', 'currency', 'type', 'status',
            'description', 'payment_method', 'transaction_id', 'reference_id', 'completed_at', 'created_at'
        ]
        read_only_fields = fields


class CommissionLedgerEntrySerializer(serializers.ModelSerializer):
    job_title = serializers.CharField(source='job.title', read_only=True)
    is_overdue = serializers.BooleanField(read_only=True)

    class Meta:
        model = CommissionLedgerEntry
        fields = [
            'id', 'job', 'job_title', 'amount', 'type', 'status', 'description', 'due_date', 'is_overdue',
            'paid_at', 'payment_method', 'payment_transaction_id', 'notes', 'created_at'
        ]
        read_only_fields = fields


class AmountSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0.01'))


class ClearDueSerializer(AmountSerializer):
    payment_method = serializers.ChoiceField(choices=['wallet'], default='wallet')


class WithdrawSerializer(AmountSerializer):
    bank_details = serializers.JSONField(required=False)


class WaiveEntrySerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, default='')
