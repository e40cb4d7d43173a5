from decimal import Decimal

from rest_framework import serializers

from apps.users.serializers import UserSerializer
from core.constants import OFFER_TYPE_CHOICES
from .models import Job, Offer


class JobSerializer(serializers.ModelSerializer):
    client = UserSerializer(read_only=True)
    freelancer = UserSerializer(read_only=True)

    class Meta:
        model = Job
        fields = [
            'id', 'client', 'freelancer', 'title', 'description', 'amount', 'number_of_people',
            'location', 'pincode', 'gender_preference', 'status', 'is_active', 'assigned_at',
            'work_completed_at', 'payment_order_id', 'payment_status', 'payment_method',
            'payment_transaction_id', 'paid_at', 'completed_at', 'cancelled_at',
            'cancellation_reason', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class JobCreateSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('1'))

    class Meta:
        model = Job
        fields = ['title', 'description', 'amount', 'number_of_people', 'location', 'pincode', 'gender_preference']

    def validate_pincode(self, value):
        if value and (len(value) != 6 or not value.isdigit()):
            raise serializers.ValidationError("Pincode must be 6 digits.")
        return value


class ActiveJobSerializer(serializers.ModelSerializer):
    class Meta:
        model = Job
        fields = ['id', 'title', 'amount', 'status', 'assigned_at', 'work_completed_at']
        read_only_fields = fields


class OfferSerializer(serializers.ModelSerializer):
    freelancer = UserSerializer(read_only=True)
    job_title = serializers.CharField(source='job.title', read_only=True)

    class Meta:
        model = Offer
        fields = [
            'id', 'job', 'job_title', 'freelancer', 'client', 'original_amount', 'offered_amount',
            'message', 'offer_type', 'status', 'response_message', 'responded_at', 'created_at'
        ]
        read_only_fields = fields


class ApplySerializer(serializers.Serializer):
    offered_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True
    )
    message = serializers.CharField(required=False, allow_blank=True, default='')
    offer_type = serializers.ChoiceField(choices=OFFER_TYPE_CHOICES, default='direct_apply')

    def validate(self, data):
        if data.get('offer_type') == 'negotiate' and data.get('offered_amount') is None:
            raise serializers.ValidationError({'offered_amount': "An amount is required when negotiating."})
        return data


class OfferResponseSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['accept', 'reject'])
    response_message = serializers.CharField(required=False, allow_blank=True, default='')


class CancelJobSerializer(serializers.Serializer):
    reason = serializers.CharField()
