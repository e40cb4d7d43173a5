from rest_framework import serializers

from apps.users.serializers import UserSerializer
from apps.users.models import FreelancerProfile
from .models import ManagementLog


class PendingFreelancerSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = FreelancerProfile
        fields = [
            'id', 'user', 'full_name', 'date_of_birth', 'gender', 'address', 'pincode',
            'verification_status', 'rejection_reason', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ReviewSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=['approve', 'reject', 'under_review'])
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def validate(self, data):
        if data['action'] == 'reject' and not data.get('reason'):
            raise serializers.ValidationError({'reason': "A rejection reason is required."})
        return data


class ManagementLogSerializer(serializers.ModelSerializer):
    admin = serializers.CharField(source='admin.username', read_only=True)

    class Meta:
        model = ManagementLog
        fields = ['id', 'admin', 'action', 'details', 'timestamp']
        read_only_fields = fields
