from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.cache import cache
from django.utils import timezone
from core.constants import USER_ROLE_CHOICES
from .models import ClientProfile, FreelancerProfile

import logging

User = get_user_model()
logger = logging.getLogger(__name__)


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'email', 'phone_number', 'role']
        read_only_fields = fields


class RegisterSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(
        max_length=128,
        write_only=True,
        min_length=8,
        error_messages={'min_length': 'Password must be at least 8 characters long.'}
    )
    role = serializers.ChoiceField(choices=USER_ROLE_CHOICES)
    email = serializers.EmailField(required=False, allow_null=True)
    phone_number = serializers.CharField(max_length=15, required=False, allow_null=True)
    first_name = serializers.CharField(max_length=150, required=False, default='')
    last_name = serializers.CharField(max_length=150, required=False, default='')

    def validate_username(self, value):
        if User.objects.filter(username__iexact=value).exists():
            raise serializers.ValidationError("Username already in use.")
        return value

    def validate_email(self, value):
        if value and User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("Email already in use.")
        return value

    def validate_phone_number(self, value):
        if value:
            if not value.startswith('+') or not value[1:].isdigit():
                raise serializers.ValidationError("Invalid phone number format.")
            if User.objects.filter(phone_number=value).exists():
                raise serializers.ValidationError("Phone number already in use.")
        return value

    def validate(self, data):
        try:
            validate_password(data['password'])
        except Exception as e:
            raise serializers.ValidationError({"password": list(e.messages)})
        return data

    def save(self):
        data = dict(self.validated_data)
        password = data.pop('password')
        user = User(**data)
        user.set_password(password)
        user.save()
        logger.info(f"User {user.id} registered with role={user.role}")
        return user


class LoginSerializer(serializers.Serializer):
    identifier = serializers.CharField(max_length=255, trim_whitespace=True)
    password = serializers.CharField(max_length=128, write_only=True)

    def validate(self, data):
        identifier = data.get('identifier').strip()
        password = data.get('password')
        cache_key = f'login_attempts_{identifier.lower()}'
        attempts = cache.get(cache_key, 0)
        if attempts >= 5:
            logger.warning(f"Too many login attempts for {identifier}")
            raise serializers.ValidationError("Too many login attempts. Please try again in 15 minutes.")
        user = User.get_by_identifier(identifier)
        if not user or not user.check_password(password):
            cache.set(cache_key, attempts + 1, 900)
            raise serializers.ValidationError("Invalid credentials.")
        if not user.is_active:
            raise serializers.ValidationError("User account is disabled. Please contact support.")
        cache.delete(cache_key)
        data['user'] = user
        return data

    def save(self):
        user = self.validated_data['user']
        user.last_login = timezone.now()
        user.save(update_fields=['last_login'])
        return user


class ClientProfileSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClientProfile
        fields = [
            'id', 'full_name', 'date_of_birth', 'gender', 'address',
            'is_profile_complete', 'total_jobs_posted', 'total_spent',
            'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'is_profile_complete', 'total_jobs_posted', 'total_spent',
            'created_at', 'updated_at'
        ]


class FreelancerProfileSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = FreelancerProfile
        fields = [
            'id', 'user', 'freelancer_code', 'full_name', 'date_of_birth', 'gender',
            'address', 'pincode', 'verification_status', 'rejection_reason',
            'is_profile_complete', 'rating', 'total_jobs', 'completed_jobs',
            'total_earnings', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'id', 'user', 'freelancer_code', 'verification_status', 'rejection_reason',
            'is_profile_complete', 'rating', 'total_jobs', 'completed_jobs',
            'total_earnings', 'created_at', 'updated_at'
        ]


class FreelancerSearchSerializer(serializers.ModelSerializer):
    phone_number = serializers.CharField(source='user.phone_number', read_only=True)

    class Meta:
        model = FreelancerProfile
        fields = [
            'id', 'freelancer_code', 'full_name', 'gender', 'pincode', 'phone_number',
            'rating', 'completed_jobs'
        ]
        read_only_fields = fields
