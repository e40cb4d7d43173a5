import logging

from django.core.validators import RegexValidator
from django.db import models
from django.contrib.auth.models import AbstractUser
from django.utils import timezone

from core.constants import USER_ROLE_CHOICES, GENDER_CHOICES, VERIFICATION_STATUS_CHOICES

logger = logging.getLogger(__name__)

pincode_validator = RegexValidator(r'^[1-9][0-9]{5}$', 'Pincode must be 6 digits and cannot start with 0.')


class User(AbstractUser):
    email = models.EmailField(blank=True, null=True, unique=True)
    phone_number = models.CharField(max_length=15, blank=True, null=True, unique=True)
    role = models.CharField(max_length=20, choices=USER_ROLE_CHOICES)

    @property
    def is_client(self):
        return self.role == 'client'

    @property
    def is_freelancer(self):
        return self.role == 'freelancer'

    @staticmethod
    def get_by_identifier(identifier):
        return User.objects.filter(
            models.Q(email__iexact=identifier) |
            models.Q(phone_number=identifier) |
            models.Q(username__iexact=identifier)
        ).first()


class ClientProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='client_profile')
    full_name = models.CharField(max_length=150)
    date_of_birth = models.DateField(blank=True, null=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, blank=True)
    address = models.CharField(max_length=255, blank=True)
    is_profile_complete = models.BooleanField(default=False)
    total_jobs_posted = models.PositiveIntegerField(default=0)
    total_spent = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Client: {self.user.username}"


class FreelancerProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='freelancer_profile')
    freelancer_code = models.CharField(max_length=20, unique=True, null=True, blank=True)
    full_name = models.CharField(max_length=150)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    address = models.CharField(max_length=255)
    pincode = models.CharField(max_length=6, validators=[pincode_validator])
    verification_status = models.CharField(
        max_length=20, choices=VERIFICATION_STATUS_CHOICES, default='pending'
    )
    rejection_reason = models.TextField(blank=True, null=True)
    is_profile_complete = models.BooleanField(default=False)
    rating = models.DecimalField(max_digits=3, decimal_places=2, default=0)
    total_jobs = models.PositiveIntegerField(default=0)
    completed_jobs = models.PositiveIntegerField(default=0)
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Freelancer: {self.user.username} ({self.verification_status})"

    @property
    def is_approved(self):
        return self.verification_status == 'approved'

    def save(self, *args, **kwargs):
        if self.verification_status == 'approved' and not self.freelancer_code:
            self.freelancer_code = self.next_freelancer_code()
        super().save(*args, **kwargs)

    @classmethod
    def next_freelancer_code(cls):
        """FL + YYYY + MM + 6-digit sequence, e.g. FL202610000042."""
        now = timezone.now()
        count = cls.objects.filter(freelancer_code__isnull=False).count()
        code = f"FL{now.year}{now.month:02d}{count + 1:06d}"
        # Sequence can collide after deletions; fall back to a timestamp
        if cls.objects.filter(freelancer_code=code).exists():
            code = f"FL{int(now.timestamp() * 1000)}"
            logger.warning(f"Freelancer code sequence collision, using {code}")
        return code
