"""Shared fixtures for all tests."""
from datetime import date, timedelta
from decimal import Decimal
from itertools import count

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from apps.jobs.models import Job
from apps.payments.models import CommissionLedgerEntry
from apps.payments.wallet import get_wallet
from apps.users.models import ClientProfile, FreelancerProfile

User = get_user_model()

_sequence = count(1)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_user(db):
    return User.objects.create_user(
        username="client",
        email="client@test.com",
        password="TestPass123!",
        role="client",
    )


@pytest.fixture
def client_profile(client_user):
    return ClientProfile.objects.create(
        user=client_user,
        full_name="Asha Client",
        address="12 MG Road",
        is_profile_complete=True,
    )


@pytest.fixture
def make_freelancer(db):
    def _make(verification_status="approved", **kwargs):
        n = next(_sequence)
        user = User.objects.create_user(
            username=f"freelancer{n}",
            email=f"freelancer{n}@test.com",
            password="TestPass123!",
            role="freelancer",
        )
        FreelancerProfile.objects.create(
            user=user,
            full_name=f"Freelancer {n}",
            date_of_birth=date(1995, 5, 17),
            gender=kwargs.pop("gender", "male"),
            address="4 Church Street",
            pincode="560001",
            verification_status=verification_status,
            is_profile_complete=True,
            **kwargs,
        )
        return user

    return _make


@pytest.fixture
def freelancer(make_freelancer):
    return make_freelancer()


@pytest.fixture
def superuser(db):
    return User.objects.create_superuser(
        username="admin",
        email="admin@test.com",
        password="TestPass123!",
        role="client",
    )


@pytest.fixture
def make_job(client_user, client_profile):
    def _make(amount="2000.00", status="open", freelancer=None, **kwargs):
        job = Job.objects.create(
            client=client_user,
            title=kwargs.pop("title", "Move furniture"),
            description=kwargs.pop("description", "Two sofas and a table"),
            amount=Decimal(amount),
            status=status,
            freelancer=freelancer,
            **kwargs,
        )
        if freelancer is not None:
            Job.objects.filter(pk=job.pk).update(assigned_at=timezone.now())
            job.refresh_from_db()
        return job

    return _make


@pytest.fixture
def job(make_job):
    return make_job()


@pytest.fixture
def waiting_job(make_job, freelancer):
    return make_job(status="waiting_for_payment", freelancer=freelancer)


@pytest.fixture
def make_entry(db):
    """Pending commission entry; ``age_days`` back-dates it so FIFO order is explicit."""
    def _make(freelancer, job, amount, age_days=0, status="pending"):
        entry = CommissionLedgerEntry.objects.create(
            freelancer=freelancer,
            job=job,
            amount=Decimal(amount),
            type="commission_due",
            status=status,
            description=f"Commission due for cash payment - Job: {job.title}",
        )
        CommissionLedgerEntry.objects.filter(pk=entry.pk).update(
            created_at=timezone.now() - timedelta(days=age_days)
        )
        entry.refresh_from_db()
        return entry

    return _make


@pytest.fixture
def fund_wallet(db):
    def _fund(user, amount):
        wallet = get_wallet(user)
        wallet.balance = Decimal(amount)
        wallet.save()
        return wallet

    return _fund


@pytest.fixture
def client_api(api_client, client_user, client_profile):
    api_client.force_authenticate(user=client_user)
    return api_client


@pytest.fixture
def freelancer_api(api_client, freelancer):
    api_client.force_authenticate(user=freelancer)
    return api_client


@pytest.fixture
def admin_api(api_client, superuser):
    api_client.force_authenticate(user=superuser)
    return api_client
