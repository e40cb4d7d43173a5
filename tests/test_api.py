"""HTTP layer: routing, role permissions, error rendering and envelopes."""
from decimal import Decimal

import pytest

from apps.jobs.models import Job
from apps.payments.gateway import PaymentGateway
from apps.payments.models import CommissionLedgerEntry, PaymentOrder, Transaction
from apps.payments.wallet import get_wallet


@pytest.mark.django_db
def test_register_and_login(api_client):
    resp = api_client.post(
        "/users/auth/register/",
        {
            "username": "meera",
            "password": "Sup3r-Secret-Pass",
            "role": "freelancer",
            "email": "meera@test.com",
        },
        format="json",
    )
    assert resp.status_code == 201, resp.data
    assert resp.data["user"]["role"] == "freelancer"
    assert resp.data["token"]

    resp = api_client.post(
        "/users/auth/login/",
        {"identifier": "meera@test.com", "password": "Sup3r-Secret-Pass"},
        format="json",
    )
    assert resp.status_code == 200, resp.data
    assert resp.data["user"]["username"] == "meera"


@pytest.mark.django_db
def test_client_posts_job(client_api):
    resp = client_api.post(
        "/jobs/create/",
        {"title": "Garden cleanup", "description": "Small backyard", "amount": "1200.00", "pincode": "560034"},
        format="json",
    )

    assert resp.status_code == 201, resp.data
    assert resp.data["success"] is True
    assert resp.data["data"]["job"]["status"] == "open"


@pytest.mark.django_db
def test_freelancer_cannot_post_job(freelancer_api):
    resp = freelancer_api.post(
        "/jobs/create/",
        {"title": "Garden cleanup", "description": "Small backyard", "amount": "1200.00"},
        format="json",
    )
    assert resp.status_code == 403


@pytest.mark.django_db
def test_available_jobs_are_paginated(freelancer_api, make_job):
    for i in range(3):
        make_job(title=f"Job {i}")

    resp = freelancer_api.get("/jobs/available/", {"limit": 2, "page": 1})

    assert resp.status_code == 200
    assert len(resp.data["data"]["results"]) == 2
    assert resp.data["data"]["pagination"] == {"page": 1, "limit": 2, "total": 3, "pages": 2}


@pytest.mark.django_db
def test_apply_and_active_status(freelancer_api, job):
    resp = freelancer_api.post(f"/jobs/{job.id}/apply/", {}, format="json")
    assert resp.status_code == 201, resp.data
    assert resp.data["data"]["offer"]["status"] == "accepted"

    resp = freelancer_api.get("/jobs/active-status/")
    assert resp.data["data"]["has_active_job"] is True
    assert resp.data["data"]["active_job"]["id"] == job.id


@pytest.mark.django_db
def test_apply_over_threshold_returns_402_with_dues(freelancer_api, freelancer, job, make_job, make_entry):
    make_entry(freelancer, make_job(status="paid", title="Old"), "700.00")

    resp = freelancer_api.post(f"/jobs/{job.id}/apply/", {}, format="json")

    assert resp.status_code == 402
    assert resp.data["success"] is False
    assert resp.data["code"] == "commission_due"
    assert Decimal(str(resp.data["commission_due"])) == Decimal("700.00")
    assert resp.data["threshold"] == 700
    assert resp.data["can_work"] is False


@pytest.mark.django_db
def test_apply_with_active_job_returns_409(freelancer_api, freelancer, job, make_job):
    make_job(status="assigned", freelancer=freelancer, title="Busy")

    resp = freelancer_api.post(f"/jobs/{job.id}/apply/", {}, format="json")

    assert resp.status_code == 409
    assert resp.data["code"] == "conflict"
    assert resp.data["active_job"]["title"] == "Busy"


@pytest.mark.django_db
def test_client_accepts_offer(api_client, client_user, client_profile, job, freelancer):
    api_client.force_authenticate(user=freelancer)
    resp = api_client.post(f"/jobs/{job.id}/apply/", {"offer_type": "pickup"}, format="json")
    offer_id = resp.data["data"]["offer"]["id"]

    api_client.force_authenticate(user=client_user)
    resp = api_client.get(f"/jobs/{job.id}/offers/")
    assert resp.data["data"]["pagination"]["total"] == 1

    resp = api_client.post(f"/jobs/offers/{offer_id}/respond/", {"action": "accept"}, format="json")
    assert resp.status_code == 200, resp.data
    assert Job.objects.get(pk=job.pk).freelancer == freelancer


@pytest.mark.django_db
def test_work_done_then_cash_payment(api_client, client_user, client_profile, make_job, freelancer):
    job = make_job(status="assigned", freelancer=freelancer)

    api_client.force_authenticate(user=freelancer)
    resp = api_client.post(f"/jobs/{job.id}/work-done/")
    assert resp.status_code == 200
    assert resp.data["data"]["job"]["status"] == "waiting_for_payment"

    api_client.force_authenticate(user=client_user)
    resp = api_client.post(f"/payments/jobs/{job.id}/pay-cash/")
    assert resp.status_code == 200, resp.data
    assert Decimal(str(resp.data["data"]["commission_amount"])) == Decimal("200")
    assert Decimal(str(resp.data["data"]["freelancer_amount"])) == Decimal("1800.00")

    api_client.force_authenticate(user=freelancer)
    resp = api_client.post(f"/jobs/{job.id}/complete/")
    assert resp.status_code == 200
    assert resp.data["data"]["job"]["status"] == "completed"


@pytest.mark.django_db
def test_pay_for_unready_job_is_409(client_api, job):
    resp = client_api.post(f"/payments/jobs/{job.id}/pay-cash/")

    assert resp.status_code == 409
    assert resp.data["error"] == "Job not ready for payment"


@pytest.mark.django_db
def test_wallet_payment_with_short_balance_is_400(client_api, waiting_job):
    resp = client_api.post(f"/payments/jobs/{waiting_job.id}/pay/")

    assert resp.status_code == 400
    assert resp.data["code"] == "insufficient_funds"


@pytest.mark.django_db
def test_callback_always_acknowledges(api_client, waiting_job, freelancer):
    PaymentOrder.objects.create(job=waiting_job, order_id="ORDER_1_1760700000000", amount=waiting_job.amount)
    Job.objects.filter(pk=waiting_job.pk).update(payment_order_id="ORDER_1_1760700000000")
    payload = {
        "merchantTransactionId": "T1",
        "merchantOrderId": "ORDER_1_1760700000000",
        "amount": 200000,
        "code": "PAYMENT_SUCCESS",
        "checksum": "forged",
    }

    resp = api_client.post("/payments/callback/", payload, format="json")

    assert resp.status_code == 200
    assert resp.data == {"success": True}
    assert not Transaction.objects.exists()

    payload["checksum"] = PaymentGateway().sign_callback(payload)
    for _ in range(2):
        resp = api_client.post("/payments/callback/", payload, format="json")
        assert resp.status_code == 200

    assert Transaction.objects.filter(transaction_id="T1").count() == 1
    assert get_wallet(freelancer).balance == Decimal("1800.00")


@pytest.mark.django_db
def test_commission_ledger_and_clear_due(freelancer_api, freelancer, make_job, make_entry, fund_wallet):
    paid_job = make_job(status="paid", title="Old")
    make_entry(freelancer, paid_job, "400.00", age_days=2)
    make_entry(freelancer, paid_job, "400.00", age_days=1)
    fund_wallet(freelancer, "500.00")

    resp = freelancer_api.get("/payments/can-work/")
    assert resp.data["data"]["can_work"] is False
    assert resp.data["data"]["message"].startswith("You have 800")
    assert resp.data["data"]["message"].endswith("Please clear dues to continue working.")

    resp = freelancer_api.get("/payments/commission-ledger/")
    assert len(resp.data["data"]["ledger"]) == 2
    assert Decimal(str(resp.data["data"]["total_due"])) == Decimal("800.00")

    resp = freelancer_api.post("/payments/commission-ledger/clear-due/", {"amount": "500.00"}, format="json")
    assert resp.status_code == 200, resp.data
    assert Decimal(str(resp.data["data"]["total_due"])) == Decimal("300.00")
    assert resp.data["data"]["can_work"] is True
    assert [p["status"] for p in resp.data["data"]["processed_entries"]] == ["fully_paid", "partially_paid"]

    resp = freelancer_api.post("/payments/commission-ledger/clear-due/", {"amount": "301.00"}, format="json")
    assert resp.status_code == 400


@pytest.mark.django_db
def test_withdraw(freelancer_api, freelancer, fund_wallet):
    fund_wallet(freelancer, "1000.00")

    resp = freelancer_api.post(
        "/payments/withdraw/",
        {"amount": "400.00", "bank_details": {"ifsc": "HDFC0001234", "account": "50100012345678"}},
        format="json",
    )

    assert resp.status_code == 201, resp.data
    assert resp.data["data"]["transaction"]["status"] == "pending"
    assert get_wallet(freelancer).balance == Decimal("600.00")

    resp = freelancer_api.get("/payments/transactions/")
    assert resp.data["data"]["pagination"]["total"] == 1


@pytest.mark.django_db
def test_waive_requires_superuser(api_client, freelancer, superuser, make_job, make_entry):
    entry = make_entry(freelancer, make_job(status="paid"), "300.00")

    api_client.force_authenticate(user=freelancer)
    resp = api_client.post(f"/management/commission-ledger/{entry.id}/waive/", {"notes": "x"}, format="json")
    assert resp.status_code == 403

    api_client.force_authenticate(user=superuser)
    resp = api_client.post(f"/management/commission-ledger/{entry.id}/waive/", {"notes": "Dispute"}, format="json")
    assert resp.status_code == 200, resp.data
    assert CommissionLedgerEntry.objects.get(pk=entry.id).status == "waived"


@pytest.mark.django_db
def test_admin_reviews_pending_freelancer(admin_api, make_freelancer):
    applicant = make_freelancer(verification_status="pending")

    resp = admin_api.get("/management/freelancers/pending/")
    assert resp.data["data"]["pagination"]["total"] == 1
    profile_id = resp.data["data"]["results"][0]["id"]

    resp = admin_api.post(f"/management/freelancers/{profile_id}/review/", {"action": "reject"}, format="json")
    assert resp.status_code == 400

    resp = admin_api.post(f"/management/freelancers/{profile_id}/review/", {"action": "approve"}, format="json")
    assert resp.status_code == 200, resp.data
    assert resp.data["data"]["freelancer_code"].startswith("FL")
    applicant.freelancer_profile.refresh_from_db()
    assert applicant.freelancer_profile.is_approved


@pytest.mark.django_db
def test_anonymous_requests_are_rejected(api_client):
    assert api_client.get("/payments/wallet/").status_code == 401


@pytest.mark.django_db
def test_client_searches_freelancers_by_code(client_api, make_freelancer):
    make_freelancer(freelancer_code="FL24000101")
    make_freelancer(freelancer_code="FL24000102")
    make_freelancer(verification_status="pending")

    resp = client_api.get("/users/search/freelancers/", {"freelancer_code": "fl24000102"})
    assert resp.status_code == 200, resp.data
    assert resp.data["data"]["pagination"]["total"] == 1
    assert resp.data["data"]["results"][0]["freelancer_code"] == "FL24000102"

    resp = client_api.get("/users/search/freelancers/", {"limit": 1})
    assert resp.data["data"]["pagination"] == {"page": 1, "limit": 1, "total": 2, "pages": 2}


@pytest.mark.django_db
def test_freelancer_cannot_search_freelancers(freelancer_api):
    assert freelancer_api.get("/users/search/freelancers/").status_code == 403


@pytest.mark.django_db
def test_can_work_without_dues(freelancer_api):
    resp = freelancer_api.get("/payments/can-work/")

    assert resp.status_code == 200
    assert resp.data["data"]["can_work"] is True
    assert resp.data["data"]["message"] == "You can continue working"
