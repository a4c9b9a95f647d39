"""End-to-end tests for the HTTP surface, with the gateway and catalog faked."""

import json

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_course_client, get_gateway, get_notifier, get_webhook_secret
from app.data.database import get_db
from app.data.models import UserModel
from app.main import app
from app.services.webhook_service import compute_signature

from .conftest import WEBHOOK_SECRET, FakeCourseClient, enroll

AUTH = {"X-User-Id": "1"}


@pytest.fixture
def client(session_factory, user, gateway, notifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    course_client = FakeCourseClient()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_course_client] = lambda: course_client
    app.dependency_overrides[get_webhook_secret] = lambda: WEBHOOK_SECRET

    yield TestClient(app)

    app.dependency_overrides.clear()


def add(client, course_id):
    return client.post("/cart/items", json={"course_id": course_id}, headers=AUTH)


def post_webhook(client, payload, secret=WEBHOOK_SECRET):
    body = json.dumps(payload).encode()
    return client.post(
        "/webhook/paystack",
        content=body,
        headers={
            "x-paystack-signature": compute_signature(secret, body),
            "Content-Type": "application/json",
        },
    )


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestAuth:
    @pytest.mark.parametrize(
        "method, path",
        [("get", "/cart"), ("post", "/payments/checkout"), ("get", "/payments/verify?reference=ref_1")],
    )
    def test_missing_identity(self, client, method, path):
        assert getattr(client, method)(path).status_code == 401

    def test_unknown_user(self, client):
        assert client.get("/cart", headers={"X-User-Id": "999"}).status_code == 401


class TestUsers:
    def test_register_and_get(self, client):
        resp = client.post("/users/", json={"id": 2, "name": "Grace", "email": "grace@example.com"})
        assert resp.status_code == 201
        assert client.get("/users/2").json() == {"id": 2, "name": "Grace", "email": "grace@example.com"}

    def test_replayed_registration(self, client):
        resp = client.post("/users/", json={"id": 1, "name": "Ada", "email": "ada@example.com"})
        assert resp.status_code == 201
        assert resp.json()["id"] == 1

    @pytest.mark.parametrize(
        "user_id, email",
        [(3, "ada@example.com"), (1, "other@example.com")],
    )
    def test_email_or_id_taken(self, client, user_id, email):
        resp = client.post("/users/", json={"id": user_id, "name": "Other", "email": email})
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Email already registered"

    def test_missing_user(self, client):
        resp = client.get("/users/42")
        assert resp.status_code == 404
        assert resp.json()["detail"] == "User not found"

    def test_whoami(self, client):
        assert client.get("/users/me", headers=AUTH).json()["email"] == "ada@example.com"
        assert client.get("/users/me").status_code == 401


class TestCart:
    def test_no_cart_yet(self, client):
        assert client.get("/cart", headers=AUTH).status_code == 404
        assert client.get("/cart/count", headers=AUTH).json() == {"count": 0}

    def test_add_remove_clear(self, client):
        add(client, 1)
        resp = add(client, 2)
        assert resp.status_code == 200
        assert float(resp.json()["total"]) == 50.0
        assert client.get("/cart/count", headers=AUTH).json() == {"count": 2}

        resp = client.delete("/cart/items/1", headers=AUTH)
        assert [i["course_id"] for i in resp.json()["items"]] == [2]

        resp = client.delete("/cart", headers=AUTH)
        assert resp.json()["items"] == []
        assert float(resp.json()["total"]) == 0.0

    @pytest.mark.parametrize("course_id, status", [(4, 400), (5, 400), (99, 404)])
    def test_catalog_rejections(self, client, course_id, status):
        assert add(client, course_id).status_code == status

    def test_duplicate_item(self, client):
        add(client, 1)
        resp = add(client, 1)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Course already exists in cart"

    def test_remove_missing_item(self, client):
        add(client, 1)
        assert client.delete("/cart/items/3", headers=AUTH).status_code == 404


class TestCheckoutAndVerify:
    def test_full_flow(self, client, gateway, notifier):
        add(client, 1)
        add(client, 2)

        resp = client.post("/payments/checkout", headers=AUTH)
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Checkout initialized successfully"
        assert body["reused"] is False
        assert body["checkout_url"] == f"https://checkout.paystack.test/{body['reference']}"

        resp = client.get(f"/payments/verify?reference={body['reference']}", headers=AUTH)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Payment verified successfully"

        resp = client.get(f"/payments/verify?reference={body['reference']}", headers=AUTH)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Payment already processed"

        assert client.get("/cart/count", headers=AUTH).json() == {"count": 0}
        assert len(notifier.sent) == 1

    def test_empty_cart_checkout(self, client):
        resp = client.post("/payments/checkout", headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cart is empty"

    def test_already_enrolled_checkout(self, client, db, user):
        add(client, 1)
        add(client, 2)
        enroll(db, user.id, 2)

        resp = client.post("/payments/checkout", headers=AUTH)
        assert resp.status_code == 409
        assert resp.json()["detail"] == "You are already enrolled in: Course B"

    def test_verify_without_reference(self, client):
        resp = client.get("/payments/verify", headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Payment reference is required"

    def test_verify_unknown_reference(self, client):
        assert client.get("/payments/verify?reference=ref_nope", headers=AUTH).status_code == 404

    def test_verify_of_someone_elses_payment(self, client, db, gateway):
        db.add(UserModel(id=2, name="Eve", email="eve@example.com"))
        db.commit()
        add(client, 1)
        reference = client.post("/payments/checkout", headers=AUTH).json()["reference"]

        gateway.verify_success = False
        resp = client.get(f"/payments/verify?reference={reference}", headers={"X-User-Id": "2"})
        assert resp.status_code == 404
        assert gateway.verified == []

        #the owner pays afterwards and still gets enrolled
        gateway.verify_success = True
        resp = client.get(f"/payments/verify?reference={reference}", headers=AUTH)
        assert resp.status_code == 200
        assert resp.json()["message"] == "Payment verified successfully"

    def test_verify_failed_payment(self, client, gateway):
        add(client, 1)
        reference = client.post("/payments/checkout", headers=AUTH).json()["reference"]
        gateway.verify_success = False

        resp = client.get(f"/payments/verify?reference={reference}", headers=AUTH)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Payment verification failed"


class TestWebhook:
    def checkout(self, client):
        add(client, 1)
        add(client, 2)
        return client.post("/payments/checkout", headers=AUTH).json()["reference"]

    def test_bad_signature_rejected(self, client, gateway):
        reference = self.checkout(client)

        resp = post_webhook(client, {"event": "charge.success", "data": {"reference": reference}}, secret="wrong")

        assert resp.status_code == 401
        assert gateway.verified == []

    def test_missing_signature_rejected(self, client):
        resp = client.post("/webhook/paystack", content=b'{"event": "charge.success"}')
        assert resp.status_code == 401

    def test_duplicate_delivery_settles_once(self, client, notifier):
        reference = self.checkout(client)
        payload = {"event": "charge.success", "data": {"reference": reference}}

        first = post_webhook(client, payload)
        second = post_webhook(client, payload)

        assert first.status_code == 200
        assert first.json()["detail"]["outcome"] == "settled"
        assert second.status_code == 200
        assert second.json()["handled"] is True
        assert second.json()["detail"]["outcome"] == "already_settled"
        assert client.get("/cart/count", headers=AUTH).json() == {"count": 0}
        assert len(notifier.sent) == 1

    def test_charge_failed_marks_payment_failed(self, client):
        reference = self.checkout(client)

        resp = post_webhook(client, {"event": "charge.failed", "data": {"reference": reference}})

        assert resp.status_code == 200
        assert resp.json()["detail"]["status"] == "failed"
        resp = client.get(f"/payments/verify?reference={reference}", headers=AUTH)
        assert resp.status_code == 409

    def test_unknown_event_acknowledged(self, client):
        resp = post_webhook(client, {"event": "subscription.create", "data": {}})
        assert resp.status_code == 200
        assert resp.json()["handled"] is False

    def test_unknown_reference_acknowledged(self, client):
        resp = post_webhook(client, {"event": "charge.success", "data": {"reference": "ref_ghost"}})
        assert resp.status_code == 200
        assert resp.json()["handled"] is False

    def test_malformed_reference_acknowledged(self, client, gateway):
        resp = post_webhook(client, {"event": "charge.success", "data": {"reference": "bad ref/../"}})
        assert resp.status_code == 200
        assert resp.json()["handled"] is False
        assert gateway.verified == []

    def test_malformed_body(self, client):
        body = b"{not json"
        resp = client.post(
            "/webhook/paystack",
            content=body,
            headers={"x-paystack-signature": compute_signature(WEBHOOK_SECRET, body)},
        )
        assert resp.status_code == 400
