"""Tests for event listing, registrant approval and payment routes.

Covers:
- Listing: Live / Closed from verification and registration window
- APPROVED → SHORTLISTING, visible in the registrant list
- HOLD / DECLINED mapping and notifications
- Registration ids only reachable through their own event
- Booking status: invalid value → 400 with the row untouched
- Payment reminders and cooldown
"""
import uuid

from talent_hub.config import settings
from talent_hub.models.event import RegisteredEvent
from talent_hub.services.notifications import NotificationKind
from tests.factories import (
    auth_headers,
    grant,
    owner_setup,
    seed_event,
    seed_page,
    seed_registration,
    seed_user,
)


def _setup(db, status="PENDING", booking_status="PENDING"):
    """An owner, an outsider, one event on the owner's page, and one registration."""
    owner, outsider, page = owner_setup(db)
    event = seed_event(db, page)
    candidate = seed_user(db, name="Meera Iyer", email="meera@example.com")
    registration = seed_registration(db, event, candidate, status=status, booking_status=booking_status)
    return owner, outsider, page, event, registration


def _stored(db, registration_id) -> RegisteredEvent:
    db.expire_all()
    return db.get(RegisteredEvent, registration_id)


def _url(event_id, registration_id, suffix="status") -> str:
    return f"/api/events/{event_id}/applicants/{registration_id}/{suffix}"


class TestListEvents:
    """GET /api/events"""

    def test_verified_open_event_is_live(self, client, db):
        owner, _, page = owner_setup(db)
        seed_event(db, page, title="Hackathon")
        resp = client.get("/api/events", headers=auth_headers(owner.id))
        assert resp.status_code == 200
        assert resp.headers["Cache-Control"] == f"private, max-age={settings.LIST_CACHE_MAX_AGE}"
        item = resp.json()["events"][0]
        assert item["eventName"] == "Hackathon"
        assert item["status"] == "Live"
        assert item["eventType"] == "Workshop"
        assert item["totalRegistration"] == 3

    def test_unverified_event_is_closed(self, client, db):
        owner, _, page = owner_setup(db)
        seed_event(db, page, is_verified=False)
        item = client.get("/api/events", headers=auth_headers(owner.id)).json()["events"][0]
        assert item["status"] == "Closed"
        assert item["active"] is False

    def test_past_deadline_is_closed(self, client, db):
        owner, _, page = owner_setup(db)
        seed_event(db, page, open_days=-2)
        item = client.get("/api/events", headers=auth_headers(owner.id)).json()["events"][0]
        assert item["status"] == "Closed"

    def test_no_pages_gives_empty_list(self, client, db):
        _, outsider, page = owner_setup(db)
        seed_event(db, page)
        body = client.get("/api/events", headers=auth_headers(outsider.id)).json()
        assert body["events"] == []
        assert body["message"] == "No events found"


class TestRegistrantApproval:
    """PUT /api/events/{event_id}/applicants/{id}/status"""

    def test_approved_becomes_shortlisting(self, client, db, notifier):
        owner, _, _, event, registration = _setup(db)
        resp = client.put(_url(event.id, registration.id), json={"status": "APPROVED"},
                          headers=auth_headers(owner.id))
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Applicant approved successfully"
        assert body["data"] == {"status": "APPROVED", "registrationStatus": "SHORTLISTING", "emailSent": True}
        assert notifier.sent[0][0] is NotificationKind.shortlisted

        listed_resp = client.get(f"/api/events/{event.id}/applicants", headers=auth_headers(owner.id))
        assert listed_resp.headers["Cache-Control"] == f"private, max-age={settings.LIST_CACHE_MAX_AGE}"
        listed = listed_resp.json()
        users = listed["data"]["registeredUsers"]
        assert users[0]["id"] == registration.id
        assert users[0]["status"] == "SHORTLISTING"
        assert users[0]["name"] == "Meera Iyer"

    def test_hold_sends_no_email(self, client, db, notifier):
        owner, _, _, event, registration = _setup(db)
        resp = client.put(_url(event.id, registration.id), json={"status": "HOLD"}, headers=auth_headers(owner.id))
        assert resp.json()["message"] == "Applicant put on hold"
        assert resp.json()["data"]["registrationStatus"] == "HOLD"
        assert resp.json()["data"]["emailSent"] is False
        assert notifier.sent == []

    def test_declined_becomes_rejected(self, client, db, notifier):
        owner, _, _, event, registration = _setup(db)
        resp = client.put(_url(event.id, registration.id), json={"status": "DECLINED"},
                          headers=auth_headers(owner.id))
        assert resp.json()["message"] == "Applicant declined"
        assert resp.json()["data"]["registrationStatus"] == "REJECTED"
        assert notifier.sent[0][0] is NotificationKind.rejected
        assert _stored(db, registration.id).status.value == "REJECTED"

    def test_unknown_decision_is_400(self, client, db):
        owner, _, _, event, registration = _setup(db)
        resp = client.put(_url(event.id, registration.id), json={"status": "SHORTLISTING"},
                          headers=auth_headers(owner.id))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_STATUS"
        assert _stored(db, registration.id).status.value == "PENDING"

    def test_registration_through_other_event_is_404(self, client, db, notifier):
        """Owning both events does not let one event's route touch the other's rows."""
        owner, _, page, event, registration = _setup(db)
        other_event = seed_event(db, page, title="Other Event")
        resp = client.put(_url(other_event.id, registration.id), json={"status": "APPROVED"},
                          headers=auth_headers(owner.id))
        assert resp.status_code == 404
        assert _stored(db, registration.id).status.value == "PENDING"
        assert notifier.sent == []

    def test_non_owner_is_403(self, client, db):
        _, outsider, _, event, registration = _setup(db)
        resp = client.put(_url(event.id, registration.id), json={"status": "APPROVED"},
                          headers=auth_headers(outsider.id))
        assert resp.status_code == 403
        assert _stored(db, registration.id).status.value == "PENDING"

    def test_unknown_event_is_404(self, client, db):
        owner, _, _, _, registration = _setup(db)
        resp = client.put(_url(uuid.uuid4(), registration.id), json={"status": "APPROVED"},
                          headers=auth_headers(owner.id))
        assert resp.status_code == 404


class TestPaymentStatus:
    """GET / PUT /api/events/{event_id}/applicants/{id}/payment-status"""

    def test_paid_is_not_a_booking_status(self, client, db):
        owner, _, _, event, registration = _setup(db, status="SHORTLISTING")
        resp = client.put(_url(event.id, registration.id, "payment-status"), json={"bookingStatus": "PAID"},
                          headers=auth_headers(owner.id))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_STATUS"
        assert _stored(db, registration.id).booking_status.value == "PENDING"

    def test_success_recorded(self, client, db):
        owner, _, _, event, registration = _setup(db, status="SHORTLISTING")
        resp = client.put(_url(event.id, registration.id, "payment-status"), json={"bookingStatus": "SUCCESS"},
                          headers=auth_headers(owner.id))
        assert resp.status_code == 200
        assert resp.json()["data"]["bookingStatus"] == "SUCCESS"

        stored = _stored(db, registration.id)
        assert stored.booking_status.value == "SUCCESS"
        assert stored.status.value == "SHORTLISTING"

    def test_get_payment_status(self, client, db):
        owner, _, _, event, registration = _setup(db, booking_status="FAILED")
        resp = client.get(_url(event.id, registration.id, "payment-status"), headers=auth_headers(owner.id))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["bookingStatus"] == "FAILED"
        assert data["applicantId"] == registration.id
        assert data["eventId"] == event.id

    def test_other_pages_event_is_403(self, client, db):
        _, outsider, _, event, registration = _setup(db)
        grant(db, outsider, seed_page(db, u_name="theirs", title="Their Co"))
        resp = client.put(_url(event.id, registration.id, "payment-status"), json={"bookingStatus": "SUCCESS"},
                          headers=auth_headers(outsider.id))
        assert resp.status_code == 403


class TestPaymentReminder:
    """POST /api/events/{event_id}/applicants/{id}/remind"""

    def test_reminder_sent(self, client, db, notifier):
        owner, _, _, event, registration = _setup(db, status="SHORTLISTING")
        resp = client.post(_url(event.id, registration.id, "remind"), headers=auth_headers(owner.id))
        assert resp.status_code == 200
        assert resp.json()["data"]["emailSent"] is True
        assert notifier.sent[0][0] is NotificationKind.payment_reminder
        assert _stored(db, registration.id).last_reminder_sent is not None

    def test_second_reminder_is_409(self, client, db, notifier):
        owner, _, _, event, registration = _setup(db, status="SHORTLISTING")
        client.post(_url(event.id, registration.id, "remind"), headers=auth_headers(owner.id))
        resp = client.post(_url(event.id, registration.id, "remind"), headers=auth_headers(owner.id))
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "REMINDER_COOLDOWN"
        assert len(notifier.sent) == 1

    def test_failed_send_can_be_retried(self, client, db, notifier):
        notifier.result = False
        owner, _, _, event, registration = _setup(db, status="SHORTLISTING")
        first = client.post(_url(event.id, registration.id, "remind"), headers=auth_headers(owner.id))
        assert first.status_code == 200
        assert first.json()["data"]["emailSent"] is False
        assert first.json()["message"] == "Payment reminder could not be sent"

        second = client.post(_url(event.id, registration.id, "remind"), headers=auth_headers(owner.id))
        assert second.status_code == 200
        assert len(notifier.sent) == 2
