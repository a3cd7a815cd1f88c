"""Tests for ownership resolution.

Covers:
- Active grant → owner; no grant, other page's grant, missing resource → not owner
- Revocation takes effect on the next check
- At most one active grant per (page, user)
- Tenant scope for listings
- Ownership endpoints for opportunities and events
"""
import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from talent_hub.errors import Forbidden
from talent_hub.models.page import PageOwnership
from talent_hub.services.ownership import (
    event_ownership,
    opportunity_ownership,
    owned_page_ids,
    require_page_in_scope,
)
from tests.factories import (
    auth_headers,
    grant,
    owner_setup,
    seed_event,
    seed_opportunity,
    seed_page,
)


class TestOpportunityOwnership:
    def test_active_grant_is_owner(self, db):
        owner, _, page = owner_setup(db)
        opportunity = seed_opportunity(db, page)
        check = opportunity_ownership(db, owner.id, opportunity.id)
        assert check.is_owner is True
        assert check.page_id == page.id
        assert check.ownership.role == "admin"

    def test_user_without_grant_is_not_owner(self, db):
        _, outsider, page = owner_setup(db)
        opportunity = seed_opportunity(db, page)
        check = opportunity_ownership(db, outsider.id, opportunity.id)
        assert check.is_owner is False
        assert check.ownership is None

    def test_grant_on_another_page_does_not_count(self, db):
        _, outsider, page = owner_setup(db)
        grant(db, outsider, seed_page(db, u_name="other", title="Other Co"))
        opportunity = seed_opportunity(db, page)
        assert opportunity_ownership(db, outsider.id, opportunity.id).is_owner is False

    def test_missing_opportunity_is_false_not_error(self, db):
        owner, _, _ = owner_setup(db)
        assert opportunity_ownership(db, owner.id, str(uuid.uuid4())).is_owner is False

    def test_revocation_applies_to_next_check(self, db):
        owner, _, page = owner_setup(db)
        opportunity = seed_opportunity(db, page)
        assert opportunity_ownership(db, owner.id, opportunity.id).is_owner is True

        row = db.query(PageOwnership).filter_by(user_id=owner.id, page_id=page.id).one()
        row.is_active = False
        db.commit()
        assert opportunity_ownership(db, owner.id, opportunity.id).is_owner is False


class TestEventOwnership:
    def test_active_grant_is_owner(self, db):
        owner, _, page = owner_setup(db)
        event = seed_event(db, page)
        assert event_ownership(db, owner.id, event.id).is_owner is True

    def test_outsider_is_not_owner(self, db):
        _, outsider, page = owner_setup(db)
        event = seed_event(db, page)
        assert event_ownership(db, outsider.id, event.id).is_owner is False

    def test_revoked_grant_is_not_owner(self, db):
        owner, _, _ = owner_setup(db)
        page = seed_page(db, u_name="revoked", title="Revoked Co")
        grant(db, owner, page, is_active=False)
        event = seed_event(db, page)
        assert event_ownership(db, owner.id, event.id).is_owner is False


class TestGrantUniqueness:
    def test_second_active_grant_rejected(self, db):
        owner, _, page = owner_setup(db)
        db.add(PageOwnership(user_id=owner.id, page_id=page.id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_revoked_rows_do_not_block_a_new_grant(self, db):
        owner, _, page = owner_setup(db)
        row = db.query(PageOwnership).filter_by(user_id=owner.id, page_id=page.id).one()
        row.is_active = False
        db.commit()

        grant(db, owner, page, role="editor")
        rows = db.query(PageOwnership).filter_by(user_id=owner.id, page_id=page.id).all()
        assert len(rows) == 2
        assert sorted(r.is_active for r in rows) == [False, True]


class TestTenantScope:
    def test_owned_page_ids_skip_revoked(self, db):
        owner, _, page = owner_setup(db)
        grant(db, owner, seed_page(db, u_name="old", title="Old Co"), is_active=False)
        assert owned_page_ids(db, owner.id) == [page.id]

    def test_no_pages_gives_empty_scope(self, db):
        _, outsider, _ = owner_setup(db)
        assert require_page_in_scope(db, outsider.id, None) == []

    def test_requested_page_outside_scope_forbidden(self, db):
        owner, _, _ = owner_setup(db)
        foreign = seed_page(db, u_name="foreign", title="Foreign Co")
        with pytest.raises(Forbidden):
            require_page_in_scope(db, owner.id, foreign.id)

    def test_requested_page_narrows_scope(self, db):
        owner, _, page = owner_setup(db)
        grant(db, owner, seed_page(db, u_name="second", title="Second Co"))
        assert require_page_in_scope(db, owner.id, page.id) == [page.id]
        assert len(require_page_in_scope(db, owner.id, None)) == 2


class TestOwnershipEndpoints:
    def test_owner_sees_grant_details(self, client, db):
        owner, _, page = owner_setup(db)
        opportunity = seed_opportunity(db, page)
        resp = client.get(f"/api/opportunities/{opportunity.id}/ownership", headers=auth_headers(owner.id))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["isOwner"] is True
        assert data["opportunityId"] == opportunity.id
        assert data["ownershipData"]["pageId"] == page.id
        assert data["ownershipData"]["role"] == "admin"
        assert data["ownershipData"]["isActive"] is True

    def test_outsider_gets_false_not_error(self, client, db):
        _, outsider, page = owner_setup(db)
        opportunity = seed_opportunity(db, page)
        resp = client.get(f"/api/opportunities/{opportunity.id}/ownership", headers=auth_headers(outsider.id))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["isOwner"] is False
        assert data["ownershipData"] is None

    def test_missing_opportunity_is_404(self, client, db):
        owner, _, _ = owner_setup(db)
        resp = client.get(f"/api/opportunities/{uuid.uuid4()}/ownership", headers=auth_headers(owner.id))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    def test_malformed_id_is_400(self, client, db):
        owner, _, _ = owner_setup(db)
        resp = client.get("/api/opportunities/not-a-uuid/ownership", headers=auth_headers(owner.id))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_UUID"

    def test_event_ownership_endpoint(self, client, db):
        owner, outsider, page = owner_setup(db)
        event = seed_event(db, page)
        mine = client.get(f"/api/events/{event.id}/ownership", headers=auth_headers(owner.id)).json()
        theirs = client.get(f"/api/events/{event.id}/ownership", headers=auth_headers(outsider.id)).json()
        assert mine["data"]["isOwner"] is True
        assert mine["data"]["eventId"] == event.id
        assert theirs["data"]["isOwner"] is False
