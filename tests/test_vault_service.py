import uuid

import pytest

from boardguru.core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException
)
from boardguru.core.time_utils import utc_now_iso


@pytest.fixture
def service(backend):
    return backend.vault_service()


@pytest.fixture
def vault(service, member, organization):
    return service.create_vault(organization["organization_id"], member["user_id"], {"name": "Q3 Board Pack"})


def make_asset(backend, organization, owner_id, title="Financials"):
    return backend.assets.create({
        "asset_id": str(uuid.uuid4()),
        "organization_id": organization["organization_id"],
        "owner_id": owner_id,
        "title": title,
        "file_name": f"{title.lower()}.pdf",
        "file_path": f"{organization['organization_id']}/{owner_id}/{title}.pdf",
        "file_size": 10,
        "mime_type": "application/pdf",
        "category": "general",
        "tags": [],
        "status": "ready",
    })


class TestVaultLifecycle:
    def test_creator_is_owner(self, backend, vault, member):
        assert vault["user_role"] == "owner"
        assert vault["status"] == "draft"
        assert backend.vaults.get_member(vault["vault_id"], member["user_id"])["role"] == "owner"

    def test_owner_membership_failure_is_not_fatal(self, backend, service, member, organization, monkeypatch):
        def broken(member_row):
            raise RuntimeError("constraint violation")
        monkeypatch.setattr(backend.vaults, "add_member", broken)

        created = service.create_vault(organization["organization_id"], member["user_id"], {"name": "Pack"})

        assert created["vault_id"] in backend.vaults.vaults

    def test_name_length(self, service, member, organization):
        with pytest.raises(ValidationException):
            service.create_vault(organization["organization_id"], member["user_id"], {"name": "x" * 256})

    def test_organization_admin_acts_as_vault_admin(self, service, owner, vault):
        updated = service.update_vault(vault["vault_id"], owner["user_id"], {"status": "active"})
        assert updated["status"] == "active"
        assert service.get_vault(vault["vault_id"], owner["user_id"])["user_role"] == "admin"

    def test_outsider_has_no_access(self, service, outsider, vault):
        with pytest.raises(AuthorizationException, match="do not have access"):
            service.get_vault(vault["vault_id"], outsider["user_id"])

    def test_update_without_fields(self, service, member, vault):
        with pytest.raises(ValidationException, match="No fields"):
            service.update_vault(vault["vault_id"], member["user_id"], {})

    def test_delete_archives_and_hides_from_list(self, service, member, organization, vault):
        service.delete_vault(vault["vault_id"], member["user_id"])
        assert service.list_user_vaults(member["user_id"], organization["organization_id"])["total"] == 0
        archived = service.list_user_vaults(member["user_id"], status="archived")
        assert archived["items"][0]["vault_id"] == vault["vault_id"]

    def test_only_owner_deletes(self, service, owner, vault):
        with pytest.raises(AuthorizationException, match="vault owner role"):
            service.delete_vault(vault["vault_id"], owner["user_id"])


class TestVaultInvitations:
    def test_mixed_invite_results(self, backend, service, member, owner, vault):
        result = service.invite(
            vault["vault_id"], member["user_id"],
            user_ids=[owner["user_id"], member["user_id"], "missing-user"],
            emails=["Guest@Partner.test"], role="editor"
        )

        statuses = [(r.get("user_id") or r.get("email"), r["status"]) for r in result["results"]]
        assert statuses == [
            (owner["user_id"], "added"),
            (member["user_id"], "already_member"),
            ("missing-user", "user_not_found"),
            ("guest@partner.test", "invited"),
        ]
        assert result["success_count"] == 2
        assert result["error_count"] == 2
        assert backend.vaults.get_member(vault["vault_id"], owner["user_id"])["role"] == "editor"
        assert backend.notifications.for_user(owner["user_id"])[0]["type"] == "vault_access_granted"
        assert len(backend.email.sent_to("guest@partner.test")) == 1

    def test_invite_needs_a_target(self, service, member, vault):
        with pytest.raises(ValidationException):
            service.invite(vault["vault_id"], member["user_id"])

    def test_viewer_cannot_invite(self, backend, service, member, outsider, vault):
        backend.vaults.add_member({"vault_id": vault["vault_id"], "user_id": outsider["user_id"], "role": "viewer"})
        with pytest.raises(AuthorizationException):
            service.invite(vault["vault_id"], outsider["user_id"], emails=["x@y.test"])

    def test_accept_email_invitation(self, backend, service, member, outsider, vault):
        service.invite(vault["vault_id"], member["user_id"], emails=[outsider["email"]])
        token = next(iter(backend.vaults.invitations.values()))["token"]

        joined = service.accept_invitation(token, outsider["user_id"])

        assert joined["role"] == "viewer"
        assert service.get_vault(vault["vault_id"], outsider["user_id"])["user_role"] == "viewer"
        with pytest.raises(BusinessRuleException, match="no longer valid"):
            service.accept_invitation(token, outsider["user_id"])

    def test_accept_wrong_email(self, backend, service, member, owner, vault):
        service.invite(vault["vault_id"], member["user_id"], emails=["someone@partner.test"])
        token = next(iter(backend.vaults.invitations.values()))["token"]
        with pytest.raises(AuthorizationException):
            service.accept_invitation(token, owner["user_id"])

    def test_accept_expired(self, backend, service, member, outsider, vault):
        service.invite(vault["vault_id"], member["user_id"], emails=[outsider["email"]])
        invitation = next(iter(backend.vaults.invitations.values()))
        invitation["expires_at"] = utc_now_iso()
        with pytest.raises(BusinessRuleException, match="expired"):
            service.accept_invitation(invitation["token"], outsider["user_id"])

    def test_unknown_token(self, service, outsider):
        with pytest.raises(NotFoundException):
            service.accept_invitation("nope", outsider["user_id"])


class TestVaultContents:
    def test_add_and_remove_asset(self, backend, service, member, organization, vault):
        asset = make_asset(backend, organization, member["user_id"])

        service.add_asset(vault["vault_id"], member["user_id"], asset["asset_id"])

        contents = service.get_vault(vault["vault_id"], member["user_id"])["assets"]
        assert [a["asset_id"] for a in contents] == [asset["asset_id"]]
        with pytest.raises(ConflictException):
            service.add_asset(vault["vault_id"], member["user_id"], asset["asset_id"])

        service.remove_asset(vault["vault_id"], member["user_id"], asset["asset_id"])
        with pytest.raises(NotFoundException):
            service.remove_asset(vault["vault_id"], member["user_id"], asset["asset_id"])

    def test_asset_from_other_organization(self, backend, service, owner, member, vault):
        other = backend.add_organization(owner["user_id"], name="Other", slug="other-org")
        asset = make_asset(backend, other, owner["user_id"])
        with pytest.raises(ValidationException, match="different organization"):
            service.add_asset(vault["vault_id"], member["user_id"], asset["asset_id"])
