import pytest

from boardguru.config import settings
from boardguru.core.asset_service import safe_file_name
from boardguru.core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    NotFoundException,
    ValidationException
)

PDF = b"%PDF-1.7 board pack"


@pytest.fixture
def service(backend):
    return backend.asset_service()


@pytest.fixture
def asset(service, member, organization):
    return service.upload_asset(
        organization["organization_id"], member["user_id"], "Q3 Financials.pdf", PDF, "application/pdf",
        tags=["finance"]
    )


@pytest.mark.parametrize("raw,expected", [
    ("report.pdf", "report.pdf"),
    ("../../etc/passwd", "passwd"),
    ("C:\\Users\\me\\board minutes.docx", "board_minutes.docx"),
    ("...", "file"),
])
def test_safe_file_name(raw, expected):
    assert safe_file_name(raw) == expected


class TestUpload:
    def test_object_stored_under_owner_path(self, backend, asset, member, organization):
        expected = f"{organization['organization_id']}/{member['user_id']}/{asset['asset_id']}/Q3_Financials.pdf"
        assert asset["file_path"] == expected
        assert backend.storage.stored_objects[expected] == PDF
        assert asset["title"] == "Q3_Financials"
        assert asset["file_name"] == "Q3 Financials.pdf"
        assert asset["file_size"] == len(PDF)
        assert asset["status"] == "ready"

    def test_empty_file(self, service, member, organization):
        with pytest.raises(ValidationException, match="empty"):
            service.upload_asset(organization["organization_id"], member["user_id"], "a.pdf", b"", "application/pdf")

    def test_disallowed_type(self, service, member, organization):
        with pytest.raises(ValidationException, match="not allowed"):
            service.upload_asset(organization["organization_id"], member["user_id"], "a.exe", b"MZ",
                                 "application/x-msdownload")

    def test_size_limit(self, service, member, organization, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
        with pytest.raises(ValidationException, match="1 MB"):
            service.upload_asset(organization["organization_id"], member["user_id"], "big.pdf",
                                 b"x" * (1024 * 1024 + 1), "application/pdf")

    def test_failed_insert_removes_object(self, backend, service, member, organization):
        backend.assets.fail_create = True
        with pytest.raises(RuntimeError):
            service.upload_asset(organization["organization_id"], member["user_id"], "a.pdf", PDF, "application/pdf")
        assert backend.storage.stored_objects == {}

    def test_upload_into_vault_needs_editor(self, backend, service, member, outsider, organization):
        vault = backend.vault_service().create_vault(organization["organization_id"], member["user_id"],
                                                     {"name": "Pack"})
        backend.organizations.add_member({"organization_id": organization["organization_id"],
                                          "user_id": outsider["user_id"], "role": "member"})
        with pytest.raises(AuthorizationException):
            service.upload_asset(organization["organization_id"], outsider["user_id"], "a.pdf", PDF,
                                 "application/pdf", vault_id=vault["vault_id"])

        uploaded = service.upload_asset(organization["organization_id"], member["user_id"], "a.pdf", PDF,
                                        "application/pdf", vault_id=vault["vault_id"])
        assert (vault["vault_id"], uploaded["asset_id"]) in backend.vaults.vault_assets


class TestAccess:
    def test_view_counts(self, backend, service, asset, owner):
        viewed = service.get_asset(asset["asset_id"], owner["user_id"])
        assert viewed["view_count"] == 1
        assert viewed["access"] == "organization"
        assert backend.assets.assets[asset["asset_id"]]["view_count"] == 1

    def test_download_url(self, backend, service, asset, owner):
        result = service.get_download_url(asset["asset_id"], owner["user_id"])

        assert result["expires_in"] == settings.SIGNED_URL_EXPIRATION_SECONDS
        assert asset["file_path"] in result["url"]
        assert result["file_name"] == "Q3 Financials.pdf"
        assert backend.assets.assets[asset["asset_id"]]["download_count"] == 1

    def test_outsider_denied(self, service, asset, outsider):
        with pytest.raises(AuthorizationException):
            service.get_asset(asset["asset_id"], outsider["user_id"])

    def test_view_share_cannot_download(self, service, asset, member, outsider):
        service.share_asset(asset["asset_id"], member["user_id"], [outsider["user_id"]], "view")

        assert service.get_asset(asset["asset_id"], outsider["user_id"])["access"] == "view"
        with pytest.raises(AuthorizationException):
            service.get_download_url(asset["asset_id"], outsider["user_id"])

    def test_download_share(self, service, asset, member, outsider):
        service.share_asset(asset["asset_id"], member["user_id"], [outsider["user_id"]], "download")
        assert service.get_download_url(asset["asset_id"], outsider["user_id"])["url"]


class TestManagement:
    def test_share_results_and_notification(self, backend, service, asset, member, outsider):
        result = service.share_asset(asset["asset_id"], member["user_id"],
                                     [member["user_id"], outsider["user_id"], "ghost"], "view")

        assert [r["status"] for r in result["results"]] == ["owner", "shared", "user_not_found"]
        assert result["shared_count"] == 1
        assert backend.notifications.for_user(outsider["user_id"])[0]["type"] == "asset_shared"
        assert [s["email"] for s in service.list_shares(asset["asset_id"], member["user_id"])] == [outsider["email"]]

    def test_unshare(self, service, asset, member, outsider):
        service.share_asset(asset["asset_id"], member["user_id"], [outsider["user_id"]])
        service.unshare_asset(asset["asset_id"], member["user_id"], outsider["user_id"])
        with pytest.raises(NotFoundException):
            service.unshare_asset(asset["asset_id"], member["user_id"], outsider["user_id"])

    def test_other_member_cannot_edit(self, backend, service, asset, organization):
        colleague = backend.add_user("colleague@acme.test")
        backend.organizations.add_member({"organization_id": organization["organization_id"],
                                          "user_id": colleague["user_id"], "role": "member"})
        with pytest.raises(AuthorizationException):
            service.update_asset(asset["asset_id"], colleague["user_id"], {"title": "Mine now"})

    def test_admin_can_edit(self, service, asset, owner):
        updated = service.update_asset(asset["asset_id"], owner["user_id"], {"title": " Q3 Accounts "})
        assert updated["title"] == "Q3 Accounts"

    def test_delete_and_restore(self, service, asset, member, organization):
        service.delete_asset(asset["asset_id"], member["user_id"])
        with pytest.raises(NotFoundException):
            service.get_asset(asset["asset_id"], member["user_id"])
        assert service.list_assets(organization["organization_id"], member["user_id"])["total"] == 0

        restored = service.restore_asset(asset["asset_id"], member["user_id"])

        assert restored["status"] == "ready"
        assert restored["deleted_at"] is None
        with pytest.raises(BusinessRuleException):
            service.restore_asset(asset["asset_id"], member["user_id"])

    def test_list_filters(self, service, asset, member, organization):
        service.upload_asset(organization["organization_id"], member["user_id"], "minutes.txt", b"minutes",
                             "text/plain", category="minutes")

        by_category = service.list_assets(organization["organization_id"], member["user_id"], category="minutes")
        by_search = service.list_assets(organization["organization_id"], member["user_id"], search="financials")

        assert [a["file_name"] for a in by_category["items"]] == ["minutes.txt"]
        assert [a["asset_id"] for a in by_search["items"]] == [asset["asset_id"]]
