"""HTTP-level tests: routing, authentication and the response envelope."""

from datetime import timedelta

import pytest

from boardguru.core.time_utils import utc_now

# Request schemas use EmailStr, which rejects reserved TLDs such as .test
APPLICANT = "jane.doe@northwind-board.com"


@pytest.fixture
def director(backend, organization):
    user = backend.add_user("director@northwind-board.com", "Dana Director", password="boardroom-2026")
    backend.organizations.add_member({"organization_id": organization["organization_id"],
                                      "user_id": user["user_id"], "role": "member"})
    return user


def test_root(client):
    response = client.get("/", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"
    body = response.json()
    assert body["api_prefix"] == "/api/v1"
    assert body["docs"] == "/api/docs"


class TestAuthentication:
    def test_missing_token(self, client):
        # 403 on older FastAPI releases, 401 on newer ones
        assert client.get("/api/v1/auth/me").status_code in (401, 403)

    def test_invalid_token(self, client):
        response = client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_password_login_and_profile(self, client, director):
        login = client.post("/api/v1/auth/login",
                            json={"email": director["email"], "password": "boardroom-2026"})
        assert login.status_code == 200
        token = login.json()["data"]["access_token"]

        me = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.json()["data"]["email"] == director["email"]
        assert "password_hash" not in me.json()["data"]

    def test_wrong_password(self, client, director):
        response = client.post("/api/v1/auth/login",
                               json={"email": director["email"], "password": "guess"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"

    def test_code_login_then_set_password(self, backend, client):
        backend.add_user(APPLICANT, "Jane Doe", status="pending_password")
        code = backend.auth_service().create_login_code(APPLICANT)

        login = client.post("/api/v1/auth/otp", json={"email": APPLICANT, "code": code})
        data = login.json()["data"]
        assert data["requires_password_setup"] is True

        headers = {"Authorization": f"Bearer {data['access_token']}"}
        updated = client.post("/api/v1/auth/password", json={"password": "a-long-password"}, headers=headers)

        assert updated.json()["data"]["status"] == "active"
        second = client.post("/api/v1/auth/otp", json={"email": APPLICANT, "code": code})
        assert second.status_code == 401

    def test_code_must_be_six_digits(self, client):
        response = client.post("/api/v1/auth/otp", json={"email": APPLICANT, "code": "12ab56"})
        assert response.status_code == 422


class TestRegistrations:
    def submit(self, client):
        return client.post("/api/v1/registrations", json={
            "email": APPLICANT,
            "full_name": "Jane Doe",
            "company": "Northwind",
            "position": "Company Secretary",
        })

    def test_submit(self, client):
        response = self.submit(client)
        assert response.status_code == 201
        assert response.json()["data"]["status"] == "submitted"
        assert response.json()["metadata"]["status_code"] == 201

    def test_duplicate_is_conflict(self, client):
        self.submit(client)
        assert self.submit(client).status_code == 409

    def test_email_link_approval(self, backend, client):
        registration_id = self.submit(client).json()["data"]["registration_id"]
        token = backend.registrations.rows[registration_id]["approval_token"]

        page = client.get(f"/api/v1/registrations/{registration_id}/approve", params={"token": token})

        assert page.status_code == 200
        assert page.headers["content-type"].startswith("text/html")
        assert "Registration approved" in page.text
        assert backend.registrations.rows[registration_id]["status"] == "approved"
        assert backend.users.get_by_email(APPLICANT) is not None

    def test_email_link_with_bad_token(self, client):
        registration_id = self.submit(client).json()["data"]["registration_id"]

        page = client.get(f"/api/v1/registrations/{registration_id}/approve", params={"token": "forged"})

        assert page.status_code == 401
        assert "Unable to approve registration" in page.text

    def test_pending_list_needs_platform_admin(self, client, member, auth_headers):
        self.submit(client)

        denied = client.get("/api/v1/registrations/pending", headers=auth_headers(member))
        allowed = client.get("/api/v1/registrations/pending", headers=auth_headers(member, "admin"))

        assert denied.status_code == 403
        assert denied.json()["detail"] == "Platform administrator access required"
        assert [r["email"] for r in allowed.json()["data"]] == [APPLICANT]
        assert "approval_token" not in allowed.json()["data"][0]


class TestOrganizations:
    def test_create_and_list(self, client, outsider, auth_headers):
        headers = auth_headers(outsider)
        created = client.post("/api/v1/organizations", headers=headers,
                              json={"name": "Northwind Trust", "slug": "northwind-trust"})
        assert created.status_code == 201

        listed = client.get("/api/v1/organizations", headers=headers).json()

        assert listed["pagination"]["total_count"] == 1
        assert listed["data"][0]["user_role"] == "owner"

    def test_slug_check(self, client, organization, owner, auth_headers):
        response = client.get("/api/v1/organizations/check-slug", params={"slug": organization["slug"]},
                              headers=auth_headers(owner))
        assert response.json()["data"]["available"] is False

    def test_export_is_csv_attachment(self, client, organization, owner, auth_headers):
        response = client.post("/api/v1/organizations/bulk-actions", headers=auth_headers(owner), json={
            "action": "export",
            "organization_ids": [organization["organization_id"]],
        })

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]
        assert response.text.splitlines() == ["Name,Members,Role,Status", "Acme Holdings,2,owner,active"]

    def test_malformed_ids_are_rejected(self, client, owner, auth_headers):
        headers = auth_headers(owner)

        path = client.get("/api/v1/organizations/abc", headers=headers)
        query = client.get("/api/v1/boards", params={"organization_id": "abc"}, headers=headers)

        assert path.status_code == 422
        assert query.status_code == 422

    def test_non_member_gets_403(self, client, organization, outsider, auth_headers):
        response = client.get(f"/api/v1/organizations/{organization['organization_id']}",
                              headers=auth_headers(outsider))
        assert response.status_code == 403


class TestDocuments:
    def upload(self, client, organization, user, auth_headers, **form):
        return client.post(
            "/api/v1/assets",
            headers=auth_headers(user),
            files={"file": ("Board Pack.pdf", b"%PDF-1.7", "application/pdf")},
            data={"organization_id": organization["organization_id"], "tags": "q3, finance", **form},
        )

    def test_upload_and_download(self, backend, client, organization, member, owner, auth_headers):
        response = self.upload(client, organization, member, auth_headers)
        assert response.status_code == 201
        asset = response.json()["data"]
        assert asset["tags"] == ["q3", "finance"]

        download = client.get(f"/api/v1/assets/{asset['asset_id']}/download", headers=auth_headers(owner))

        assert asset["file_path"] in download.json()["data"]["url"]
        assert backend.assets.assets[asset["asset_id"]]["download_count"] == 1

    def test_rejected_type(self, client, organization, member, auth_headers):
        response = client.post(
            "/api/v1/assets",
            headers=auth_headers(member),
            files={"file": ("tool.exe", b"MZ", "application/x-msdownload")},
            data={"organization_id": organization["organization_id"]},
        )
        assert response.status_code == 400

    def test_vault_and_annotation(self, client, organization, member, auth_headers):
        headers = auth_headers(member)
        vault = client.post("/api/v1/vaults", params={"organization_id": organization["organization_id"]},
                            headers=headers, json={"name": "November Pack"}).json()["data"]
        asset = self.upload(client, organization, member, auth_headers).json()["data"]

        added = client.post(f"/api/v1/vaults/{vault['vault_id']}/assets", headers=headers,
                            json={"asset_id": asset["asset_id"]})
        note = client.post(f"/api/v1/assets/{asset['asset_id']}/annotations", headers=headers, json={
            "annotation_type": "comment", "page_number": 2, "comment_text": "Check the totals",
        })

        assert added.status_code == 201
        assert note.status_code == 201
        detail = client.get(f"/api/v1/vaults/{vault['vault_id']}", headers=headers).json()["data"]
        assert [a["asset_id"] for a in detail["assets"]] == [asset["asset_id"]]


class TestMeetings:
    def test_vote_through_api(self, backend, client, organization, director, auth_headers):
        board = backend.add_board(organization["organization_id"], members={director["user_id"]: "chair"})
        headers = auth_headers(director)

        meeting = client.post("/api/v1/meetings", params={"organization_id": organization["organization_id"]},
                              headers=headers, json={
                                  "title": "Budget approval",
                                  "board_id": board["board_id"],
                                  "scheduled_start": (utc_now() + timedelta(days=5)).isoformat(),
                              })
        assert meeting.status_code == 201
        meeting_id = meeting.json()["data"]["meeting_id"]

        resolution = client.post(f"/api/v1/meetings/{meeting_id}/resolutions", headers=headers, json={
            "title": "Approve FY27 budget", "resolution_text": "The board approves the budget.",
        }).json()["data"]
        vote = client.post(f"/api/v1/meetings/resolutions/{resolution['resolution_id']}/votes",
                           headers=headers, json={"vote": "for"})

        assert vote.status_code == 201
        assert vote.json()["data"]["resolution"]["status"] == "passed"

    def test_invalid_vote_value(self, client, director, auth_headers):
        response = client.post("/api/v1/meetings/resolutions/any/votes",
                               headers=auth_headers(director), json={"vote": "maybe"})
        assert response.status_code == 422


class TestNotifications:
    def test_unread_count_and_read_all(self, backend, client, member, auth_headers):
        service = backend.notification_service()
        service.create_notification(member["user_id"], "meeting_scheduled", "Board meeting")
        service.create_notification(member["user_id"], "asset_shared", "New board pack")
        headers = auth_headers(member)

        listed = client.get("/api/v1/notifications", headers=headers).json()
        assert listed["unread_count"] == 2
        assert [n["title"] for n in listed["data"]] == ["New board pack", "Board meeting"]

        client.post("/api/v1/notifications/read-all", headers=headers)
        assert client.get("/api/v1/notifications", headers=headers).json()["unread_count"] == 0
