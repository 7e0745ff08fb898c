"""
In-memory stand-ins for the PostgreSQL repositories.
Each fake keeps the method names and row shapes of the repository it
replaces, including the joined columns (email, full_name, user_role).
"""

import copy
import uuid
from typing import Any, Dict, List, Optional

from boardguru.core.annotation_service import AnnotationService
from boardguru.core.asset_service import AssetService
from boardguru.core.auth_service import AuthService
from boardguru.core.board_service import BoardService
from boardguru.core.meeting_service import MeetingService
from boardguru.core.notification_service import NotificationService
from boardguru.core.organization_service import OrganizationService
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.core.registration_service import RegistrationService
from boardguru.core.security import PasswordHandler
from boardguru.core.storage import InMemoryStorageClient
from boardguru.core.time_utils import is_expired, parse_timestamp, utc_now_iso
from boardguru.core.vault_service import VaultService


def _copy(row):
    return copy.deepcopy(row) if row is not None else None


def _page(rows, limit, offset):
    return [_copy(r) for r in rows[offset:offset + limit]], len(rows)


class FakeUserRepository:
    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}

    def add(self, email, full_name="Test User", password=None, status="active",
            platform_role="user", user_id=None) -> Dict[str, Any]:
        user_id = user_id or str(uuid.uuid4())
        self.users[user_id] = {
            "user_id": user_id,
            "email": email,
            "full_name": full_name,
            "company": "Acme",
            "position": "Director",
            "platform_role": platform_role,
            "status": status,
            "password_hash": PasswordHandler.hash_password(password) if password else None,
            "last_login": None,
            "created_at": utc_now_iso(),
        }
        return self._public(self.users[user_id])

    @staticmethod
    def _public(user, include_secret=False):
        if user is None:
            return None
        row = _copy(user)
        if not include_secret:
            row.pop("password_hash", None)
        return row

    def get_by_id(self, user_id, include_secret=False):
        return self._public(self.users.get(user_id), include_secret)

    def get_by_email(self, email, include_secret=False):
        for user in self.users.values():
            if user["email"].lower() == email.lower():
                return self._public(user, include_secret)
        return None

    def create(self, user):
        self.users[user["user_id"]] = {"password_hash": None, "last_login": None,
                                       "created_at": utc_now_iso(), **user}
        return self._public(self.users[user["user_id"]])

    def update(self, user_id, fields):
        if user_id not in self.users:
            return None
        self.users[user_id].update(fields)
        return self._public(self.users[user_id])


class FakeOtpRepository:
    def __init__(self):
        self.codes: List[Dict[str, Any]] = []

    def create(self, otp):
        row = {"attempts": 0, "used_at": None, "created_at": utc_now_iso(), **otp}
        self.codes.append(row)
        return _copy(row)

    def get_latest_active(self, email, purpose):
        for row in reversed(self.codes):
            if (row["email"].lower() == email.lower() and row["purpose"] == purpose
                    and row["used_at"] is None and not is_expired(row["expires_at"])):
                return _copy(row)
        return None

    def _find(self, otp_id):
        return next((r for r in self.codes if r["otp_id"] == otp_id), None)

    def increment_attempts(self, otp_id):
        row = self._find(otp_id)
        if not row:
            return 0
        row["attempts"] += 1
        return row["attempts"]

    def mark_used(self, otp_id):
        row = self._find(otp_id)
        if row:
            row["used_at"] = utc_now_iso()

    def invalidate(self, email, purpose):
        count = 0
        for row in self.codes:
            if row["email"].lower() == email.lower() and row["purpose"] == purpose and row["used_at"] is None:
                row["used_at"] = utc_now_iso()
                count += 1
        return count


class FakeRegistrationRepository:
    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}

    def get_by_id(self, registration_id):
        return _copy(self.rows.get(registration_id))

    def get_by_email(self, email):
        return _copy(next((r for r in self.rows.values() if r["email"].lower() == email.lower()), None))

    def create(self, registration):
        row = {"reviewed_by": None, "reviewed_at": None, "rejection_reason": None,
               "user_id": None, "created_at": utc_now_iso(), **registration}
        self.rows[row["registration_id"]] = row
        return _copy(row)

    def update(self, registration_id, fields):
        if registration_id not in self.rows:
            return None
        self.rows[registration_id].update(fields)
        return _copy(self.rows[registration_id])

    def list_by_status(self, status):
        return [_copy(r) for r in self.rows.values() if r["status"] == status]


class FakeOrganizationRepository:
    def __init__(self, user_repo: FakeUserRepository):
        self.user_repo = user_repo
        self.organizations: Dict[str, Dict[str, Any]] = {}
        self.members: Dict[tuple, Dict[str, Any]] = {}
        self.invitations: Dict[str, Dict[str, Any]] = {}

    def create(self, organization):
        row = {"created_at": utc_now_iso(), "archived_at": None, **organization}
        self.organizations[row["organization_id"]] = row
        return _copy(row)

    def get_by_id(self, organization_id):
        return _copy(self.organizations.get(organization_id))

    def get_by_slug(self, slug):
        return _copy(next((o for o in self.organizations.values() if o["slug"] == slug), None))

    def update(self, organization_id, fields):
        if organization_id not in self.organizations:
            return None
        self.organizations[organization_id].update(fields)
        return _copy(self.organizations[organization_id])

    def list_for_user(self, user_id, role=None, status=None, organization_ids=None, limit=20, offset=0):
        rows = []
        for org in self.organizations.values():
            member = self.members.get((org["organization_id"], user_id))
            if not member or member["status"] != "active" or org["status"] == "deleted":
                continue
            if role and member["role"] != role:
                continue
            if status and org["status"] != status:
                continue
            if organization_ids and org["organization_id"] not in organization_ids:
                continue
            rows.append({**org, "user_role": member["role"],
                         "member_count": self.count_members(org["organization_id"])})
        rows.sort(key=lambda r: r["name"])
        return _page(rows, limit, offset)

    def add_member(self, member):
        key = (member["organization_id"], member["user_id"])
        row = self.members.get(key) or {"joined_at": utc_now_iso(), "invited_by": member.get("invited_by")}
        row.update({
            "organization_id": member["organization_id"],
            "user_id": member["user_id"],
            "role": member["role"],
            "status": member.get("status", "active"),
        })
        self.members[key] = row
        return _copy(row)

    def get_member(self, organization_id, user_id):
        return _copy(self.members.get((organization_id, user_id)))

    def list_members(self, organization_id, role=None, status=None):
        rows = []
        for (org_id, user_id), member in self.members.items():
            if org_id != organization_id:
                continue
            if role and member["role"] != role:
                continue
            if status and member["status"] != status:
                continue
            user = self.user_repo.get_by_id(user_id) or {}
            rows.append({**member, "email": user.get("email"), "full_name": user.get("full_name")})
        return [_copy(r) for r in rows]

    def update_member(self, organization_id, user_id, fields):
        member = self.members.get((organization_id, user_id))
        if not member:
            return None
        member.update(fields)
        return _copy(member)

    def remove_member(self, organization_id, user_id):
        return self.members.pop((organization_id, user_id), None) is not None

    def count_members(self, organization_id, role=None):
        return sum(
            1 for (org_id, _), m in self.members.items()
            if org_id == organization_id and m["status"] == "active" and (role is None or m["role"] == role)
        )

    def create_invitation(self, invitation):
        row = {"accepted_at": None, "created_at": utc_now_iso(), **invitation}
        self.invitations[row["invitation_id"]] = row
        return _copy(row)

    def get_invitation_by_token(self, token):
        for invitation in self.invitations.values():
            if invitation["token"] == token:
                org = self.organizations.get(invitation["organization_id"], {})
                return {**_copy(invitation), "organization_name": org.get("name")}
        return None

    def get_pending_invitation(self, organization_id, email):
        for invitation in self.invitations.values():
            if (invitation["organization_id"] == organization_id
                    and invitation["email"].lower() == email.lower()
                    and invitation["status"] == "pending"
                    and not is_expired(invitation["expires_at"])):
                return _copy(invitation)
        return None

    def update_invitation(self, invitation_id, fields):
        if invitation_id not in self.invitations:
            return None
        self.invitations[invitation_id].update(fields)
        return _copy(self.invitations[invitation_id])


class FakeBoardRepository:
    def __init__(self, user_repo: FakeUserRepository):
        self.user_repo = user_repo
        self.boards: Dict[str, Dict[str, Any]] = {}
        self.members: Dict[tuple, Dict[str, Any]] = {}

    def create(self, board):
        row = {"chair_id": None, "secretary_id": None, "next_meeting_date": None,
               "created_at": utc_now_iso(), **board}
        self.boards[row["board_id"]] = row
        return _copy(row)

    def get_by_id(self, board_id):
        return _copy(self.boards.get(board_id))

    def get_by_name(self, organization_id, name):
        return _copy(next(
            (b for b in self.boards.values()
             if b["organization_id"] == organization_id and b["name"].lower() == name.lower()),
            None
        ))

    def list_by_organization(self, organization_id, status=None):
        rows = []
        for board in self.boards.values():
            if board["organization_id"] != organization_id or (status and board["status"] != status):
                continue
            rows.append({**board, "member_count": len(self.list_members(board["board_id"]))})
        return sorted((_copy(r) for r in rows), key=lambda r: r["name"])

    def update(self, board_id, fields):
        if board_id not in self.boards:
            return None
        self.boards[board_id].update(fields)
        return _copy(self.boards[board_id])

    def add_member(self, member):
        row = {
            "board_member_id": member["board_member_id"],
            "board_id": member["board_id"],
            "user_id": member["user_id"],
            "role": member["role"],
            "status": "active",
            "voting_rights": member.get("voting_rights", True),
            "term_start": member.get("term_start"),
            "term_end": member.get("term_end"),
            "appointed_at": utc_now_iso(),
        }
        self.members[(member["board_id"], member["user_id"])] = row
        return _copy(row)

    def get_member(self, board_id, user_id):
        return _copy(self.members.get((board_id, user_id)))

    def update_member(self, board_member_id, fields):
        for member in self.members.values():
            if member["board_member_id"] == board_member_id:
                member.update(fields)
                return _copy(member)
        return None

    def list_members(self, board_id, status="active"):
        rows = []
        for (b_id, user_id), member in self.members.items():
            if b_id != board_id or (status and member["status"] != status):
                continue
            user = self.user_repo.get_by_id(user_id) or {}
            rows.append({**member, "email": user.get("email"), "full_name": user.get("full_name")})
        return [_copy(r) for r in rows]


class FakeMeetingRepository:
    def __init__(self):
        self.meetings: Dict[str, Dict[str, Any]] = {}
        self.agenda_items: List[Dict[str, Any]] = []
        self.attendance: Dict[tuple, Dict[str, Any]] = {}
        self.resolutions: Dict[str, Dict[str, Any]] = {}
        self.votes: List[Dict[str, Any]] = []

    def create(self, meeting):
        row = {"minutes": None, "created_at": utc_now_iso(), **meeting}
        self.meetings[row["meeting_id"]] = row
        return _copy(row)

    def get_by_id(self, meeting_id):
        return _copy(self.meetings.get(meeting_id))

    def update(self, meeting_id, fields):
        if meeting_id not in self.meetings:
            return None
        self.meetings[meeting_id].update(fields)
        return _copy(self.meetings[meeting_id])

    def list_meetings(self, organization_id, board_id=None, status=None, starts_after=None, limit=20, offset=0):
        rows = [
            m for m in self.meetings.values()
            if m["organization_id"] == organization_id
            and (not board_id or m["board_id"] == board_id)
            and (not status or m["status"] == status)
            and (not starts_after or parse_timestamp(m["scheduled_start"]) >= parse_timestamp(starts_after))
        ]
        rows.sort(key=lambda m: parse_timestamp(m["scheduled_start"]))
        return _page(rows, limit, offset)

    def list_by_board(self, board_id):
        return [_copy(m) for m in self.meetings.values() if m["board_id"] == board_id]

    def add_agenda_item(self, item):
        self.agenda_items.append(_copy(item))
        return _copy(item)

    def list_agenda_items(self, meeting_id):
        rows = [i for i in self.agenda_items if i["meeting_id"] == meeting_id]
        return sorted((_copy(i) for i in rows), key=lambda i: i["position"])

    def upsert_attendance(self, attendance):
        row = {**attendance, "recorded_at": utc_now_iso()}
        self.attendance[(attendance["meeting_id"], attendance["user_id"])] = row
        return _copy(row)

    def list_attendance(self, meeting_id):
        return [_copy(a) for (m_id, _), a in self.attendance.items() if m_id == meeting_id]

    def create_resolution(self, resolution):
        row = {"votes_for": 0, "votes_against": 0, "votes_abstain": 0, "voted_at": None,
               "effective_date": None, "proposed_at": utc_now_iso(), **resolution}
        self.resolutions[row["resolution_id"]] = row
        return _copy(row)

    def get_resolution(self, resolution_id):
        return _copy(self.resolutions.get(resolution_id))

    def update_resolution(self, resolution_id, fields):
        if resolution_id not in self.resolutions:
            return None
        self.resolutions[resolution_id].update(fields)
        return _copy(self.resolutions[resolution_id])

    def list_resolutions(self, meeting_id):
        return [_copy(r) for r in self.resolutions.values() if r["meeting_id"] == meeting_id]

    def add_vote(self, vote):
        row = {**vote, "voted_at": utc_now_iso()}
        self.votes.append(row)
        return _copy(row)

    def get_vote(self, resolution_id, user_id):
        return _copy(next(
            (v for v in self.votes if v["resolution_id"] == resolution_id and v["user_id"] == user_id), None
        ))

    def list_votes(self, resolution_id):
        return [_copy(v) for v in self.votes if v["resolution_id"] == resolution_id]


class FakeAssetRepository:
    def __init__(self, user_repo: FakeUserRepository):
        self.user_repo = user_repo
        self.assets: Dict[str, Dict[str, Any]] = {}
        self.shares: Dict[tuple, Dict[str, Any]] = {}
        self.vault_repo: Optional["FakeVaultRepository"] = None
        self.fail_create = False

    def create(self, asset):
        if self.fail_create:
            raise RuntimeError("insert failed")
        row = {"view_count": 0, "download_count": 0, "deleted_at": None,
               "created_at": utc_now_iso(), **asset}
        self.assets[row["asset_id"]] = row
        return _copy(row)

    def get_by_id(self, asset_id):
        return _copy(self.assets.get(asset_id))

    def update(self, asset_id, fields):
        if asset_id not in self.assets:
            return None
        self.assets[asset_id].update(fields)
        return _copy(self.assets[asset_id])

    def list_assets(self, organization_id, vault_id=None, owner_id=None, category=None, status="ready",
                    search=None, sort_by="created_at", sort_desc=True, limit=20, offset=0):
        in_vault = set()
        if vault_id and self.vault_repo:
            in_vault = {a for (v, a) in self.vault_repo.vault_assets if v == vault_id}
        rows = [
            a for a in self.assets.values()
            if a["organization_id"] == organization_id and a["status"] == status
            and (not vault_id or a["asset_id"] in in_vault)
            and (not owner_id or a["owner_id"] == owner_id)
            and (not category or a["category"] == category)
            and (not search or search.lower() in (a["title"] + a["file_name"]).lower())
        ]
        rows.sort(key=lambda a: a.get(sort_by) or "", reverse=sort_desc)
        return _page(rows, limit, offset)

    def increment_counter(self, asset_id, column):
        if column not in ("view_count", "download_count"):
            raise ValueError(f"Unknown counter column: {column}")
        self.assets[asset_id][column] += 1

    def add_share(self, share):
        row = {**share, "shared_at": utc_now_iso()}
        self.shares[(share["asset_id"], share["user_id"])] = row
        return _copy(row)

    def get_share(self, asset_id, user_id):
        return _copy(self.shares.get((asset_id, user_id)))

    def remove_share(self, asset_id, user_id):
        return self.shares.pop((asset_id, user_id), None) is not None

    def list_shares(self, asset_id):
        rows = []
        for (a_id, user_id), share in self.shares.items():
            if a_id == asset_id:
                user = self.user_repo.get_by_id(user_id) or {}
                rows.append({**share, "email": user.get("email"), "full_name": user.get("full_name")})
        return [_copy(r) for r in rows]


class FakeVaultRepository:
    def __init__(self, user_repo: FakeUserRepository, asset_repo: FakeAssetRepository):
        self.user_repo = user_repo
        self.asset_repo = asset_repo
        self.vaults: Dict[str, Dict[str, Any]] = {}
        self.members: Dict[tuple, Dict[str, Any]] = {}
        self.invitations: Dict[str, Dict[str, Any]] = {}
        self.vault_assets: Dict[tuple, Dict[str, Any]] = {}

    def create(self, vault):
        row = {"created_at": utc_now_iso(), "updated_at": utc_now_iso(), **vault}
        self.vaults[row["vault_id"]] = row
        return _copy(row)

    def get_by_id(self, vault_id):
        return _copy(self.vaults.get(vault_id))

    def update(self, vault_id, fields):
        if vault_id not in self.vaults:
            return None
        self.vaults[vault_id].update(fields)
        return _copy(self.vaults[vault_id])

    def list_for_user(self, user_id, organization_id=None, status=None, limit=20, offset=0):
        rows = []
        for vault in self.vaults.values():
            member = self.members.get((vault["vault_id"], user_id))
            if not member:
                continue
            if organization_id and vault["organization_id"] != organization_id:
                continue
            if status and vault["status"] != status:
                continue
            if not status and vault["status"] == "archived":
                continue
            rows.append({
                **vault,
                "user_role": member["role"],
                "member_count": sum(1 for (v, _) in self.members if v == vault["vault_id"]),
                "asset_count": sum(1 for (v, _) in self.vault_assets if v == vault["vault_id"]),
            })
        return _page(rows, limit, offset)

    def add_member(self, member):
        row = {**member, "added_at": utc_now_iso()}
        self.members[(member["vault_id"], member["user_id"])] = row
        return _copy(row)

    def get_member(self, vault_id, user_id):
        return _copy(self.members.get((vault_id, user_id)))

    def list_members(self, vault_id):
        rows = []
        for (v_id, user_id), member in self.members.items():
            if v_id == vault_id:
                user = self.user_repo.get_by_id(user_id) or {}
                rows.append({**member, "email": user.get("email"), "full_name": user.get("full_name")})
        return [_copy(r) for r in rows]

    def create_invitation(self, invitation):
        row = {"accepted_at": None, **invitation}
        self.invitations[row["invitation_id"]] = row
        return _copy(row)

    def get_invitation_by_token(self, token):
        return _copy(next((i for i in self.invitations.values() if i["token"] == token), None))

    def update_invitation(self, invitation_id, fields):
        if invitation_id not in self.invitations:
            return None
        self.invitations[invitation_id].update(fields)
        return _copy(self.invitations[invitation_id])

    def add_asset(self, vault_id, asset_id, added_by):
        if (vault_id, asset_id) in self.vault_assets:
            return False
        self.vault_assets[(vault_id, asset_id)] = {"added_by": added_by, "added_at": utc_now_iso()}
        return True

    def remove_asset(self, vault_id, asset_id):
        return self.vault_assets.pop((vault_id, asset_id), None) is not None

    def list_assets(self, vault_id):
        rows = []
        for (v_id, asset_id), link in self.vault_assets.items():
            asset = self.asset_repo.assets.get(asset_id)
            if v_id == vault_id and asset and asset["status"] != "deleted":
                rows.append({**asset, **link})
        return [_copy(r) for r in rows]


class FakeAnnotationRepository:
    def __init__(self, user_repo: FakeUserRepository):
        self.user_repo = user_repo
        self.annotations: Dict[str, Dict[str, Any]] = {}
        self.replies: List[Dict[str, Any]] = []

    def _author(self, row):
        user = self.user_repo.get_by_id(row["created_by"]) or {}
        return {**row, "author_name": user.get("full_name")}

    def create(self, annotation):
        row = {"resolved_by": None, "created_at": utc_now_iso(), **annotation}
        self.annotations[row["annotation_id"]] = row
        return _copy(row)

    def get_by_id(self, annotation_id):
        return _copy(self.annotations.get(annotation_id))

    def update(self, annotation_id, fields):
        if annotation_id not in self.annotations:
            return None
        self.annotations[annotation_id].update(fields)
        return _copy(self.annotations[annotation_id])

    def delete(self, annotation_id):
        if self.annotations.pop(annotation_id, None) is None:
            return False
        self.replies = [r for r in self.replies if r["annotation_id"] != annotation_id]
        return True

    def list_for_asset(self, asset_id, page_number=None):
        rows = [
            self._author(a) for a in self.annotations.values()
            if a["asset_id"] == asset_id and (page_number is None or a["page_number"] == page_number)
        ]
        return sorted((_copy(r) for r in rows), key=lambda a: a["page_number"])

    def add_reply(self, reply):
        row = {**reply, "created_at": utc_now_iso()}
        self.replies.append(row)
        return _copy(row)

    def list_replies(self, annotation_ids):
        return [_copy(self._author(r)) for r in self.replies if r["annotation_id"] in annotation_ids]


class FakeNotificationRepository:
    def __init__(self):
        self.rows: List[Dict[str, Any]] = []

    def create(self, notification):
        row = {"read_at": None, "created_at": utc_now_iso(), **notification}
        self.rows.append(row)
        return _copy(row)

    def for_user(self, user_id) -> List[Dict[str, Any]]:
        return [_copy(n) for n in self.rows if n["user_id"] == user_id]

    def list_for_user(self, user_id, unread_only=False, limit=20, offset=0):
        rows = [n for n in reversed(self.rows)
                if n["user_id"] == user_id and (not unread_only or n["read_at"] is None)]
        return _page(rows, limit, offset)

    def count_unread(self, user_id):
        return sum(1 for n in self.rows if n["user_id"] == user_id and n["read_at"] is None)

    def mark_read(self, notification_id, user_id):
        for row in self.rows:
            if row["notification_id"] == notification_id and row["user_id"] == user_id:
                row["read_at"] = row["read_at"] or utc_now_iso()
                return _copy(row)
        return None

    def mark_all_read(self, user_id):
        count = 0
        for row in self.rows:
            if row["user_id"] == user_id and row["read_at"] is None:
                row["read_at"] = utc_now_iso()
                count += 1
        return count

    def delete(self, notification_id, user_id):
        before = len(self.rows)
        self.rows = [
            r for r in self.rows
            if not (r["notification_id"] == notification_id and r["user_id"] == user_id)
        ]
        return len(self.rows) < before


class FakeActivityRepository:
    def __init__(self):
        self.entries: List[Dict[str, Any]] = []

    def log(self, entry):
        row = {**entry, "performed_at": utc_now_iso()}
        self.entries.append(row)
        return _copy(row)

    def actions(self) -> List[str]:
        return [e["action"] for e in self.entries]

    def list_for_organization(self, organization_id, limit=50, offset=0):
        rows = [e for e in reversed(self.entries) if e["organization_id"] == organization_id]
        return _page(rows, limit, offset)


class FakeEmailService:
    """Records messages instead of talking to SMTP."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: List[Dict[str, Any]] = []

    def send_email(self, to, subject, html, text=None):
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return self.deliver

    def sent_to(self, address) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m["to"] == address]


class FakeBackend:
    """All fakes wired together, plus the services built on top of them."""

    def __init__(self):
        self.users = FakeUserRepository()
        self.otps = FakeOtpRepository()
        self.registrations = FakeRegistrationRepository()
        self.organizations = FakeOrganizationRepository(self.users)
        self.boards = FakeBoardRepository(self.users)
        self.meetings = FakeMeetingRepository()
        self.assets = FakeAssetRepository(self.users)
        self.vaults = FakeVaultRepository(self.users, self.assets)
        self.assets.vault_repo = self.vaults
        self.annotations = FakeAnnotationRepository(self.users)
        self.notifications = FakeNotificationRepository()
        self.activity_log = FakeActivityRepository()
        self.email = FakeEmailService()
        self.storage = InMemoryStorageClient()

        self.rbac = RBACService(self.organizations)
        self.activity = ActivityLogger(self.activity_log)

    # Services

    def notification_service(self) -> NotificationService:
        return NotificationService(self.notifications, self.users, self.email)

    def auth_service(self) -> AuthService:
        return AuthService(self.users, self.otps)

    def registration_service(self) -> RegistrationService:
        return RegistrationService(self.registrations, self.users, self.auth_service(), self.email)

    def organization_service(self) -> OrganizationService:
        return OrganizationService(
            self.organizations, self.users, self.rbac, self.activity,
            self.notification_service(), self.email
        )

    def board_service(self) -> BoardService:
        return BoardService(self.boards, self.meetings, self.rbac, self.activity)

    def meeting_service(self) -> MeetingService:
        return MeetingService(
            self.meetings, self.boards, self.organizations, self.rbac, self.activity,
            self.notification_service()
        )

    def vault_service(self) -> VaultService:
        return VaultService(
            self.vaults, self.assets, self.users, self.rbac, self.activity,
            self.notification_service(), self.email
        )

    def asset_service(self) -> AssetService:
        return AssetService(
            self.assets, self.vaults, self.users, self.rbac, self.activity,
            self.notification_service(), self.storage
        )

    def annotation_service(self) -> AnnotationService:
        return AnnotationService(
            self.annotations, self.asset_service(), self.rbac, self.activity,
            self.notification_service()
        )

    # Seed data

    def add_user(self, email, full_name="Test User", **kwargs) -> Dict[str, Any]:
        return self.users.add(email, full_name, **kwargs)

    def add_organization(self, owner_id, name="Acme Holdings", slug="acme-holdings",
                         members: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """Organization owned by owner_id; members maps user_id to role."""
        organization = self.organizations.create({
            "organization_id": str(uuid.uuid4()),
            "name": name,
            "slug": slug,
            "status": "active",
            "settings": {},
            "created_by": owner_id,
        })
        self.organizations.add_member({"organization_id": organization["organization_id"],
                                       "user_id": owner_id, "role": "owner"})
        for user_id, role in (members or {}).items():
            self.organizations.add_member({"organization_id": organization["organization_id"],
                                           "user_id": user_id, "role": role})
        return organization

    def add_board(self, organization_id, name="Main Board",
                  members: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Board with members; values are a role or a (role, voting_rights) pair."""
        board = self.boards.create({
            "board_id": str(uuid.uuid4()),
            "organization_id": organization_id,
            "name": name,
            "board_type": "governance",
            "status": "active",
            "meeting_frequency": "quarterly",
        })
        for user_id, entry in (members or {}).items():
            role, voting = entry if isinstance(entry, tuple) else (entry, True)
            self.boards.add_member({"board_member_id": str(uuid.uuid4()), "board_id": board["board_id"],
                                    "user_id": user_id, "role": role, "voting_rights": voting})
        return board
