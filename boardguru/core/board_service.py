"""
Board Service.
Boards within an organization, their members and governance analytics.
"""

from typing import Any, Dict, List, Optional
import uuid
import logging

from boardguru.core.exceptions import (
    ConflictException,
    NotFoundException,
    ValidationException
)
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.repositories.board_repository import BoardRepository
from boardguru.repositories.meeting_repository import MeetingRepository

logger = logging.getLogger(__name__)

BOARD_TYPES = ("executive", "advisory", "committee", "governance")
BOARD_STATUSES = ("active", "inactive", "dissolved")
MEETING_FREQUENCIES = ("weekly", "monthly", "quarterly", "annually", "as_needed")
BOARD_ROLES = ("chair", "vice_chair", "secretary", "treasurer", "member", "advisor")
# Roles mirrored onto the board row
OFFICER_COLUMNS = {"chair": "chair_id", "secretary": "secretary_id"}


class BoardService:
    """Boards and board membership."""

    def __init__(
        self,
        board_repo: BoardRepository,
        meeting_repo: MeetingRepository,
        rbac: RBACService,
        activity: ActivityLogger
    ):
        self.board_repo = board_repo
        self.meeting_repo = meeting_repo
        self.rbac = rbac
        self.activity = activity

    @staticmethod
    def _validate(fields: Dict[str, Any]) -> None:
        if "name" in fields and not (fields["name"] or "").strip():
            raise ValidationException("Board name is required")
        if fields.get("board_type") and fields["board_type"] not in BOARD_TYPES:
            raise ValidationException(f"Invalid board type: {fields['board_type']}")
        if fields.get("status") and fields["status"] not in BOARD_STATUSES:
            raise ValidationException(f"Invalid board status: {fields['status']}")
        if fields.get("meeting_frequency") and fields["meeting_frequency"] not in MEETING_FREQUENCIES:
            raise ValidationException(f"Invalid meeting frequency: {fields['meeting_frequency']}")

    def create_board(self, organization_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self.rbac.require_role(organization_id, user_id, "admin")
        self._validate(data)

        name = data["name"].strip()
        if self.board_repo.get_by_name(organization_id, name):
            raise ConflictException(f"A board named '{name}' already exists in this organization")

        board = self.board_repo.create({
            "board_id": str(uuid.uuid4()),
            "organization_id": organization_id,
            "name": name,
            "description": data.get("description"),
            "board_type": data.get("board_type") or "governance",
            "status": "active",
            "meeting_frequency": data.get("meeting_frequency") or "quarterly",
            "created_by": user_id,
        })
        self.activity.record(
            user_id, "board.created", "board", board["board_id"],
            organization_id=organization_id, details={"name": name}
        )
        logger.info(f"Board created: {name} in organization {organization_id}")
        return board

    def list_boards(self, organization_id: str, user_id: str, status: Optional[str] = None) -> List[Dict[str, Any]]:
        self.rbac.require_role(organization_id, user_id)
        return self.board_repo.list_by_organization(organization_id, status)

    def get_board(self, board_id: str, user_id: str) -> Dict[str, Any]:
        board = self.get_board_for_member(board_id, user_id)
        return {**board, "members": self.board_repo.list_members(board_id)}

    def get_board_for_member(self, board_id: str, user_id: str, min_role: str = "guest") -> Dict[str, Any]:
        """Load a board and check the caller's organization role."""
        board = self.board_repo.get_by_id(board_id)
        if not board:
            raise NotFoundException("Board", board_id)
        self.rbac.require_role(board["organization_id"], user_id, min_role)
        return board

    def update_board(self, board_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        board = self.get_board_for_member(board_id, user_id, "admin")
        fields = {
            k: data[k] for k in ("name", "description", "board_type", "status", "meeting_frequency")
            if data.get(k) is not None
        }
        self._validate(fields)
        if "name" in fields:
            fields["name"] = fields["name"].strip()
            existing = self.board_repo.get_by_name(board["organization_id"], fields["name"])
            if existing and existing["board_id"] != board_id:
                raise ConflictException(f"A board named '{fields['name']}' already exists in this organization")

        updated = self.board_repo.update(board_id, fields)
        self.activity.record(
            user_id, "board.updated", "board", board_id,
            organization_id=board["organization_id"], details={"fields": sorted(fields)}
        )
        return updated

    def add_member(self, board_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Appoint an organization member to the board.

        Raises:
            ValidationException: Unknown role, or target is not an active organization member
            ConflictException: Target is already an active board member
        """
        board = self.get_board_for_member(board_id, user_id, "admin")
        member_user_id = data["user_id"]
        role = data.get("role") or "member"
        if role not in BOARD_ROLES:
            raise ValidationException(f"Invalid board role: {role}")

        if not self.rbac.get_membership(board["organization_id"], member_user_id):
            raise ValidationException("User must be an active member of the organization")

        existing = self.board_repo.get_member(board_id, member_user_id)
        if existing and existing["status"] == "active":
            raise ConflictException("User is already a member of this board")

        member = self.board_repo.add_member({
            "board_member_id": existing["board_member_id"] if existing else str(uuid.uuid4()),
            "board_id": board_id,
            "user_id": member_user_id,
            "role": role,
            "voting_rights": data.get("voting_rights", role != "advisor"),
            "term_start": data.get("term_start"),
            "term_end": data.get("term_end"),
        })

        if role in OFFICER_COLUMNS:
            self.board_repo.update(board_id, {OFFICER_COLUMNS[role]: member_user_id})

        self.activity.record(
            user_id, "board.member_added", "board", board_id,
            organization_id=board["organization_id"],
            details={"user_id": member_user_id, "role": role}
        )
        return member

    def remove_member(self, board_id: str, user_id: str, member_user_id: str) -> Dict[str, Any]:
        board = self.get_board_for_member(board_id, user_id, "admin")
        member = self.board_repo.get_member(board_id, member_user_id)
        if not member or member["status"] != "active":
            raise NotFoundException("Board member", member_user_id)

        updated = self.board_repo.update_member(member["board_member_id"], {"status": "resigned"})
        officer_column = OFFICER_COLUMNS.get(member["role"])
        if officer_column and board.get(officer_column) == member_user_id:
            self.board_repo.update(board_id, {officer_column: None})

        self.activity.record(
            user_id, "board.member_removed", "board", board_id,
            organization_id=board["organization_id"], details={"user_id": member_user_id}
        )
        return updated

    def get_analytics(self, board_id: str, user_id: str) -> Dict[str, Any]:
        """Meeting, resolution, attendance and voting statistics for one board."""
        board = self.get_board_for_member(board_id, user_id)
        members = self.board_repo.list_members(board_id)
        meetings = self.meeting_repo.list_by_board(board_id)

        meetings_by_status: Dict[str, int] = {}
        for meeting in meetings:
            meetings_by_status[meeting["status"]] = meetings_by_status.get(meeting["status"], 0) + 1

        completed = [m for m in meetings if m["status"] == "completed"]
        attendance_by_user: Dict[str, int] = {}
        attendance_rates = []
        for meeting in completed:
            present = [
                a for a in self.meeting_repo.list_attendance(meeting["meeting_id"])
                if a["status"] in ("present", "proxy")
            ]
            for record in present:
                attendance_by_user[record["user_id"]] = attendance_by_user.get(record["user_id"], 0) + 1
            if members:
                attendance_rates.append(len(present) / len(members))

        resolutions = []
        for meeting in meetings:
            resolutions.extend(self.meeting_repo.list_resolutions(meeting["meeting_id"]))
        votes_by_user: Dict[str, int] = {}
        decided = [r for r in resolutions if r["status"] in ("passed", "failed")]
        for resolution in decided:
            for vote in self.meeting_repo.list_votes(resolution["resolution_id"]):
                votes_by_user[vote["user_id"]] = votes_by_user.get(vote["user_id"], 0) + 1

        member_stats = []
        for member in members:
            member_stats.append({
                "user_id": member["user_id"],
                "full_name": member.get("full_name"),
                "role": member["role"],
                "attendance_rate": round(attendance_by_user.get(member["user_id"], 0) / len(completed), 2)
                if completed else None,
                "voting_participation": round(votes_by_user.get(member["user_id"], 0) / len(decided), 2)
                if decided and member.get("voting_rights") else None,
            })

        return {
            "board_id": board_id,
            "board_name": board["name"],
            "member_count": len(members),
            "meetings": {
                "total": len(meetings),
                "by_status": meetings_by_status,
            },
            "resolutions": {
                "total": len(resolutions),
                "passed": sum(1 for r in resolutions if r["status"] == "passed"),
                "failed": sum(1 for r in resolutions if r["status"] == "failed"),
                "pending": sum(1 for r in resolutions if r["status"] == "proposed"),
            },
            "average_attendance_rate": round(sum(attendance_rates) / len(attendance_rates), 2)
            if attendance_rates else None,
            "members": member_stats,
        }
