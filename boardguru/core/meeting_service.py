"""
Meeting Service.
Scheduling, agenda, attendance, resolutions and board voting.
"""

from typing import Any, Dict, Optional
import uuid
import logging

from boardguru.core.exceptions import (
    AuthorizationException,
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException
)
from boardguru.core.notification_service import NotificationService
from boardguru.core.rbac_service import ActivityLogger, RBACService
from boardguru.core.time_utils import parse_timestamp, utc_now, utc_now_iso
from boardguru.repositories.board_repository import BoardRepository
from boardguru.repositories.meeting_repository import MeetingRepository
from boardguru.repositories.organization_repository import OrganizationRepository

logger = logging.getLogger(__name__)

MEETING_TYPES = ("regular", "special", "emergency", "annual")
STATUS_TRANSITIONS = {
    "scheduled": {"in_progress", "cancelled", "postponed"},
    "postponed": {"scheduled", "cancelled"},
    "in_progress": {"completed"},
}
ATTENDANCE_STATUSES = ("present", "absent", "excused", "proxy")
RESOLUTION_TYPES = ("ordinary", "special", "unanimous")
VOTES = ("for", "against", "abstain")
CLOSED_MEETING_STATUSES = ("cancelled", "completed")


def decide_resolution(resolution_type: str, votes_for: int, votes_against: int,
                      votes_abstain: int, eligible: int) -> str:
    """
    Outcome once every eligible member has voted.

    unanimous: every eligible member voted for.
    special: for-votes reach 75% of eligible members.
    ordinary: more for than against.
    """
    if resolution_type == "unanimous":
        passed = eligible > 0 and votes_for == eligible and votes_against == 0 and votes_abstain == 0
    elif resolution_type == "special":
        passed = eligible > 0 and votes_for * 4 >= eligible * 3
    else:
        passed = votes_for > votes_against
    return "passed" if passed else "failed"


class MeetingService:
    """Meetings for boards and organizations."""

    def __init__(
        self,
        meeting_repo: MeetingRepository,
        board_repo: BoardRepository,
        organization_repo: OrganizationRepository,
        rbac: RBACService,
        activity: ActivityLogger,
        notifications: NotificationService
    ):
        self.meeting_repo = meeting_repo
        self.board_repo = board_repo
        self.organization_repo = organization_repo
        self.rbac = rbac
        self.activity = activity
        self.notifications = notifications

    # Meetings

    def schedule_meeting(self, organization_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Schedule a meeting, optionally for a board, with its agenda.

        Board members (or, for organization-wide meetings, all active members)
        get an in-app invitation.
        """
        self.rbac.require_role(organization_id, user_id, "member")

        board = None
        if data.get("board_id"):
            board = self.board_repo.get_by_id(data["board_id"])
            if not board or board["organization_id"] != organization_id:
                raise NotFoundException("Board", data["board_id"])
            if board["status"] != "active":
                raise BusinessRuleException("Meetings can only be scheduled for active boards")

        title = (data.get("title") or "").strip()
        if not title:
            raise ValidationException("Meeting title is required")
        meeting_type = data.get("meeting_type") or "regular"
        if meeting_type not in MEETING_TYPES:
            raise ValidationException(f"Invalid meeting type: {meeting_type}")

        start = parse_timestamp(data["scheduled_start"])
        end = parse_timestamp(data.get("scheduled_end"))
        if end is not None and end <= start:
            raise ValidationException("Meeting end must be after its start")

        # Agenda is validated before anything is written
        meeting_id = str(uuid.uuid4())
        agenda_rows = [
            self._agenda_row(meeting_id, position, item)
            for position, item in enumerate(data.get("agenda_items") or [], start=1)
        ]

        meeting = self.meeting_repo.create({
            "meeting_id": meeting_id,
            "organization_id": organization_id,
            "board_id": board["board_id"] if board else None,
            "title": title,
            "description": data.get("description"),
            "meeting_type": meeting_type,
            "status": "scheduled",
            "scheduled_start": start.isoformat(),
            "scheduled_end": end.isoformat() if end else None,
            "location": data.get("location"),
            "virtual_meeting_url": data.get("virtual_meeting_url"),
            "created_by": user_id,
        })

        agenda = [self.meeting_repo.add_agenda_item(row) for row in agenda_rows]

        if board:
            self._update_next_meeting_date(board, start)
            recipients = [m["user_id"] for m in self.board_repo.list_members(board["board_id"])]
            notification_type = "board_meeting_invitation"
        else:
            recipients = [m["user_id"] for m in self.organization_repo.list_members(organization_id, status="active")]
            notification_type = "meeting_scheduled"

        notified = self.notifications.notify_users(
            recipients, notification_type,
            f"Meeting scheduled: {title}",
            f"{title} is scheduled for {start.strftime('%Y-%m-%d %H:%M UTC')}",
            organization_id=organization_id,
            metadata={"meeting_id": meeting["meeting_id"], "board_id": meeting["board_id"]},
            exclude_user_id=user_id
        )

        self.activity.record(
            user_id, "meeting.scheduled", "meeting", meeting["meeting_id"],
            organization_id=organization_id, details={"title": title, "notified": notified}
        )
        logger.info(f"Meeting scheduled: {title} ({meeting['meeting_id']}), {notified} notified")
        return {**meeting, "agenda_items": agenda}

    def get_meeting(self, meeting_id: str, user_id: str) -> Dict[str, Any]:
        meeting = self._get_for_member(meeting_id, user_id)
        return {
            **meeting,
            "agenda_items": self.meeting_repo.list_agenda_items(meeting_id),
            "attendance": self.meeting_repo.list_attendance(meeting_id),
            "resolutions": self.meeting_repo.list_resolutions(meeting_id),
        }

    def list_meetings(
        self,
        organization_id: str,
        user_id: str,
        board_id: Optional[str] = None,
        status: Optional[str] = None,
        upcoming_only: bool = False,
        page: int = 1,
        page_size: int = 20
    ) -> Dict[str, Any]:
        self.rbac.require_role(organization_id, user_id)
        items, total = self.meeting_repo.list_meetings(
            organization_id,
            board_id=board_id,
            status=status,
            starts_after=utc_now_iso() if upcoming_only else None,
            limit=page_size,
            offset=(page - 1) * page_size
        )
        return {"items": items, "total": total}

    def update_status(self, meeting_id: str, user_id: str, new_status: str,
                      minutes: Optional[str] = None) -> Dict[str, Any]:
        meeting = self._get_for_member(meeting_id, user_id, "member")
        current = meeting["status"]
        if new_status not in STATUS_TRANSITIONS.get(current, set()):
            raise BusinessRuleException(f"Cannot change meeting status from {current} to {new_status}")

        fields: Dict[str, Any] = {"status": new_status}
        if new_status == "completed" and minutes is not None:
            fields["minutes"] = minutes
        updated = self.meeting_repo.update(meeting_id, fields)

        self.activity.record(
            user_id, f"meeting.{new_status}", "meeting", meeting_id,
            organization_id=meeting["organization_id"], details={"from": current}
        )
        return updated

    def cancel_meeting(self, meeting_id: str, user_id: str) -> Dict[str, Any]:
        return self.update_status(meeting_id, user_id, "cancelled")

    def add_agenda_item(self, meeting_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        meeting = self._get_for_member(meeting_id, user_id, "member")
        self._require_open(meeting)
        position = len(self.meeting_repo.list_agenda_items(meeting_id)) + 1
        return self.meeting_repo.add_agenda_item(self._agenda_row(meeting_id, position, data))

    def record_attendance(self, meeting_id: str, user_id: str, attendee_id: str, status: str,
                          proxy_holder_id: Optional[str] = None) -> Dict[str, Any]:
        meeting = self._get_for_member(meeting_id, user_id, "member")
        if meeting["status"] == "cancelled":
            raise BusinessRuleException("Attendance cannot be recorded for a cancelled meeting")
        if status not in ATTENDANCE_STATUSES:
            raise ValidationException(f"Invalid attendance status: {status}")
        if status == "proxy" and not proxy_holder_id:
            raise ValidationException("A proxy holder is required for proxy attendance")
        if not self.rbac.get_membership(meeting["organization_id"], attendee_id):
            raise ValidationException("Attendee must be an active member of the organization")

        return self.meeting_repo.upsert_attendance({
            "meeting_id": meeting_id,
            "user_id": attendee_id,
            "status": status,
            "proxy_holder_id": proxy_holder_id if status == "proxy" else None,
        })

    # Resolutions

    def propose_resolution(self, meeting_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        meeting = self._get_for_member(meeting_id, user_id, "member")
        self._require_open(meeting)

        resolution_type = data.get("resolution_type") or "ordinary"
        if resolution_type not in RESOLUTION_TYPES:
            raise ValidationException(f"Invalid resolution type: {resolution_type}")
        if not (data.get("title") or "").strip() or not (data.get("resolution_text") or "").strip():
            raise ValidationException("Resolution title and text are required")

        resolution = self.meeting_repo.create_resolution({
            "resolution_id": str(uuid.uuid4()),
            "meeting_id": meeting_id,
            "title": data["title"].strip(),
            "resolution_text": data["resolution_text"].strip(),
            "resolution_type": resolution_type,
            "status": "proposed",
            "motion_by": user_id,
            "seconded_by": data.get("seconded_by"),
        })
        self.activity.record(
            user_id, "resolution.proposed", "resolution", resolution["resolution_id"],
            organization_id=meeting["organization_id"], details={"meeting_id": meeting_id}
        )
        return resolution

    def cast_vote(self, resolution_id: str, user_id: str, vote: str,
                  notes: Optional[str] = None) -> Dict[str, Any]:
        """
        Record a board member's vote. When the last eligible member votes the
        resolution is decided (see decide_resolution).

        Raises:
            AuthorizationException: Caller has no voting rights on the board
            ConflictException: Caller already voted
            BusinessRuleException: Resolution is not open for voting
        """
        if vote not in VOTES:
            raise ValidationException(f"Invalid vote: {vote}")

        resolution = self.meeting_repo.get_resolution(resolution_id)
        if not resolution:
            raise NotFoundException("Resolution", resolution_id)
        meeting = self._get_for_member(resolution["meeting_id"], user_id)
        if resolution["status"] != "proposed":
            raise BusinessRuleException("Voting is closed for this resolution")
        if not meeting.get("board_id"):
            raise BusinessRuleException("Only board meeting resolutions can be voted on")

        board_member = self.board_repo.get_member(meeting["board_id"], user_id)
        if not board_member or board_member["status"] != "active" or not board_member.get("voting_rights"):
            raise AuthorizationException("User does not have voting rights on this board")
        if self.meeting_repo.get_vote(resolution_id, user_id):
            raise ConflictException("User has already voted on this resolution")

        recorded = self.meeting_repo.add_vote({
            "vote_id": str(uuid.uuid4()),
            "resolution_id": resolution_id,
            "user_id": user_id,
            "vote": vote,
            "notes": notes,
        })

        # Votes from members who have since left the board do not count
        eligible_ids = {
            m["user_id"] for m in self.board_repo.list_members(meeting["board_id"])
            if m.get("voting_rights")
        }
        votes = [v for v in self.meeting_repo.list_votes(resolution_id) if v["user_id"] in eligible_ids]
        counts = {v: sum(1 for r in votes if r["vote"] == v) for v in VOTES}
        fields: Dict[str, Any] = {
            "votes_for": counts["for"],
            "votes_against": counts["against"],
            "votes_abstain": counts["abstain"],
        }

        if eligible_ids <= {v["user_id"] for v in votes}:
            outcome = decide_resolution(
                resolution["resolution_type"], counts["for"], counts["against"],
                counts["abstain"], len(eligible_ids)
            )
            now = utc_now_iso()
            fields["status"] = outcome
            fields["voted_at"] = now
            if outcome == "passed":
                fields["effective_date"] = now
            logger.info(f"Resolution {resolution_id} {outcome}: {counts} of {len(eligible_ids)} eligible")

        updated = self.meeting_repo.update_resolution(resolution_id, fields)
        self.activity.record(
            user_id, "resolution.vote_cast", "resolution", resolution_id,
            organization_id=meeting["organization_id"], details={"vote": vote}
        )
        return {"vote": recorded, "resolution": updated}

    def withdraw_resolution(self, resolution_id: str, user_id: str) -> Dict[str, Any]:
        resolution = self.meeting_repo.get_resolution(resolution_id)
        if not resolution:
            raise NotFoundException("Resolution", resolution_id)
        meeting = self._get_for_member(resolution["meeting_id"], user_id)
        if resolution["status"] != "proposed":
            raise BusinessRuleException("Only proposed resolutions can be withdrawn")
        if resolution.get("motion_by") != user_id:
            self.rbac.require_role(meeting["organization_id"], user_id, "admin")
        return self.meeting_repo.update_resolution(resolution_id, {"status": "withdrawn"})

    # Helpers

    def _get_for_member(self, meeting_id: str, user_id: str, min_role: str = "guest") -> Dict[str, Any]:
        meeting = self.meeting_repo.get_by_id(meeting_id)
        if not meeting:
            raise NotFoundException("Meeting", meeting_id)
        self.rbac.require_role(meeting["organization_id"], user_id, min_role)
        return meeting

    @staticmethod
    def _require_open(meeting: Dict[str, Any]) -> None:
        if meeting["status"] in CLOSED_MEETING_STATUSES:
            raise BusinessRuleException(f"Meeting is {meeting['status']}")

    @staticmethod
    def _agenda_row(meeting_id: str, position: int, item: Dict[str, Any]) -> Dict[str, Any]:
        if not (item.get("title") or "").strip():
            raise ValidationException("Agenda item title is required")
        return {
            "item_id": str(uuid.uuid4()),
            "meeting_id": meeting_id,
            "position": position,
            "title": item["title"].strip(),
            "description": item.get("description"),
            "item_type": item.get("item_type") or "discussion",
            "duration_minutes": item.get("duration_minutes"),
            "presenter_id": item.get("presenter_id"),
        }

    def _update_next_meeting_date(self, board: Dict[str, Any], start) -> None:
        current = parse_timestamp(board.get("next_meeting_date"))
        if start > utc_now() and (current is None or current < utc_now() or start < current):
            self.board_repo.update(board["board_id"], {"next_meeting_date": start.isoformat()})
