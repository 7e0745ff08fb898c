"""
HTML bodies for outgoing email.
Each builder returns a (subject, html) tuple; user-supplied text is escaped.
"""

from html import escape
from typing import Dict, Optional, Tuple

from boardguru.config import settings


def _layout(heading: str, body: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: #1e40af; color: white; padding: 20px; border-radius: 8px 8px 0 0; }}
        .content {{ background: #f9fafb; padding: 20px; border: 1px solid #e5e7eb; }}
        .button {{ color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block; }}
        .code {{ font-size: 32px; font-weight: 900; letter-spacing: 8px; font-family: 'Courier New', monospace; }}
        .footer {{ font-size: 12px; color: #666; padding: 10px; text-align: center; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h2 style="margin: 0;">{heading}</h2></div>
        <div class="content">{body}</div>
        <div class="footer"><p>This is an automated message from BoardGuru.</p></div>
    </div>
</body>
</html>
"""


def approval_urls(registration_id: str, token: str) -> Dict[str, str]:
    """Links embedded in the admin notification; the token is the credential."""
    base = settings.APP_URL.rstrip("/")
    return {
        "approve_url": f"{base}/api/v1/registrations/{registration_id}/approve?token={token}",
        "reject_url": f"{base}/api/v1/registrations/{registration_id}/reject?token={token}",
    }


def admin_registration_notice(registration: Dict, approve_url: str, reject_url: str) -> Tuple[str, str]:
    subject = f"New Registration Request - {registration['full_name']}"
    message = registration.get("message")
    body = f"""
        <p>A new user has requested access to BoardGuru.</p>
        <ul>
            <li><strong>Name:</strong> {escape(registration['full_name'])}</li>
            <li><strong>Email:</strong> {escape(registration['email'])}</li>
            <li><strong>Company:</strong> {escape(registration['company'])}</li>
            <li><strong>Position:</strong> {escape(registration['position'])}</li>
        </ul>
        {f"<p><strong>Message:</strong> {escape(message)}</p>" if message else ""}
        <p>
            <a class="button" style="background: #10b981;" href="{approve_url}">Approve</a>
            <a class="button" style="background: #ef4444;" href="{reject_url}">Reject</a>
        </p>
        <p>These links expire in {settings.APPROVAL_TOKEN_HOURS} hours.</p>
    """
    return subject, _layout("New Registration Request", body)


def registration_received(registration: Dict) -> Tuple[str, str]:
    body = f"""
        <p>Dear {escape(registration['full_name'])},</p>
        <p>We have received your request to join BoardGuru. An administrator will
        review it and you will hear from us by email.</p>
    """
    return "BoardGuru Registration Request Received", _layout("Request Received", body)


def registration_approved(registration: Dict, otp_code: Optional[str]) -> Tuple[str, str]:
    signin_url = f"{settings.APP_URL.rstrip('/')}/auth/signin"
    if otp_code:
        credentials = f"""
            <p>Use this one-time code to sign in for the first time:</p>
            <p class="code">{otp_code}</p>
            <p>The code expires in {settings.OTP_EXPIRATION_HOURS} hours. You will be asked
            to choose a password after signing in.</p>
        """
    else:
        credentials = "<p>Please contact your administrator to receive sign-in instructions.</p>"
    body = f"""
        <p>Dear {escape(registration['full_name'])},</p>
        <p>Your registration for <strong>{escape(registration['company'])}</strong> has been approved.</p>
        {credentials}
        <p><a class="button" style="background: #059669;" href="{signin_url}">Sign in to BoardGuru</a></p>
    """
    return "Your BoardGuru Registration Has Been Approved", _layout("Welcome to BoardGuru", body)


def registration_rejected(registration: Dict, reason: Optional[str]) -> Tuple[str, str]:
    body = f"""
        <p>Dear {escape(registration['full_name'])},</p>
        <p>Thank you for your interest in BoardGuru. We are unable to approve your
        registration at this time.</p>
        {f"<p><strong>Reason:</strong> {escape(reason)}</p>" if reason else ""}
    """
    return "BoardGuru Registration Update", _layout("Registration Update", body)


def invitation(kind: str, target_name: str, inviter_name: str, role: str, token: str,
               message: Optional[str] = None) -> Tuple[str, str]:
    """Invitation to an organization or a vault; `kind` is 'organization' or 'vault'."""
    accept_url = f"{settings.APP_URL.rstrip('/')}/invitations/{kind}/{token}"
    body = f"""
        <p>{escape(inviter_name)} has invited you to join the {kind}
        <strong>{escape(target_name)}</strong> as <strong>{escape(role)}</strong>.</p>
        {f"<p><em>{escape(message)}</em></p>" if message else ""}
        <p><a class="button" style="background: #1e40af;" href="{accept_url}">Accept invitation</a></p>
        <p>This invitation expires in {settings.INVITATION_EXPIRATION_DAYS} days.</p>
    """
    return f"You're invited to {target_name} on BoardGuru", _layout("Invitation", body)


def notification(title: str, message: Optional[str]) -> Tuple[str, str]:
    return title, _layout(escape(title), f"<p>{escape(message or '')}</p>")
