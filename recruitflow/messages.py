from html import escape
from urllib.parse import urlencode

from recruitflow.mailer import EmailMessage

INVITATION_SUBJECT = "[Invitation] You're invited to the job application system"
REGISTRATION_PATH = "/auth/register"


def build_registration_url(base_url: str, invitation_id: str, company_id: str) -> str:
    query = urlencode({"invitation": invitation_id, "company_id": company_id})
    return f"{base_url.rstrip('/')}{REGISTRATION_PATH}?{query}"


def render_invitation_email(to: str, registration_url: str, ttl_hours: int) -> EmailMessage:
    link = escape(registration_url, quote=True)
    html = f"""
<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
    <h1 style="color: #4F46E5;">You're invited to the job application system</h1>
    <p>Complete your registration using the link below:</p>
    <a href="{link}"
       style="display: inline-block; padding: 12px 24px; background-color: #4F46E5; color: white; text-decoration: none; border-radius: 6px; margin: 20px 0;">
        Go to registration
    </a>
    <p style="color: #666; font-size: 14px;">
        This link is valid for {ttl_hours} hours.<br>
        If you were not expecting this email, you can ignore it.
    </p>
</div>
"""
    return EmailMessage(to=to, subject=INVITATION_SUBJECT, html=html)
