"""HTML bodies for transactional mail."""

from datetime import datetime, timezone
from html import escape

_STYLE = """
      body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; }
      .container { border: 1px solid #eee; border-radius: 10px; padding: 20px; }
      .header { text-align: center; margin-bottom: 20px; }
      .button { display: inline-block; background-color: #4F46E5; color: white; text-decoration: none; padding: 10px 20px; border-radius: 5px; font-weight: bold; }
      .footer { margin-top: 30px; font-size: 12px; color: #666; text-align: center; }
"""

VERIFICATION_SUBJECT = "Verify Your VoiceCanvas Account"
PASSWORD_RESET_SUBJECT = "Reset Your VoiceCanvas Password"


def _render(title: str, name: str | None, intro: str, link: str, button: str, notes: list[str]) -> str:
    safe_link = escape(link, quote=True)
    paragraphs = "\n".join(f"    <p>{escape(note)}</p>" for note in notes)
    year = datetime.now(timezone.utc).year
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{escape(title)}</title>
  <style>{_STYLE}  </style>
</head>
<body>
  <div class="container">
    <div class="header"><h1>{escape(title)}</h1></div>
    <p>Dear {escape(name or "User")},</p>
    <p>{escape(intro)}</p>
    <p style="text-align: center; margin: 30px 0;">
      <a href="{safe_link}" class="button">{escape(button)}</a>
    </p>
    <p>Or, you can copy and paste the following link into your browser:</p>
    <p style="word-break: break-all; color: #4F46E5;">{safe_link}</p>
{paragraphs}
    <div class="footer"><p>&copy; {year} VoiceCanvas. All rights reserved.</p></div>
  </div>
</body>
</html>
"""


def render_verification_email(verification_url: str, name: str | None = None) -> str:
    """Render the email-verification message body."""
    return _render(
        title="Verify Your Email Address",
        name=name,
        intro=(
            "Thank you for registering with VoiceCanvas. "
            "Please click the button below to verify your email address:"
        ),
        link=verification_url,
        button="Verify Email",
        notes=[
            "This link will expire in 24 hours.",
            "If you didn't request this verification, please ignore this email.",
        ],
    )


def render_password_reset_email(reset_url: str, name: str | None = None) -> str:
    """Render the password-reset message body."""
    return _render(
        title="Reset Your Password",
        name=name,
        intro=(
            "We received a request to reset your password. "
            "Click the button below to create a new password:"
        ),
        link=reset_url,
        button="Reset Password",
        notes=[
            "This link will expire in 1 hour for security reasons.",
            "If you did not request a password reset, please ignore this email.",
        ],
    )
