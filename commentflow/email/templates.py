"""Email templates for comment notifications.

Plain HTML layout kept compatible with common mail clients:
- Background: #FAFBFC
- Card: #FFFFFF
- Text: #1A1D23
- Muted: #8E959E
- Border: #E5E7EB
- Warning: #F59E0B
"""

import html
from datetime import UTC, datetime


# ==============================================================================
# Base Template
# ==============================================================================

BASE_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title} - {app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: #FAFBFC; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color: #FAFBFC;">
    <tr>
      <td align="center" style="padding: 40px 20px;">
        <table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background-color: #FFFFFF; border-radius: 12px; max-width: 600px;">
          <tr>
            <td style="padding: 32px 40px 24px; text-align: center; border-bottom: 1px solid #E5E7EB;">
              <h1 style="margin: 0; font-size: 24px; font-weight: 700; color: #1A1D23;">{app_name}</h1>
            </td>
          </tr>
          <tr>
            <td style="padding: 40px;">
              {content}
            </td>
          </tr>
          <tr>
            <td style="padding: 24px 40px; border-top: 1px solid #E5E7EB;">
              <p style="margin: 0; font-size: 12px; color: #8E959E; text-align: center;">
                &copy; {year} {app_name}. This email was sent automatically, please do not reply.
              </p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def _wrap(title: str, content: str, app_name: str) -> str:
    return BASE_TEMPLATE.format(
        title=html.escape(title),
        content=content,
        app_name=html.escape(app_name),
        year=datetime.now(UTC).year,
    )


# ==============================================================================
# Template: Abuse Report
# ==============================================================================

ABUSE_REPORT_SUBJECT = "New abuse report on comment"

ABUSE_REPORT_CONTENT = """
<h2 style="margin: 0 0 16px; font-size: 20px; font-weight: 600; color: #1A1D23;">
  There was a new abuse report on your app.
</h2>

<div style="background-color: #FEF3C7; border-left: 4px solid #F59E0B; padding: 12px 16px; margin: 24px 0;">
  <p style="margin: 0 0 8px; font-size: 14px; color: #92400E;"><strong>Reason:</strong> {reason}</p>
  <p style="margin: 0; font-size: 14px; color: #92400E;"><strong>Message:</strong> {content}</p>
</div>
"""


def render_abuse_report(
    reason: str, content: str, app_name: str = "Commentflow"
) -> tuple[str, str]:
    """Render the moderator abuse report email.

    Returns:
        Tuple of (html_content, text_content)
    """
    body = ABUSE_REPORT_CONTENT.format(
        reason=html.escape(reason),
        content=html.escape(content),
    )
    text = (
        "There was a new abuse report on your app.\n"
        f"Reason: {reason}\n"
        f"Message: {content}\n"
    )
    return _wrap(ABUSE_REPORT_SUBJECT, body, app_name), text


# ==============================================================================
# Template: Reply Notification
# ==============================================================================

REPLY_NOTIFICATION_CONTENT = """
<h2 style="margin: 0 0 16px; font-size: 20px; font-weight: 600; color: #1A1D23;">
  Hi {recipient_name},
</h2>

<p style="margin: 0 0 24px; font-size: 16px; color: #4B5563; line-height: 1.6;">
  <strong>{replier_name}</strong> replied to your comment:
</p>

<blockquote style="margin: 0 0 24px; padding: 12px 16px; border-left: 4px solid #E5E7EB; color: #1A1D23;">
  {reply}
</blockquote>
"""


def reply_notification_subject(replier_name: str) -> str:
    return f"{replier_name} replied to your comment"


def render_reply_notification(
    recipient_name: str,
    replier_name: str,
    reply: str,
    app_name: str = "Commentflow",
) -> tuple[str, str]:
    """Render the reply notification email.

    ``reply`` is already sanitized comment content and is embedded as is in
    the HTML part.

    Returns:
        Tuple of (html_content, text_content)
    """
    body = REPLY_NOTIFICATION_CONTENT.format(
        recipient_name=html.escape(recipient_name),
        replier_name=html.escape(replier_name),
        reply=reply,
    )
    text = f"Hi {recipient_name},\n\n{replier_name} replied to your comment:\n\n{reply}\n"
    return _wrap(reply_notification_subject(replier_name), body, app_name), text
