"""
Email templates for account notifications.
"""
from dataclasses import dataclass
from datetime import datetime

from .base import Notification, NotificationKind


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


_STYLE = """
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background: {color}; color: white; padding: 20px; text-align: center; }}
            .content {{ padding: 30px; background: #f9f9f9; }}
            .button {{ display: inline-block; padding: 12px 30px; background: {color};
                      color: white; text-decoration: none; border-radius: 5px; margin: 20px 0; }}
            .footer {{ text-align: center; padding: 20px; color: #666; font-size: 12px; }}
"""


def _page(app_name: str, color: str, title: str, body: str) -> str:
    return f"""
    <html>
        <head>
            <title>{app_name} - {title}</title>
            <style>{_STYLE.format(color=color)}</style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{title}</h1>
                </div>
                <div class="content">
                    {body}
                </div>
                <div class="footer">
                    &copy; {datetime.now().year} {app_name}. All rights reserved.
                    <p>This is an automated email, please do not reply.</p>
                </div>
            </div>
        </body>
    </html>
    """


def render_verification(notification: Notification, app_name: str) -> RenderedEmail:
    ctx = notification.context
    name = f"{ctx.get('first_name', '')} {ctx.get('last_name', '')}".strip()
    link = notification.link
    body = f"""
                    <h2>Hello {name},</h2>
                    <p>Thank you for registering with {app_name}! We're excited to have you as a {ctx.get('role', 'member')}.</p>
                    <p>Please verify your email address by clicking the button below:</p>
                    <p style="text-align: center;">
                        <a href="{link}" class="button">Verify Email Address</a>
                    </p>
                    <p>Or copy and paste this link into your browser:</p>
                    <p style="word-break: break-all;">{link}</p>
                    <p><strong>This link will expire in {ctx.get('expires_in_hours', 24)} hours.</strong></p>
                    <p>If you didn't create an account with {app_name}, please ignore this email.</p>
    """
    text = (
        f"Hello {name},\n\n"
        f"Thank you for registering with {app_name}!\n\n"
        f"Please verify your email address by visiting this link:\n{link}\n\n"
        f"This link will expire in {ctx.get('expires_in_hours', 24)} hours.\n\n"
        f"If you didn't create an account with {app_name}, please ignore this email.\n"
    )
    return RenderedEmail(
        subject=f"Verify Your Email - {app_name}",
        html=_page(app_name, "#4F46E5", f"Welcome to {app_name}!", body),
        text=text,
    )


def render_welcome(notification: Notification, app_name: str) -> RenderedEmail:
    ctx = notification.context
    link = notification.link
    body = f"""
                    <h2>Welcome aboard, {ctx.get('first_name', '')}!</h2>
                    <p>Your email has been verified successfully. You now have full access to your {app_name} account.</p>
                    <p style="text-align: center;">
                        <a href="{link}" class="button">Go to Dashboard</a>
                    </p>
                    <p>Start exploring the platform and make the most of your {ctx.get('role', 'member')} account!</p>
    """
    text = (
        f"Welcome aboard, {ctx.get('first_name', '')}!\n\n"
        f"Your email has been verified successfully.\n"
        f"Go to your dashboard: {link}\n"
    )
    return RenderedEmail(
        subject=f"Welcome to {app_name} - Email Verified!",
        html=_page(app_name, "#10B981", "Email Verified Successfully!", body),
        text=text,
    )


RENDERERS = {
    NotificationKind.VERIFICATION: render_verification,
    NotificationKind.WELCOME: render_welcome,
}


def render(notification: Notification, app_name: str) -> RenderedEmail:
    return RENDERERS[notification.kind](notification, app_name)
