# =============================================================================
# core/services/email_service.py - Transactional Email
# =============================================================================
# Renders Jinja2 templates from core/templates/email (an HTML part and a
# plain-text part per message) and sends them over SMTP.
#
# Sending never raises to callers: every send returns an EmailResult, and
# failures are logged. When SMTP is not configured the message is logged
# and reported as not sent, so local development works without a mail
# server.
#
# Usage:
#   from core.services.email_service import EmailService
#   result = EmailService.send_welcome_email("ada@example.com", "Ada", "Acme LLC")
#   if not result.success:
#       logger.warning(result.error)
# =============================================================================

import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel

from app.config import settings
from lib.utils import utc_now

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


class EmailResult(BaseModel):
    success: bool
    message_id: str | None = None
    error: str | None = None


def render_email(template: str, **context: Any) -> tuple[str, str]:
    """
    Render the HTML and text parts of a template pair.

    Args:
        template: Base name, e.g. "welcome" renders welcome.html and welcome.txt
        **context: Template variables (app_url and year are always provided)

    Returns:
        (html, text)
    """
    context.setdefault("app_url", settings.APP_URL.rstrip("/"))
    context.setdefault("year", utc_now().year)
    html = _environment.get_template(f"{template}.html").render(**context)
    text = _environment.get_template(f"{template}.txt").render(**context)
    return html, text


def _first_name(name: str | None) -> str:
    return (name or "").strip().split(" ")[0] or "there"


class EmailService:
    """Builds and sends every email the platform sends."""

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    @staticmethod
    def send_email(
        to: str | list[str],
        subject: str,
        html: str,
        text: str | None = None,
        sender: str | None = None,
    ) -> EmailResult:
        """
        Send one message via SMTP.

        Port 465 uses implicit TLS; any other port upgrades with STARTTLS
        when SMTP_USE_TLS is set.
        """
        recipients = [to] if isinstance(to, str) else list(to)
        if not recipients:
            return EmailResult(success=False, error="No recipients")

        if not settings.smtp_enabled:
            logger.info(f"SMTP not configured; not sending '{subject}' to {', '.join(recipients)}")
            return EmailResult(success=False, error="SMTP is not configured")

        # Titles from opportunity data can carry line breaks; headers cannot
        subject = " ".join(subject.split())

        try:
            message = EmailMessage()
            message["From"] = sender or settings.EMAIL_FROM
            message["To"] = ", ".join(recipients)
            message["Subject"] = subject
            message_id = make_msgid(domain="govcontractai.com")
            message["Message-ID"] = message_id
            message.set_content(text or "")
            message.add_alternative(html, subtype="html")
        except ValueError as e:
            logger.error(f"Could not build message '{subject}': {e}")
            return EmailResult(success=False, error=f"Invalid email headers: {e}")

        try:
            if settings.SMTP_PORT == 465:
                with smtplib.SMTP_SSL(
                    settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
                ) as server:
                    server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                    server.send_message(message)
            else:
                with smtplib.SMTP(
                    settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT_SECONDS
                ) as server:
                    if settings.SMTP_USE_TLS:
                        server.starttls()
                    server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
                    server.send_message(message)
        except smtplib.SMTPAuthenticationError:
            logger.exception(f"SMTP authentication failed for {settings.SMTP_USERNAME}")
            return EmailResult(success=False, error="SMTP authentication failed")
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}': {e}")
            return EmailResult(success=False, error=f"Failed to send email: {e}")

        logger.info(f"Sent '{subject}' to {', '.join(recipients)}")
        return EmailResult(success=True, message_id=message_id)

    @staticmethod
    def _send_template(to: str | list[str], subject: str, template: str, **context: Any) -> EmailResult:
        html, text = render_email(template, **context)
        return EmailService.send_email(to, subject, html, text)

    # -------------------------------------------------------------------------
    # Account Emails
    # -------------------------------------------------------------------------

    @staticmethod
    def send_welcome_email(email: str, full_name: str | None, company_name: str) -> EmailResult:
        return EmailService._send_template(
            email,
            "Welcome to GovContractAI!",
            "welcome",
            first_name=_first_name(full_name),
            company_name=company_name,
        )

    @staticmethod
    def send_password_reset(email: str, reset_url: str) -> EmailResult:
        return EmailService._send_template(
            email, "Reset Your GovContractAI Password", "password_reset", reset_url=reset_url
        )

    @staticmethod
    def send_team_invitation(
        email: str,
        inviter_name: str,
        company_name: str,
        role: str,
        invite_url: str,
    ) -> EmailResult:
        return EmailService._send_template(
            email,
            f"You're invited to join {company_name} on GovContractAI",
            "team_invitation",
            inviter_name=inviter_name,
            company_name=company_name,
            role_label=role.replace("_", " "),
            invite_url=invite_url,
        )

    # -------------------------------------------------------------------------
    # Opportunity & Application Emails
    # -------------------------------------------------------------------------

    @staticmethod
    def send_opportunity_alert(
        email: str,
        full_name: str | None,
        opportunities: list[dict[str, Any]],
    ) -> EmailResult:
        """
        Alert a user about matching opportunities.

        Each opportunity dict needs title, agency, deadline, match_score
        and optionally url.
        """
        return EmailService._send_template(
            email,
            f"{len(opportunities)} New Contract Opportunities Found",
            "opportunity_alert",
            first_name=_first_name(full_name),
            opportunities=opportunities,
        )

    @staticmethod
    def send_application_status_update(
        email: str,
        full_name: str | None,
        application_title: str,
        status: str,
        details: str | None = None,
    ) -> EmailResult:
        return EmailService._send_template(
            email,
            f"Application Update: {application_title}",
            "application_status",
            first_name=_first_name(full_name),
            application_title=application_title,
            status_label=status.replace("_", " ").title(),
            details=details,
        )

    @staticmethod
    def send_opportunities_ready(
        email: str,
        full_name: str | None,
        company_name: str,
        opportunities: list[dict[str, Any]],
    ) -> EmailResult:
        return EmailService._send_template(
            email,
            f"We Found {len(opportunities)} Opportunities for {company_name}!",
            "opportunities_ready",
            first_name=_first_name(full_name),
            company_name=company_name,
            opportunities=opportunities,
        )

    @staticmethod
    def send_admin_opportunity_request(
        request_id: str,
        company_name: str,
        industry: str,
        location: str,
        business_type: str,
        naics_codes: list[str],
    ) -> EmailResult:
        """Notify the admin inbox (ADMIN_NOTIFICATION_EMAIL) about a new request."""
        recipient = settings.admin_notification_email
        if not recipient:
            logger.warning("No admin notification address configured; skipping request email")
            return EmailResult(success=False, error="No admin notification address configured")

        return EmailService._send_template(
            recipient,
            f"New Opportunity Request from {company_name}",
            "admin_opportunity_request",
            request_id=request_id,
            company_name=company_name,
            industry=industry,
            location=location,
            business_type=business_type,
            naics_codes=naics_codes,
        )

    # -------------------------------------------------------------------------
    # Billing Emails
    # -------------------------------------------------------------------------

    @staticmethod
    def send_payment_reminder(
        email: str,
        full_name: str | None,
        amount: float,
        due_date: str,
        contract_title: str,
    ) -> EmailResult:
        return EmailService._send_template(
            email,
            f"Payment Due: Commission for {contract_title}",
            "payment_reminder",
            first_name=_first_name(full_name),
            amount=amount,
            due_date=due_date,
            contract_title=contract_title,
        )

    @staticmethod
    def send_subscription_update(
        email: str,
        full_name: str | None,
        plan_name: str,
        action: str,
    ) -> EmailResult:
        """action: upgraded, downgraded, canceled or renewed."""
        return EmailService._send_template(
            email,
            f"Subscription {action}: {plan_name}",
            "subscription_update",
            first_name=_first_name(full_name),
            plan_name=plan_name,
            action=action,
        )
