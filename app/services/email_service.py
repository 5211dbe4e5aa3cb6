"""Email notification service using SendGrid."""

import logging
from typing import Optional
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Transactional email for patients and doctors.

    Without ``SENDGRID_API_KEY`` the service stays disabled and every send
    returns False after logging what would have been sent.
    """

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.from_email = settings.SENDGRID_FROM_EMAIL
        self.from_name = settings.SENDGRID_FROM_NAME

        if not self.api_key:
            logger.warning("SENDGRID_API_KEY not configured. Emails will not be sent.")
            self.client = None
            self.enabled = False
        else:
            self.client = SendGridAPIClient(self.api_key)
            self.enabled = True
            logger.info("Email service initialized successfully")

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        plain_body: Optional[str] = None,
    ) -> bool:
        """Send one email. Returns True on a 2xx from SendGrid."""
        if not self.enabled:
            logger.info("Email service disabled. Would have sent to %s: %s", to, subject)
            return False

        try:
            message = Mail(
                from_email=(self.from_email, self.from_name),
                to_emails=to,
                subject=subject,
                html_content=html_body,
            )
            if plain_body:
                message.plain_text_content = plain_body

            response = self.client.send(message)

            if 200 <= response.status_code < 300:
                logger.info("Email sent successfully to %s: %s", to, subject)
                return True
            logger.error("Failed to send email to %s: %s %s", to, response.status_code, response.body)
            return False

        except Exception as e:
            logger.error("Error sending email to %s: %s", to, e)
            return False

    async def send_appointment_request(
        self,
        patient_email: str,
        patient_name: str,
        doctor_name: str,
        appointment_date: str,
        appointment_time: str,
    ) -> bool:
        """Acknowledge a booking request; the doctor still has to approve it."""
        subject = f"Solicitud de turno con {doctor_name}"
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #2563EB;">Recibimos tu solicitud</h2>
                    <p>Hola {patient_name},</p>
                    <p>Tu solicitud de turno con <strong>{doctor_name}</strong> para el
                       <strong>{appointment_date}</strong> a las <strong>{appointment_time}</strong>
                       fue enviada.</p>
                    <p>Te avisaremos por email cuando el profesional la confirme.</p>
                </div>
            </body>
        </html>
        """
        plain_body = (
            f"Hola {patient_name},\n\n"
            f"Tu solicitud de turno con {doctor_name} para el {appointment_date} "
            f"a las {appointment_time} fue enviada. Te avisaremos cuando sea confirmada."
        )
        return await self.send_email(patient_email, subject, html_body, plain_body)

    async def send_appointment_status(
        self,
        patient_email: str,
        patient_name: str,
        doctor_name: str,
        appointment_date: str,
        appointment_time: str,
        status: str,
        reason: Optional[str] = None,
    ) -> bool:
        """Tell the patient their appointment was confirmed, rejected or cancelled."""
        headlines = {
            "scheduled": "Tu turno fue confirmado",
            "rejected": "Tu turno no pudo ser confirmado",
            "cancelled": "Tu turno fue cancelado",
            "rescheduled": "Tu turno fue reprogramado",
        }
        headline = headlines.get(status, "Actualización de tu turno")
        reason_html = f"<p>Motivo: {reason}</p>" if reason else ""
        html_body = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #2563EB;">{headline}</h2>
                    <p>Hola {patient_name},</p>
                    <p>Turno con <strong>{doctor_name}</strong>:
                       {appointment_date} a las {appointment_time}.</p>
                    {reason_html}
                </div>
            </body>
        </html>
        """
        plain_body = f"{headline}\n\n{doctor_name}: {appointment_date} {appointment_time}"
        if reason:
            plain_body += f"\nMotivo: {reason}"
        return await self.send_email(patient_email, headline, html_body, plain_body)


email_service = EmailService()
