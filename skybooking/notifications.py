import logging
from html import escape

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from .errors import NotificationError
from .pricing import format_money

logger = logging.getLogger(__name__)


def cancellation_html(notice) -> str:
    return (
        "<h2>Booking Cancellation Confirmation</h2>"
        f"<p>Dear {escape(notice.passenger_name)},</p>"
        f"<p>Your booking <strong>{escape(notice.reference)}</strong> has been cancelled.</p>"
        f"<p>{escape(notice.flight_summary or 'N/A')}</p>"
        f"<p><strong>Cancellation Fee:</strong> {format_money(notice.fee, notice.currency)}</p>"
        f"<p><strong>Refund Amount:</strong> {format_money(notice.refund, notice.currency)}</p>"
        "<p>The refund will be processed to your original payment method within 7-10 business days.</p>"
    )


class SendGridNotifier:
    def __init__(self, api_key, from_email="noreply@skywing.com", client=None):
        self.api_key = api_key
        self.from_email = from_email
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = SendGridAPIClient(self.api_key)
        return self._client

    def send_email(self, to_email, subject, html):
        if not self.api_key and self._client is None:
            logger.warning("SENDGRID_API_KEY not set; not emailing %s", to_email)
            return False
        message = Mail(
            from_email=self.from_email,
            to_emails=to_email,
            subject=subject,
            html_content=html,
        )
        try:
            self.client.send(message)
        except Exception as e:
            raise NotificationError(f"email to {to_email} failed: {e}") from e
        return True

    def send_cancellation_notice(self, email, notice):
        if not email:
            raise NotificationError("email address is required")
        if self.send_email(email, f"Booking Cancellation - {notice.reference}", cancellation_html(notice)):
            logger.info("cancellation notice for %s sent", notice.reference)
