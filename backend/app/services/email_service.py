"""
Deal email delivery over SMTP (Gmail defaults, STARTTLS).
Without GMAIL_USER / GMAIL_APP_PASSWORD the service runs in mock mode:
messages are logged and reported as sent.
"""

from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Any, Optional, Sequence
import logging
import smtplib

from app.core.config import settings
from app.services.deal_generator import AGENT_ICONS
from app.services.deal_scoring import savings_percentage

logger = logging.getLogger(__name__)

_STYLE = """
body { font-family: 'Segoe UI', Tahoma, sans-serif; margin: 0; padding: 0; background: #f8fafc; }
.container { max-width: 600px; margin: 0 auto; background: #ffffff; }
.header { background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: #ffffff; padding: 30px; text-align: center; }
.content { padding: 30px; }
.deal-card { border: 1px solid #e2e8f0; border-radius: 12px; margin-bottom: 25px; padding: 20px; }
.agent-badge { display: inline-block; background: #667eea; color: #ffffff; padding: 6px 12px; border-radius: 20px; font-size: 12px; font-weight: bold; }
.current-price { font-size: 24px; font-weight: bold; color: #059669; }
.original-price { color: #6b7280; text-decoration: line-through; }
.savings { background: #dcfce7; color: #166534; padding: 4px 8px; border-radius: 6px; font-size: 12px; font-weight: bold; }
.rating { color: #fbbf24; }
.inclusion-item { display: inline-block; border: 1px solid #d1d5db; padding: 4px 8px; border-radius: 4px; margin: 2px; font-size: 12px; }
.cta-button { display: inline-block; background: #059669; color: #ffffff; padding: 12px 24px; border-radius: 8px; text-decoration: none; font-weight: bold; margin: 10px 5px; }
.footer { background: #1f2937; color: #ffffff; padding: 30px; text-align: center; }
"""


# ---------------------------------------------------------------------------
# Rendering helpers (pure)
# ---------------------------------------------------------------------------

def agent_icon(agent: str) -> str:
    return AGENT_ICONS.get(agent, "🤖")


def savings_label(deal: Any) -> str:
    """Whole-number savings percentage, e.g. "17"."""
    try:
        return f"{savings_percentage(deal.price, deal.original_price):.0f}"
    except ValueError:
        return "0"


def star_string(rating: int) -> str:
    rating = max(0, min(5, int(rating)))
    return "★" * rating + "☆" * (5 - rating)


def format_price(value: Any) -> str:
    return f"{settings.currency_symbol}{float(value):,.2f}"


def _deal_card_html(deal: Any) -> str:
    inclusions = "".join(f'<span class="inclusion-item">{escape(str(i))}</span>' for i in deal.inclusions or [])
    return f"""
      <div class="deal-card">
        <div class="agent-badge">{agent_icon(deal.agent)} {escape(deal.agent)}</div>
        <h3>{escape(deal.destination)}: {escape(deal.description or '')}</h3>
        <div class="current-price">{format_price(deal.price)}</div>
        <div class="original-price">{format_price(deal.original_price)}</div>
        <span class="savings">Save {savings_label(deal)}%</span>
        <p class="rating">{star_string(deal.hotel_rating)} {deal.hotel_rating}/5 Stars</p>
        <p><strong>⏱️ Confirmation Time:</strong> {escape(deal.confirmation_time)}</p>
        <h4>✅ What's Included:</h4>
        <div>{inclusions}</div>
      </div>"""


def _page_html(title: str, heading: str, subheading: str, body: str) -> str:
    frontend = escape(settings.frontend_url)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{escape(title)}</title>
  <style>{_STYLE}</style>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>{heading}</h1>
      {subheading}
    </div>
    <div class="content">
      {body}
      <div style="text-align: center; margin-top: 30px;">
        <a href="{frontend}" class="cta-button">🚀 View Full Details &amp; Book</a>
        <a href="{frontend}/chat-logs" class="cta-button">💬 View Agent Conversations</a>
      </div>
    </div>
    <div class="footer">
      <h3>{escape(settings.email_sender_name)}</h3>
      <p>AI-Powered Travel Planning at Your Fingertips</p>
      <p style="font-size: 12px; opacity: 0.8;">Prices and availability are subject to change.</p>
    </div>
  </div>
</body>
</html>"""


def render_deals_html(deals: Sequence[Any], trip: Optional[Any] = None) -> str:
    subheading = "<p>Personalized recommendations from our AI travel agents</p>"
    if trip is not None:
        subheading += f"<p>For your {escape(trip.travel_type)} trip to {escape(trip.destination)}</p>"
    cards = "".join(_deal_card_html(d) for d in deals)
    return _page_html("Your AI-Curated Travel Deals", f"🌟 Your Top {len(deals)} AI-Curated Travel Deals",
                      subheading, cards)


def render_deals_text(deals: Sequence[Any], trip: Optional[Any] = None) -> str:
    lines = [f"{settings.email_sender_name} - Your Top {len(deals)} AI-Curated Travel Deals", ""]
    if trip is not None:
        lines += [f"For your {trip.travel_type} trip to {trip.destination}", ""]
    for index, deal in enumerate(deals, start=1):
        lines += [
            f"DEAL {index}: {deal.agent}",
            f"{deal.destination} - {deal.description}",
            f"Price: {format_price(deal.price)} (was {format_price(deal.original_price)}) - Save {savings_label(deal)}%",
            f"Rating: {deal.hotel_rating}/5 stars",
            f"Confirmation: {deal.confirmation_time}",
            f"Includes: {', '.join(str(i) for i in deal.inclusions or [])}",
            "",
        ]
    lines += [
        f"Visit {settings.frontend_url} to view full details and book your trip.",
        "",
        "Best regards,",
        f"{settings.email_sender_name} Team",
    ]
    return "\n".join(lines)


def render_single_deal_html(deal: Any) -> str:
    subheading = f"<p>Hand-picked by {agent_icon(deal.agent)} {escape(deal.agent)}</p>"
    return _page_html(f"Travel Deal: {deal.destination}", "🎯 Your Exclusive Travel Deal",
                      subheading, _deal_card_html(deal))


def render_single_deal_text(deal: Any) -> str:
    return "\n".join([
        f"{settings.email_sender_name} - Exclusive Travel Deal",
        "",
        f"{deal.agent}: {deal.destination} - {deal.description}",
        f"Price: {format_price(deal.price)} (was {format_price(deal.original_price)}) - Save {savings_label(deal)}%",
        f"Rating: {deal.hotel_rating}/5 stars",
        f"Confirmation: {deal.confirmation_time}",
        f"Includes: {', '.join(str(i) for i in deal.inclusions or [])}",
        "",
        f"Book at {settings.frontend_url}",
    ])


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------

class EmailService:
    """SMTP sender; mock mode when credentials are missing."""

    def __init__(
        self,
        user: Optional[str] = None,
        password: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ):
        self.user = user if user is not None else settings.gmail_user
        self.password = password if password is not None else settings.gmail_app_password
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.timeout = settings.smtp_timeout

    @property
    def mock_mode(self) -> bool:
        return not (self.user and self.password)

    def send_deals_email(self, email: str, deals: Sequence[Any], trip: Optional[Any] = None) -> bool:
        destination = trip.destination if trip is not None else "Your Trip"
        subject = f"🌟 Your Top {len(deals)} AI-Curated Travel Deals for {destination}"
        return self._send(email, subject, render_deals_text(deals, trip), render_deals_html(deals, trip))

    def send_single_deal_email(self, email: str, deal: Any) -> bool:
        subject = f"🎯 Exclusive Travel Deal: {deal.destination} from {deal.agent}"
        return self._send(email, subject, render_single_deal_text(deal), render_single_deal_html(deal))

    def _send(self, recipient: str, subject: str, text: str, html: str) -> bool:
        if self.mock_mode:
            logger.info(f"Mock email to {recipient}: {subject} (set GMAIL_USER and GMAIL_APP_PASSWORD to send)")
            return True

        message = EmailMessage()
        message["From"] = formataddr((settings.email_sender_name, self.user))
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {recipient}: {e}", exc_info=True)
            return False

        logger.info(f"Email sent to {recipient}: {subject}")
        return True
