"""
Ticket issuance engine.

A ticket is the ticket number, the QR payload and a printable HTML document
with the QR image embedded as a data URI (viewable offline). Rendering is a
pure function of (team, ticket number, verification time), so re-rendering
a verified team reproduces the same document byte for byte.

The QR payload carries identifying claims only; payment ids, signatures and
transaction ids never go into it.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime

from jinja2 import DictLoader, Environment, select_autoescape
from sqlalchemy.ext.asyncio import AsyncSession

from hackgate.config import settings
from hackgate.models.models import Team
from hackgate.services.identity_service import next_ticket_number
from hackgate.services.qr_service import qr_data_uri

TEMPLATES = {
    "ticket.html": r"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{ event_name }} Ticket - {{ ticket_number }}</title>
  <style>
    body { font-family: 'Segoe UI', Tahoma, sans-serif; background: #667eea; padding: 20px; }
    .ticket { background: #fff; max-width: 600px; margin: 0 auto; border-radius: 20px; overflow: hidden; }
    .header { background: #764ba2; color: #fff; padding: 30px; text-align: center; }
    .header h1 { margin: 0; font-size: 32px; }
    .body { padding: 30px; }
    .number { text-align: center; font: bold 32px 'Courier New', monospace; letter-spacing: 3px; margin-bottom: 24px; }
    .row { display: flex; justify-content: space-between; padding: 12px 0; border-bottom: 1px solid #e0e0e0; }
    .label { font-size: 12px; color: #666; text-transform: uppercase; letter-spacing: 1px; }
    .value { font-weight: 600; color: #333; }
    .qr { text-align: center; padding: 24px; background: #f8f9fa; border-radius: 15px; margin: 24px 0; }
    .qr img { width: 200px; height: 200px; }
    .venue { background: #667eea; color: #fff; padding: 20px; border-radius: 15px; }
    .note { background: #fff3cd; border-left: 4px solid #ffc107; padding: 15px; margin-top: 20px; color: #856404; font-size: 13px; }
    .footer { text-align: center; padding: 20px; font-size: 12px; color: #666; border-top: 2px dashed #ddd; }
    @media print { body { background: #fff; padding: 0; } }
  </style>
</head>
<body>
  <div class="ticket">
    <div class="header"><h1>{{ event_name }}</h1></div>
    <div class="body">
      <div class="number">{{ ticket_number }}</div>
      <div class="row"><span class="label">Team Name</span><span class="value">{{ team_name }}</span></div>
      <div class="row"><span class="label">Team Leader</span><span class="value">{{ leader_name }}</span></div>
      <div class="row"><span class="label">Registration No.</span><span class="value">{{ registration_number }}</span></div>
      <div class="row"><span class="label">Team Size</span><span class="value">{{ team_size }}</span></div>
      <div class="row"><span class="label">Status</span><span class="value">&#10003; VERIFIED</span></div>
      <div class="qr">
        <img src="{{ qr_image }}" alt="Ticket QR Code">
        <div><strong>Scan at venue for quick check-in</strong><br>or show the ticket number to volunteers</div>
      </div>
      <div class="venue">
        <div><strong>Date:</strong> {{ event_date }}</div>
        <div><strong>Time:</strong> {{ event_time }}</div>
        <div><strong>Venue:</strong> {{ venue }}</div>
        <div><strong>Reporting Time:</strong> {{ reporting_time }}</div>
      </div>
      <div class="note">
        Bring this ticket (digital or printed) and a valid ID card.
        Reach the venue before {{ reporting_time }}. This ticket is non-transferable.
      </div>
    </div>
    <div class="footer">
      <div><strong>Verified on:</strong> {{ verified_at }}</div>
      <div>For support, contact: {{ support_contact }}</div>
    </div>
  </div>
</body>
</html>
""",
}

_env = Environment(
    loader=DictLoader(TEMPLATES),
    autoescape=select_autoescape(default=True, default_for_string=True),
)


@dataclass(frozen=True)
class TicketArtifact:
    ticket_number: str
    qr_payload:    str
    document:      str


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def build_qr_payload(team: Team, ticket_number: str, verified_at: datetime) -> str:
    """Compact JSON claims encoded in the ticket QR. `team.leader` must be loaded."""
    return json.dumps(
        {
            "ticketNumber":       ticket_number,
            "teamName":           team.team_name,
            "registrationNumber": team.registration_number,
            "leaderName":         team.leader.display_name,
            "verifiedAt":         format_timestamp(verified_at),
            "eventName":          settings.EVENT_NAME,
        },
        separators=(",", ":"),
        ensure_ascii=False,
    )


def render_ticket(team: Team, ticket_number: str, verified_at: datetime) -> TicketArtifact:
    payload = build_qr_payload(team, ticket_number, verified_at)
    document = _env.get_template("ticket.html").render(
        event_name=settings.EVENT_NAME,
        ticket_number=ticket_number,
        team_name=team.team_name,
        leader_name=team.leader.display_name,
        registration_number=team.registration_number,
        team_size=team.team_size,
        qr_image=qr_data_uri(payload),
        event_date=settings.EVENT_DATE,
        event_time=settings.EVENT_TIME,
        venue=settings.EVENT_VENUE,
        reporting_time=settings.REPORTING_TIME,
        verified_at=verified_at.strftime("%d %b %Y, %H:%M UTC"),
        support_contact=settings.SUPPORT_CONTACT,
    )
    return TicketArtifact(ticket_number=ticket_number, qr_payload=payload, document=document)


async def issue_ticket(
    session: AsyncSession,
    team: Team,
    verified_at: datetime,
) -> TicketArtifact:
    """Allocate a new ticket number and render the ticket for it."""
    ticket_number = await next_ticket_number(session)
    return render_ticket(team, ticket_number, verified_at)
