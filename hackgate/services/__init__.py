from hackgate.services.registration_service import (
    upsert_user, get_user,
    get_team, require_team, get_team_by_registration_number, get_team_for_user,
    list_teams, register_team, apply_team_update,
)
from hackgate.services.identity_service import (
    next_value, next_registration_number, next_ticket_number,
    format_registration_number, format_ticket_number,
    advance_counter, resync_registration_counter, resync_ticket_counter,
)
from hackgate.services.payment_service import (
    PaymentOrder, price_for, create_order, submit_proof, record_transaction,
    payment_summary,
)
from hackgate.services.gateway_client import (
    PaymentGateway, RazorpayGateway, build_gateway,
    compute_signature, signature_matches,
)
from hackgate.services.document_service import UploadedDocuments, release_blobs, upload_documents
from hackgate.services.storage_service import BlobStore, LocalBlobStore, StoredBlob
from hackgate.services.verification_service import set_payment_status
from hackgate.services.ticket_service import (
    TicketArtifact, build_qr_payload, render_ticket, issue_ticket,
)
from hackgate.services.checkin_service import (
    CheckInResult, CheckInEligibility, check_in, undo_check_in, can_check_in,
)
from hackgate.services.notification_service import (
    NotificationKind, TeamNotification, Notifier, TelegramNotifier,
    build_notification, dispatch_notification, drain_notifications,
    format_notification,
)
from hackgate.services.stats_service import (
    dashboard_stats, checkin_stats, list_checked_in, format_dashboard_text,
)
from hackgate.services.qr_service import (
    generate_qr_buffered, generate_qr_png, qr_data_uri, extract_registration_number,
)

__all__ = [
    # registration ledger
    "upsert_user", "get_user",
    "get_team", "require_team", "get_team_by_registration_number", "get_team_for_user",
    "list_teams", "register_team", "apply_team_update",
    # identity allocator
    "next_value", "next_registration_number", "next_ticket_number",
    "format_registration_number", "format_ticket_number",
    "advance_counter", "resync_registration_counter", "resync_ticket_counter",
    # payments
    "PaymentOrder", "price_for", "create_order", "submit_proof", "record_transaction",
    "payment_summary",
    "PaymentGateway", "RazorpayGateway", "build_gateway",
    "compute_signature", "signature_matches",
    # documents
    "UploadedDocuments", "release_blobs", "upload_documents",
    "BlobStore", "LocalBlobStore", "StoredBlob",
    # verification / tickets
    "set_payment_status",
    "TicketArtifact", "build_qr_payload", "render_ticket", "issue_ticket",
    # check-in
    "CheckInResult", "CheckInEligibility", "check_in", "undo_check_in", "can_check_in",
    # notifications
    "NotificationKind", "TeamNotification", "Notifier", "TelegramNotifier",
    "build_notification", "dispatch_notification", "drain_notifications",
    "format_notification",
    # stats
    "dashboard_stats", "checkin_stats", "list_checked_in", "format_dashboard_text",
    # QR
    "generate_qr_buffered", "generate_qr_png", "qr_data_uri", "extract_registration_number",
]
