"""
QR service for ticket check-in.

Encodes the ticket payload as a QR code and reads registration numbers
back out of whatever a scanner app hands the admin.
Uses `segno` — a pure-Python QR encoder (no native libs required).
"""
from __future__ import annotations

import io
import json
import re
from typing import Optional

import segno

_REG_NUMBER_RE = re.compile(r"\bTEAM\d{4,}\b", re.IGNORECASE)


def generate_qr_png(payload: str, scale: int = 10, border: int = 2) -> bytes:
    """
    Render a QR code for the given payload as a PNG image.

    Parameters
    ----------
    payload : the text to encode (ticket JSON)
    scale   : pixels per module
    border  : quiet-zone width in modules

    Returns
    -------
    PNG bytes ready to be sent as a Telegram photo.
    """
    return generate_qr_buffered(payload, scale=scale, border=border).read()


def generate_qr_buffered(payload: str, scale: int = 10, border: int = 2) -> io.BytesIO:
    """
    Same as generate_qr_png but returns a seeked BytesIO buffer.
    Useful for aiogram's BufferedInputFile.
    """
    qr  = segno.make_qr(payload, error="M")
    buf = io.BytesIO()
    qr.save(buf, kind="png", scale=scale, border=border)
    buf.seek(0)
    return buf


def qr_data_uri(payload: str, scale: int = 5, border: int = 1) -> str:
    """PNG data URI, embeddable in an <img> of a self-contained HTML ticket."""
    return segno.make_qr(payload, error="M").png_data_uri(scale=scale, border=border)


def extract_registration_number(raw: str) -> Optional[str]:
    """
    Registration number from a scanned ticket payload (JSON) or from text
    typed by a volunteer. None if nothing usable is found.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("registrationNumber"), str):
        return data["registrationNumber"].strip().upper()

    match = _REG_NUMBER_RE.search(raw)
    return match.group(0).upper() if match else None
