"""
PromptPay QR payloads
Builds the EMVCo merchant-presented payload for a PromptPay ID and renders it
as a PNG data URL for the payment page.
"""

import base64
import io
import logging
import re
from typing import Optional

import qrcode

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

PROMPTPAY_AID = "A000000677010111"


def _tlv(tag: str, value: str) -> str:
    return f"{tag}{len(value):02d}{value}"


def crc16_ccitt(data: str) -> str:
    """CRC-16/CCITT-FALSE as required by EMVCo QR payloads"""
    crc = 0xFFFF
    for byte in data.encode("ascii"):
        crc ^= byte << 8
        for _ in range(8):
            crc = ((crc << 1) ^ 0x1021) if crc & 0x8000 else (crc << 1)
            crc &= 0xFFFF
    return f"{crc:04X}"


def build_promptpay_payload(promptpay_id: str, amount: Optional[float] = None) -> str:
    """
    Args:
        promptpay_id: Mobile number (10 digits), national/tax ID (13 digits),
            or e-wallet ID (15 digits)
        amount: Optional fixed amount in THB; makes the QR single-use

    Raises:
        ValidationError: If the ID has an unsupported length
    """
    digits = re.sub(r"\D", "", promptpay_id or "")
    if len(digits) == 10 and digits.startswith("0"):
        account = _tlv("01", f"0066{digits[1:]}")
    elif len(digits) == 13:
        account = _tlv("02", digits)
    elif len(digits) == 15:
        account = _tlv("03", digits)
    else:
        raise ValidationError(f"Unsupported PromptPay ID: {promptpay_id!r}")

    payload = _tlv("00", "01")
    payload += _tlv("01", "12" if amount else "11")
    payload += _tlv("29", _tlv("00", PROMPTPAY_AID) + account)
    payload += _tlv("53", "764")
    if amount:
        payload += _tlv("54", f"{float(amount):.2f}")
    payload += _tlv("58", "TH")
    payload += "6304"
    return payload + crc16_ccitt(payload)


def generate_qr_code_from_text(text: str) -> str:
    """Render text as a PNG data URL"""
    if not text:
        raise ValidationError("Text for QR code generation is required.")

    qr = qrcode.QRCode(version=None, error_correction=qrcode.constants.ERROR_CORRECT_H, border=1)
    qr.add_data(text)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    qr_code_base64 = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/png;base64,{qr_code_base64}"


def generate_promptpay_qr(promptpay_id: str, amount: Optional[float] = None) -> str:
    return generate_qr_code_from_text(build_promptpay_payload(promptpay_id, amount))
