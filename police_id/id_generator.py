"""
ID number issuance and verification QR codes.

Issued numbers look like BGR-POL-00001. The numeric part is the member's
surrogate key, taken from a dedicated monotonic sequence so a deleted
record's number is never handed out again.
"""

import threading
from io import BytesIO

import qrcode
from PIL import Image
from flask import current_app

from police_id import registry
from police_id.errors import ValidationError
from police_id.models import Member
from police_id.utils import get_translation_service

# Serialises "advance sequence + insert" within this process; the sequence
# row lock covers other processes sharing the database.
_issue_lock = threading.Lock()


def format_id_number(number, prefix=None):
    prefix = prefix or current_app.config['ID_NUMBER_PREFIX']
    return f'{prefix}-POL-{number:05d}'


def clean_member_fields(payload):
    """Validate client input and keep only the fields a client may write"""
    if not isinstance(payload, dict):
        raise ValidationError('Expected a JSON object')

    fields = {}
    for field in Member.EDITABLE_FIELDS:
        value = payload.get(field)
        if value is not None and not isinstance(value, str):
            raise ValidationError(f'{field} must be a string')
        if isinstance(value, str):
            value = value.strip() or None
        fields[field] = value

    if not fields['full_name_am'] and not fields['full_name_en']:
        raise ValidationError('full_name_am or full_name_en is required')
    return fields


def issue_member(payload):
    """Allocate the next ID number and create the member record in one transaction"""
    fields = clean_member_fields(payload)
    fields = get_translation_service().fill_bilingual_fields(fields, Member.BILINGUAL_FIELDS)

    with _issue_lock:
        number = registry.next_member_number()
        member = Member(id=number, id_number=format_id_number(number), **fields)
        registry.insert_member(member)

    current_app.logger.info(f"Issued {member.id_number}")
    return member


def update_member(member_id, payload):
    """Full-field update; id, id_number and created_at are never touched"""
    fields = clean_member_fields(payload)
    fields = get_translation_service().fill_bilingual_fields(fields, Member.BILINGUAL_FIELDS)
    member = registry.update_member(member_id, fields)
    current_app.logger.info(f"Updated {member.id_number}")
    return member


def verification_url(id_number, base_url):
    return f"{base_url.rstrip('/')}/verify/{id_number}"


def generate_verification_qr(id_number, base_url, size=300):
    """Render the QR code printed on the back of a card as PNG bytes"""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=10,
        border=2,
    )
    qr.add_data(verification_url(id_number, base_url))
    qr.make(fit=True)

    qr_img = qr.make_image(fill_color=(0, 32, 96), back_color=(255, 255, 255))
    qr_img = qr_img.resize((size, size), Image.Resampling.LANCZOS)

    buffer = BytesIO()
    qr_img.save(buffer, 'PNG')
    buffer.seek(0)
    return buffer
