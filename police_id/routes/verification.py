"""
Verification routes for ID cards
Public routes: anyone scanning a card's QR code can check it exists
"""

from flask import Blueprint, jsonify, request
from police_id.verification import verify

verification_bp = Blueprint('verification', __name__)


def client_address():
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr


@verification_bp.route('/api/members/<id_number>', methods=['GET'])
@verification_bp.route('/verify/<id_number>', methods=['GET'])
def verify_id(id_number):
    """
    Public lookup by ID number
    Every hit is logged as a scan event; misses are not
    """
    record = verify(
        id_number,
        source_address=client_address(),
        client_signature=request.headers.get('User-Agent'),
    )
    return jsonify(record)
