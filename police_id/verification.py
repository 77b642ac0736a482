"""
Public card verification.

A lookup hit always appends a scan event; a miss never does. The scan write
is best effort: if it fails the caller still gets the record.
"""

from flask import current_app

from police_id import registry
from police_id.errors import NotFound, RegistryError


def verify(id_number, source_address=None, client_signature=None):
    member = registry.get_by_id_number(id_number)
    if member is None:
        raise NotFound(f'No card with ID number {id_number}')

    # Serialise before the audit write so a rollback there cannot expire the record
    record = member.to_dict()
    log_scan(id_number, source_address, client_signature)
    return record


def log_scan(id_number, source_address, client_signature):
    try:
        registry.insert_scan(id_number, source_address, client_signature)
    except RegistryError:
        current_app.logger.warning(f"Scan of {id_number} was not logged")
