"""
Registry Store operations.

All reads and writes of members, scan events, assets and accounts go through
this module. Each write commits a single record; integrity violations surface
as Conflict and any other database failure as StorageFailure, after the
session has been rolled back.
"""

import threading
from functools import wraps

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from police_id import db
from police_id.errors import Conflict, NotFound, StorageFailure
from police_id.models import Member, ScanEvent, Asset, Account, IdSequence
from police_id.security import Role
from police_id.utils import name_sort_key

MEMBER_SEQUENCE = 'member'

# Guards the "is this the last administrator" check against concurrent changes
_accounts_lock = threading.Lock()


def storage_operation(f):
    """Translate database errors into registry errors"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except IntegrityError as e:
            db.session.rollback()
            current_app.logger.warning(f"{f.__name__}: integrity violation: {e.orig}")
            raise Conflict('Record violates a uniqueness constraint')
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error(f"{f.__name__}: storage failure: {e}")
            raise StorageFailure()
    return decorated_function


# Members

@storage_operation
def next_member_number():
    """
    Advance the member sequence inside the current transaction and return the new value.
    The increment is only durable once the caller commits; a rollback undoes it.
    """
    # A single UPDATE takes the write lock until commit, so other writers queue behind it
    result = db.session.execute(
        db.update(IdSequence)
        .where(IdSequence.name == MEMBER_SEQUENCE)
        .values(value=IdSequence.value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        # First issuance (or a store created before the sequence existed)
        highest = db.session.query(db.func.max(Member.id)).scalar() or 0
        db.session.add(IdSequence(name=MEMBER_SEQUENCE, value=highest + 1))
        db.session.flush()
        return highest + 1
    return db.session.execute(
        db.select(IdSequence.value).where(IdSequence.name == MEMBER_SEQUENCE)
    ).scalar_one()


@storage_operation
def member_sequence_high_water():
    """Highest member number handed out so far, issued or still stored"""
    counter = db.session.execute(
        db.select(IdSequence.value).where(IdSequence.name == MEMBER_SEQUENCE)
    ).scalar()
    highest = db.session.query(db.func.max(Member.id)).scalar()
    return max(counter or 0, highest or 0)


@storage_operation
def raise_member_sequence(floor):
    """Move the member sequence up to `floor`; it never moves down"""
    floor = max(floor, member_sequence_high_water())
    if floor == 0:
        return
    sequence = db.session.get(IdSequence, MEMBER_SEQUENCE)
    if sequence is None:
        db.session.add(IdSequence(name=MEMBER_SEQUENCE, value=floor))
    elif sequence.value < floor:
        sequence.value = floor
    db.session.commit()


@storage_operation
def insert_member(member):
    db.session.add(member)
    db.session.commit()
    return member


@storage_operation
def update_member(member_id, fields):
    member = db.session.get(Member, member_id)
    if member is None:
        raise NotFound(f'No member with id {member_id}')
    for field in Member.EDITABLE_FIELDS:
        setattr(member, field, fields.get(field))
    db.session.commit()
    return member


@storage_operation
def delete_member(member_id):
    member = db.session.get(Member, member_id)
    if member is None:
        raise NotFound(f'No member with id {member_id}')
    record = member.to_dict()
    db.session.delete(member)
    db.session.commit()
    return record


@storage_operation
def get_by_id_number(id_number):
    return Member.query.filter_by(id_number=id_number).first()


@storage_operation
def list_members(search=None):
    members = Member.query.all()
    if search:
        # Matched in Python: SQLite lower() and LIKE only fold ASCII letters
        term = search.strip().casefold()
        members = [m for m in members if _matches(m, term)]
    return sorted(members, key=lambda m: (name_sort_key(m.full_name_am or m.full_name_en), m.id))


def _matches(member, term):
    return any(term in (value or '').casefold() for value in (
        member.full_name_am, member.full_name_en, member.phone, member.id_number,
    ))


# Scan log

@storage_operation
def insert_scan(id_number, ip_address=None, user_agent=None):
    scan = ScanEvent(
        id_number=id_number,
        ip_address=ip_address,
        user_agent=(user_agent or '')[:512] or None,
    )
    db.session.add(scan)
    db.session.commit()
    return scan


@storage_operation
def list_scans(id_number):
    return ScanEvent.query.filter_by(id_number=id_number).order_by(
        ScanEvent.scanned_at.desc(), ScanEvent.id.desc()
    ).all()


# Assets

@storage_operation
def upsert_asset(key, value):
    asset = db.session.get(Asset, key)
    if asset:
        asset.value = value
    else:
        asset = Asset(key=key, value=value)
        db.session.add(asset)
    db.session.commit()
    return asset


@storage_operation
def list_assets():
    return {asset.key: asset.value for asset in Asset.query.all()}


# Accounts

@storage_operation
def find_account_by_username(username):
    return Account.query.filter_by(username_key=Account.key_for(username)).first()


@storage_operation
def list_accounts():
    return Account.query.order_by(Account.created_at.asc(), Account.id.asc()).all()


@storage_operation
def insert_account(username, password, role):
    if find_account_by_username(username):
        raise Conflict(f'Username {username!r} is already taken')
    account = Account(username=username, username_key=Account.key_for(username), role=role.value)
    account.set_password(password)
    db.session.add(account)
    db.session.commit()
    return account


def _administrator_count():
    return Account.query.filter_by(role=Role.ADMINISTRATOR.value).count()


@storage_operation
def update_account(account_id, role=None, password=None):
    with _accounts_lock:
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound(f'No account with id {account_id}')
        if role is not None and role.value != account.role:
            if account.role == Role.ADMINISTRATOR.value and _administrator_count() <= 1:
                raise Conflict('Cannot change the role of the last administrator')
            account.role = role.value
        if password is not None:
            account.set_password(password)
        db.session.commit()
        return account


def update_account_role(account_id, role):
    return update_account(account_id, role=role)


@storage_operation
def delete_account(account_id):
    with _accounts_lock:
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound(f'No account with id {account_id}')
        if account.role == Role.ADMINISTRATOR.value and _administrator_count() <= 1:
            raise Conflict('Cannot delete the last administrator')
        record = account.to_dict()
        db.session.delete(account)
        db.session.commit()
        return record
