from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from police_id import db


class Account(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), nullable=False)
    # Case-folded username for uniqueness and lookups; SQLite lower() only folds ASCII
    username_key = db.Column(db.String(160), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='Viewer')  # Administrator, Data Entry or Viewer
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def key_for(username):
        return username.casefold()

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Account {self.username}>'


class Member(db.Model):
    # Surrogate key is taken from the id sequence, never from the table's max
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    id_number = db.Column(db.String(32), unique=True, nullable=False)  # Format: BGR-POL-00001

    # Bilingual fields: Amharic / English
    full_name_am = db.Column(db.String(200))
    full_name_en = db.Column(db.String(200))
    rank_am = db.Column(db.String(100))
    rank_en = db.Column(db.String(100))
    responsibility_am = db.Column(db.String(200))
    responsibility_en = db.Column(db.String(200))

    phone = db.Column(db.String(40))
    photo_url = db.Column(db.Text)  # data URI
    commissioner_signature = db.Column(db.Text)  # data URI

    blood_type = db.Column(db.String(10))
    badge_number = db.Column(db.String(40))
    gender = db.Column(db.String(20))
    complexion = db.Column(db.String(40))
    height = db.Column(db.String(20))
    emergency_contact_name = db.Column(db.String(200))
    emergency_contact_phone = db.Column(db.String(40))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Fields a client may write; everything else is owned by the registry
    EDITABLE_FIELDS = (
        'full_name_am', 'full_name_en',
        'rank_am', 'rank_en',
        'responsibility_am', 'responsibility_en',
        'phone', 'photo_url', 'commissioner_signature',
        'blood_type', 'badge_number', 'gender', 'complexion', 'height',
        'emergency_contact_name', 'emergency_contact_phone',
    )

    BILINGUAL_FIELDS = ('full_name', 'rank', 'responsibility')

    def to_dict(self):
        data = {'id': self.id, 'id_number': self.id_number}
        for field in self.EDITABLE_FIELDS:
            data[field] = getattr(self, field)
        data['created_at'] = self.created_at.isoformat() if self.created_at else None
        data['updated_at'] = self.updated_at.isoformat() if self.updated_at else None
        return data

    def __repr__(self):
        return f'<Member {self.id_number}>'


class ScanEvent(db.Model):
    """Append-only audit row written when a card is verified"""
    id = db.Column(db.Integer, primary_key=True)
    id_number = db.Column(db.String(32), nullable=False, index=True)  # not a foreign key: records may be deleted
    ip_address = db.Column(db.String(64))
    user_agent = db.Column(db.String(512))
    scanned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'id_number': self.id_number,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'scanned_at': self.scanned_at.isoformat() if self.scanned_at else None,
        }

    def __repr__(self):
        return f'<ScanEvent {self.id_number} @ {self.scanned_at}>'


class Asset(db.Model):
    """Branding images consumed by the card renderer"""
    key = db.Column(db.String(100), primary_key=True)
    value = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    WELL_KNOWN_KEYS = ('bgr_flag', 'eth_flag', 'police_logo')

    def __repr__(self):
        return f'<Asset {self.key}>'


class IdSequence(db.Model):
    """Named monotonic counter; deleting rows never moves it backwards"""
    name = db.Column(db.String(50), primary_key=True)
    value = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<IdSequence {self.name}: {self.value}>'
