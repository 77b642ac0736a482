"""
Authentication and role-based authorization.

Callers log in with a username/password and receive a signed bearer token
(HS256, 24h by default). The token is the only session state: there is no
server-side revocation, a token stops working when it expires.

Authorization is a closed capability table: each Role maps to the set of
Operations it may perform, checked once per request by ``requires``.
"""

import enum
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app
from flask_login import UserMixin, current_user

from police_id.errors import Unauthorized, Forbidden, ValidationError

TOKEN_ALGORITHM = 'HS256'


class Role(enum.Enum):
    ADMINISTRATOR = 'Administrator'
    DATA_ENTRY = 'Data Entry'
    VIEWER = 'Viewer'

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            allowed = ', '.join(role.value for role in cls)
            raise ValidationError(f'Invalid role {value!r}. Expected one of: {allowed}')


class Operation(enum.Enum):
    LIST_MEMBERS = 'list_members'
    CREATE_MEMBER = 'create_member'
    UPDATE_MEMBER = 'update_member'
    DELETE_MEMBER = 'delete_member'
    READ_SCANS = 'read_scans'
    RENDER_QR = 'render_qr'
    READ_ASSETS = 'read_assets'
    WRITE_ASSETS = 'write_assets'
    MANAGE_ACCOUNTS = 'manage_accounts'
    MANAGE_BACKUPS = 'manage_backups'


_READ_OPERATIONS = frozenset({
    Operation.LIST_MEMBERS,
    Operation.READ_SCANS,
    Operation.RENDER_QR,
    Operation.READ_ASSETS,
})

CAPABILITIES = {
    Role.ADMINISTRATOR: frozenset(Operation),
    Role.DATA_ENTRY: _READ_OPERATIONS | {Operation.CREATE_MEMBER, Operation.UPDATE_MEMBER},
    Role.VIEWER: _READ_OPERATIONS,
}


class Principal(UserMixin):
    """An authenticated caller, rebuilt from token claims on every request"""

    def __init__(self, id, username, role):
        self.id = id
        self.username = username
        self.role = role

    def can(self, operation):
        return operation in CAPABILITIES[self.role]

    def to_dict(self):
        return {'id': self.id, 'username': self.username, 'role': self.role.value}

    def __repr__(self):
        return f'<Principal {self.username} ({self.role.value})>'


def create_token(principal, expires_in=None):
    if expires_in is None:
        expires_in = timedelta(hours=current_app.config['TOKEN_TTL_HOURS'])
    now = datetime.now(timezone.utc)
    claims = {
        'id': principal.id,
        'username': principal.username,
        'role': principal.role.value,
        'iat': now,
        'exp': now + expires_in,
    }
    return jwt.encode(claims, current_app.config['JWT_SECRET'], algorithm=TOKEN_ALGORITHM)


def decode_token(token):
    """Return the Principal a token describes, or None if it is invalid or expired"""
    try:
        claims = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[TOKEN_ALGORITHM])
        return Principal(int(claims['id']), claims['username'], Role(claims['role']))
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Rejected expired token")
        return None
    except (jwt.InvalidTokenError, KeyError, TypeError, ValueError):
        return None


def authenticate(username, password):
    """Check credentials and issue a token. Returns (token, principal)."""
    from police_id import registry

    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError('Missing credentials')

    account = registry.find_account_by_username(username)
    if not account or not account.check_password(password):
        current_app.logger.warning(f"Failed login for {username!r}")
        raise Unauthorized('Invalid username or password')

    principal = Principal(account.id, account.username, Role(account.role))
    return create_token(principal), principal


def authorize(token, operation):
    """Resolve a raw token to a Principal allowed to perform `operation`"""
    principal = decode_token(token) if token else None
    if principal is None:
        raise Unauthorized()
    if not principal.can(operation):
        raise Forbidden()
    return principal


def bearer_token(req):
    auth = req.headers.get('Authorization', '')
    scheme, _, token = auth.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def load_principal_from_request(req):
    token = bearer_token(req)
    return decode_token(token) if token else None


def handle_unauthorized():
    raise Unauthorized()


def requires(operation):
    """Decorator to require a role allowed to perform `operation`"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise Unauthorized()
            if not current_user.can(operation):
                current_app.logger.warning(
                    f"{current_user.username} ({current_user.role.value}) denied {operation.value}"
                )
                raise Forbidden()
            return f(*args, **kwargs)
        return decorated_function
    return decorator
