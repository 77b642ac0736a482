from datetime import timedelta

import jwt
import pytest

from police_id import store
from police_id.errors import Forbidden, Unauthorized
from police_id.security import (
    CAPABILITIES, Operation, Principal, Role, authorize, create_token, decode_token,
)

ROLES = ('admin', 'clerk', 'viewer')


def test_login_returns_token_and_principal(client, accounts):
    response = client.post('/api/auth/login', json={'username': 'admin', 'password': 'admin-pass'})

    assert response.status_code == 200
    body = response.get_json()
    assert body['principal'] == {'id': accounts['admin'], 'username': 'admin', 'role': 'Administrator'}
    assert body['token']


def test_username_is_case_insensitive(client, accounts):
    response = client.post('/api/auth/login', json={'username': 'ADMIN', 'password': 'admin-pass'})
    assert response.status_code == 200


@pytest.mark.parametrize('credentials', [
    {'username': 'admin', 'password': 'wrong'},
    {'username': 'ghost', 'password': 'admin-pass'},
])
def test_bad_credentials_are_unauthorized(client, accounts, credentials):
    response = client.post('/api/auth/login', json=credentials)

    assert response.status_code == 401
    assert response.get_json() == {'error': 'Invalid username or password', 'kind': 'unauthorized'}


@pytest.mark.parametrize('body', [{}, {'username': 'admin'}, {'password': 'x'}, {'username': 5, 'password': 'x'}])
def test_missing_credentials_are_a_validation_error(client, accounts, body):
    response = client.post('/api/auth/login', json=body)
    assert response.status_code == 400


def test_me_returns_principal(client, login):
    response = client.get('/api/auth/me', headers=login('clerk'))
    assert response.get_json()['role'] == 'Data Entry'


# (method, path, json body, roles allowed)
MATRIX = [
    ('GET', '/api/members', None, {'admin', 'clerk', 'viewer'}),
    ('POST', '/api/members', {'full_name_en': 'New Officer'}, {'admin', 'clerk'}),
    ('PUT', '/api/members/{id}', {'full_name_en': 'Renamed'}, {'admin', 'clerk'}),
    ('DELETE', '/api/members/{id}', None, {'admin'}),
    ('GET', '/api/scans/{id_number}', None, {'admin', 'clerk', 'viewer'}),
    ('GET', '/api/members/{id_number}/qr', None, {'admin', 'clerk', 'viewer'}),
    ('GET', '/api/assets', None, {'admin', 'clerk', 'viewer'}),
    ('POST', '/api/assets', {'key': 'police_logo', 'value': 'data:image/png;base64,AAAA'}, {'admin'}),
    ('GET', '/api/accounts', None, {'admin'}),
    ('POST', '/api/accounts', {'username': 'newbie', 'password': 'pw', 'role': 'Viewer'}, {'admin'}),
    ('PUT', '/api/accounts/{account}', {'role': 'Data Entry'}, {'admin'}),
    ('DELETE', '/api/accounts/{account}', None, {'admin'}),
    ('GET', '/api/backups', None, {'admin'}),
    ('POST', '/api/backups', None, {'admin'}),
    ('POST', '/api/backups/restore', {'filename': '{backup}'}, {'admin'}),
]


@pytest.fixture
def targets(app, accounts, member):
    """Ids the matrix paths and bodies refer to: a member, the viewer account and a backup"""
    with app.app_context():
        backup = store.snapshot()['filename']
    return {
        'id': member['id'],
        'id_number': member['id_number'],
        'account': accounts['viewer'],
        'backup': backup,
    }


def call(client, method, path, body, targets, headers=None):
    url = path.format(**targets)
    if body is not None:
        body = {key: value.format(**targets) if isinstance(value, str) else value for key, value in body.items()}
    return client.open(url, method=method, json=body, headers=headers or {})


@pytest.mark.parametrize('role', ROLES)
@pytest.mark.parametrize('method,path,body,allowed', MATRIX)
def test_role_matrix(client, login, targets, role, method, path, body, allowed):
    response = call(client, method, path, body, targets, headers=login(role))

    if role in allowed:
        assert response.status_code < 400, response.get_json()
    else:
        assert response.status_code == 403
        assert response.get_json()['kind'] == 'forbidden'


@pytest.mark.parametrize('method,path,body,allowed', MATRIX)
def test_missing_token_is_unauthorized(client, targets, method, path, body, allowed):
    response = call(client, method, path, body, targets)

    assert response.status_code == 401
    assert response.get_json()['kind'] == 'unauthorized'


def test_expired_token_is_unauthorized_before_role_check(app, client, member):
    with app.app_context():
        principal = Principal(1, 'admin', Role.ADMINISTRATOR)
        token = create_token(principal, expires_in=timedelta(seconds=-5))

    response = client.get('/api/accounts', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 401


@pytest.mark.parametrize('header', [
    'Bearer not-a-token',
    'Basic YWRtaW46YWRtaW4tcGFzcw==',
    'Bearer',
])
def test_malformed_authorization_is_unauthorized(client, accounts, header):
    response = client.get('/api/members', headers={'Authorization': header})
    assert response.status_code == 401


def test_token_signed_with_another_key_is_rejected(client, accounts):
    forged = jwt.encode({'id': 1, 'username': 'admin', 'role': 'Administrator'}, 'other-secret', algorithm='HS256')
    response = client.get('/api/accounts', headers={'Authorization': f'Bearer {forged}'})
    assert response.status_code == 401


def test_token_with_unknown_role_is_rejected(app):
    with app.app_context():
        token = jwt.encode({'id': 1, 'username': 'x', 'role': 'Superuser'}, app.config['JWT_SECRET'], algorithm='HS256')
        assert decode_token(token) is None


def test_authorize_distinguishes_unauthorized_from_forbidden(app):
    with app.app_context():
        viewer_token = create_token(Principal(3, 'viewer', Role.VIEWER))

        with pytest.raises(Unauthorized):
            authorize(None, Operation.LIST_MEMBERS)
        with pytest.raises(Forbidden):
            authorize(viewer_token, Operation.CREATE_MEMBER)

        principal = authorize(viewer_token, Operation.LIST_MEMBERS)
        assert principal.username == 'viewer'
        assert principal.role is Role.VIEWER


def test_capability_table():
    assert CAPABILITIES[Role.ADMINISTRATOR] == frozenset(Operation)
    assert Operation.CREATE_MEMBER in CAPABILITIES[Role.DATA_ENTRY]
    assert Operation.MANAGE_ACCOUNTS not in CAPABILITIES[Role.DATA_ENTRY]
    assert Operation.UPDATE_MEMBER not in CAPABILITIES[Role.VIEWER]


def test_public_lookup_needs_no_token(client, member):
    assert client.get(f"/api/members/{member['id_number']}").status_code == 200
