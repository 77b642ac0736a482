import pytest

from police_id import create_app, store, registry
from police_id.id_generator import issue_member
from police_id.security import Role

PASSWORDS = {
    'admin': 'admin-pass',
    'clerk': 'clerk-pass',
    'viewer': 'viewer-pass',
}


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'registry.db'}",
        'BACKUP_FOLDER': str(tmp_path / 'backups'),
        'JWT_SECRET': 'test-secret',
        'ID_NUMBER_PREFIX': 'BGR',
        'PUBLIC_BASE_URL': 'https://id.example.org',
        'GEMINI_API_KEY': None,
    })
    yield app
    with app.app_context():
        store.close()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def accounts(app):
    """One account per role: admin (Administrator), clerk (Data Entry), viewer (Viewer)"""
    with app.app_context():
        return {
            'admin': registry.insert_account('admin', PASSWORDS['admin'], Role.ADMINISTRATOR).id,
            'clerk': registry.insert_account('clerk', PASSWORDS['clerk'], Role.DATA_ENTRY).id,
            'viewer': registry.insert_account('viewer', PASSWORDS['viewer'], Role.VIEWER).id,
        }


@pytest.fixture
def login(client, accounts):
    """Log in as one of the fixture accounts and return request headers"""
    def _login(username):
        response = client.post('/api/auth/login', json={
            'username': username,
            'password': PASSWORDS[username],
        })
        assert response.status_code == 200, response.get_json()
        return {'Authorization': f"Bearer {response.get_json()['token']}"}
    return _login


@pytest.fixture
def member(app):
    with app.app_context():
        record = issue_member({
            'full_name_am': 'ሙሉ ስም1',
            'full_name_en': 'Full Name One',
            'rank_am': 'ኮማንደር',
            'rank_en': 'Commander',
            'responsibility_am': 'የወንጀል መከላከል',
            'responsibility_en': 'Crime Prevention',
            'phone': '0911000000',
        })
        return record.to_dict()
