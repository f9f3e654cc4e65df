from datetime import datetime, timedelta, timezone

import jwt

from auth_helpers import authenticate, create_admin, decode_token
from models import AdminRoleEnum


def test_default_admin_is_created(app):
    admin = authenticate('admin', 'admin-pass')
    assert admin is not None
    assert admin.last_login is not None
    assert authenticate('admin', 'wrong') is None
    assert authenticate('nobody', 'admin-pass') is None


def test_create_admin_refuses_existing_username(app):
    assert create_admin('owner', 'secret', AdminRoleEnum.SUPER_ADMIN).role == AdminRoleEnum.SUPER_ADMIN
    assert create_admin('owner', 'other') is None


def test_login_returns_token(client):
    r = client.post('/api/auth/login', json={'username': 'admin', 'password': 'admin-pass'})

    assert r.status_code == 200
    body = r.get_json()
    assert body['success'] is True
    assert body['admin']['username'] == 'admin'
    assert 'password_hash' not in body['admin']
    assert body['token']


def test_login_rejects_bad_credentials(client):
    assert client.post('/api/auth/login', json={'username': 'admin', 'password': 'nope'}).status_code == 401
    assert client.post('/api/auth/login', json={'username': 'admin'}).status_code == 400


def test_token_payload(app, token):
    with app.app_context():
        payload = decode_token(token)
    assert payload['username'] == 'admin'
    assert payload['role'] == 'admin'
    assert payload['exp'] - payload['iat'] == 24 * 3600


def test_verify_token(app, token):
    client = app.test_client()
    r = client.get('/api/auth/verify', headers={'Authorization': f'Bearer {token}'})
    assert r.status_code == 200
    assert r.get_json()['valid'] is True

    r = client.get('/api/auth/verify', headers={'Authorization': 'Bearer not-a-token'})
    assert r.status_code == 401
    assert client.get('/api/auth/verify').status_code == 401


def test_expired_token_is_rejected(app):
    past = datetime.now(tz=timezone.utc) - timedelta(hours=1)
    expired = jwt.encode({'admin_id': 1, 'username': 'admin', 'exp': int(past.timestamp())},
                         app.config['JWT_SECRET'], algorithm='HS256')

    r = app.test_client().get('/api/students', headers={'Authorization': f'Bearer {expired}'})
    assert r.status_code == 401


def test_token_signed_with_other_secret_is_rejected(app):
    forged = jwt.encode({'admin_id': 1, 'username': 'admin'}, 'someone-else', algorithm='HS256')
    r = app.test_client().get('/api/students', headers={'Authorization': f'Bearer {forged}'})
    assert r.status_code == 401


def test_routes_require_auth(client):
    assert client.get('/api/students').status_code == 401
    assert client.get('/api/dashboard/stats').status_code == 401
    assert client.post('/api/fee-records/generate', json={}).status_code == 401


def test_session_login_grants_access(client):
    client.post('/api/auth/login', json={'username': 'admin', 'password': 'admin-pass'})
    assert client.get('/api/students').status_code == 200

    assert client.post('/api/auth/logout').status_code == 200
    assert client.get('/api/students').status_code == 401


def test_admin_list_hides_password_hashes(client, auth_headers):
    create_admin('owner', 'secret', AdminRoleEnum.SUPER_ADMIN)

    r = client.get('/api/auth/admins', headers=auth_headers)

    assert r.status_code == 200
    admins = r.get_json()
    assert [a['username'] for a in admins] == ['admin', 'owner']
    assert admins[1]['role'] == 'super_admin'
    assert set(admins[0]) == {'id', 'username', 'role', 'is_active', 'last_login', 'created_at'}
    assert admins[0]['created_at'] is not None
    assert client.get('/api/auth/admins').status_code == 401
