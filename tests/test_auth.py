from uuid import uuid4

from jose import jwt
from sqlalchemy.exc import OperationalError

from academy.core.config import settings
from academy.models.user import User
from academy.services import refresh_token_service as ledger
from academy.services.token_service import hash_token, verify_access, verify_refresh
from academy.services.user_service import delete_user

PASSWORD = 'Aa123456'
COOKIE = settings.REFRESH_COOKIE_NAME


def _signup(client, email=None, password=PASSWORD, **extra):
    payload = {
        'first_name': 'Amina',
        'last_name': 'Benali',
        'email': email or f"{uuid4().hex[:12]}@b.com",
        'password': password,
        'whatsapp_number': '+212600000000',
    }
    payload.update(extra)
    return client.post('/api/auth/signup', json=payload)


def _login(client, email, password=PASSWORD):
    return client.post('/api/auth/login', json={'email': email, 'password': password})


def _use_cookie(client, value):
    client.cookies.clear()
    client.cookies.set(COOKIE, value)


def test_signup_login_refresh_example_scenario(client, database):
    signup = client.post(
        '/api/auth/signup',
        json={'first_name': 'A', 'last_name': 'B', 'email': 'a@b.com', 'password': 'Aa123456'},
    )
    assert signup.status_code == 201
    body = signup.json()
    assert body['success'] is True
    assert body['data']['role'] == 'client'
    assert 'password' not in body['data']
    assert 'hashed_password' not in body['data']

    login = _login(client, 'a@b.com', 'Aa123456')
    assert login.status_code == 200
    access_token = login.json()['accessToken']
    assert verify_access(access_token).role.value == 'client'
    set_cookie = login.headers['set-cookie']
    assert set_cookie.startswith(f"{COOKIE}=")
    old_refresh = login.cookies.get(COOKIE)
    assert old_refresh

    forbidden = client.post(
        '/api/auth/admin',
        json={'first_name': 'C', 'last_name': 'D', 'email': 'c@d.com', 'password': 'Aa123456'},
        headers={'Authorization': f"Bearer {access_token}"},
    )
    assert forbidden.status_code == 403
    assert forbidden.json()['code'] == 'FORBIDDEN'

    refreshed = client.post('/api/auth/refresh')
    assert refreshed.status_code == 200
    assert refreshed.json()['success'] is True
    assert refreshed.json()['accessToken']
    new_refresh = refreshed.cookies.get(COOKIE)
    assert new_refresh and new_refresh != old_refresh

    user_id = signup.json()['data']['id']
    with database.session() as session:
        assert ledger.find(session, user_id, hash_token(old_refresh)) is None
        assert ledger.find(session, user_id, hash_token(new_refresh)) is not None


def test_login_sets_http_only_refresh_cookie(client):
    email = _signup(client).json()['data']['email']
    login = _login(client, email)
    assert login.status_code == 200
    body = login.json()
    assert body['message'] == 'Login successful'
    assert body['data']['email'] == email
    assert COOKIE not in body

    header = login.headers['set-cookie'].lower()
    assert 'httponly' in header
    assert 'samesite=lax' in header
    assert 'path=/' in header
    assert 'max-age=604800' in header
    assert '; secure' not in header


def test_wrong_password_and_unknown_email_look_the_same(client):
    email = _signup(client).json()['data']['email']
    wrong_password = _login(client, email, 'Zz999999')
    unknown_email = _login(client, 'nobody@b.com')
    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()['code'] == 'INVALID_CREDENTIALS'
    assert 'set-cookie' not in wrong_password.headers


def test_login_is_case_insensitive_on_email(client):
    email = f"{uuid4().hex[:8]}@b.com"
    _signup(client, email=email.upper())
    assert _login(client, email).status_code == 200


def test_signup_duplicate_email_conflicts(client):
    email = f"{uuid4().hex[:8]}@b.com"
    assert _signup(client, email=email).status_code == 201
    duplicate = _signup(client, email=email)
    assert duplicate.status_code == 409
    assert duplicate.json() == {
        'success': False,
        'message': 'Email already registered',
        'code': 'DUPLICATE_IDENTITY',
    }


def test_signup_validation_errors_are_400(client):
    weak = _signup(client, password='alllowercase1')
    assert weak.status_code == 400
    assert weak.json()['code'] == 'VALIDATION_ERROR'
    assert weak.json()['errors'][0]['field'] == 'password'

    bad_phone = _signup(client, whatsapp_number='0600')
    assert bad_phone.status_code == 400
    assert bad_phone.json()['errors'][0]['field'] == 'whatsapp_number'

    missing = client.post('/api/auth/signup', json={'email': 'x@b.com', 'password': PASSWORD})
    assert missing.status_code == 400
    fields = {item['field'] for item in missing.json()['errors']}
    assert {'first_name', 'last_name'} <= fields

    bad_email = _login(client, 'not-an-email')
    assert bad_email.status_code == 400


def test_refresh_token_is_single_use(client):
    email = _signup(client).json()['data']['email']
    login = _login(client, email)
    original = login.cookies.get(COOKIE)

    first = client.post('/api/auth/refresh')
    assert first.status_code == 200

    _use_cookie(client, original)
    replay = client.post('/api/auth/refresh')
    assert replay.status_code == 401
    assert replay.json()['code'] == 'REFRESH_TOKEN_INVALID'


def test_logout_then_refresh_with_old_cookie_fails(client, database):
    signup = _signup(client)
    email = signup.json()['data']['email']
    user_id = signup.json()['data']['id']
    login = _login(client, email)
    cookie = login.cookies.get(COOKIE)

    logout = client.post('/api/auth/logout')
    assert logout.status_code == 200
    assert logout.json() == {'success': True, 'message': 'Logout successful'}
    assert 'max-age=0' in logout.headers['set-cookie'].lower()
    with database.session() as session:
        assert ledger.count_for_user(session, user_id) == 0

    _use_cookie(client, cookie)
    refreshed = client.post('/api/auth/refresh')
    assert refreshed.status_code == 401
    assert refreshed.json()['code'] == 'REFRESH_TOKEN_INVALID'


def test_logout_revokes_every_session_of_the_user(client, database):
    signup = _signup(client)
    email = signup.json()['data']['email']
    user_id = signup.json()['data']['id']
    first = _login(client, email).cookies.get(COOKIE)
    second = _login(client, email).cookies.get(COOKIE)
    assert first != second
    with database.session() as session:
        assert ledger.count_for_user(session, user_id) == 2

    _use_cookie(client, second)
    assert client.post('/api/auth/logout').status_code == 200

    _use_cookie(client, first)
    assert client.post('/api/auth/refresh').status_code == 401


def test_logout_without_or_with_garbage_cookie_still_succeeds(client):
    client.cookies.clear()
    assert client.post('/api/auth/logout').status_code == 200

    _use_cookie(client, 'not-a-jwt')
    response = client.post('/api/auth/logout')
    assert response.status_code == 200
    assert 'max-age=0' in response.headers['set-cookie'].lower()


def test_rapid_logins_yield_independent_refresh_tokens(client):
    email = _signup(client).json()['data']['email']
    first = _login(client, email).cookies.get(COOKIE)
    second = _login(client, email).cookies.get(COOKIE)
    assert hash_token(first) != hash_token(second)

    _use_cookie(client, first)
    assert client.post('/api/auth/refresh').status_code == 200
    _use_cookie(client, second)
    assert client.post('/api/auth/refresh').status_code == 200


def test_refresh_without_cookie(client):
    client.cookies.clear()
    response = client.post('/api/auth/refresh')
    assert response.status_code == 401
    assert response.json()['code'] == 'NO_REFRESH_TOKEN'


def test_refresh_rejects_tampered_and_access_tokens(client):
    email = _signup(client).json()['data']['email']
    login = _login(client, email)
    access_token = login.json()['accessToken']
    refresh_token = login.cookies.get(COOKIE)

    forged = jwt.encode(
        {'id': verify_refresh(refresh_token).id, 'nonce': 'f' * 32, 'type': 'refresh'},
        'not-the-refresh-secret',
        algorithm=settings.ALGORITHM,
    )
    _use_cookie(client, forged)
    tampered = client.post('/api/auth/refresh')
    assert tampered.status_code == 401
    assert tampered.json()['code'] == 'REFRESH_TOKEN_INVALID'

    _use_cookie(client, access_token)
    wrong_class = client.post('/api/auth/refresh')
    assert wrong_class.status_code == 401
    assert wrong_class.json()['code'] == 'REFRESH_TOKEN_INVALID'


def test_refresh_for_deleted_user_fails(client, database):
    signup = _signup(client)
    email = signup.json()['data']['email']
    user_id = signup.json()['data']['id']
    refresh_token = _login(client, email).cookies.get(COOKIE)

    with database.session() as session:
        user = session.get(User, user_id)
        delete_user(session, user)
        assert ledger.count_for_user(session, user_id) == 0

    _use_cookie(client, refresh_token)
    response = client.post('/api/auth/refresh')
    assert response.status_code == 401
    assert response.json()['code'] == 'REFRESH_TOKEN_INVALID'


def test_refreshed_access_token_carries_current_profile(client):
    signup = _signup(client)
    user_id = signup.json()['data']['id']
    login = _login(client, signup.json()['data']['email'])
    headers = {'Authorization': f"Bearer {login.json()['accessToken']}"}
    updated = client.put(f"/api/auth/profile/{user_id}", json={'first_name': 'Yasmine'}, headers=headers)
    assert updated.status_code == 200

    refreshed = client.post('/api/auth/refresh')
    claims = verify_access(refreshed.json()['accessToken'])
    assert claims.id == user_id
    assert claims.first_name == 'Yasmine'


def test_logout_clears_cookie_even_when_revocation_fails(client, monkeypatch):
    email = _signup(client).json()['data']['email']
    _login(client, email)

    def broken_revoke(session, user_id):
        raise OperationalError('DELETE FROM refresh_tokens', {}, Exception('database is locked'))

    monkeypatch.setattr(ledger, 'revoke_all', broken_revoke)
    response = client.post('/api/auth/logout')
    assert response.status_code == 500
    assert response.json()['code'] == 'INTERNAL_ERROR'
    assert 'max-age=0' in response.headers['set-cookie'].lower()


def test_refresh_rejected_after_account_deactivated(client, database):
    signup = _signup(client)
    user_id = signup.json()['data']['id']
    _login(client, signup.json()['data']['email'])

    with database.session() as session:
        user = session.get(User, user_id)
        user.is_active = False
        session.add(user)
        session.commit()

    response = client.post('/api/auth/refresh')
    assert response.status_code == 401
    assert response.json()['code'] == 'REFRESH_TOKEN_INVALID'
