"""Tests for /auth routes with an in-memory user store and a fake identity verifier.

Tests focus on:
- Provider-token login end to end (new user, replayed token, header token)
- Error statuses: 400 missing token, 401 verification failure, 503 provider down
- Password register/login round trip
- Session-protected profile routes
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient

from api.dependencies import get_identity_verifier, get_user_repo
from api.main import app
from adapter.fake.identity_verifier import FakeIdentityVerifier
from adapter.fake.user_repository import FakeUserRepository
from domain.model.errors import (
    AudienceMismatchError,
    ProviderUnavailableError,
    StorageUnavailableError,
    TokenExpiredError,
)
from domain.model.identity import VerifiedClaims
from services import auth_service
from services.session_service import decode_access_token

PHONE = '+919876543210'


class _AuthRouteTestCase(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)
        self.repo = FakeUserRepository()
        self.verifier = FakeIdentityVerifier()
        app.dependency_overrides[get_user_repo] = lambda: self.repo
        app.dependency_overrides[get_identity_verifier] = lambda: self.verifier

        patcher = patch.object(auth_service, 'BCRYPT_ROUNDS', 4)
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        app.dependency_overrides.clear()


class TestProviderTokenLogin(_AuthRouteTestCase):

    def test_new_phone_user_created_as_seller(self):
        self.verifier.register('tok-1', VerifiedClaims(subject_id='uid-1', phone=PHONE))

        response = self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok-1'})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        user = body['data']['user']
        self.assertEqual(user['userType'], 'seller')
        self.assertEqual(user['phone'], PHONE)
        self.assertNotIn('passwordHash', user)
        self.assertEqual(decode_access_token(body['data']['token'])['sub'], user['id'])

        stored = self.repo.get_by_id(user['id'])
        self.assertIsNotNone(stored)
        self.assertEqual(stored.external_subject_id, 'uid-1')

    def test_replayed_token_returns_same_user(self):
        self.verifier.register('tok-1', VerifiedClaims(subject_id='uid-1', phone=PHONE))

        first = self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok-1', 'userType': 'buyer'})
        second = self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok-1'})

        first_id = first.json()['data']['user']['id']
        self.assertEqual(second.json()['data']['user']['id'], first_id)
        self.assertEqual(second.json()['data']['user']['userType'], 'buyer')
        stored = self.repo.get_by_id(first_id)
        self.assertGreater(stored.last_login, stored.created_at)
        self.assertEqual(len(self.repo.store), 1)

    def test_token_from_authorization_header(self):
        self.verifier.register('tok-h', VerifiedClaims(subject_id='uid-2', email='h@example.com'))

        response = self.client.post('/auth/login-with-provider-token',
                                    headers={'Authorization': 'Bearer tok-h'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['user']['email'], 'h@example.com')

    def test_body_token_wins_over_header(self):
        self.verifier.register('tok-body', VerifiedClaims(subject_id='uid-b', email='body@example.com'))
        self.verifier.register('tok-head', VerifiedClaims(subject_id='uid-h', email='head@example.com'))

        self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok-body'},
                         headers={'Authorization': 'Bearer tok-head'})

        self.assertEqual(self.verifier.calls, ['tok-body'])

    def test_missing_token(self):
        response = self.client.post('/auth/login-with-provider-token', json={})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'success': False, 'error': 'idToken required'})

    def test_verification_failures_are_generic_401(self):
        self.verifier.register('expired', TokenExpiredError("Token expired"))
        self.verifier.register('foreign', AudienceMismatchError("aud mismatch", 'other', 'mine'))

        for token in ('expired', 'foreign', 'garbage'):
            with self.subTest(token=token):
                response = self.client.post('/auth/login-with-provider-token', json={'idToken': token})
                self.assertEqual(response.status_code, 401)
                self.assertEqual(response.json()['error'], 'Invalid token')
        self.assertEqual(self.repo.store, {})

    def test_provider_unavailable(self):
        self.verifier.register('tok', ProviderUnavailableError("certs timeout"))
        response = self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok'})
        self.assertEqual(response.status_code, 503)
        self.assertFalse(response.json()['success'])

    def test_identity_without_contact(self):
        self.verifier.register('tok', VerifiedClaims(subject_id='uid-x'))
        response = self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Token has no email/phone')
        self.assertEqual(self.repo.store, {})

    def test_database_unavailable(self):
        self.verifier.register('tok', VerifiedClaims(subject_id='uid-1', phone=PHONE))
        with patch.object(self.repo, 'record_login', side_effect=StorageUnavailableError("down")):
            response = self.client.post('/auth/login-with-provider-token', json={'idToken': 'tok'})
        self.assertEqual(response.status_code, 503)

    def test_google_requires_email(self):
        self.verifier.register('phone-only', VerifiedClaims(subject_id='uid-1', phone=PHONE))
        self.verifier.register('with-email', VerifiedClaims(subject_id='uid-2', email='g@example.com', name='G'))

        rejected = self.client.post('/auth/google', json={'idToken': 'phone-only'})
        accepted = self.client.post('/auth/google', json={'idToken': 'with-email'})

        self.assertEqual(rejected.status_code, 401)
        self.assertEqual(rejected.json()['error'], 'Email not present in Google token')
        self.assertEqual(accepted.status_code, 200)
        self.assertEqual(accepted.json()['data']['user']['name'], 'G')


class TestPasswordAuth(_AuthRouteTestCase):

    REGISTRATION = {
        'name': 'Priya', 'email': 'priya@example.com', 'phone': '9876543210',
        'password': 'secret1', 'userType': 'buyer',
    }

    def test_register_then_login(self):
        registered = self.client.post('/auth/register', json=self.REGISTRATION)
        self.assertEqual(registered.status_code, 201)
        self.assertEqual(registered.json()['message'], 'User registered successfully')

        login = self.client.post('/auth/login', json={'email': 'priya@example.com', 'password': 'secret1'})
        self.assertEqual(login.status_code, 200)
        self.assertEqual(login.json()['message'], 'Login successful')
        self.assertEqual(login.json()['data']['user']['id'], registered.json()['data']['user']['id'])

    def test_duplicate_email(self):
        self.client.post('/auth/register', json=self.REGISTRATION)
        response = self.client.post('/auth/register', json={**self.REGISTRATION, 'phone': '9000000000'})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_wrong_password(self):
        self.client.post('/auth/register', json=self.REGISTRATION)
        response = self.client.post('/auth/login', json={'phone': '9876543210', 'password': 'wrong!'})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['error'], 'Invalid credentials')

    def test_login_without_identifier(self):
        response = self.client.post('/auth/login', json={'password': 'secret1'})
        self.assertEqual(response.status_code, 400)

    def test_register_validation(self):
        response = self.client.post('/auth/register', json={**self.REGISTRATION, 'userType': 'admin'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('Invalid user type', response.json()['error'])

    def test_overlong_password(self):
        response = self.client.post('/auth/register', json={**self.REGISTRATION, 'password': 'x' * 80})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {'success': False, 'error': 'Password must be at most 72 bytes'})

        self.client.post('/auth/register', json=self.REGISTRATION)
        login = self.client.post('/auth/login', json={'email': 'priya@example.com', 'password': 'x' * 80})
        self.assertEqual(login.status_code, 401)

    def test_unexpected_error_uses_envelope(self):
        client = TestClient(app, raise_server_exceptions=False)
        with patch.object(auth_service, 'register', side_effect=RuntimeError('boom')):
            response = client.post('/auth/register', json=self.REGISTRATION)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'success': False, 'error': 'Internal server error'})

    def test_otp_endpoints_gone(self):
        for path in ('/auth/send-otp', '/auth/verify-otp'):
            with self.subTest(path=path):
                self.assertEqual(self.client.post(path).status_code, 410)


class TestProfile(_AuthRouteTestCase):

    def _session(self) -> tuple[str, str]:
        response = self.client.post('/auth/register', json=TestPasswordAuth.REGISTRATION)
        data = response.json()['data']
        return data['token'], data['user']['id']

    def test_me_requires_session(self):
        self.assertEqual(self.client.get('/auth/me').status_code, 401)
        response = self.client.get('/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})
        self.assertEqual(response.status_code, 401)

    def test_me_and_profile(self):
        token, user_id = self._session()
        headers = {'Authorization': f'Bearer {token}'}

        for path in ('/auth/me', '/auth/profile'):
            with self.subTest(path=path):
                response = self.client.get(path, headers=headers)
                self.assertEqual(response.status_code, 200)
                self.assertEqual(response.json()['data']['id'], user_id)

    def test_update_profile(self):
        token, user_id = self._session()

        response = self.client.put('/auth/profile', headers={'Authorization': f'Bearer {token}'},
                                   json={'name': 'Priya S', 'preferences': {'city': 'Pune'}})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['name'], 'Priya S')
        self.assertEqual(self.repo.get_by_id(user_id).preferences, {'city': 'Pune'})


if __name__ == '__main__':
    unittest.main()
