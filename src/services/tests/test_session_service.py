"""Unit tests for session tokens and the client-facing user view."""

import unittest
from datetime import datetime, timedelta, timezone

from jose import jwt

from domain.model.user import User
from services.session_service import (
    JWT_ALGORITHM,
    JWT_SECRET_KEY,
    build_user_view,
    create_access_token,
    decode_access_token,
    issue_session,
)


def _user(**overrides) -> User:
    now = datetime.now(timezone.utc)
    data = dict(
        id='user-1', name='Priya', email='priya@example.com', phone='+919876543210',
        user_type='buyer', created_at=now, updated_at=now, password_hash='$2b$hash',
    )
    data.update(overrides)
    return User(**data)


class TestAccessToken(unittest.TestCase):

    def test_claims(self):
        payload = decode_access_token(create_access_token(_user()))
        self.assertEqual(payload['sub'], 'user-1')
        self.assertEqual(payload['userId'], 'user-1')
        self.assertEqual(payload['userType'], 'buyer')
        self.assertEqual(payload['email'], 'priya@example.com')
        self.assertEqual(payload['phone'], '+919876543210')
        self.assertNotIn('role', payload)
        self.assertNotIn('password_hash', payload)

    def test_expires_after_seven_days(self):
        payload = decode_access_token(create_access_token(_user()))
        self.assertEqual(payload['exp'] - payload['iat'], int(timedelta(days=7).total_seconds()))

    def test_staff_token_carries_role(self):
        payload = decode_access_token(create_access_token(_user(user_type='staff', role='sales_manager')))
        self.assertEqual(payload['role'], 'sales_manager')

    def test_expired_token_rejected(self):
        past = datetime.now(timezone.utc) - timedelta(days=8)
        token = jwt.encode(
            {'sub': 'user-1', 'iat': past, 'exp': past + timedelta(days=1)},
            JWT_SECRET_KEY, algorithm=JWT_ALGORITHM,
        )
        self.assertIsNone(decode_access_token(token))

    def test_tampered_or_foreign_token_rejected(self):
        foreign = jwt.encode({'sub': 'user-1'}, 'some-other-secret', algorithm=JWT_ALGORITHM)
        self.assertIsNone(decode_access_token(foreign))
        self.assertIsNone(decode_access_token('not-a-jwt'))

    def test_token_without_subject_rejected(self):
        token = jwt.encode({'userId': 'user-1'}, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)
        self.assertIsNone(decode_access_token(token))


class TestUserView(unittest.TestCase):

    def test_marketplace_user_has_no_admin_fields(self):
        view = build_user_view(_user())
        self.assertEqual(view.user_type, 'buyer')
        self.assertIsNone(view.role)
        self.assertIsNone(view.permissions)
        self.assertFalse(hasattr(view, 'password_hash'))

    def test_staff_view_carries_role_and_permissions(self):
        view = build_user_view(_user(user_type='staff', role='content_manager', username='cm1', is_first_login=True))
        self.assertEqual(view.role, 'content_manager')
        self.assertIn('content.manage', view.permissions)
        self.assertEqual(view.permissions, sorted(view.permissions))
        self.assertEqual(view.role_info.display_name, 'Content Manager')
        self.assertEqual(view.username, 'cm1')
        self.assertTrue(view.is_first_login)

    def test_issue_session(self):
        session = issue_session(_user())
        self.assertEqual(decode_access_token(session.token)['sub'], 'user-1')
        self.assertEqual(session.user.id, 'user-1')


if __name__ == '__main__':
    unittest.main()
