"""Unit tests for user types, staff roles and capability sets."""

import unittest
from datetime import datetime, timezone

from domain.model.role import (
    Capability,
    ROLE_CAPABILITIES,
    StaffRole,
    UserType,
    capabilities_for,
    effective_role,
    is_backoffice,
    resolve_user_type,
    role_info_for,
)
from domain.model.user import User


def _user(user_type: str, role: str | None = None) -> User:
    now = datetime.now(timezone.utc)
    return User(id='u1', name='N', email='n@example.com', phone='', user_type=user_type,
                created_at=now, updated_at=now, role=role)


class TestResolveUserType(unittest.TestCase):

    def test_known_types_pass_through(self):
        for value in ('seller', 'buyer', 'agent', 'admin', 'staff'):
            self.assertEqual(resolve_user_type(value).value, value)

    def test_case_and_whitespace_insensitive(self):
        self.assertEqual(resolve_user_type(' Buyer '), UserType.BUYER)

    def test_unknown_or_missing_falls_back_to_seller(self):
        for hint in (None, '', 'landlord', 'superuser'):
            with self.subTest(hint=hint):
                self.assertEqual(resolve_user_type(hint), UserType.SELLER)


class TestCapabilities(unittest.TestCase):

    def test_admin_type_has_every_capability(self):
        self.assertEqual(capabilities_for(_user('admin')), frozenset(Capability))

    def test_staff_gets_role_capabilities(self):
        caps = capabilities_for(_user('staff', 'content_manager'))
        self.assertIn(Capability.CONTENT_MANAGE, caps)
        self.assertNotIn(Capability.USERS_MANAGE, caps)

    def test_staff_with_unknown_role_is_view_only(self):
        caps = capabilities_for(_user('staff', 'intern'))
        self.assertEqual(caps, ROLE_CAPABILITIES[StaffRole.ADMIN])
        self.assertNotIn(Capability.CONTENT_MANAGE, caps)

    def test_marketplace_users_have_none(self):
        for user_type in ('seller', 'buyer', 'agent'):
            self.assertEqual(capabilities_for(_user(user_type)), frozenset())


class TestRoleDisplay(unittest.TestCase):

    def test_effective_role(self):
        self.assertEqual(effective_role(_user('admin')), 'super_admin')
        self.assertEqual(effective_role(_user('staff')), 'admin')
        self.assertEqual(effective_role(_user('staff', 'sales_manager')), 'sales_manager')
        self.assertIsNone(effective_role(_user('seller')))

    def test_role_info(self):
        self.assertEqual(role_info_for('content_manager').display_name, 'Content Manager')
        unknown = role_info_for('intern')
        self.assertEqual((unknown.display_name, unknown.color), ('intern', 'gray'))

    def test_is_backoffice(self):
        self.assertTrue(is_backoffice(_user('staff', 'admin')))
        self.assertTrue(is_backoffice(_user('admin')))
        self.assertFalse(is_backoffice(_user('buyer')))


if __name__ == '__main__':
    unittest.main()
