"""Tests for /admin/{resource} routes.

Tests focus on:
- Response envelope and pagination shape
- Capability checks (403) per resource and per read/write
- Domain errors rendered as {success: false, error}
"""

import sys
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from fastapi.testclient import TestClient

from api.dependencies import get_resource_repo_factory
from api.main import app
from api.security import get_current_user_required
from adapter.fake.resource_repository import FakeResourceRepository
from domain.model.user import User


def _user(user_type: str, role: str | None = None) -> User:
    now = datetime.now(timezone.utc)
    return User(id=f'{user_type}-1', name='Test', email=f'{user_type}@example.com', phone='',
                user_type=user_type, created_at=now, updated_at=now, role=role)


class _AdminRouteTestCase(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)
        self.repos: dict[str, FakeResourceRepository] = {}
        self.current_user = _user('admin')
        app.dependency_overrides[get_current_user_required] = lambda: self.current_user
        app.dependency_overrides[get_resource_repo_factory] = lambda: self._repo

    def tearDown(self):
        app.dependency_overrides.clear()

    def _repo(self, collection: str) -> FakeResourceRepository:
        return self.repos.setdefault(collection, FakeResourceRepository())


class TestListRoute(_AdminRouteTestCase):

    def test_envelope_and_pagination(self):
        base = datetime(2026, 1, 1, tzinfo=timezone.utc)
        repo = self._repo('banners')
        for n in range(5):
            repo.insert({'id': f'b{n}', 'title': f'Banner {n}', 'image_url': 'u', 'order': n, 'active': True,
                         'created_at': base + timedelta(hours=n)})

        response = self.client.get('/admin/banners', params={'page': 2, 'limit': 2})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['pagination'], {'page': 2, 'limit': 2, 'total': 5, 'pages': 3})
        self.assertEqual([i['id'] for i in body['data']['items']], ['b2', 'b3'])

    def test_filters_from_query_string(self):
        repo = self._repo('banners')
        repo.insert({'id': 'on', 'title': 'On', 'image_url': 'u', 'order': 1, 'active': True})
        repo.insert({'id': 'off', 'title': 'Off', 'image_url': 'u', 'order': 2, 'active': False})

        response = self.client.get('/admin/banners', params={'active': 'false'})

        self.assertEqual([i['id'] for i in response.json()['data']['items']], ['off'])

    def test_bad_filter_value(self):
        response = self.client.get('/admin/banners', params={'active': 'sometimes'})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_limit_out_of_range(self):
        response = self.client.get('/admin/banners', params={'limit': 500})
        self.assertEqual(response.status_code, 400)
        self.assertIn('limit', response.json()['error'])

    def test_users_listing_hides_password_hash(self):
        self._repo('users').insert({'id': 'u1', 'name': 'P', 'password_hash': 'h',
                                    'created_at': datetime.now(timezone.utc)})
        item = self.client.get('/admin/users').json()['data']['items'][0]
        self.assertNotIn('password_hash', item)


class TestCapabilities(_AdminRouteTestCase):

    def test_marketplace_user_forbidden(self):
        self.current_user = _user('seller')
        response = self.client.get('/admin/categories')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {'success': False, 'error': 'Insufficient permissions'})

    def test_view_only_staff_can_read_but_not_write(self):
        self.current_user = _user('staff', 'admin')

        self.assertEqual(self.client.get('/admin/banners').status_code, 200)
        response = self.client.post('/admin/banners', json={'title': 'T', 'image_url': 'u'})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self._repo('banners').store, {})

    def test_content_manager_manages_content_only(self):
        self.current_user = _user('staff', 'content_manager')

        self.assertEqual(self.client.post('/admin/pages', json={'title': 'About', 'slug': 'about'}).status_code, 201)
        self.assertEqual(self.client.get('/admin/settings').status_code, 403)


class TestWriteRoutes(_AdminRouteTestCase):

    def test_crud_round(self):
        created = self.client.post('/admin/categories', json={'name': 'Plots', 'slug': 'plots'})
        self.assertEqual(created.status_code, 201)
        item_id = created.json()['data']['id']
        self.assertEqual(created.json()['data']['order'], 1)

        fetched = self.client.get(f'/admin/categories/{item_id}')
        self.assertEqual(fetched.json()['data']['name'], 'Plots')

        updated = self.client.put(f'/admin/categories/{item_id}', json={'name': 'Land'})
        self.assertEqual(updated.json()['data']['name'], 'Land')

        toggled = self.client.patch(f'/admin/categories/{item_id}/toggle')
        self.assertFalse(toggled.json()['data']['active'])

        deleted = self.client.delete(f'/admin/categories/{item_id}')
        self.assertEqual(deleted.json()['data'], {'id': item_id})
        self.assertEqual(self.client.get(f'/admin/categories/{item_id}').status_code, 404)

    def test_create_missing_required_field(self):
        response = self.client.post('/admin/categories', json={'name': 'Plots'})
        self.assertEqual(response.status_code, 400)
        self.assertIn('slug', response.json()['error'])

    def test_users_not_creatable(self):
        response = self.client.post('/admin/users', json={'name': 'X'})
        self.assertEqual(response.status_code, 403)

    def test_reorder(self):
        repo = self._repo('categories')
        for item_id in ('a', 'b', 'c'):
            repo.insert({'id': item_id, 'name': item_id, 'slug': item_id, 'order': 0, 'active': True})

        response = self.client.post('/admin/categories/reorder', json={'ids': ['b', 'c', 'a']})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data'], {'updated': 3})
        self.assertEqual(repo.store['b']['order'], 1)
        self.assertEqual(repo.store['a']['order'], 3)

    def test_reorder_empty_ids(self):
        response = self.client.post('/admin/categories/reorder', json={'ids': []})
        self.assertEqual(response.status_code, 400)

    def test_unknown_item(self):
        response = self.client.put('/admin/banners/missing', json={'title': 'X'})
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.json()['success'])


if __name__ == '__main__':
    unittest.main()
