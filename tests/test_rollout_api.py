"""
Tests de integración para la API de rollout (blueprints/rollout.py)
"""

import unittest
from unittest.mock import patch
import sys
import os
import tempfile

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ.setdefault('RATELIMIT_ENABLED', 'false')
os.environ.setdefault('LOG_FILE', os.path.join(tempfile.gettempdir(), 'rollout-tests.log'))

from prometheus_client import REGISTRY

import cache as report_cache
from app import app

ROLLOUT_ENV = {
    'ROLLOUT_ROLLOUT_DEMO_PERCENT': '50',
    'ROLLOUT_ROLLOUT_DEMO_SEED': 'seed-1',
    'ROLLOUT_ROLLOUT_DEMO_ENABLED': 'true',
}


class RolloutApiTestCase(unittest.TestCase):
    def setUp(self):
        app.config['TESTING'] = True
        self.client = app.test_client()

        env_patcher = patch.dict('os.environ', ROLLOUT_ENV)
        env_patcher.start()
        self.addCleanup(env_patcher.stop)

        get_patcher = patch.object(report_cache, 'get_cached_rollout_report', return_value=None)
        self.mock_get_cached = get_patcher.start()
        self.addCleanup(get_patcher.stop)

        set_patcher = patch.object(report_cache, 'cache_rollout_report', return_value=True)
        self.mock_cache_report = set_patcher.start()
        self.addCleanup(set_patcher.stop)


class TestCheckEndpoint(RolloutApiTestCase):
    def test_uses_env_config(self):
        response = self.client.get('/api/rollout/check?subject_id=user-1&flag_key=rollout-demo')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['bucket'], 8801)
        self.assertEqual(data['threshold'], 5000)
        self.assertEqual(data['seed'], 'seed-1')
        self.assertEqual(data['enabled_from_percent'], 88.02)
        self.assertFalse(data['in_rollout'])

    def test_query_overrides(self):
        response = self.client.get(
            '/api/rollout/check?subject_id=user-00042&flag_key=rollout-demo&seed=seed-1&percentage=59.22'
        )
        data = response.get_json()
        self.assertEqual(data['bucket'], 5921)
        self.assertEqual(data['rollout_percent'], 59.22)
        self.assertTrue(data['in_rollout'])

    def test_master_switch_override(self):
        response = self.client.get(
            '/api/rollout/check?subject_id=user-1&flag_key=rollout-demo&percentage=100&enabled=false'
        )
        self.assertFalse(response.get_json()['in_rollout'])

    def test_missing_subject(self):
        response = self.client.get('/api/rollout/check?flag_key=rollout-demo')
        self.assertEqual(response.status_code, 400)
        self.assertIn('subject_id', response.get_json()['error'])

    def test_missing_flag(self):
        response = self.client.get('/api/rollout/check?subject_id=user-1')
        self.assertEqual(response.status_code, 400)

    def test_bad_percentage(self):
        response = self.client.get('/api/rollout/check?subject_id=user-1&flag_key=f&percentage=lots')
        self.assertEqual(response.status_code, 400)

    def test_metrics_are_tracked(self):
        labels = {'flag_key': 'metrics-flag', 'result': 'enabled'}
        before = REGISTRY.get_sample_value('rollout_evaluations_total', labels) or 0
        self.client.get('/api/rollout/check?subject_id=user-1&flag_key=metrics-flag&percentage=100')
        after = REGISTRY.get_sample_value('rollout_evaluations_total', labels)
        self.assertEqual(after, before + 1)


class TestBulkEndpoint(RolloutApiTestCase):
    def test_bulk_decisions(self):
        subjects = [f'user-{i:05d}' for i in range(100)]
        response = self.client.post('/api/rollout/bulk', json={
            'flag_key': 'rollout-demo',
            'seed': 'seed-1',
            'percentage': 10,
            'subject_ids': subjects,
        })
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['total'], 100)
        self.assertFalse(data['results']['user-00042'])
        self.assertEqual(data['enabled_count'], sum(1 for v in data['results'].values() if v))

    def test_bulk_requires_subjects(self):
        response = self.client.post('/api/rollout/bulk', json={'flag_key': 'rollout-demo'})
        self.assertEqual(response.status_code, 400)

    def test_bulk_rejects_empty_subject(self):
        response = self.client.post('/api/rollout/bulk', json={
            'flag_key': 'rollout-demo',
            'subject_ids': ['user-1', ''],
        })
        self.assertEqual(response.status_code, 400)

    def test_bulk_disabled_flag_still_validates_subjects(self):
        for subjects in ([[1]], ["user-1", 5, ""], ["user-1", ""]):
            response = self.client.post('/api/rollout/bulk', json={
                'flag_key': 'rollout-demo',
                'enabled': False,
                'subject_ids': subjects,
            })
            self.assertEqual(response.status_code, 400)
            self.assertIn('error', response.get_json())

    def test_bulk_disabled_flag(self):
        response = self.client.post('/api/rollout/bulk', json={
            'flag_key': 'rollout-demo',
            'enabled': False,
            'percentage': 100,
            'subject_ids': ['user-1', 'user-2'],
        })
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['enabled_count'], 0)
        self.assertEqual(data['total'], 2)

    def test_bulk_rejects_duplicate_subjects(self):
        response = self.client.post('/api/rollout/bulk', json={
            'flag_key': 'rollout-demo',
            'percentage': 50,
            'subject_ids': ['u'] * 5,
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('unique', response.get_json()['error'])

    def test_bulk_rejects_non_object_body(self):
        response = self.client.post('/api/rollout/bulk', json=['user-1'])
        self.assertEqual(response.status_code, 400)

    def test_bulk_limit(self):
        response = self.client.post('/api/rollout/bulk', json={
            'flag_key': 'rollout-demo',
            'subject_ids': ['u'] * 10_001,
        })
        self.assertEqual(response.status_code, 400)


class TestReportEndpoints(RolloutApiTestCase):
    def test_distribution(self):
        response = self.client.get('/api/rollout/distribution?flag_key=rollout-demo&percentage=10')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['enabled_count'], 1002)
        self.assertEqual(data['population'], 10_000)
        self.assertFalse(data['cached'])
        self.mock_cache_report.assert_called_once()

    def test_distribution_served_from_cache(self):
        self.mock_get_cached.return_value = {'flag_key': 'rollout-demo', 'enabled_count': 7}
        response = self.client.get('/api/rollout/distribution?flag_key=rollout-demo')
        data = response.get_json()
        self.assertTrue(data['cached'])
        self.assertEqual(data['enabled_count'], 7)
        self.mock_cache_report.assert_not_called()

    def test_distribution_population_bounds(self):
        for population in ('0', '100001', 'many'):
            response = self.client.get(f'/api/rollout/distribution?flag_key=rollout-demo&population={population}')
            self.assertEqual(response.status_code, 400)

    def test_correlation(self):
        response = self.client.get('/api/rollout/correlation?flag_a=a&flag_b=b&seed=seed&percentage=50')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['enabled_both'], 2550)
        self.assertLess(abs(data['correlation']), 0.05)

    def test_correlation_requires_both_flags(self):
        response = self.client.get('/api/rollout/correlation?flag_a=a')
        self.assertEqual(response.status_code, 400)

    def test_cache_stats(self):
        response = self.client.get('/api/rollout/cache-stats')
        self.assertEqual(response.status_code, 200)
        self.assertIn('available', response.get_json())


class TestAppEndpoints(RolloutApiTestCase):
    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'ok')

    def test_metrics_endpoint(self):
        response = self.client.get('/metrics')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'rollout_evaluations_total', response.data)

    def test_api_docs(self):
        response = self.client.get('/apispec.json')
        self.assertEqual(response.status_code, 200)
        self.assertIn('/api/rollout/check', response.get_json()['paths'])


if __name__ == '__main__':
    unittest.main()
