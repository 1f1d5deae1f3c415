import unittest
from unittest import mock

from resque_autoscaler.config import load_config
from resque_autoscaler.fleet.ecs import EcsFleet
from resque_autoscaler.fleet.render import RenderFleet
from resque_autoscaler.main import create_fleet, create_sampler, main

BASE_ENV = {
    'WORKER_SERVICE_ID': 'srv-123',
    'RENDER_API_KEY': 'rnd_secret',
    'REDIS_ADDRESS': 'localhost:6379',
}


class TestBootstrap(unittest.TestCase):
    """Tests for wiring the autoscaler from configuration."""

    def test_create_render_fleet(self):
        config = load_config(dict(BASE_ENV, REQUEST_TIMEOUT='5s'))

        fleet = create_fleet(config)

        self.assertIsInstance(fleet, RenderFleet)
        self.assertEqual(fleet.service_id, 'srv-123')
        self.assertEqual(fleet.timeout, 5.0)

    @mock.patch('resque_autoscaler.main.AWSWrapper')
    def test_create_ecs_fleet(self, mock_wrapper):
        config = load_config(dict(BASE_ENV, FLEET_PROVIDER='ecs', ECS_CLUSTER='workers',
                                  AWS_REGION='eu-west-1'))

        fleet = create_fleet(config)

        self.assertIsInstance(fleet, EcsFleet)
        self.assertEqual(fleet.cluster, 'workers')
        self.assertEqual(fleet.service_name, 'srv-123')
        mock_wrapper.assert_called_once_with(sso_profile_name=None, region_name='eu-west-1', timeout=30.0)

    @mock.patch('resque_autoscaler.main.create_redis_client')
    def test_create_sampler(self, mock_create_client):
        config = load_config(dict(BASE_ENV, REDIS_PASSWORD='pw', RESQUE_NAMESPACE='jobs'))

        sampler = create_sampler(config)

        mock_create_client.assert_called_once_with('localhost:6379', 'pw')
        self.assertIs(sampler.client, mock_create_client.return_value)
        self.assertEqual(sampler.namespace, 'jobs')

    @mock.patch('resque_autoscaler.main.setup_logging')
    def test_main_exits_on_invalid_config(self, _):
        with mock.patch.dict('os.environ', {}, clear=True):
            with self.assertLogs(level='CRITICAL'):
                with self.assertRaises(SystemExit) as raised:
                    main()

        self.assertEqual(raised.exception.code, 1)

    @mock.patch('resque_autoscaler.main.create_autoscaler')
    @mock.patch('resque_autoscaler.main.setup_logging')
    def test_main_exits_on_malformed_redis_address(self, _, mock_create_autoscaler):
        with mock.patch.dict('os.environ', dict(BASE_ENV, REDIS_ADDRESS='redis:abc'), clear=True):
            with self.assertLogs(level='CRITICAL') as logs:
                with self.assertRaises(SystemExit) as raised:
                    main()

        self.assertEqual(raised.exception.code, 1)
        self.assertIn('REDIS_ADDRESS', logs.output[0])
        mock_create_autoscaler.assert_not_called()

    @mock.patch('resque_autoscaler.main.create_autoscaler')
    @mock.patch('resque_autoscaler.main.setup_logging')
    def test_main_runs_autoscaler(self, _, mock_create_autoscaler):
        with mock.patch.dict('os.environ', BASE_ENV, clear=True):
            main()

        mock_create_autoscaler.return_value.run.assert_called_once_with()


if __name__ == '__main__':
    unittest.main()
