import unittest
from unittest import mock

import requests
from botocore.exceptions import ClientError, EndpointConnectionError

from resque_autoscaler.fleet.ecs import EcsFleet
from resque_autoscaler.fleet.render import RenderFleet


def http_response(status_code, body=None):
    response = mock.MagicMock()
    response.status_code = status_code
    if isinstance(body, Exception):
        response.json.side_effect = body
    else:
        response.json.return_value = body
    return response


class TestRenderFleet(unittest.TestCase):
    """Tests for the Render fleet client."""

    def setUp(self):
        self.session = mock.MagicMock()
        self.session.headers = {}
        self.fleet = RenderFleet('srv-123', 'rnd_secret', api_url='https://api.render.test/v1/',
                                 timeout=5, session=self.session)

    def test_sets_auth_headers(self):
        self.assertEqual(self.session.headers['Authorization'], 'Bearer rnd_secret')
        self.assertEqual(self.session.headers['Accept'], 'application/json')

    def test_get_instance_count(self):
        self.session.get.return_value = http_response(200, {'serviceDetails': {'numInstances': 4}})

        self.assertEqual(self.fleet.get_instance_count(), 4)
        self.session.get.assert_called_once_with('https://api.render.test/v1/services/srv-123', timeout=5)

    def test_get_instance_count_http_error(self):
        self.session.get.return_value = http_response(401, {'message': 'unauthorized'})

        with self.assertLogs(level='ERROR'):
            self.assertIsNone(self.fleet.get_instance_count())

    def test_get_instance_count_transport_error(self):
        self.session.get.side_effect = requests.ConnectionError("unreachable")

        with self.assertLogs(level='ERROR'):
            self.assertIsNone(self.fleet.get_instance_count())

    def test_get_instance_count_unexpected_body(self):
        for body in [{'serviceDetails': {}}, {'id': 'srv-123'}, ValueError("not json")]:
            with self.subTest(body=body):
                self.session.get.return_value = http_response(200, body)
                with self.assertLogs(level='ERROR'):
                    self.assertIsNone(self.fleet.get_instance_count())

    def test_scale(self):
        self.session.post.return_value = http_response(202)

        self.assertTrue(self.fleet.scale(7))
        self.session.post.assert_called_once_with('https://api.render.test/v1/services/srv-123/scale',
                                                  json={'numInstances': 7}, timeout=5)

    def test_scale_rejected(self):
        self.session.post.return_value = http_response(400)

        with self.assertLogs(level='ERROR'):
            self.assertFalse(self.fleet.scale(7))

    def test_scale_transport_error(self):
        self.session.post.side_effect = requests.Timeout("timed out")

        with self.assertLogs(level='ERROR'):
            self.assertFalse(self.fleet.scale(7))


class TestEcsFleet(unittest.TestCase):
    """Tests for the ECS fleet client."""

    def setUp(self):
        self.ecs_client = mock.MagicMock()
        self.aws_wrapper = mock.MagicMock()
        self.aws_wrapper.create_aws_client.return_value = self.ecs_client
        self.fleet = EcsFleet(self.aws_wrapper, 'test-cluster', 'test-service')

    def test_get_instance_count(self):
        self.ecs_client.describe_services.return_value = {
            'services': [{'desiredCount': 6, 'runningCount': 5}]
        }

        self.assertEqual(self.fleet.get_instance_count(), 6)
        self.aws_wrapper.create_aws_client.assert_called_with('ecs')
        self.ecs_client.describe_services.assert_called_once_with(cluster='test-cluster',
                                                                  services=['test-service'])

    def test_get_instance_count_service_missing(self):
        self.ecs_client.describe_services.return_value = {'services': []}

        with self.assertLogs(level='ERROR'):
            self.assertIsNone(self.fleet.get_instance_count())

    def test_get_instance_count_client_error(self):
        self.ecs_client.describe_services.side_effect = ClientError(
            {'Error': {'Code': 'AccessDeniedException', 'Message': 'denied'}}, 'DescribeServices'
        )

        with self.assertLogs(level='ERROR'):
            self.assertIsNone(self.fleet.get_instance_count())

    def test_scale(self):
        self.assertTrue(self.fleet.scale(9))
        self.ecs_client.update_service.assert_called_once_with(cluster='test-cluster',
                                                               service='test-service', desiredCount=9)

    def test_scale_failure(self):
        self.ecs_client.update_service.side_effect = EndpointConnectionError(endpoint_url='https://ecs.test')

        with self.assertLogs(level='ERROR'):
            self.assertFalse(self.fleet.scale(9))


if __name__ == '__main__':
    unittest.main()
