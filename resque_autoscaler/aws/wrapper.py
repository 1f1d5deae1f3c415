import logging
import boto3
from botocore.exceptions import ClientError
from botocore.config import Config
from retry import retry

RETRIES_NUMBER = 3
REGION = 'us-east-1'


class AWSWrapper:
    """
    Creates boto3 sessions and clients, retrying transient failures during setup.

    Clients are cached per service so each call against the fleet reuses the
    same connection pool.
    """

    def __init__(self, sso_profile_name: str = None, region_name: str = REGION, timeout: float = 30.0):
        self._region_name = region_name
        self._timeout = timeout
        self._clients = {}
        self._session = self._create_boto_session(sso_profile_name)

    @retry(exceptions=ClientError, tries=RETRIES_NUMBER, delay=3)
    def _create_boto_session(self, sso_profile_name: str = None):
        logging.debug("Creating boto3 session via " + ("SSO profile name" if sso_profile_name else "default credentials"))
        if sso_profile_name:
            return boto3.session.Session(profile_name=sso_profile_name, region_name=self._region_name)
        return boto3.session.Session(region_name=self._region_name)

    @retry(exceptions=ClientError, tries=RETRIES_NUMBER, delay=3)
    def create_aws_client(self, service_name: str):
        """
        Get the boto3 client for a service, creating it on first use.

        Args:
            service_name: AWS service name, e.g. 'ecs'

        Returns:
            Boto3 client for the requested service
        """
        client = self._clients.get(service_name)
        if client is None:
            logging.debug(f'creating aws client for: {service_name}')
            # API calls themselves are single-attempt
            config = Config(
                connect_timeout=self._timeout,
                read_timeout=self._timeout,
                retries={'max_attempts': 1, 'mode': 'standard'}
            )
            client = self._session.client(service_name=service_name, config=config)
            self._clients[service_name] = client
        return client
