import logging
import sys

from resque_autoscaler.aws.wrapper import AWSWrapper
from resque_autoscaler.common.logger import setup_logging
from resque_autoscaler.config import load_config, Config, ConfigError
from resque_autoscaler.controller import Autoscaler
from resque_autoscaler.fleet.ecs import EcsFleet
from resque_autoscaler.fleet.render import RenderFleet
from resque_autoscaler.queue_metrics.resque import ResqueSampler, create_redis_client


def _render_fleet(config: Config):
    return RenderFleet(
        service_id=config.worker_service_id,
        api_key=config.render_api_key,
        api_url=config.render_api_url,
        timeout=config.request_timeout
    )


def _ecs_fleet(config: Config):
    aws_wrapper = AWSWrapper(
        sso_profile_name=config.sso_profile,
        region_name=config.region,
        timeout=config.request_timeout
    )
    return EcsFleet(aws_wrapper, config.ecs_cluster, config.worker_service_id)


def create_fleet(config: Config):
    """
    Build the fleet-management client for the configured provider.

    Raises:
        ValueError: If the fleet provider is not supported
    """
    fleet_providers = {
        'render': _render_fleet,
        'ecs': _ecs_fleet,
    }

    provider = fleet_providers.get(config.fleet_provider)
    if provider is None:
        supported = ', '.join(fleet_providers.keys())
        raise ValueError(f"Unsupported fleet provider: {config.fleet_provider}. Supported providers: {supported}")

    return provider(config)


def create_sampler(config: Config) -> ResqueSampler:
    client = create_redis_client(config.redis_address, config.redis_password)
    return ResqueSampler(client, config.resque_namespace)


def create_autoscaler(config: Config) -> Autoscaler:
    logging.info(f"Autoscaling {config.fleet_provider} service {config.worker_service_id} "
                 f"against resque backlog at {config.redis_address}")
    return Autoscaler(config, create_sampler(config), create_fleet(config))


def main():
    """Process entry point: load configuration and run until terminated."""
    setup_logging()

    try:
        config = load_config()
    except ConfigError as e:
        logging.critical(f"Invalid configuration: {e}")
        sys.exit(1)

    create_autoscaler(config).run()


if __name__ == '__main__':
    main()
