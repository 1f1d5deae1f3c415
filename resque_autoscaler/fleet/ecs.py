import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError


class EcsFleet:
    """Reads and resizes the desired task count of an ECS service."""

    def __init__(self, aws_wrapper, cluster: str, service_name: str):
        self.aws_wrapper = aws_wrapper
        self.cluster = cluster
        self.service_name = service_name

    def get_instance_count(self) -> Optional[int]:
        """
        Get the desired task count of the service.

        Returns:
            Optional[int]: The desired count, or None if it could not be read
        """
        try:
            ecs_client = self.aws_wrapper.create_aws_client('ecs')
            response = ecs_client.describe_services(
                cluster=self.cluster,
                services=[self.service_name]
            )
        except (BotoCoreError, ClientError) as e:
            logging.error(f"Unable to retrieve current task count for {self.service_name}: {e}")
            return None

        if not response.get('services'):
            logging.error(f"Service {self.service_name} not found in cluster {self.cluster}")
            return None

        return response['services'][0].get('desiredCount')

    def scale(self, instances: int) -> bool:
        """
        Update the ECS service with a new desired count.

        Returns:
            bool: Whether ECS accepted the update
        """
        try:
            ecs_client = self.aws_wrapper.create_aws_client('ecs')
            ecs_client.update_service(
                cluster=self.cluster,
                service=self.service_name,
                desiredCount=instances
            )
        except (BotoCoreError, ClientError) as e:
            logging.error(f"Error updating service {self.service_name}: {e}", exc_info=True)
            return False

        logging.info(f"Updated service {self.service_name} to {instances} tasks")
        return True
