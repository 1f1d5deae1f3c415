import logging


class Actuator:
    """Applies scaling decisions to a fleet. Failures are logged and dropped."""

    def __init__(self, fleet):
        self.fleet = fleet

    def apply(self, instances: int) -> bool:
        logging.info(f"Scaling to {instances} instances", extra={'instances': instances})
        try:
            succeeded = self.fleet.scale(instances)
        except Exception as e:
            logging.error(f"Failed to scale to {instances} instances: {e}", exc_info=True)
            return False

        if not succeeded:
            logging.error(f"Failed to scale to {instances} instances")
        return succeeded
