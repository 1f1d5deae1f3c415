import logging
import redis


def create_redis_client(redis_address, password=None):
    """
    Create a Redis client for the Resque backend.

    Args:
        redis_address: Either ``host:port`` or a ``redis://``/``rediss://`` URL
        password: Optional Redis password

    Returns:
        redis.Redis: Client returning decoded strings
    """
    if '://' in redis_address:
        return redis.Redis.from_url(redis_address, password=password, decode_responses=True)

    host, _, port = redis_address.rpartition(':')
    if not host:
        host, port = redis_address, '6379'
    return redis.Redis(
        host=host,
        port=int(port),
        password=password,
        decode_responses=True
    )


def count_active_jobs(client, namespace='resque'):
    """
    Count Resque workers that are currently working a job.

    A registered worker is busy when its ``<ns>:worker:<id>`` key exists; idle
    or dead workers have no such key. A failed lookup of the worker set counts
    as zero and a failed per-worker lookup is skipped.

    Args:
        client: Redis client
        namespace: Resque key prefix

    Returns:
        int: Number of in-progress jobs
    """
    try:
        workers = client.smembers(f"{namespace}:workers")
    except redis.exceptions.RedisError as e:
        logging.error(f"Failed to retrieve resque worker set from redis: {e}")
        return 0

    jobs = 0
    for worker in workers:
        worker_key = f"{namespace}:worker:{worker}"
        try:
            if client.exists(worker_key):
                jobs += 1
        except redis.exceptions.RedisError as e:
            logging.error(f"Unexpected error when getting resque worker {worker} from redis: {e}")
    return jobs


def count_pending_jobs(client, namespace='resque'):
    """
    Sum the lengths of all registered Resque queues.

    A failed lookup of the queue set counts as zero and a failed per-queue
    length lookup is skipped.

    Args:
        client: Redis client
        namespace: Resque key prefix

    Returns:
        int: Number of queued jobs
    """
    try:
        queues = client.smembers(f"{namespace}:queues")
    except redis.exceptions.RedisError as e:
        logging.error(f"Failed to retrieve resque queue set from redis: {e}")
        return 0

    jobs = 0
    for queue in queues:
        queue_key = f"{namespace}:queue:{queue}"
        try:
            jobs += client.llen(queue_key)
        except redis.exceptions.RedisError as e:
            logging.error(f"Unexpected error when getting length of resque queue {queue}: {e}")
    return jobs


class ResqueSampler:
    """Samples the Resque backlog: in-progress plus queued jobs."""

    def __init__(self, client, namespace='resque'):
        self.client = client
        self.namespace = namespace

    def sample(self) -> int:
        active = count_active_jobs(self.client, self.namespace)
        pending = count_pending_jobs(self.client, self.namespace)
        logging.debug(f"Resque backlog: {active} active, {pending} pending")
        return active + pending
