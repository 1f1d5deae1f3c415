import math
import os
import re
from typing import Dict, Optional, NamedTuple

FLEET_PROVIDERS = ('render', 'ecs')

_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)')


class ConfigError(ValueError):
    """Raised when a configuration value is missing, malformed or inconsistent."""


class Config(NamedTuple):
    """Configuration for the autoscaler."""
    # Fleet configuration
    worker_service_id: str
    render_api_key: Optional[str]
    fleet_provider: str
    render_api_url: str
    ecs_cluster: Optional[str]
    region: str
    sso_profile: Optional[str]

    # Job queue configuration
    redis_address: str
    redis_password: Optional[str]
    resque_namespace: str

    # Scaling parameters
    min_instances: int
    max_instances: int
    workers_per_instance: int
    interval: float
    num_samples: int

    # Hysteresis configuration, in seconds
    scale_up_delay: float
    scale_down_delay: float

    # Network configuration
    request_timeout: float


def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts Go-style duration strings such as ``300ms``, ``1.5s``, ``1m30s`` or
    ``2h``, and bare numbers, which are read as seconds.

    Raises:
        ValueError: If the value is not a valid duration
    """
    text = value.strip()
    try:
        seconds = float(text)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds):
            raise ValueError(f"invalid duration: {value!r}")
        return seconds

    sign = 1.0
    if text[:1] in ('+', '-'):
        sign = -1.0 if text[0] == '-' else 1.0
        text = text[1:]

    if not text:
        raise ValueError(f"invalid duration: {value!r}")

    total = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text) or not math.isfinite(total):
        raise ValueError(f"invalid duration: {value!r}")

    return sign * total


def _required(environ: Dict[str, str], key: str) -> str:
    value = environ.get(key)
    if value is None or value.strip() == '':
        raise ConfigError(f"required key {key} missing value")
    return value


def _int(environ: Dict[str, str], key: str, default: str) -> int:
    raw = environ.get(key, default)
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{key}: invalid integer {raw!r}") from None


def _duration(environ: Dict[str, str], key: str, default: str) -> float:
    raw = environ.get(key, default)
    try:
        return parse_duration(raw)
    except ValueError:
        raise ConfigError(f"{key}: invalid duration {raw!r}") from None


def _redis_address(environ: Dict[str, str]) -> str:
    address = _required(environ, 'REDIS_ADDRESS')
    if '://' in address:
        return address

    host, separator, port = address.rpartition(':')
    if separator and (not host or not port.isdigit() or not 0 < int(port) < 65536):
        raise ConfigError(f"REDIS_ADDRESS: invalid address {address!r}, expected host:port or a redis:// URL")
    return address


def validate_config(config: Config) -> Config:
    """
    Check the cross-field invariants of a configuration.

    Returns:
        Config: The same configuration, for chaining

    Raises:
        ConfigError: If any invariant is violated
    """
    if config.min_instances <= 0:
        raise ConfigError(f"MIN_INSTANCES must be positive, got {config.min_instances}")
    if config.max_instances < config.min_instances:
        raise ConfigError(f"MAX_INSTANCES ({config.max_instances}) must not be lower than "
                          f"MIN_INSTANCES ({config.min_instances})")
    if config.workers_per_instance < 1:
        raise ConfigError(f"WORKERS_PER_INSTANCE must be at least 1, got {config.workers_per_instance}")
    if config.num_samples < 1:
        raise ConfigError(f"NUM_SAMPLES must be at least 1, got {config.num_samples}")
    for field in ('interval', 'scale_up_delay', 'scale_down_delay', 'request_timeout'):
        if not math.isfinite(getattr(config, field)):
            raise ConfigError(f"{field.upper()} must be a finite duration, got {getattr(config, field)}")
    if config.interval <= 0:
        raise ConfigError(f"INTERVAL must be positive, got {config.interval}s")
    if config.scale_up_delay < 0 or config.scale_down_delay < 0:
        raise ConfigError("SCALE_UP_DELAY and SCALE_DOWN_DELAY must not be negative")
    if config.request_timeout <= 0:
        raise ConfigError(f"REQUEST_TIMEOUT must be positive, got {config.request_timeout}s")
    if config.fleet_provider not in FLEET_PROVIDERS:
        raise ConfigError(f"Unsupported fleet provider: {config.fleet_provider}. "
                          f"Supported providers: {', '.join(FLEET_PROVIDERS)}")
    if config.fleet_provider == 'render' and not config.render_api_key:
        raise ConfigError("required key RENDER_API_KEY missing value")
    if config.fleet_provider == 'ecs' and not config.ecs_cluster:
        raise ConfigError("required key ECS_CLUSTER missing value")
    return config


def load_config(environ: Optional[Dict[str, str]] = None) -> Config:
    """
    Load configuration from environment variables.

    Args:
        environ: Optional mapping to read instead of ``os.environ``

    Returns:
        Config: Validated configuration object

    Raises:
        ConfigError: If a required key is missing or a value is malformed
    """
    environ = os.environ if environ is None else environ

    # Fleet configuration
    worker_service_id = _required(environ, 'WORKER_SERVICE_ID')
    fleet_provider = (environ.get('FLEET_PROVIDER') or 'render').lower()
    render_api_key = environ.get('RENDER_API_KEY') or None
    render_api_url = (environ.get('RENDER_API_URL') or 'https://api.render.com/v1').rstrip('/')
    ecs_cluster = environ.get('ECS_CLUSTER') or None
    region = environ.get('AWS_REGION') or 'us-east-1'
    sso_profile = environ.get('SSO_PROFILE') or None

    # Job queue configuration
    redis_address = _redis_address(environ)
    redis_password = environ.get('REDIS_PASSWORD') or None
    resque_namespace = environ.get('RESQUE_NAMESPACE') or 'resque'

    config = Config(
        worker_service_id=worker_service_id,
        render_api_key=render_api_key,
        fleet_provider=fleet_provider,
        render_api_url=render_api_url,
        ecs_cluster=ecs_cluster,
        region=region,
        sso_profile=sso_profile,
        redis_address=redis_address,
        redis_password=redis_password,
        resque_namespace=resque_namespace,
        min_instances=_int(environ, 'MIN_INSTANCES', '2'),
        max_instances=_int(environ, 'MAX_INSTANCES', '50'),
        workers_per_instance=_int(environ, 'WORKERS_PER_INSTANCE', '1'),
        interval=_duration(environ, 'INTERVAL', '1s'),
        num_samples=_int(environ, 'NUM_SAMPLES', '1'),
        scale_up_delay=_duration(environ, 'SCALE_UP_DELAY', '1m'),
        scale_down_delay=_duration(environ, 'SCALE_DOWN_DELAY', '10m'),
        request_timeout=_duration(environ, 'REQUEST_TIMEOUT', '30s'),
    )

    return validate_config(config)
