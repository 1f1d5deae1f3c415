import os
import logging
import json

# LogRecord attributes that are not user-supplied `extra=` fields
_RESERVED_ATTRS = {
    'args', 'asctime', 'created', 'exc_info', 'exc_text', 'filename',
    'funcName', 'id', 'levelname', 'levelno', 'lineno', 'module',
    'msecs', 'message', 'msg', 'name', 'pathname', 'process',
    'processName', 'relativeCreated', 'stack_info', 'taskName', 'thread', 'threadName'
}

_NOISY_LOGGERS = ('boto3', 'botocore', 'urllib3')


def setup_logging(level=None, log_format=None):
    """
    Configure the root logger for the autoscaler process.

    Every line carries the thread name, so samples and decisions (logged from
    the main thread) can be told apart from fleet API calls (logged from the
    ``actuation`` thread). Output is plain text unless LOG_FORMAT=json, or the
    process runs on AWS, where JSON lines are emitted instead.

    Args:
        level: Log level name; defaults to LOG_LEVEL or INFO
        log_format: 'text' or 'json'; defaults to LOG_FORMAT or 'text'
    """
    level = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    log_format = (log_format or os.environ.get('LOG_FORMAT', 'text')).lower()

    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s [%(levelname)s] %(threadName)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if log_format == 'json' or os.environ.get('AWS_EXECUTION_ENV') is not None:
        for handler in logging.getLogger().handlers:
            handler.setFormatter(JsonFormatter())

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if numeric_level == logging.INFO and level != 'INFO':
        logging.warning(f"Unknown LOG_LEVEL {level!r}, using INFO")


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: level, thread and message, plus any `extra=`
    fields such as the ``instances`` count attached to scaling logs.
    """

    def format(self, record):
        log_record = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'thread': record.threadName,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}:{record.lineno}",
        }

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)

        log_record.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        )

        return json.dumps(log_record, default=str)
