from logging import INFO, Filter, Formatter, Handler, Logger, LogRecord, StreamHandler, getLogger
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_LOG_DIR = BASE_DIR / 'logs'

# Log format
LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(process)d | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT: str = '%Y-%m-%d %H:%M:%S'

REDACTED: str = "***"

# Component logger name -> log file
COMPONENTS: Dict[str, str] = {
    'app': 'app.log',
    'auth': 'auth.log',
    'webhook': 'webhook.log',
    'api': 'api.log',
    'db': 'db.log',
}


class SecretRedactingFilter(Filter):
    """
    Replaces registered secret values in log messages with ***

    Applied on each component logger, before any handler formats the record.
    """

    def __init__(self) -> None:
        super().__init__()
        self._secrets: List[str] = []

    def register(self, secrets: Iterable[Optional[str]]) -> None:
        # longest first, so a secret containing another is masked whole
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def filter(self, record: LogRecord) -> bool:
        if not self._secrets:
            return True

        message = record.getMessage()
        for secret in self._secrets:
            message = message.replace(secret, REDACTED)

        record.msg = message
        record.args = None
        return True


redactor = SecretRedactingFilter()


def _file_handler(log_dir: Path, log_file: str, backup_count: int) -> TimedRotatingFileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = TimedRotatingFileHandler(
        filename=log_dir / log_file,
        when='midnight',
        interval=1,
        backupCount=backup_count,
        encoding='UTF-8',
        utc=False
    )
    handler.suffix = '%Y-%m-%d'  # auth.log.2025-10-31
    return handler


def setup_logger(
        name: str,
        log_file: str = None,
        level: Union[int, str] = INFO,
        backup_count: int = 30,
        log_dir: Optional[Path] = DEFAULT_LOG_DIR,
        console: bool = True
) -> Logger:
    """
    Setup logger with rotating file and console handlers

    Calling it again for the same name replaces the handlers in place, so
    module level references to the logger stay valid.

    Args:
        name: Logger name
        log_file: Log file name (without path)
        level: Logging level
        backup_count: Number of backup log files to keep
        log_dir: Directory for log_file, None disables the file handler
        console: Also write records to stderr

    Returns:
        Configured Logger instance
    """
    _logger = getLogger(name)
    _logger.setLevel(level)

    for old_handler in list(_logger.handlers):
        _logger.removeHandler(old_handler)
        old_handler.close()

    formatter = Formatter(LOG_FORMAT, DATE_FORMAT)
    handlers: List[Handler] = []

    if log_file and log_dir is not None:
        handlers.append(_file_handler(log_dir, log_file, backup_count))

    if console:
        handlers.append(StreamHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
        _logger.addHandler(handler)

    if redactor not in _logger.filters:
        _logger.addFilter(redactor)

    _logger.propagate = False

    return _logger


def configure_logging(
        level: Union[int, str] = INFO,
        log_dir: Optional[Union[str, Path]] = DEFAULT_LOG_DIR,
        backup_count: int = 30,
        secrets: Iterable[Optional[str]] = ()
) -> Dict[str, Logger]:
    """
    Rebuild every component logger from runtime settings

    Args:
        level: Level name (e.g. "debug") or number for all components
        log_dir: Directory for the rotating files, None for console only
        backup_count: Days of rotated files to keep
        secrets: Values masked in every record

    Returns:
        Component loggers by name
    """
    if isinstance(level, str):
        level = level.upper()

    redactor.register(secrets)

    return {
        name: setup_logger(
            name=name,
            log_file=log_file,
            level=level,
            backup_count=backup_count,
            log_dir=Path(log_dir) if log_dir else None
        )
        for name, log_file in COMPONENTS.items()
    }


# Separate loggers per component
logger: Logger = setup_logger(name='app', log_file=COMPONENTS['app'])
auth_logger: Logger = setup_logger(name='auth', log_file=COMPONENTS['auth'])
webhook_logger: Logger = setup_logger(name='webhook', log_file=COMPONENTS['webhook'])
api_logger: Logger = setup_logger(name='api', log_file=COMPONENTS['api'])
db_logger: Logger = setup_logger(name='db', log_file=COMPONENTS['db'])
