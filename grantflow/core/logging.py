import logging

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

NOISY_HTTP_LOGGERS = (
    "httpx",
    "httpcore",
    "httpcore.http11",
    "httpcore.connection",
)


def normalize_log_level(level: str | None) -> str:
    """Parse a log level string, falling back to INFO when it is not valid."""
    if not level or not level.strip():
        return "INFO"
    # Extract just the first word to handle comments
    parsed = level.split()[0].upper()
    return parsed if parsed in VALID_LEVELS else "INFO"


def set_noisy_http_logger_levels(current_log_level: str) -> None:
    """Ensure HTTP client noise only surfaces at DEBUG level."""

    noisy_level = logging.DEBUG if current_log_level == "DEBUG" else logging.WARNING
    for logger_name in NOISY_HTTP_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def attempt_logger(name: str, state: str) -> logging.LoggerAdapter:
    """Logger that tags every record with the state of one authorization attempt."""
    return logging.LoggerAdapter(logging.getLogger(name), {"correlation_id": state})


class CorrelationFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        # Prefix a copy; other handlers may format the same record
        if hasattr(record, "correlation_id"):
            record = logging.makeLogRecord(record.__dict__)
            record.msg = f"[{str(record.correlation_id)[:8]}] {record.msg}"
        return super().format(record)


class HttpRequestLogDowngradeFilter(logging.Filter):
    """Downgrade noisy third-party HTTP logs to DEBUG."""

    def __init__(self, *prefixes: str) -> None:
        super().__init__()
        self.prefixes = prefixes

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == logging.INFO:
            for prefix in self.prefixes:
                if record.name.startswith(prefix):
                    record.levelno = logging.DEBUG
                    record.levelname = logging.getLevelName(logging.DEBUG)
                    break
        return True


def configure_root_logging(level: str | None = None) -> logging.Logger:
    """Install the grantflow handler on the root logger.

    Args:
        level: Log level name; defaults to the configured GRANTFLOW_LOG_LEVEL

    Returns:
        The root logger
    """
    if level is None:
        from grantflow.core.config import config

        level = config.log_level
    log_level = normalize_log_level(level)

    handler = logging.StreamHandler()
    handler.addFilter(HttpRequestLogDowngradeFilter(*NOISY_HTTP_LOGGERS))
    handler.setFormatter(
        CorrelationFormatter("%(asctime)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level))

    set_noisy_http_logger_levels(log_level)

    logging.getLogger(__name__).debug("Logging configured at %s", log_level)
    return root_logger


__all__ = [
    "NOISY_HTTP_LOGGERS",
    "CorrelationFormatter",
    "HttpRequestLogDowngradeFilter",
    "attempt_logger",
    "configure_root_logging",
    "normalize_log_level",
    "set_noisy_http_logger_levels",
]
