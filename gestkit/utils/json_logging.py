import logging
import json

TRAINING_LOGGER_NAME = "gestkit.training"

_RESERVED_ATTRS = (
    "levelname", "msg", "args", "name", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created", "msecs",
    "relativeCreated", "thread", "threadName", "processName", "process", "message",
    "asctime", "taskName",
)


class JsonFormatter(logging.Formatter):
    """Format log records as JSON objects."""
    def format(self, record):
        log_record = {
            "level": record.levelname,
            "time": self.formatTime(record, self.datefmt),
            "name": record.name,
            "message": record.getMessage(),
        }
        # Add any extra fields passed via 'extra'
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_record[key] = value
        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_record, default=str)


def setup_json_logging(level=logging.INFO):
    """Configure root logger to use JSON formatting."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level, handlers=[handler], force=True)


def setup_logging(settings=None):
    """
    Configure the root logger from the toolkit settings.

    Uses JSON records when settings.log_format is "json", plain text otherwise,
    and switches the training log on when settings.training_log is set.
    """
    if settings is None:
        from gestkit.config import settings
    level = logging.getLevelName(settings.log_level.upper())
    if settings.log_format == "json":
        setup_json_logging(level)
    else:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s", force=True)
    enable_training_log(settings.training_log)


def enable_training_log(enabled: bool = True) -> None:
    """Show (INFO) or hide (WARNING and above only) training progress messages."""
    logging.getLogger(TRAINING_LOGGER_NAME).setLevel(logging.INFO if enabled else logging.WARNING)


def training_log_enabled() -> bool:
    return logging.getLogger(TRAINING_LOGGER_NAME).isEnabledFor(logging.INFO)


def get_training_logger() -> logging.Logger:
    return logging.getLogger(TRAINING_LOGGER_NAME)
