import logging
import logging.handlers

from rich.console import Console
from rich.logging import RichHandler

from .config import Settings

NO_DEVICE = "-"

SERVER_LOG_FORMAT = (
    "%(asctime)s - %(levelname)s - %(device)s - "
    "%(filename)s:%(lineno)d in %(funcName)s() - "
    "%(message)s"
)


class DeviceFieldFilter(logging.Filter):
    """Give every record a ``device`` attribute so the server log can show it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "device", None):
            record.device = NO_DEVICE
        return True


def setup_logging(settings: Settings) -> None:
    log_dir = settings.log_directory
    log_dir.mkdir(parents=True, exist_ok=True)

    # Device messages already carry a [device] prefix on the console
    rich_handler = RichHandler(
        console=Console(width=120),
        show_time=True,
        show_level=True,
        show_path=True,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
    )
    rich_handler.setLevel(settings.log_level)

    server_log = logging.handlers.TimedRotatingFileHandler(
        filename=settings.log_file_path,
        when="midnight",
        interval=1,
        backupCount=settings.log_retention_days,
        encoding="utf-8",
    )
    server_log.setLevel(settings.log_level)
    server_log.addFilter(DeviceFieldFilter())
    server_log.setFormatter(logging.Formatter(SERVER_LOG_FORMAT))

    # Per-device ingest logs attach to the root logger while a run is active
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(rich_handler)
    root_logger.addHandler(server_log)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logging.info(
        f"Logging initialized - server log: {settings.log_file_path}, "
        f"device logs: {log_dir}, level: {settings.log_level}, "
        f"retention: {settings.log_retention_days} days"
    )
