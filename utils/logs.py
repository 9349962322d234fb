import logging
import sys

from utils.config import APP_CONFIG


LOG_FORMAT = (
    "%(asctime)s - %(levelname)s - "
    "%(filename)s:%(lineno)d - "
    "%(funcName)s() - "
    "%(message)s"
)


def configure_logging(to_stderr: bool = False) -> None:
    """
    Configure the logging system. Logs go to the configured log file,
    or to stderr if `to_stderr` is set.
    """
    level = APP_CONFIG.get("logging", "level") or "INFO"

    if to_stderr:
        logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)
        return

    log_path = APP_CONFIG.get("path", "log")
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_path.touch(exist_ok=True)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        filename=log_path,
        filemode="w",
        force=True,
    )
