import logging
import sys

_HANDLER_FLAG = "_portfolio_tracker"
QUIET_LOGGERS = ("sqlalchemy", "aiosqlite", "httpx", "matplotlib")


def setup_logging(level: int | str = logging.INFO) -> None:
    """Send records to stdout once, however often the app is started."""
    root_logger = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    root_logger.setLevel(level)
    if any(getattr(h, _HANDLER_FLAG, False) for h in root_logger.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    setattr(handler, _HANDLER_FLAG, True)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
    )
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
