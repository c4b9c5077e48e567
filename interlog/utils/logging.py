import logging
import os
import sys

_DEFAULT_LEVEL = os.getenv("INTERLOG_LOG_LEVEL", "INFO").upper()


def setup_logger(name: str, level: str | int | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    resolved_level = level if level is not None else _DEFAULT_LEVEL
    logger.setLevel(resolved_level)

    # stdout carries rendered timelines (see `interlog replay`)
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def quiet_loggers(prefix: str, level: str | int = logging.WARNING, keep: tuple = ()) -> list:
    """Raise the level of every existing logger under ``prefix`` except ``keep``.

    Returns the names that were changed.
    """
    changed = []
    for name in list(logging.root.manager.loggerDict):
        if name.split(".")[0] != prefix or name in keep:
            continue
        logging.getLogger(name).setLevel(level)
        changed.append(name)
    return changed
