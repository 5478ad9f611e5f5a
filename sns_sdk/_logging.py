import logging
import sys

from loguru import logger

_LOG_FORMAT = (
    '<green>{time:YYYY-MM-DD HH:mm:ss}</green> | '
    '<level>{level: <8}</level> | '
    '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - '
    '<level>{message}</level>'
)

LIB_LOGGER = "sns_sdk"


class _InterceptHandler(logging.Handler):
    """Forwards the SDK's stdlib log records to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def configure_logger(*, level_name: str = "INFO", verbose_tracebacks: bool = False) -> None:
    """
    Route the ``sns_sdk`` loggers through loguru on stderr.

    The library installs no handlers on its own; applications call this when
    they want to see resolution and RPC activity.
    """
    lib_logger = logging.getLogger(LIB_LOGGER)
    lib_logger.handlers = [_InterceptHandler()]
    lib_logger.setLevel(level_name)
    lib_logger.propagate = False

    logger.remove()
    logger.add(
        sys.stderr,
        level=level_name,
        format=_LOG_FORMAT,
        backtrace=verbose_tracebacks,
        diagnose=verbose_tracebacks,
    )


def disable_logger() -> None:
    lib_logger = logging.getLogger(LIB_LOGGER)
    lib_logger.handlers = [logging.NullHandler()]
    lib_logger.propagate = False
