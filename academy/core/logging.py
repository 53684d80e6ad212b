import logging
import sys

from loguru import logger

# stdlib loggers that would otherwise bypass loguru
_INTERCEPTED_LOGGERS = ('uvicorn', 'uvicorn.error', 'uvicorn.access', 'sqlalchemy.engine')


class _InterceptHandler(logging.Handler):
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


def configure_logging(level: str, enqueue: bool = True) -> None:
    """Route every log record through a single loguru stdout sink.

    Uvicorn and SQLAlchemy install their own handlers; those are cleared so the
    records propagate to the root intercept handler instead of printing twice.
    """
    logger.remove()
    logger.add(
        sys.stdout,
        level=level,
        enqueue=enqueue,
        backtrace=True,
        diagnose=False,
    )
    logging.root.handlers = [_InterceptHandler()]
    logging.root.setLevel(level)
    for name in _INTERCEPTED_LOGGERS:
        named = logging.getLogger(name)
        named.handlers = []
        named.propagate = True
