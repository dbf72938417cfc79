# blockcms/core/logging.py
import logging

ISO_FMT = "%Y-%m-%dT%H:%M:%S%z"

# Third-party loggers that log every outbound request at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int | None = None, debug: bool = False) -> None:
    if level is None:
        level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s :: %(message)s",
        datefmt=ISO_FMT,
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
