import logging
import sys
import time

from pythonjsonlogger.json import JsonFormatter

from authkeeper.schemas.masking import MASK

# `extra` keys that may never reach a log line in clear
SECRET_FIELDS = frozenset(
    {"password", "token", "access_token", "refresh_token", "code", "authorization"}
)


class UTCJsonFormatter(JsonFormatter):
    converter = time.gmtime


class SecretRedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for name in SECRET_FIELDS.intersection(record.__dict__):
            setattr(record, name, MASK)
        return True


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        UTCJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )
    )
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel("WARNING")
    logging.getLogger("httpx").setLevel("WARNING")
