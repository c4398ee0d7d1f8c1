"""Standard-library logger adapter for the LoggerPort."""

import logging
from typing import Any

from ..ports.logger import LoggerPort

# Attributes already present on every LogRecord; passing them through
# ``extra`` raises KeyError inside the logging module.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class SimpleLogger(LoggerPort):
    """LoggerPort backed by Python's standard logging.

    Keyword fields are attached to the record as attributes and rendered
    after the message as ``key=value`` pairs, e.g.
    ``Heartbeat failed service=ORDERS instance=10.0.0.5:orders:8080``.
    """

    def __init__(self, name: str = "eureka_sdk", level: int = logging.INFO):
        """Initialize the logger.

        Args:
            name: Logger name (default: "eureka_sdk")
            level: Logging level (default: INFO)
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        if not self._logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            )
            self._logger.addHandler(handler)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def exception(self, message: str, exc_info: BaseException | None = None, **kwargs: Any) -> None:
        """Log an error with traceback."""
        self._log(logging.ERROR, message, kwargs, exc_info=exc_info or True)

    def _log(
        self,
        level: int,
        message: str,
        fields: dict[str, Any],
        exc_info: BaseException | bool | None = None,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        if fields:
            rendered = " ".join(f"{key}={value}" for key, value in fields.items())
            message = f"{message} {rendered}"
        self._logger.log(level, message, exc_info=exc_info, extra=_safe_extra(fields))


def _safe_extra(fields: dict[str, Any]) -> dict[str, Any]:
    """Rename keys that would collide with LogRecord attributes."""
    return {
        (f"field_{key}" if key in _RESERVED_ATTRS else key): value
        for key, value in fields.items()
    }
