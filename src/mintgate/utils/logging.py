from __future__ import annotations

import logging
from typing import Union

ROOT_LOGGER = "mintgate"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """
    Attach one stream handler to the mintgate logger and set its level.

    Safe to call more than once; the handler is not duplicated.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    if not any(getattr(h, "_mintgate", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._mintgate = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
