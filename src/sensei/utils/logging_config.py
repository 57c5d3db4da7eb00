# logging_config.py
from __future__ import annotations
import logging
import sys
from typing import Optional, TextIO

from sensei.utils.log_utils import DEFAULT_LEVEL

DEFAULT_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"

def setup_logging(
    *,
    level: int = DEFAULT_LEVEL,
    fmt: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    stream: Optional[TextIO] = None,
    force: bool = False,
) -> None:
    """
    Configure root logging once for the whole app.

    - Call this exactly once in your *entry point*.
    - In libraries/modules, only use get_logger(__name__) or an injected LogContext.
    - Logs go to stderr: with the stdio transport, stdout carries protocol frames.
    """
    handlers = [logging.StreamHandler(stream or sys.stderr)]
    logging.basicConfig(
        level=level,
        format=fmt,
        datefmt=datefmt,
        handlers=handlers,
        force=force,   # Python 3.8+: override any existing config if True
    )

    # Optional: quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("mcp").setLevel(logging.WARNING)
