"""Application-wide logging setup for GenAlyzer.

`setup_logging` configures the root logger through `logging.config.dictConfig`
with one stderr handler, so that stdout stays free for tabular results.

- The `GENALYZER_LOG_LEVEL` environment variable overrides the level passed in.
- Levels may be numeric ("10") or names ("debug"); invalid values fall back
  to INFO with a warning on stderr.
- Level names are colored when stderr is a terminal and NO_COLOR is unset.
"""

import logging
import logging.config
import os
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LEVEL_ENV = "GENALYZER_LOG_LEVEL"


class ColoredFormatter(logging.Formatter):
    """Formatter that wraps the bracketed level name in ANSI colors."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[37m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, *args, use_color: Optional[bool] = None, **kwargs):
        super().__init__(*args, **kwargs)
        if use_color is None:
            use_color = (
                hasattr(sys.stderr, "isatty")
                and sys.stderr.isatty()
                and os.getenv("TERM") != "dumb"
                and os.getenv("NO_COLOR") is None
            )
        self.use_color = use_color

    def format(self, record):
        message = super().format(record)
        color = self.COLORS.get(record.levelname)
        if self.use_color and color:
            level = record.levelname
            message = message.replace(f"[{level}]", f"[{color}{level}{self.RESET}]")
        return message


def resolve_level(level: Union[int, str]) -> int:
    """Turn a numeric or named level into a logging constant, INFO if invalid."""
    raw = str(level).strip()
    try:
        return int(raw)
    except ValueError:
        value = getattr(logging, raw.upper(), None)
        if not isinstance(value, int):
            print(f"Warning: Invalid log level '{raw}', using INFO.", file=sys.stderr)
            return logging.INFO
        return value


def setup_logging(
    level: Union[int, str] = logging.INFO, use_color: Optional[bool] = None
) -> int:
    """
    Configure the root logger.

    Parameters
    ----------
    level : int | str, optional
        Level used when `GENALYZER_LOG_LEVEL` is not set.
    use_color : bool, optional
        Force colors on or off; auto-detected when None.

    Returns
    -------
    int
        The effective level. Calling again replaces the previous
        configuration instead of stacking handlers.
    """
    eff_level = resolve_level(os.getenv(LEVEL_ENV, str(level)))

    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "colored": {
                "()": ColoredFormatter,
                "format": LOG_FORMAT,
                "datefmt": DATE_FORMAT,
                "use_color": use_color,
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "stream": "ext://sys.stderr",
                "level": eff_level,
            }
        },
        "root": {
            "level": eff_level,
            "handlers": ["console"],
        },
    }
    logging.config.dictConfig(config)
    logging.getLogger(__name__).debug(
        f"Logging configured with level: {logging.getLevelName(eff_level)}"
    )
    return eff_level
