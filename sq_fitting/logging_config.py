"""
Logging setup for the superquadric fitter.

Library modules only create ``logging.getLogger(__name__)`` loggers below the
``sq_fitting`` namespace; applications call setup_logging once.
"""
import logging
import sys
from typing import Optional, Union

NAMESPACE = "sq_fitting"

# Emits the per-pass non-finite counts (WARNING) and per-entry details (DEBUG)
DIAGNOSTICS_LOGGER = "sq_fitting.accumulator"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown logging level: {level}")
    return resolved


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    show_diagnostics: bool = True,
) -> logging.Logger:
    """
    Configure the 'sq_fitting' logger.

    The console receives records at ``level`` on stderr, so the fit summary
    printed on stdout stays clean. A log file, when given, always receives
    the full DEBUG trace including the per-iteration step norms.

    Args:
        level: Console level, as a number or a name such as 'DEBUG'.
        log_file: Optional path of a log file, overwritten on every call.
        show_diagnostics: When False, the skipped non-finite entry counts
            are silenced unless they are errors.

    Returns:
        The configured namespace logger.
    """
    level = _resolve_level(level)
    logger = logging.getLogger(NAMESPACE)

    # Replace handlers from an earlier call
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s %(levelname)-7s %(name)s: %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(level)

    logging.getLogger(DIAGNOSTICS_LOGGER).setLevel(
        logging.NOTSET if show_diagnostics else logging.ERROR
    )
    return logger
