"""
Logging Configuration

Every module logs to logging.getLogger(__name__) under the 'hybridpic'
namespace. Nothing is configured on import; a driving script calls
setup_logging() once.

What is logged at each level:
    DEBUG    ICN stages of every step (predictor 1, predictor 2, corrector)
             and each HDF5 field or particle write
    INFO     one line per step (time and the magnetic, electric and kinetic
             energies), particle loading per population, configuration
             loading and simulation initialisation
    WARNING  density clamps in Ohm's law and out-of-buffer interpolation or
             deposition indices clamped under index_policy="clamp"

Errors are raised rather than logged (see hybridpic.errors).
"""
import logging
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def _add_handler(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def setup_logging(level: Union[int, str] = logging.INFO,
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'hybridpic' namespace.

    INFO gives a per-step progress log. DEBUG adds the stage trace, which
    is three lines per step and is meant for short runs.

    Args:
        level: Logging level, as a number or a name ("DEBUG", "INFO", ...)
        log_file: Optional path to save logs to a file.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        name, level = level, logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {name}")

    logger = logging.getLogger("hybridpic")
    logger.setLevel(level)

    # Avoid duplicate handlers when called more than once
    if logger.hasHandlers():
        logger.handlers.clear()

    _add_handler(logger, logging.StreamHandler(sys.stdout), level)
    if log_file:
        _add_handler(logger, logging.FileHandler(log_file, mode='w', encoding='utf-8'), level)

    logger.info("Logging initialized at level %s.", logging.getLevelName(level))
    return logger
