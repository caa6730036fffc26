import logging
import os

from colorlog import ColoredFormatter

LOG_FORMAT = (
    "%(log_color)s[%(asctime)s] [%(levelname)-8s] "
    "%(reset)s%(blue)s%(name)s:%(reset)s %(message)s"
)

formatter = ColoredFormatter(
    LOG_FORMAT,
    datefmt="%Y-%m-%d %H:%M:%S",
    reset=True,
    log_colors={
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    },
)

handler = logging.StreamHandler()
handler.setFormatter(formatter)

# Los módulos usan logging.getLogger(__name__), hijos de "gestor_lite"
logger = logging.getLogger("gestor_lite")
logger.setLevel(os.environ.get("GESTOR_LOG_LEVEL", "INFO").upper())
logger.addHandler(handler)
logger.propagate = False


def set_level(level: str) -> None:
    """Ajusta el nivel del logger de la aplicación (desde la configuración)."""
    logger.setLevel(str(level or "INFO").upper())
