import logging

from taskmaster.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process."""
    logging.basicConfig(level=level or settings.LOG_LEVEL, format=LOG_FORMAT)
    # SQL echo is controlled by the engine, keep the sqlalchemy logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
