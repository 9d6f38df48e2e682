import logging

from core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process and the scripts."""
    logging.basicConfig(level=(level or settings.log_level), format=LOG_FORMAT)
    # SQLAlchemy echoes through its own logger when DATABASE_ECHO is set
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database_echo else logging.WARNING
    )
