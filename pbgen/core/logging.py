import logging
import sys

from pbgen.core.config import settings


class ContextFormatter(logging.Formatter):
    """Custom formatter that handles optional collection and stage fields."""
    def format(self, record):
        # Records logged outside a collection or stage get placeholders
        if not hasattr(record, 'collection'):
            record.collection = '-'
        if not hasattr(record, 'stage'):
            record.stage = '-'
        return super().format(record)


def configure_logging(level: str | None = None) -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter(
        "%(asctime)s %(levelname)s %(name)s [collection=%(collection)s stage=%(stage)s] - %(message)s"
    ))
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        handlers=[handler],
        force=True,
    )
