import logging
import sys

from drillforge.core.settings import settings

DOMAIN_GENERATION = "generation"
DOMAIN_ADAPTATION = "adaptation"
DOMAIN_PROMOTION = "promotion"
DOMAIN_SESSION = "session"
DOMAIN_CATALOG = "catalog"

LOG_FORMAT = "%(asctime)s | %(levelname)s | [%(domain)s] | %(name)s | %(message)s"


def get_domain_logger(name: str, domain: str) -> logging.LoggerAdapter[logging.Logger]:
    """Logger adapter tagging each record with ``domain`` (generation, session, ...)."""
    return logging.LoggerAdapter(logging.getLogger(name), {"domain": domain})


class DomainDefaultFilter(logging.Filter):
    """Records logged outside a domain adapter render as ``[app]``."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "domain"):
            record.domain = "app"  # type: ignore[attr-defined]
        return True


def configure_logging(level: str | None = None) -> None:
    """
    Stdout logging for the engine. Safe to call more than once: the level is
    re-applied and each root handler carries a single domain filter.
    """
    level_value = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level_value, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stdout)])
    root = logging.getLogger()
    root.setLevel(level_value)
    for handler in root.handlers:
        if not any(isinstance(f, DomainDefaultFilter) for f in handler.filters):
            handler.addFilter(DomainDefaultFilter())
