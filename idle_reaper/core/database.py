import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url

from idle_reaper.core.config import APPLICATION_NAME, Settings, get_settings

logger = logging.getLogger(__name__)


def ssl_connect_args(settings: Settings) -> dict:
    """Build the libpq TLS arguments, an sslmode given in the URL always wins."""
    url = make_url(settings.DATABASE_URL)
    if "sslmode" in url.query:
        return {}

    if settings.DB_SSL_VERIFY:
        connect_args = {"sslmode": "verify-full"}
    else:
        logger.warning("⚠️ Server certificate verification is disabled (DB_SSL_VERIFY=false)")
        connect_args = {"sslmode": "require"}

    if settings.DB_SSL_ROOT_CERT:
        connect_args["sslrootcert"] = settings.DB_SSL_ROOT_CERT
    return connect_args


def create_db_engine(settings: Settings | None = None) -> Engine:
    settings = settings or get_settings()
    connect_args = {"application_name": APPLICATION_NAME, **ssl_connect_args(settings)}

    # Each statement commits on its own so pg_stat_activity is never read from a stale snapshot
    return create_engine(
        settings.DATABASE_URL,
        isolation_level="AUTOCOMMIT",
        pool_pre_ping=True,   # our own idle connections may have been reaped by the last cycle
        pool_size=5,
        max_overflow=5,
        pool_timeout=30,
        pool_recycle=1800,    # recycle every 30 min to avoid stale connections
        connect_args=connect_args,
    )


def dispose_engine(engine: Engine) -> None:
    """Close every pooled connection, checked out connections are discarded on return."""
    engine.dispose()
