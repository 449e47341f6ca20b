"""Server entry point: ``mom-server`` or ``python -m mom.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from mom.core.config.settings import Settings, get_settings
from mom.core.server.app import create_app

logger = logging.getLogger(__name__)

TRANSPORTS = ("streamable-http", "stdio")
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind(settings: Settings) -> None:
    """Refuse a network transport on a public interface unless explicitly allowed.

    The tools have no auth layer of their own.
    """
    if settings.mom_transport not in TRANSPORTS:
        raise RuntimeError(
            f"Unknown MOM_TRANSPORT {settings.mom_transport!r}; "
            f"expected one of {', '.join(TRANSPORTS)}"
        )
    if settings.mom_transport == "stdio" or settings.mom_allow_insecure_bind:
        return
    if not is_loopback_host(settings.mom_host):
        raise RuntimeError(
            f"Refusing to serve on non-loopback host {settings.mom_host}. "
            "Set MOM_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.mom_log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    check_bind(settings)

    mcp = create_app()
    if settings.mom_transport == "stdio":
        logger.info("Starting Minutes-of-Meeting server on stdio")
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting Minutes-of-Meeting server on %s:%d", settings.mom_host, settings.mom_port
    )
    mcp.run(transport="streamable-http", host=settings.mom_host, port=settings.mom_port)


if __name__ == "__main__":
    run()
