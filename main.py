"""
Tesorería Application Entry Point.

Bootstraps the dependency graph via constructor injection, opens every
page service against the Supabase store, waits for the first round of
fetches and logs the dashboard summary.  Every subsystem is wired here,
with no module-level globals.

Usage::

    python main.py
"""

from __future__ import annotations

import asyncio
import sys

import httpx

from tesoreria.config import AppConfig, get_config
from tesoreria.database import DatabaseManager
from tesoreria.logger import StructuredLogger, get_logger
from tesoreria.repositories import SupabaseStore
from tesoreria.services import NationalIdClient, close_services, create_services


async def run(config: AppConfig, logger: StructuredLogger) -> int:
    """Wire the services, load the dashboard and report it.

    Returns the process exit code: ``0`` when every view loaded, ``1``
    when any of them reported an error.
    """
    # ------------------------------------------------------------------
    # 1. Database Manager (single Supabase client for the process)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )

    # ------------------------------------------------------------------
    # 2. Remote store adapter
    # ------------------------------------------------------------------
    store = SupabaseStore(db=db, logger=StructuredLogger(name="store"))

    async with httpx.AsyncClient() as http:
        # --------------------------------------------------------------
        # 3. National-ID enrichment (best effort)
        # --------------------------------------------------------------
        identity_client = NationalIdClient(
            http=http,
            api_url=config.CONSULTAS_PERU_API_URL,
            api_token=config.CONSULTAS_PERU_API_TOKEN.get_secret_value(),
            logger=get_logger("identity"),
            timeout_s=config.HTTP_TIMEOUT_S,
        )

        # --------------------------------------------------------------
        # 4. Service Container (single composition root)
        # --------------------------------------------------------------
        services = create_services(
            store=store,
            identity_client=identity_client,
            logger=get_logger("services"),
            config=config,
        )

        try:
            dashboard = services["dashboard"]
            await dashboard.wait_idle()

            if dashboard.last_error is not None:
                logger.error("Dashboard failed to load: %s", dashboard.last_error)
                return 1

            summary = dashboard.summary()
            logger.info("Dashboard summary: %s", summary.model_dump_json())
            return 0
        finally:
            close_services(services)


def main() -> None:
    """Application entry point: load config, then run the event loop."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting Tesorería...")
    config = get_config()
    exit_code = asyncio.run(run(config, logger))
    logger.info("Tesorería shut down.")
    sys.exit(exit_code)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
