"""
HTTP API server.

Exposes the distribution trigger and admin endpoints over aiohttp.
"""

from aiohttp import web
from loguru import logger

from podium.api.handlers import (
    SERVICES_KEY,
    distribute_handler,
    distribution_status_handler,
    health_handler,
    register_grant_handler,
    reward_config_handler,
    schedule_handler,
    update_reward_config_handler,
    update_pin_handler,
    verify_pin_handler,
)
from podium.bootstrap import AppServices, build_services
from podium.config.settings import settings
from podium.initialization.logging import setup_logging
from podium.utils.redis_utils import get_redis_client, get_redis_url_masked


def create_app(services: AppServices) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        services: Wired distribution services

    Returns:
        web.Application
    """
    app = web.Application()
    app[SERVICES_KEY] = services

    app.router.add_post("/api/rewards/distribute", distribute_handler)
    app.router.add_get("/api/rewards/distribute", distribution_status_handler)
    app.router.add_get("/api/rewards/schedule", schedule_handler)
    app.router.add_post("/api/admin/verify-pin", verify_pin_handler)
    app.router.add_put("/api/admin/verify-pin", update_pin_handler)
    app.router.add_post("/api/spend-permissions/register", register_grant_handler)
    app.router.add_get("/api/reward-config", reward_config_handler)
    app.router.add_post("/api/reward-config", update_reward_config_handler)
    app.router.add_get("/health", health_handler)

    async def _close_services(app: web.Application) -> None:
        logger.info("Shutting down API services...")
        await app[SERVICES_KEY].close()

    app.on_cleanup.append(_close_services)
    return app


def main() -> None:
    """Run the API server."""
    setup_logging("api", settings.log_level)
    logger.info(f"Connecting to Redis at {get_redis_url_masked()}")

    services = build_services(settings, get_redis_client())
    web.run_app(
        create_app(services),
        host=settings.api_host,
        port=settings.api_port,
        print=None,
    )


if __name__ == "__main__":
    main()
