"""
HTTP handlers.

Reward distribution trigger, history and schedule previews, reward pool
configuration, admin PIN management and spend permission registration.
"""

import asyncio
import json
from typing import Any

from aiohttp import web
from loguru import logger
from pydantic import ValidationError

from podium.bootstrap import AppServices
from podium.config.constants import HISTORY_DEFAULT_LIMIT
from podium.models.enums import Timeframe, TriggerType
from podium.models.spending_grant import SpendingGrant
from podium.schemas.trigger import parse_trigger_request
from podium.services.reward import format_amount
from podium.utils.exceptions import AuthorizationError, InvalidInputError
from podium.utils.security import mask_address
from podium.utils.validation import same_address

SERVICES_KEY = web.AppKey("services", AppServices)

# Error code -> HTTP status for distribution runs
STATUS_BY_ERROR_CODE = {
    "invalid_input": 400,
    "unauthorized": 401,
    "run_in_progress": 409,
    "pool_transfer_failed": 502,
    "distribution_error": 503,
    "cancelled": 504,
}


def _error(message: str, status: int, code: str | None = None) -> web.Response:
    body: dict[str, Any] = {"success": False, "error": message}
    if code:
        body["errorCode"] = code
    return web.json_response(body, status=status)


def _client_id(request: web.Request) -> str:
    return request.remote or "unknown"


async def _read_json(request: web.Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidInputError("Request body must be valid JSON") from e
    if not isinstance(body, dict):
        raise InvalidInputError("Request body must be a JSON object")
    return body


async def _check_admin_pin(
    request: web.Request, services: AppServices, pin: Any
) -> web.Response | None:
    """
    Verify an admin PIN with lockout.

    Returns:
        Error response, or None if the PIN is valid
    """
    client = _client_id(request)
    if await services.pin_limiter.is_locked_out(client):
        return _error("Too many failed attempts. Try again later.", 429, "locked_out")

    if await services.pin_service.verify_pin(str(pin) if pin is not None else None):
        await services.pin_limiter.clear(client)
        return None

    await _record_pin_failure(services, client)
    return _error("Invalid PIN", 401, AuthorizationError.code)


async def _record_pin_failure(services: AppServices, client: str) -> None:
    await services.pin_limiter.track_failed_attempt(client)
    # Slow down brute force
    await asyncio.sleep(services.config.failed_pin_delay_seconds)


async def distribute_handler(request: web.Request) -> web.Response:
    """POST /api/rewards/distribute"""
    services = request.app[SERVICES_KEY]

    try:
        trigger = parse_trigger_request(await _read_json(request))
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    client = _client_id(request)
    is_manual = trigger.trigger == TriggerType.MANUAL
    if is_manual and await services.pin_limiter.is_locked_out(client):
        return _error("Too many failed attempts. Try again later.", 429, "locked_out")

    result = await services.orchestrator.run(trigger)

    if is_manual:
        if result.error_code == AuthorizationError.code:
            await _record_pin_failure(services, client)
        else:
            await services.pin_limiter.clear(client)

    status = STATUS_BY_ERROR_CODE.get(result.error_code, 200)
    return web.json_response(result.to_dict(), status=status)


async def distribution_status_handler(request: web.Request) -> web.Response:
    """GET /api/rewards/distribute?timeframe=week"""
    services = request.app[SERVICES_KEY]

    try:
        timeframe = Timeframe(request.query.get("timeframe", Timeframe.WEEK.value))
    except ValueError:
        return _error("timeframe must be one of: week, month, all-time", 400, "invalid_input")

    history = await services.recorder.history(timeframe.value, HISTORY_DEFAULT_LIMIT)

    pool_size = None
    schedule = None
    try:
        pool_size = await services.pool_source.get_configured_pool_size()
        if pool_size > 0:
            schedule = services.calculator.describe_schedule(pool_size)
    except Exception as e:
        logger.warning(f"Pool size unavailable: {e}")

    operator_address = services.orchestrator.funding.operator_address
    operator_balance = None
    if services.balance_reader is not None:
        try:
            operator_balance = await services.balance_reader.get_balance(operator_address)
        except Exception as e:
            logger.warning(f"Operator balance unavailable: {e}")

    return web.json_response(
        {
            "success": True,
            "timeframe": timeframe.value,
            "recentDistributions": [record.to_dict() for record in history],
            "poolSize": pool_size,
            "schedule": schedule,
            "operatorAddress": operator_address,
            "operatorBalance": operator_balance,
            "symbol": services.calculator.symbol,
        }
    )


async def schedule_handler(request: web.Request) -> web.Response:
    """GET /api/rewards/schedule?pool=1000000"""
    services = request.app[SERVICES_KEY]
    raw_pool = request.query.get("pool")

    try:
        if raw_pool is None:
            pool_size = await services.pool_source.get_configured_pool_size()
        else:
            pool_size = int(raw_pool)
        schedule = services.calculator.describe_schedule(pool_size)
    except ValueError:
        return _error("pool must be an integer amount in smallest units", 400, "invalid_input")
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    return web.json_response({"success": True, "schedule": schedule})


async def verify_pin_handler(request: web.Request) -> web.Response:
    """POST /api/admin/verify-pin"""
    services = request.app[SERVICES_KEY]
    try:
        body = await _read_json(request)
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    if not body.get("pin"):
        return _error("PIN is required", 400, "invalid_input")

    rejection = await _check_admin_pin(request, services, body["pin"])
    if rejection is not None:
        return rejection
    return web.json_response({"success": True, "message": "PIN verified"})


async def update_pin_handler(request: web.Request) -> web.Response:
    """PUT /api/admin/verify-pin"""
    services = request.app[SERVICES_KEY]
    client = _client_id(request)
    try:
        body = await _read_json(request)
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    if await services.pin_limiter.is_locked_out(client):
        return _error("Too many failed attempts. Try again later.", 429, "locked_out")

    current_pin = body.get("currentPin")
    new_pin = body.get("newPin")
    try:
        await services.pin_service.update_pin(
            str(current_pin) if current_pin is not None else None,
            str(new_pin) if new_pin is not None else None,
        )
    except AuthorizationError as e:
        await _record_pin_failure(services, client)
        return _error(str(e), 401, e.code)
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    await services.pin_limiter.clear(client)
    return web.json_response({"success": True, "message": "PIN updated successfully"})


async def register_grant_handler(request: web.Request) -> web.Response:
    """POST /api/spend-permissions/register"""
    services = request.app[SERVICES_KEY]
    try:
        body = await _read_json(request)
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    rejection = await _check_admin_pin(
        request, services, body.get("pin") or body.get("adminPin")
    )
    if rejection is not None:
        return rejection

    payload = body.get("spendPermission") or body.get("spendingGrant")
    if payload is None:
        return _error("spendPermission is required", 400, "invalid_input")

    try:
        grant = SpendingGrant.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in e.errors())
        return _error(f"Invalid spend permission ({fields})", 400, "invalid_input")

    operator_address = services.orchestrator.funding.operator_address
    if not same_address(grant.operator, operator_address):
        return _error(
            f"Spend permission must name the operator {mask_address(operator_address)}",
            400,
            "invalid_input",
        )

    try:
        await services.grant_store.save_grant(grant)
    except ValueError as e:
        return _error(str(e), 400, "invalid_input")

    return web.json_response(
        {
            "success": True,
            "authorizer": grant.authorizer,
            "capAmount": grant.cap_amount,
            "periodDays": grant.period_days,
            "end": grant.end,
        }
    )


def _reward_config_body(services: AppServices, pool_size: int) -> dict:
    calculator = services.calculator
    return {
        "success": True,
        "poolSize": pool_size,
        "amount": format_amount(pool_size, calculator.decimals),
        "formatted": calculator.format(pool_size),
        "symbol": calculator.symbol,
        "decimals": calculator.decimals,
    }


async def reward_config_handler(request: web.Request) -> web.Response:
    """GET /api/reward-config"""
    services = request.app[SERVICES_KEY]
    try:
        pool_size = await services.pool_source.get_configured_pool_size()
    except InvalidInputError as e:
        return _error(str(e), 500, e.code)
    return web.json_response(_reward_config_body(services, pool_size))


async def update_reward_config_handler(request: web.Request) -> web.Response:
    """POST /api/reward-config"""
    services = request.app[SERVICES_KEY]
    try:
        body = await _read_json(request)
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    rejection = await _check_admin_pin(
        request, services, body.get("pin") or body.get("adminPin")
    )
    if rejection is not None:
        return rejection

    symbol = body.get("symbol")
    if symbol is not None and symbol != services.calculator.symbol:
        return _error(
            f"Rewards are paid in {services.calculator.symbol}, not {symbol}",
            400,
            "invalid_input",
        )

    pool_size = body.get("poolSize")
    try:
        await services.pool_source.set_configured_pool_size(pool_size)
    except InvalidInputError as e:
        return _error(str(e), 400, e.code)

    logger.info(f"Reward pool size updated to {pool_size} by {_client_id(request)}")
    return web.json_response(_reward_config_body(services, pool_size))


async def health_handler(request: web.Request) -> web.Response:
    """GET /health"""
    services = request.app[SERVICES_KEY]
    try:
        if services.redis_client is not None:
            await services.redis_client.ping()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response({"status": "unhealthy", "error": str(e)}, status=503)

    return web.json_response({"status": "healthy", "app": services.config.app_name})
