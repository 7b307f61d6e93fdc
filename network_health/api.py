"""
Network Health API Endpoints.

============================================================
PURPOSE
============================================================
HTTP API for network health data access.

PRINCIPLES:
- ALL endpoints are READ-ONLY
- Pure data retrieval and scoring

============================================================
STATUS CODES
============================================================
- 200: score computed (zero nodes included)
- 200: no history yet, with empty payload and message
- 400: invalid query parameter
- 503: telemetry store unavailable

============================================================
"""

import json
import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from aiohttp import web

from .exceptions import (
    DataUnavailableError,
    InvalidRequestError,
    NoHistoricalDataError,
)
from .service import NetworkHealthService


logger = logging.getLogger(__name__)


# ============================================================
# JSON ENCODER
# ============================================================

class NetworkHealthEncoder(json.JSONEncoder):
    """JSON encoder for network health payloads."""

    def default(self, obj):
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, 'to_dict'):
            return obj.to_dict()
        return super().default(obj)


def json_response(data: Any, status: int = 200) -> web.Response:
    """Create JSON response."""
    return web.Response(
        text=json.dumps(data, cls=NetworkHealthEncoder, indent=2),
        status=status,
        content_type="application/json",
    )


def error_response(error: Exception, status: int) -> web.Response:
    body = {
        "status": "error",
        "error": str(error),
    }
    if hasattr(error, 'to_dict'):
        body["details"] = error.to_dict()["details"]
    return json_response(body, status=status)


def no_history_response(error: NoHistoricalDataError, empty: Any) -> web.Response:
    return json_response({
        "status": "ok",
        "data": empty,
        "message": error.message,
    })


# ============================================================
# API HANDLERS
# ============================================================

class NetworkHealthAPI:
    """
    HTTP API for network health.

    ALL endpoints are READ-ONLY.
    """

    def __init__(self, service: NetworkHealthService):
        """Initialize API."""
        self._service = service

    # --------------------------------------------------------
    # CURRENT SCORE
    # --------------------------------------------------------

    async def get_network_health(self, request: web.Request) -> web.Response:
        """
        GET /api/network-health

        Current network health from the live node table.
        """
        try:
            result = await self._service.get_current_health()
            return json_response({
                "status": "ok",
                "data": result.to_dict(),
            })
        except DataUnavailableError as e:
            logger.warning(f"Network health unavailable: {e}")
            return error_response(e, status=503)
        except Exception as e:
            logger.error(f"Error computing network health: {e}")
            return json_response({
                "status": "error",
                "error": str(e),
            }, status=500)

    # --------------------------------------------------------
    # HISTORY ENDPOINTS
    # --------------------------------------------------------

    async def get_history(self, request: web.Request) -> web.Response:
        """
        GET /api/network-health/history?days=30

        Score series and trend over the last N days.
        """
        try:
            result = await self._service.get_history(request.query.get("days"))
            return json_response({
                "status": "ok",
                "data": result,
            })
        except InvalidRequestError as e:
            return error_response(e, status=400)
        except NoHistoricalDataError as e:
            return no_history_response(e, {"trend": "unknown", "history": []})
        except DataUnavailableError as e:
            logger.warning(f"Network health history unavailable: {e}")
            return error_response(e, status=503)
        except Exception as e:
            logger.error(f"Error getting network health history: {e}")
            return json_response({
                "status": "error",
                "error": str(e),
            }, status=500)

    async def get_yesterday(self, request: web.Request) -> web.Response:
        """
        GET /api/network-health/yesterday

        Average node score around 24 hours ago.
        """
        try:
            result = await self._service.get_yesterday()
            return json_response({
                "status": "ok",
                "data": result.to_dict(),
            })
        except NoHistoricalDataError as e:
            return no_history_response(e, None)
        except DataUnavailableError as e:
            logger.warning(f"Yesterday's score unavailable: {e}")
            return error_response(e, status=503)
        except Exception as e:
            logger.error(f"Error getting yesterday's score: {e}")
            return json_response({
                "status": "error",
                "error": str(e),
            }, status=500)

    async def get_last_week(self, request: web.Request) -> web.Response:
        """
        GET /api/network-health/last-week

        Average node score around 7 days ago.
        """
        try:
            result = await self._service.get_last_week()
            return json_response({
                "status": "ok",
                "data": result.to_dict(),
            })
        except NoHistoricalDataError as e:
            return no_history_response(e, None)
        except DataUnavailableError as e:
            logger.warning(f"Last week's score unavailable: {e}")
            return error_response(e, status=503)
        except Exception as e:
            logger.error(f"Error getting last week's score: {e}")
            return json_response({
                "status": "error",
                "error": str(e),
            }, status=500)

    async def get_growth_metrics(self, request: web.Request) -> web.Response:
        """
        GET /api/growth-metrics

        Growth rates from the daily snapshot rollups.
        """
        try:
            metrics = await self._service.get_growth_metrics()
            return json_response({
                "status": "ok",
                "data": metrics.to_dict(),
            })
        except DataUnavailableError as e:
            logger.warning(f"Growth metrics unavailable: {e}")
            return error_response(e, status=503)
        except Exception as e:
            logger.error(f"Error getting growth metrics: {e}")
            return json_response({
                "status": "error",
                "error": str(e),
            }, status=500)

    # --------------------------------------------------------
    # HEALTH CHECK
    # --------------------------------------------------------

    async def health(self, request: web.Request) -> web.Response:
        """
        GET /api/health

        Service liveness check.
        """
        return json_response({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": "network-health",
        })


# ============================================================
# ROUTER FACTORY
# ============================================================

def create_network_health_router(service: NetworkHealthService) -> web.Application:
    """
    Create network health API application.

    Returns an aiohttp Application with all routes configured.
    """
    api = NetworkHealthAPI(service)

    app = web.Application()

    app.router.add_get("/health", api.health)
    app.router.add_get("/network-health", api.get_network_health)
    app.router.add_get("/network-health/history", api.get_history)
    app.router.add_get("/network-health/yesterday", api.get_yesterday)
    app.router.add_get("/network-health/last-week", api.get_last_week)
    app.router.add_get("/growth-metrics", api.get_growth_metrics)

    return app


def setup_network_health_routes(
    app: web.Application,
    service: NetworkHealthService,
    prefix: str = "/api",
) -> None:
    """Add network health routes to an existing application."""
    health_app = create_network_health_router(service)
    app.add_subapp(prefix, health_app)
