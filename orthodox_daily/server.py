"""FastAPI application serving the Alexa skill webhook."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from fastapi import APIRouter, Body, FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from .alexa import RequestEnvelope, build_response
from .config import Config
from .delivery import DeliveryStateMachine
from .orthocal import OrthocalClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
@router.get("/healthz", response_class=PlainTextResponse)
def health() -> str:
    """Health check for load balancers."""
    return "ok"


@router.post("/echo/")
def skill_webhook(
    request: Request, payload: dict[str, Any] = Body(...)
) -> dict[str, Any]:
    """Handle one Alexa skill request."""
    config: Config = request.app.state.config
    delivery: DeliveryStateMachine = request.app.state.delivery

    try:
        envelope = RequestEnvelope.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"Malformed skill request: {e.error_count()} errors")
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Malformed skill request"
        ) from e

    if config.alexa_app_id and envelope.application_id != config.alexa_app_id:
        logger.warning(f"Rejecting request for application {envelope.application_id}")
        raise HTTPException(
            status_code=HTTPStatus.FORBIDDEN, detail="Unknown application"
        )

    turn = envelope.to_turn()
    if turn is None:
        return build_response(None, envelope.attributes)

    result = delivery.handle(turn, envelope.session_state())
    return build_response(result, envelope.attributes)


def create_app(
    config: Config | None = None, delivery: DeliveryStateMachine | None = None
) -> FastAPI:
    """Build the FastAPI application."""
    if config is None:
        config = Config()
    if delivery is None:
        client = OrthocalClient(
            calendar=config.calendar,
            base_url=config.orthocal_base_url,
            timeout=config.request_timeout,
        )
        delivery = DeliveryStateMachine(client, config.budget(), config.tz)

    app = FastAPI(title="Orthodox Daily")
    app.state.config = config
    app.state.delivery = delivery
    app.include_router(router)
    return app


__all__ = ["create_app", "router"]
