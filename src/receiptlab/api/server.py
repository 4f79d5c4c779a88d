"""FastAPI backend for ReceiptLab."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from receiptlab import __version__
from receiptlab.agents.image_client import GenerationGateway, build_gateway
from receiptlab.api.schemas import (
    SELECTIONS_ADAPTER,
    ErrorResponse,
    GameSchema,
    GenerateReceiptRequest,
    GenerateReceiptResponse,
    TicketResponse,
)
from receiptlab.config import get_settings
from receiptlab.data.catalog import list_games
from receiptlab.tickets.engine import build_ticket
from receiptlab.tickets.types import Selection

logger = logging.getLogger(__name__)

app = FastAPI(
    title="ReceiptLab API",
    version=__version__,
    description="Builds novelty betting receipts from mock finished games and renders them with an image model.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class InvalidReceiptRequest(Exception):
    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


@app.exception_handler(InvalidReceiptRequest)
def _invalid_request_handler(_: Request, exc: InvalidReceiptRequest) -> JSONResponse:
    body = ErrorResponse(error=exc.message, details=exc.details)
    return JSONResponse(status_code=400, content=body.model_dump(exclude_none=True))


@app.exception_handler(RequestValidationError)
def _malformed_body_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    body = ErrorResponse(error="Invalid request", details=str(exc.errors()))
    return JSONResponse(status_code=400, content=body.model_dump())


@lru_cache(maxsize=1)
def get_gateway() -> GenerationGateway:
    """Process-wide gateway, built on first use so a missing key only fails generation."""

    return build_gateway(get_settings())


def gateway_factory() -> Callable[[], GenerationGateway]:
    return get_gateway


GatewayFactoryDep = Annotated[Callable[[], GenerationGateway], Depends(gateway_factory)]


def _parse_stake(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        stake = float(value)
    except OverflowError:
        return None
    if not math.isfinite(stake) or stake <= 0:
        return None
    return stake


def _validate(payload: GenerateReceiptRequest) -> tuple[list[Selection], float]:
    if not isinstance(payload.selections, list) or not payload.selections:
        raise InvalidReceiptRequest("No games selected")
    stake = _parse_stake(payload.stake)
    if stake is None:
        raise InvalidReceiptRequest("Invalid stake amount")
    try:
        selections = [sel.to_selection() for sel in SELECTIONS_ADAPTER.validate_python(payload.selections)]
    except ValueError as exc:
        raise InvalidReceiptRequest("Invalid selection", details=str(exc)) from exc
    return selections, stake


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, Any]:
    return {
        "name": "receiptlab",
        "version": __version__,
        "image_provider": get_settings().image_provider,
    }


@app.get("/games", response_model=list[GameSchema])
def games() -> list[GameSchema]:
    return [GameSchema.from_game(game) for game in list_games()]


@app.post("/api/ticket", response_model=TicketResponse)
def preview_ticket(payload: GenerateReceiptRequest) -> TicketResponse:
    selections, stake = _validate(payload)
    return TicketResponse.from_ticket(build_ticket(selections, stake))


@app.post(
    "/api/generate-receipt",
    response_model=GenerateReceiptResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def generate_receipt(payload: GenerateReceiptRequest, make_gateway: GatewayFactoryDep) -> Any:
    selections, stake = _validate(payload)
    ticket = build_ticket(selections, stake)
    try:
        image = make_gateway().generate_receipt(ticket)
    except Exception as exc:
        logger.exception("Error generating receipt %s", ticket.receipt_number)
        body = ErrorResponse(error="Failed to generate receipt", details=str(exc))
        return JSONResponse(status_code=500, content=body.model_dump())
    return GenerateReceiptResponse(
        image_url=image.url,
        receipt_number=ticket.receipt_number,
        date=ticket.date,
        time=ticket.time,
    )
