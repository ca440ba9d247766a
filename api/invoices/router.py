"""
Invoice gateway endpoints.

Every route accepts any HTTP method; the verb a route stands for is only
advertised through its CORS header (see main.CORS_METHODS).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from auth import dependencies as auth_dependencies
from core.config import Settings, get_settings

from . import schemas, service

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

_ERRORS = {
    400: {"model": schemas.ErrorResponse},
    401: {"model": schemas.ErrorResponse},
    500: {"model": schemas.ErrorResponse},
}

router = APIRouter(
    dependencies=[Depends(auth_dependencies.require_shared_secret)],
    responses=_ERRORS,
)


def _params(request: Request) -> dict[str, str]:
    # First value per key, first-seen key order.
    return service.query_columns(request.query_params.multi_items())


@router.api_route("/get", methods=ANY_METHOD, response_model=schemas.ReadResponse)
async def get_invoices(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    params = _params(request)
    return await service.read_rows(
        settings,
        what=params.get("what", ""),
        row_id=params.get(service.ID_PARAM, ""),
    )


@router.api_route("/add", methods=ANY_METHOD, response_model=schemas.AffectedResponse)
async def add_invoice(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    return await service.add_row(settings, _params(request))


@router.api_route("/upd", methods=ANY_METHOD, response_model=schemas.AffectedResponse)
async def update_invoice(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    params = _params(request)
    return await service.update_row(settings, params, row_id=params.get(service.ID_PARAM, ""))


@router.api_route("/del", methods=ANY_METHOD, response_model=schemas.AffectedResponse)
async def delete_invoice(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict:
    params = _params(request)
    return await service.delete_row(settings, row_id=params.get(service.ID_PARAM, ""))
