from __future__ import annotations

import json
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from ..exceptions import PersistenceError, RequestShapeError
from ..models.blood_group import BLOOD_GROUPS, BloodGroup, lookup_blood_group
from ..models.donor import DonorCreatedResponse, DonorListResponse, ErrorResponse
from ..repositories.donors import LOOKUP_LIMIT, DonorRepository
from ..validation import normalize_donor_payload, validate_donor_payload

router = APIRouter(prefix="/api/donations", tags=["donations"])

SAVE_FAILED_MESSAGE = "We were unable to save your details. Please try again shortly."
FETCH_FAILED_MESSAGE = "Unable to fetch donors at this time. Please try again shortly."
INVALID_GROUP_MESSAGE = "Invalid blood group supplied"


def get_donor_repository(request: Request) -> DonorRepository:
    return request.app.state.donor_repository


async def read_json_payload(request: Request) -> Dict[str, Any]:
    """Return the request body as a raw mapping; an empty body reads as ``{}``."""
    limit = request.app.state.settings.max_body_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise RequestShapeError("Request body is too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise RequestShapeError("Request body is too large", status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE)
    if not body.strip():
        return {}
    try:
        payload = json.loads(body)
    except ValueError as exc:
        raise RequestShapeError("Request body must be valid JSON") from exc
    if not isinstance(payload, dict):
        raise RequestShapeError("Request body must be a JSON object")
    return payload


def parse_blood_group_query(value: str) -> BloodGroup | None:
    group = lookup_blood_group(value)
    if group is None and value.endswith(" "):
        # form encoding turns "O+" into "O "
        group = lookup_blood_group(value.rstrip() + "+")
    return group


def error_response(status_code: int, message: str, errors: List[str] | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)


def _json_response(model: BaseModel, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(model.model_dump(mode="json", by_alias=True), status_code=status_code)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=DonorCreatedResponse,
    responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_donation(
    payload: Dict[str, Any] = Depends(read_json_payload),
    donors: DonorRepository = Depends(get_donor_repository),
) -> JSONResponse:
    errors = validate_donor_payload(payload)
    if errors:
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation failed", errors)

    record = normalize_donor_payload(payload)
    try:
        donor_id = await donors.create(record)
    except PersistenceError:
        logger.warning("Donor registration failed; responding with 500")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SAVE_FAILED_MESSAGE)
    return _json_response(DonorCreatedResponse(donorId=donor_id), status.HTTP_201_CREATED)


@router.get(
    "",
    response_model=DonorListResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_donations(
    blood_group: str | None = Query(
        default=None,
        alias="bloodGroup",
        description=f"Blood group to list, one of {', '.join(BLOOD_GROUPS)} (case-insensitive).",
    ),
    donors: DonorRepository = Depends(get_donor_repository),
) -> JSONResponse:
    if not blood_group:
        raise RequestShapeError("Blood group query parameter is required")

    group = parse_blood_group_query(blood_group)
    if group is None:
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, INVALID_GROUP_MESSAGE)

    try:
        matches = await donors.find_by_blood_group(group, LOOKUP_LIMIT)
    except PersistenceError:
        logger.warning("Donor lookup for {} failed; responding with 500", group.value)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, FETCH_FAILED_MESSAGE)
    return _json_response(DonorListResponse(donors=matches))
