"""Card endpoints: list, create, update, sensitive detail"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from issuing_console.api.dependencies import get_backend_client, get_request_id
from issuing_console.api.v1.schemas import (
    CardPageResponse,
    CardSchema,
    CreateCardBody,
    UpdateCardBody,
)
from issuing_console.config import settings
from issuing_console.domain.cards import CardListQuery, merge_card_detail
from issuing_console.domain.constraints import build_validated_constraint
from issuing_console.domain.exceptions import BackendAPIError, ConstraintValidationError
from issuing_console.domain.models import Card
from issuing_console.domain.money import format_amount
from issuing_console.domain.requests import CreateCardRequest, UpdateCardRequest
from issuing_console.infrastructure.clients.backend import BackendClient
from issuing_console.infrastructure.observability.logging import log_backend_failure

router = APIRouter()


def card_to_schema(card: Card) -> CardSchema:
    constraint = card.constraint
    return CardSchema(
        id=card.id,
        name=card.name,
        status=card.status,
        last4=card.last4,
        pan=card.pan,
        cvv=card.cvv,
        expiry_month=card.expiry_month,
        expiry_year=card.expiry_year,
        virtual_account_id=card.virtual_account_id,
        card_group_id=card.card_group_id,
        daily_limit=format_amount(constraint.utilization_limit_cents),
        min_transaction=format_amount(constraint.min_transaction_cents),
        max_transaction=format_amount(constraint.max_transaction_cents),
        merchant_names=list(constraint.merchant_names),
    )


def _backend_failure(operation: str, error: BackendAPIError, request_id: str, fallback: str) -> HTTPException:
    log_backend_failure(operation, error, error.status_code, request_id)
    return HTTPException(status_code=502, detail=error.user_message(fallback))


@router.get("/cards", response_model=CardPageResponse)
async def list_cards(
    request: Request,
    account_id: int = Query(..., description="Active account"),
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, gt=0),
    virtual_account_id: Optional[int] = None,
    card_group_id: Optional[int] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
    backend: BackendClient = Depends(get_backend_client),
):
    """Offset-paged card listing"""
    query = CardListQuery(
        account_id=account_id,
        virtual_account_id=virtual_account_id,
        card_group_id=card_group_id,
        search=search,
        status=status,
    )
    try:
        result = await backend.list_cards(query, page, size or settings.default_page_size)
    except BackendAPIError as e:
        raise _backend_failure("list_cards", e, get_request_id(request), "Failed to load cards")

    return CardPageResponse(
        content=[card_to_schema(c) for c in result.content],
        page=result.page,
        total_pages=result.total_pages,
        total_elements=result.total_elements,
        has_next=result.page + 1 < result.total_pages,
        has_previous=result.page > 0,
    )


@router.post("/cards", response_model=CardSchema)
async def create_card(
    body: CreateCardBody,
    request: Request,
    backend: BackendClient = Depends(get_backend_client),
):
    """
    Create a card.

    Flow:
    1. Require account + virtual account
    2. Validate limits (min < max), then build the allow-list payload
    3. Create through the backend
    """
    request_id = get_request_id(request)
    try:
        card_request = CreateCardRequest(
            account_id=body.account_id,
            virtual_account_id=body.virtual_account_id,
            card_group_id=body.card_group_id,
            name=body.name,
        )
        card_request.validate()
        card_request.constraint = build_validated_constraint(
            body.constraint.to_selection(), timezone=settings.utilization_timezone
        )
        card = await backend.create_card(card_request)
    except ConstraintValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except BackendAPIError as e:
        raise _backend_failure("create_card", e, request_id, "Failed to create card")

    logging.info("Card created", extra={"request_id": request_id, "card_id": card.id})
    return card_to_schema(card)


@router.put("/cards/{card_id}", response_model=CardSchema)
async def update_card(
    card_id: int,
    body: UpdateCardBody,
    request: Request,
    backend: BackendClient = Depends(get_backend_client),
):
    request_id = get_request_id(request)
    try:
        constraint = build_validated_constraint(
            body.constraint.to_selection(), timezone=settings.utilization_timezone
        )
        card = await backend.update_card(
            card_id, UpdateCardRequest(constraint=constraint, status=body.status, name=body.name)
        )
    except ConstraintValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except BackendAPIError as e:
        raise _backend_failure("update_card", e, request_id, "Failed to update card")

    return card_to_schema(card)


@router.get("/cards/{card_id}/detail", response_model=CardSchema)
async def get_card_detail(
    card_id: int,
    request: Request,
    include_cvv: bool = False,
    backend: BackendClient = Depends(get_backend_client),
):
    """Card record with vault fields merged in; nothing is cached"""
    request_id = get_request_id(request)
    try:
        card = await backend.get_card(card_id)
        detail = await backend.get_card_detail(card_id, include_pan=True, include_cvv=include_cvv)
    except BackendAPIError as e:
        raise _backend_failure("get_card_detail", e, request_id, "Failed to load card detail")

    return card_to_schema(merge_card_detail(card, detail))
