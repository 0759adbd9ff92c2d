"""Card group endpoints: two-step create and rule replacement"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from issuing_console.api.dependencies import get_backend_client, get_request_id
from issuing_console.api.v1.schemas import CardGroupBody, CardGroupResponse, ConstraintSelectionSchema
from issuing_console.config import settings
from issuing_console.domain.constraints import build_validated_constraint
from issuing_console.domain.exceptions import BackendAPIError, ConstraintValidationError
from issuing_console.domain.requests import CardGroupRequest
from issuing_console.infrastructure.clients.backend import BackendClient
from issuing_console.infrastructure.observability.logging import log_backend_failure

router = APIRouter()

RULE_UPDATE_FAILED = "Card group created but rule update failed"


@router.post("/card-groups", response_model=CardGroupResponse)
async def create_card_group(
    body: CardGroupBody,
    request: Request,
    backend: BackendClient = Depends(get_backend_client),
):
    """
    Create a card group, then patch its allow-list rules.

    A rule failure after a successful create is reported as a notice on the
    created group rather than undone.
    """
    request_id = get_request_id(request)
    try:
        constraint = build_validated_constraint(
            body.constraint.to_selection(), timezone=settings.utilization_timezone
        )
        group_request = CardGroupRequest(
            name=body.name,
            virtual_account_id=body.virtual_account_id,
            start_date=body.start_date,
            constraint=constraint,
        )
        group_request.validate(creating=True)
        group = await backend.create_card_group(body.account_id, group_request)
    except ConstraintValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except BackendAPIError as e:
        log_backend_failure("create_card_group", e, e.status_code, request_id)
        raise HTTPException(status_code=502, detail=e.user_message("Unable to create card group"))

    notice = None
    if constraint.has_rules:
        try:
            await backend.patch_card_group_constraint(group.id, constraint.rules_only())
        except BackendAPIError as e:
            log_backend_failure("patch_card_group_constraint", e, e.status_code, request_id)
            notice = e.user_message(RULE_UPDATE_FAILED)

    logging.info("Card group created", extra={"request_id": request_id, "card_group_id": group.id})
    return CardGroupResponse(id=group.id, name=group.name, notice=notice)


@router.put("/card-groups/{group_id}/spending-constraint", status_code=204)
async def replace_card_group_constraint(
    group_id: int,
    body: ConstraintSelectionSchema,
    request: Request,
    backend: BackendClient = Depends(get_backend_client),
):
    """Replace the card group's allow-list rules and limits"""
    request_id = get_request_id(request)
    try:
        constraint = build_validated_constraint(body.to_selection(), timezone=settings.utilization_timezone)
        await backend.put_card_group_constraint(group_id, constraint)
    except ConstraintValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except BackendAPIError as e:
        log_backend_failure("put_card_group_constraint", e, e.status_code, request_id)
        raise HTTPException(status_code=502, detail=e.user_message("Unable to update card group rules"))
