"""POST /v1/constraints/preview - show the payload a selection would produce"""

from fastapi import APIRouter

from issuing_console.api.v1.schemas import ConstraintPreviewResponse, ConstraintSelectionSchema
from issuing_console.config import settings
from issuing_console.domain.constraints import build_validated_constraint

router = APIRouter()


@router.post("/constraints/preview", response_model=ConstraintPreviewResponse)
def preview_constraint(body: ConstraintSelectionSchema):
    # ConstraintValidationError becomes a 422 in the app-level handler
    payload = build_validated_constraint(body.to_selection(), timezone=settings.utilization_timezone)
    return ConstraintPreviewResponse(payload=payload.to_request_body())
