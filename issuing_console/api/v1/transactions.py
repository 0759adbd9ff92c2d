"""GET /v1/transactions - one cursor chunk, narrowed by a local text filter"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from issuing_console.api.dependencies import get_backend_client, get_request_id
from issuing_console.api.v1.schemas import TransactionPageResponse, TransactionSchema
from issuing_console.config import settings
from issuing_console.domain.exceptions import BackendAPIError
from issuing_console.domain.money import format_amount
from issuing_console.domain.transactions import TransactionQuery, filter_transactions
from issuing_console.infrastructure.clients.backend import BackendClient
from issuing_console.infrastructure.observability.logging import log_backend_failure
from issuing_console.utils.date_utils import day_bounds_ms, parse_iso_date

router = APIRouter()


def _date_filters(date_from: Optional[str], date_to: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """ISO days -> inclusive epoch-millisecond bounds in the configured timezone"""
    try:
        start_day = parse_iso_date(date_from)
        end_day = parse_iso_date(date_to)
    except ValueError:
        raise HTTPException(status_code=422, detail="Dates must be formatted as yyyy-MM-dd")
    if start_day and end_day and start_day > end_day:
        raise HTTPException(status_code=422, detail="Start date must not be after end date")

    tz_name = settings.utilization_timezone
    start_ms = str(day_bounds_ms(start_day, tz_name)[0]) if start_day else None
    end_ms = str(day_bounds_ms(end_day, tz_name)[1]) if end_day else None
    return start_ms, end_ms


@router.get("/transactions", response_model=TransactionPageResponse)
async def list_transactions(
    request: Request,
    account_id: int = Query(...),
    virtual_account_id: Optional[str] = None,
    card_id: Optional[str] = None,
    status: Optional[str] = None,
    detailed_status: Optional[str] = None,
    date_from: Optional[str] = Query(None, description="yyyy-MM-dd, inclusive"),
    date_to: Optional[str] = Query(None, description="yyyy-MM-dd, inclusive"),
    cursor: Optional[str] = None,
    q: Optional[str] = Query(None, description="Client-side text filter"),
    backend: BackendClient = Depends(get_backend_client),
):
    """
    Fetch one chunk of transaction history.

    `q` only narrows the returned chunk; next_cursor is always the server's,
    so paging continues from the same place whatever the filter.
    """
    start_ms, end_ms = _date_filters(date_from, date_to)
    query = TransactionQuery(
        account_id=account_id,
        virtual_account_id=virtual_account_id,
        card_id=card_id,
        status=status,
        date_from=start_ms,
        date_to=end_ms,
        extra_filters=(("detailed_status", detailed_status),) if detailed_status else (),
    )
    try:
        result = await backend.list_transactions(query, cursor)
    except BackendAPIError as e:
        log_backend_failure("list_transactions", e, e.status_code, get_request_id(request))
        raise HTTPException(status_code=502, detail=e.user_message("Failed to load transactions"))

    visible = filter_transactions(result.items, q)
    return TransactionPageResponse(
        items=[
            TransactionSchema(
                id=t.id,
                date=t.date,
                amount=format_amount(t.amount_cents),
                status=t.status,
                description=t.description,
                merchant_description=t.merchant_description,
                memo=t.memo,
            )
            for t in visible
        ],
        next_cursor=result.next_cursor,
        fetched_count=len(result.items),
    )
