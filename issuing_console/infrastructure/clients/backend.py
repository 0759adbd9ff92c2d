"""Card backend HTTP client for cards, card groups, merchants and transactions"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from issuing_console.config import settings
from issuing_console.domain.cards import CardGroupListQuery, CardListQuery
from issuing_console.domain.constraints import SpendingConstraintPayload
from issuing_console.domain.exceptions import BackendAPIError
from issuing_console.domain.lookups import LabelResolver
from issuing_console.domain.models import (
    ALLOWLIST,
    Card,
    CardDetail,
    CardGroup,
    CountryOption,
    CursorResult,
    MccCodeOption,
    Merchant,
    MerchantCategory,
    PagedResult,
    RestrictionRule,
    StoredConstraint,
    Transaction,
    Utilization,
    VirtualAccount,
)
from issuing_console.domain.requests import CardGroupRequest, CreateCardRequest, UpdateCardRequest
from issuing_console.domain.transactions import TransactionQuery
from issuing_console.infrastructure.observability.metrics import (
    backend_latency_histogram,
    record_backend_failure,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _optional_int(value: Any) -> Optional[int]:
    return int(value) if value is not None else None


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def _parse_rule(items: Any, restriction: Any) -> Optional[RestrictionRule]:
    if not items:
        return None
    return RestrictionRule(items=[str(i) for i in items], restriction=restriction or ALLOWLIST)


def _parse_constraint(data: Dict[str, Any]) -> StoredConstraint:
    """
    Read a stored constraint from either the nested platform shape
    (spendingConstraint.countryRule...) or the flat allow-list shape we send.
    """
    nested = data.get("spendingConstraint")
    if isinstance(nested, dict):

        def rule(name: str, items_key: str) -> Optional[RestrictionRule]:
            block = nested.get(name) or {}
            return _parse_rule(block.get(items_key), block.get("restriction"))

        country_rule = rule("countryRule", "countries")
        mcc_rule = rule("merchantCategoryCodeRule", "merchantCategoryCodes")
        merchant_category_rule = rule("merchantCategoryRule", "merchantCategories")
        merchant_rule = rule("merchantRule", "merchants")
    else:
        country_rule = _parse_rule(data.get("countryAllow"), data.get("countryRestriction"))
        mcc_rule = _parse_rule(data.get("mccAllow"), data.get("mccRestriction"))
        merchant_category_rule = _parse_rule(
            data.get("merchantCategoryAllow"), data.get("merchantCategoryRestriction")
        )
        merchant_rule = _parse_rule(data.get("merchantAllow"), data.get("merchantRestriction"))

    user_data = data.get("userData") or {}
    merchant_names = user_data.get("merchantNames") or data.get("merchantNamesAllow") or []

    return StoredConstraint(
        country_rule=country_rule,
        mcc_rule=mcc_rule,
        merchant_category_rule=merchant_category_rule,
        merchant_rule=merchant_rule,
        utilization_limit_cents=_optional_int(
            data.get("utilizationLimitAmountCents", data.get("dailyLimitCents"))
        ),
        utilization_preset=data.get("utilizationPreset", data.get("preset")),
        min_transaction_cents=_optional_int(data.get("minTransactionCents")),
        max_transaction_cents=_optional_int(data.get("maxTransactionCents")),
        merchant_names=[str(n) for n in merchant_names],
    )


def parse_card(data: Dict[str, Any]) -> Card:
    return Card(
        id=int(data["id"]),
        name=data.get("name") or "",
        status=data.get("status"),
        last4=_optional_str(data.get("last4")),
        expiry_month=_optional_str(data.get("expiryMonth")),
        expiry_year=_optional_str(data.get("expiryYear")),
        virtual_account_id=_optional_int(data.get("virtualAccountId")),
        card_group_id=_optional_int(data.get("cardGroupId")),
        constraint=_parse_constraint(data),
    )


def parse_card_group(data: Dict[str, Any]) -> CardGroup:
    return CardGroup(
        id=int(data["id"]),
        name=data.get("name") or "",
        virtual_account_id=_optional_int(data.get("virtualAccountId")),
        start_date=data.get("startDate"),
        hidden=bool(data.get("hidden", False)),
        constraint=_parse_constraint(data),
    )


def parse_merchant(data: Dict[str, Any]) -> Merchant:
    return Merchant(id=str(data["id"]), name=data.get("name"), category=data.get("category"))


def parse_transaction(data: Dict[str, Any]) -> Transaction:
    merchant_data = data.get("merchantData") or {}
    return Transaction(
        id=str(data["id"]),
        date=data.get("date") or data.get("createdAt"),
        amount_cents=int(data.get("amountCents", 0)),
        status=data.get("status"),
        description=data.get("description"),
        merchant_description=data.get("merchantDescription"),
        memo=data.get("memo"),
        merchant_data_description=merchant_data.get("description"),
        card_id=_optional_str(data.get("cardId")),
        virtual_account_id=_optional_str(data.get("virtualAccountId")),
    )


def _parse_page(data: Dict[str, Any], parse_item: Callable[[Dict[str, Any]], T]) -> PagedResult[T]:
    return PagedResult(
        content=[parse_item(item) for item in data.get("content") or []],
        total_pages=int(data.get("totalPages", 0)),
        total_elements=int(data.get("totalElements", 0)),
        page=int(data.get("page", data.get("number", 0))),
    )


def _parse_cursor(data: Dict[str, Any], parse_item: Callable[[Dict[str, Any]], T]) -> CursorResult[T]:
    metadata = data.get("metadata") or {}
    next_cursor = data.get("nextCursor", metadata.get("nextCursor"))
    count = data.get("count", metadata.get("count"))
    return CursorResult(
        items=[parse_item(item) for item in data.get("items") or []],
        next_cursor=next_cursor or None,
        count=_optional_int(count),
    )


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        return str(message) if message else None
    return None


class BackendClient:
    """Client for the card backend REST API"""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.backend_api_base
        self.token = token if token is not None else settings.backend_token
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def _request(
        self,
        operation: str,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
    ) -> Any:
        """
        Issue one request and return the decoded JSON body (None when empty).

        Raises:
            BackendAPIError: On timeout, HTTP errors, network failure, or invalid JSON
        """
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self._headers(),
            transport=self._transport,
        ) as client:
            try:
                with backend_latency_histogram.labels(operation=operation).time():
                    response = await client.request(method, path, params=params, json=json)
                response.raise_for_status()
                if not response.content:
                    return None
                return response.json()

            except httpx.TimeoutException as e:
                record_backend_failure(operation)
                raise BackendAPIError(f"Card backend timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                record_backend_failure(operation)
                raise BackendAPIError(
                    f"Card backend error: {e.response.status_code}",
                    status_code=e.response.status_code,
                    backend_message=_error_message(e.response),
                ) from e
            except httpx.RequestError as e:
                record_backend_failure(operation)
                raise BackendAPIError(f"Card backend unreachable: {e}") from e
            except ValueError as e:
                record_backend_failure(operation)
                raise BackendAPIError(f"Invalid JSON from card backend: {e}") from e

    def _parse(self, operation: str, parse: Callable[[Any], T], data: Any) -> T:
        try:
            return parse(data)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            record_backend_failure(operation)
            raise BackendAPIError(f"Invalid {operation} data from card backend: {e}") from e

    # ---- cards ----

    async def list_cards(self, query: CardListQuery, page: int, size: int | None = None) -> PagedResult[Card]:
        data = await self._request(
            "list_cards", "GET", "/cards", params=query.to_params(page, size or settings.default_page_size)
        )
        return self._parse("list_cards", lambda d: _parse_page(d, parse_card), data)

    async def get_card(self, card_id: int) -> Card:
        data = await self._request("get_card", "GET", f"/cards/{card_id}")
        return self._parse("get_card", parse_card, data)

    async def create_card(self, request: CreateCardRequest) -> Card:
        data = await self._request("create_card", "POST", "/cards", json=request.to_request_body())
        return self._parse("create_card", parse_card, data)

    async def update_card(self, card_id: int, request: UpdateCardRequest) -> Card:
        data = await self._request("update_card", "PUT", f"/cards/{card_id}", json=request.to_request_body())
        return self._parse("update_card", parse_card, data)

    async def get_card_detail(self, card_id: int, include_pan: bool = True, include_cvv: bool = False) -> CardDetail:
        data = await self._request(
            "get_card_detail",
            "GET",
            f"/cards/{card_id}/detail",
            params={"includePan": str(include_pan).lower(), "includeCvv": str(include_cvv).lower()},
        )

        def parse(d: Dict[str, Any]) -> CardDetail:
            return CardDetail(
                pan=_optional_str(d.get("pan")),
                cvv=_optional_str(d.get("cvv")),
                last4=_optional_str(d.get("last4")),
                expiry_month=_optional_str(d.get("expiryMonth")),
                expiry_year=_optional_str(d.get("expiryYear")),
            )

        return self._parse("get_card_detail", parse, data)

    async def get_card_utilization(self, card_id: int) -> Utilization:
        data = await self._request("get_card_utilization", "GET", f"/cards/{card_id}/utilization")
        return self._parse("get_card_utilization", _parse_utilization, data)

    async def sync_cards(self, account_id: int) -> int:
        data = await self._request("sync_cards", "POST", "/cards/sync", params={"accountId": account_id})
        return self._parse("sync_cards", lambda d: int((d or {}).get("count", 0)), data)

    # ---- card groups ----

    async def list_card_groups(
        self, query: CardGroupListQuery, page: int, size: int | None = None
    ) -> PagedResult[CardGroup]:
        data = await self._request(
            "list_card_groups",
            "GET",
            "/card-groups",
            params=query.to_params(page, size or settings.default_page_size),
        )
        return self._parse("list_card_groups", lambda d: _parse_page(d, parse_card_group), data)

    async def create_card_group(self, account_id: int, request: CardGroupRequest) -> CardGroup:
        data = await self._request(
            "create_card_group",
            "POST",
            "/card-groups",
            params={"accountId": account_id},
            json=request.to_request_body(),
        )
        return self._parse("create_card_group", parse_card_group, data)

    async def update_card_group(self, group_id: int, request: CardGroupRequest) -> CardGroup:
        data = await self._request(
            "update_card_group", "PUT", f"/card-groups/{group_id}", json=request.to_request_body()
        )
        return self._parse("update_card_group", parse_card_group, data)

    async def delete_card_group(self, group_id: int) -> None:
        await self._request("delete_card_group", "DELETE", f"/card-groups/{group_id}")

    async def patch_card_group_constraint(self, group_id: int, payload: SpendingConstraintPayload) -> None:
        await self._request(
            "patch_card_group_constraint",
            "PATCH",
            f"/card-groups/{group_id}/spending-constraint",
            json=payload.to_request_body(),
        )

    async def put_card_group_constraint(self, group_id: int, payload: SpendingConstraintPayload) -> None:
        await self._request(
            "put_card_group_constraint",
            "PUT",
            f"/card-groups/{group_id}/spending-constraint",
            json=payload.to_request_body(),
        )

    async def get_card_group_utilization(self, group_id: int) -> Utilization:
        data = await self._request("get_card_group_utilization", "GET", f"/card-groups/{group_id}/utilization")
        return self._parse("get_card_group_utilization", _parse_utilization, data)

    async def sync_card_groups(self, account_id: int) -> int:
        data = await self._request("sync_card_groups", "POST", f"/card-groups/sync/account/{account_id}")
        return self._parse("sync_card_groups", lambda d: int((d or {}).get("count", 0)), data)

    async def set_card_group_hidden(self, group_id: int, hidden: bool) -> None:
        await self._request(
            "set_card_group_hidden", "PATCH", f"/hidden/card-groups/{group_id}", json={"hidden": hidden}
        )

    # ---- virtual accounts ----

    async def list_virtual_accounts(
        self, account_id: int, page: int = 0, size: int | None = None
    ) -> PagedResult[VirtualAccount]:
        safe_page = page if page >= 0 else 0
        safe_size = size if size and size > 0 else settings.default_page_size
        data = await self._request(
            "list_virtual_accounts",
            "GET",
            f"/virtual-accounts/account/{account_id}",
            params={"page": safe_page, "size": safe_size},
        )

        def parse_va(d: Dict[str, Any]) -> VirtualAccount:
            return VirtualAccount(id=int(d["id"]), slash_id=d.get("slashId"), name=d.get("name"))

        return self._parse("list_virtual_accounts", lambda d: _parse_page(d, parse_va), data)

    # ---- cursor listings ----

    async def search_merchants(
        self, account_id: int, search: str | None = None, cursor: str | None = None
    ) -> CursorResult[Merchant]:
        params: Dict[str, Any] = {"accountId": account_id}
        if search and search.strip():
            params["search"] = search.strip()
        if cursor:
            params["cursor"] = cursor
        data = await self._request("search_merchants", "GET", "/merchants", params=params)
        return self._parse("search_merchants", lambda d: _parse_cursor(d, parse_merchant), data)

    async def list_transactions(
        self, query: TransactionQuery, cursor: str | None = None
    ) -> CursorResult[Transaction]:
        params: Dict[str, Any] = {"accountId": query.account_id}
        if query.virtual_account_id:
            params["virtualAccountId"] = query.virtual_account_id
        if cursor:
            params["cursor"] = cursor
        params.update(query.filter_params())
        data = await self._request("list_transactions", "GET", "/transactions", params=params)
        return self._parse("list_transactions", lambda d: _parse_cursor(d, parse_transaction), data)

    # ---- metadata ----

    async def get_countries(self) -> List[CountryOption]:
        data = await self._request("get_countries", "GET", "/meta/countries")
        return self._parse(
            "get_countries",
            lambda d: [CountryOption(code=c["code"], name=c.get("name", ""), region=c.get("region")) for c in d],
            data,
        )

    async def get_mcc_codes(self) -> List[MccCodeOption]:
        data = await self._request("get_mcc_codes", "GET", "/meta/mcc-codes")
        return self._parse(
            "get_mcc_codes",
            lambda d: [MccCodeOption(code=str(m["code"]), name=m.get("name", "")) for m in d],
            data,
        )

    async def get_merchant_categories(self) -> List[MerchantCategory]:
        data = await self._request(
            "get_merchant_categories",
            "GET",
            "/merchant-categories",
            params={"page": 0, "size": settings.metadata_page_size},
        )

        def parse(d: Any) -> List[MerchantCategory]:
            rows = (d.get("content") or []) if isinstance(d, dict) else d
            return [
                MerchantCategory(
                    id=str(c.get("slashId") or c["id"]),
                    name=c.get("name", ""),
                    display_order=int(c.get("displayOrder") or 0),
                )
                for c in rows
            ]

        return self._parse("get_merchant_categories", parse, data)

    async def load_labels(self) -> LabelResolver:
        """Fetch the three option lists concurrently and index them"""
        countries, mcc_codes, categories = await asyncio.gather(
            self.get_countries(),
            self.get_mcc_codes(),
            self.get_merchant_categories(),
        )
        return LabelResolver(countries=countries, mcc_codes=mcc_codes, merchant_categories=categories)


def _parse_utilization(data: Dict[str, Any]) -> Utilization:
    return Utilization(
        spent_cents=int(data.get("spentCents", data.get("usedCents", 0))),
        limit_cents=_optional_int(data.get("limitCents", data.get("dailyLimitCents"))),
        preset=data.get("preset"),
        start_date=data.get("startDate"),
    )
