"""
Response normalizers

One function per endpoint maps every wire shape the backend has been seen
to return onto a single canonical model. Nothing outside this module
inspects raw response payloads.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from cashdesk.exceptions import ResponseFormatError
from cashdesk.models import (
    AuthorizedUser,
    CashClosure,
    CashClosurePage,
    CashClosureReport,
    DailyClosureSummary,
    ItemsSoldSummary,
    ShiftSalesSummary,
)

M = TypeVar("M", bound=BaseModel)

# Envelope keys some endpoints wrap their object in
ENVELOPE_KEYS = ("data", "result")


def _unwrap(payload: Any) -> Any:
    """Strip ``{"data": {...}}`` style envelopes"""
    while isinstance(payload, dict) and len(payload) == 1:
        key = next(iter(payload))
        if key not in ENVELOPE_KEYS:
            break
        payload = payload[key]
    return payload


def _pick_list(payload: Any, keys: tuple, endpoint: str) -> List[Any]:
    """Return the list found directly or under the first matching key"""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise ResponseFormatError(
        f"Unexpected {endpoint} response: expected a list",
        details={"endpoint": endpoint, "type": type(payload).__name__},
    )


def _build(model: Type[M], payload: Any, endpoint: str) -> M:
    if not isinstance(payload, dict):
        raise ResponseFormatError(
            f"Unexpected {endpoint} response: expected an object",
            details={"endpoint": endpoint, "type": type(payload).__name__},
        )
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ResponseFormatError(
            f"Invalid {endpoint} response: {e.error_count()} field error(s)",
            details={
                "endpoint": endpoint,
                "errors": [
                    {"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()
                ],
            },
        ) from e


def normalize_shift_summary(payload: Any) -> ShiftSalesSummary:
    """``GET /cash-closures/shift-summary``"""
    payload = _unwrap(payload)
    if isinstance(payload, dict) and isinstance(payload.get("summary"), dict):
        payload = payload["summary"]
    return _build(ShiftSalesSummary, payload, "shift-summary")


def normalize_items_sold(payload: Any) -> ItemsSoldSummary:
    """``GET /cash-closures/shift-items``"""
    payload = _unwrap(payload)
    items = _pick_list(payload, ("items_sold", "items"), "shift-items")

    data: Dict[str, Any] = {"items_sold": items}
    if isinstance(payload, dict):
        data["total_items_sold"] = payload.get("total_items_sold")
        data["total_products_sold"] = payload.get("total_products_sold")

    if data.get("total_items_sold") is None:
        data["total_items_sold"] = sum(
            int(item.get("quantity_sold", 0)) for item in items if isinstance(item, dict)
        )
    if data.get("total_products_sold") is None:
        data["total_products_sold"] = len(items)

    return _build(ItemsSoldSummary, data, "shift-items")


def normalize_closure(payload: Any) -> CashClosure:
    """Single closure object, bare or wrapped in ``closure``"""
    payload = _unwrap(payload)
    if isinstance(payload, dict) and "closure" in payload and isinstance(payload["closure"], dict):
        payload = payload["closure"]
    return _build(CashClosure, payload, "cash-closure")


def normalize_today_closure(payload: Any) -> Optional[CashClosure]:
    """
    ``GET /cash-closures/today``

    ``null``, an empty body, ``{}`` and ``{"closure": null}`` all mean no
    closure exists yet today.
    """
    payload = _unwrap(payload)
    if payload is None or payload == "" or payload == {}:
        return None
    if isinstance(payload, dict) and "closure" in payload and payload["closure"] is None:
        return None
    return normalize_closure(payload)


def normalize_closure_page(payload: Any) -> CashClosurePage:
    """``GET /cash-closures/`` and ``GET /cash-closures/reports/list``"""
    payload = _unwrap(payload)
    closures = _pick_list(payload, ("cash_closures", "closures", "items"), "cash-closures")

    data: Dict[str, Any] = {"cash_closures": closures}
    if isinstance(payload, dict):
        for key in ("total", "page", "per_page", "total_pages", "has_next", "has_prev"):
            if payload.get(key) is not None:
                data[key] = payload[key]
    data.setdefault("total", len(closures))
    data.setdefault("per_page", max(len(closures), 1))
    data.setdefault("total_pages", 1 if closures else 0)

    return _build(CashClosurePage, data, "cash-closures")


def normalize_report(payload: Any) -> CashClosureReport:
    """``GET /cash-closures/reports/summary``"""
    return _build(CashClosureReport, _unwrap(payload), "reports/summary")


def normalize_daily_summary(payload: Any) -> DailyClosureSummary:
    """``GET /cash-closures/reports/daily-summary``"""
    return _build(DailyClosureSummary, _unwrap(payload), "reports/daily-summary")


def normalize_users(payload: Any) -> List[AuthorizedUser]:
    """``GET /cash-closures/authorized-users``"""
    users = _pick_list(_unwrap(payload), ("users", "items"), "authorized-users")
    return [_build(AuthorizedUser, user, "authorized-users") for user in users]

