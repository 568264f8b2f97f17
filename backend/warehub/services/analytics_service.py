# Overview: Period-bucketed flow analytics over the ledger plus the current projection.

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from ..models import Warehouse
from .ledger_service import list_flows_since
from warehub.time_utils import to_utc_naive, utcnow
"""
Warehub Analytics Invariants (authoritative)

- Inputs are the warehouse's current inventory and the ledger entries with
  created_at >= window_start. Nothing is cached or persisted.
- window_start = now - bucket(period) * periods, where day = 1 day,
  week = 7 days and month is a fixed 30 days (keys stay calendar months).
- Period keys use UTC calendar fields:
    day   -> "YYYY-MM-DD"
    week  -> Monday of the containing week, "YYYY-MM-DD"
    month -> "YYYY-MM"
- Item value = count * unitPrice. Loads feed incoming totals, unloads
  feed outgoing totals.
- Summary value/count totals are sums over flowTimeSeries; totalItems and
  typeCount come from the current inventory.
"""


PERIODS = ("day", "week", "month")
DEFAULT_PERIOD = "month"

DEFAULT_PERIODS = 6
MAX_PERIODS = 24

TOP_TYPES = 10

BUCKET_SIZES = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class AnalyticsError(ValueError):
    """Raised for an unsupported analytics period."""


def normalize_period(raw: Any) -> str:
    if raw is None or raw == "":
        return DEFAULT_PERIOD
    if raw not in PERIODS:
        raise AnalyticsError("period must be one of: day, week, month")
    return raw


def normalize_periods(raw: Any) -> int:
    """Missing, unparseable or 0 -> 6; otherwise clamped to [1, 24]."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return DEFAULT_PERIODS
    if not value:
        return DEFAULT_PERIODS
    return min(MAX_PERIODS, max(1, value))


def window_start(period: str, periods: int, now: datetime) -> datetime:
    return to_utc_naive(now) - BUCKET_SIZES[normalize_period(period)] * periods


def period_key(dt: datetime, period: str) -> str:
    dt = to_utc_naive(dt)
    if period == "day":
        return dt.strftime("%Y-%m-%d")
    if period == "week":
        monday = dt - timedelta(days=dt.weekday())
        return monday.strftime("%Y-%m-%d")
    return dt.strftime("%Y-%m")


def period_label(key: str, period: str) -> str:
    """
    Human label for a period key.

    day   "2025-10-05" -> "Oct 5, 25"
    week  "2025-10-06" -> "W1 Oct"  (week of month from the Monday's day)
    month "2025-10"    -> "Oct 2025"
    """
    if period == "day":
        d = datetime.strptime(key, "%Y-%m-%d")
        return f"{MONTH_NAMES[d.month - 1]} {d.day}, {d.strftime('%y')}"
    if period == "week":
        d = datetime.strptime(key, "%Y-%m-%d")
        return f"W{math.ceil(d.day / 7)} {MONTH_NAMES[d.month - 1]}"
    year, month = key.split("-")
    return f"{MONTH_NAMES[int(month) - 1]} {year}"


def _flow_fields(flow: Any) -> tuple[str, list[dict], datetime]:
    if isinstance(flow, dict):
        return flow["operation"], flow.get("items") or [], flow["created_at"]
    return flow.operation, flow.items or [], flow.created_at


def aggregate(
    inventory: Optional[list[dict]],
    flows: Iterable[Any],
    period: str,
    periods: Any,
    now: datetime,
) -> dict:
    """
    Pure aggregation of inventory + ledger entries into the analytics payload.

    flows may be WarehouseFlow rows or dicts with operation/items/created_at.
    Entries before the window are ignored here too, so callers may pass an
    unfiltered history.
    """
    period = normalize_period(period)
    periods = normalize_periods(periods)
    start = window_start(period, periods, now)

    in_window = []
    for flow in flows:
        operation, items, created_at = _flow_fields(flow)
        created_at = to_utc_naive(created_at)
        if created_at >= start:
            in_window.append((created_at, operation, items))
    in_window.sort(key=lambda f: f[0])

    buckets: dict[str, dict] = {}
    by_type: dict[str, dict] = {}

    for created_at, operation, items in in_window:
        key = period_key(created_at, period)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = {
                "period": key,
                "periodLabel": period_label(key, period),
                "incomingCount": 0,
                "outgoingCount": 0,
                "incomingValue": 0,
                "outgoingValue": 0,
            }
            buckets[key] = bucket

        for item in items:
            count = int(item["count"])
            value = count * item["unitPrice"]
            totals = by_type.setdefault(item["typeName"], {"loaded": 0, "unloaded": 0})
            if operation == "load":
                bucket["incomingCount"] += count
                bucket["incomingValue"] += value
                totals["loaded"] += count
            else:
                bucket["outgoingCount"] += count
                bucket["outgoingValue"] += value
                totals["unloaded"] += count

    flow_time_series = [buckets[k] for k in sorted(buckets)]

    # sorted() is stable: ties keep first-seen order
    flow_by_type = sorted(
        (
            {"typeName": name, "loaded": t["loaded"], "unloaded": t["unloaded"]}
            for name, t in by_type.items()
        ),
        key=lambda t: t["loaded"] + t["unloaded"],
        reverse=True,
    )[:TOP_TYPES]

    inventory_by_type = [
        {"typeName": i["typeName"], "count": int(i["count"])} for i in (inventory or [])
    ]

    summary = {
        "totalItems": sum(i["count"] for i in inventory_by_type),
        "typeCount": len(inventory_by_type),
        "totalIncomingValue": sum(b["incomingValue"] for b in flow_time_series),
        "totalOutgoingValue": sum(b["outgoingValue"] for b in flow_time_series),
        "totalIncomingCount": sum(b["incomingCount"] for b in flow_time_series),
        "totalOutgoingCount": sum(b["outgoingCount"] for b in flow_time_series),
    }

    return {
        "summary": summary,
        "inventoryByType": inventory_by_type,
        "flowTimeSeries": flow_time_series,
        "flowByType": flow_by_type,
    }


def get_warehouse_analytics(
    warehouse: Warehouse,
    period: Any = None,
    periods: Any = None,
    now: Optional[datetime] = None,
) -> dict:
    """Load the windowed ledger for `warehouse` and aggregate it."""
    now = now or utcnow()
    period = normalize_period(period)
    periods = normalize_periods(periods)
    flows = list_flows_since(
        warehouse_id=warehouse.id,
        since=window_start(period, periods, now),
    )
    return aggregate(warehouse.inventory, flows, period, periods, now)
