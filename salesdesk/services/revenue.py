from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from salesdesk.models.enums import DealStatus, PaymentType
from salesdesk.timeutil import utcnow

logger = logging.getLogger("salesdesk.services.revenue")

CURRENCY_SYMBOL = "€"

_REVENUE_CHARS_RE = re.compile(r"[^\d.,kmKM]")
_NUMBER_RE = re.compile(r"^(\d+(?:\.\d*)?|\.\d+)")


class TimeWindow(str, Enum):
    ALL = "all"
    YEAR = "year"
    QUARTER = "quarter"
    MONTH = "month"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _get(obj: Any, name: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _num(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric money value %r treated as 0", value)
        return 0.0


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


def _as_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Unparseable closed_date %r", value)
        return None


def _quarter(d: date) -> int:
    return (d.month - 1) // 3


def in_time_window(closed_date: Any, window: TimeWindow, today: date) -> bool:
    """Calendar bucketing of a deal's closed date relative to `today`."""
    window = TimeWindow(window)
    if window is TimeWindow.ALL:
        return True
    closed = _as_date(closed_date)
    if closed is None:
        return False
    if window is TimeWindow.YEAR:
        return closed.year == today.year
    if window is TimeWindow.QUARTER:
        return closed.year == today.year and _quarter(closed) == _quarter(today)
    return closed.year == today.year and closed.month == today.month


def is_this_month(closed_date: Any, today: date) -> bool:
    return in_time_window(closed_date, TimeWindow.MONTH, today)


def format_currency(amount: float) -> str:
    """EUR with thousands grouping, two decimals."""
    amount = _num(amount)
    sign = "-" if amount < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(amount):,.2f}"


# ---------------------------------------------------------------------------
# Lead revenue strings
# ---------------------------------------------------------------------------

def parse_revenue(text: Optional[str]) -> Optional[float]:
    """
    Parse a free-text revenue figure ("€1M", "500k", "1,200,000").

    Commas are always grouping separators, with or without a k/m suffix,
    so "1,5k" reads as 15,000 rather than a decimal. Returns None when
    nothing numeric is left after cleaning.
    """
    if not text:
        return None
    clean = _REVENUE_CHARS_RE.sub("", text)
    lowered = clean.lower()
    if "m" in lowered:
        multiplier = 1_000_000
    elif "k" in lowered:
        multiplier = 1_000
    else:
        multiplier = 1

    digits = re.sub(r"[kmKM,]", "", clean)
    match = _NUMBER_RE.match(digits)
    if not match:
        return None
    return float(match.group(1)) * multiplier


def revenue_sort_key(text: Optional[str]) -> float:
    value = parse_revenue(text)
    return value if value is not None else 0.0


def format_revenue(text: Optional[str]) -> str:
    value = parse_revenue(text)
    if value is None:
        return ""
    rendered = f"{value:,.3f}".rstrip("0").rstrip(".")
    return f"{CURRENCY_SYMBOL}{rendered}"


# ---------------------------------------------------------------------------
# Personal dashboard / deal list totals
# ---------------------------------------------------------------------------

@dataclass
class DealSummary:
    total_deals: int = 0
    active_deals: int = 0
    total_revenue: float = 0.0
    monthly_recurring: float = 0.0
    one_time_total: float = 0.0
    installation_fees: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_deals": self.total_deals,
            "active_deals": self.active_deals,
            "total_revenue": self.total_revenue,
            "monthly_recurring": self.monthly_recurring,
            "one_time_total": self.one_time_total,
            "installation_fees": self.installation_fees,
            "display": {
                "total_revenue": format_currency(self.total_revenue),
                "monthly_recurring": format_currency(self.monthly_recurring),
                "one_time_total": format_currency(self.one_time_total),
                "installation_fees": format_currency(self.installation_fees),
            },
        }


def summarize_deals(deals: Iterable[Any], include_installation: bool = False) -> DealSummary:
    """
    Totals over a flat deal list.

    include_installation adds the installation fee of one-time deals to the
    one-time total (the Treasury convention).
    """
    summary = DealSummary()
    for deal in deals:
        payment_type = _enum_value(_get(deal, "payment_type"))
        status = _enum_value(_get(deal, "status"))
        value = _num(_get(deal, "deal_value"))
        fee = _num(_get(deal, "installation_fee"))

        summary.total_deals += 1
        summary.total_revenue += value
        summary.installation_fees += fee

        if payment_type == PaymentType.ONE_TIME.value:
            summary.one_time_total += value + (fee if include_installation else 0.0)
        elif payment_type == PaymentType.MONTHLY.value and status == DealStatus.ACTIVE.value:
            summary.monthly_recurring += _num(_get(deal, "monthly_amount"))

        if status == DealStatus.ACTIVE.value:
            summary.active_deals += 1
    return summary


# ---------------------------------------------------------------------------
# Treasury
# ---------------------------------------------------------------------------

@dataclass
class SalesmanStats:
    email: str
    name: str
    user_id: Optional[str] = None
    total_value: float = 0.0
    monthly_recurring: float = 0.0
    one_time_payments: float = 0.0
    installation_fees: float = 0.0
    active_deals: int = 0
    deals_count: int = 0
    this_month_value: float = 0.0
    deals: List[Any] = field(default_factory=list)

    def as_dict(self, include_deals: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "email": self.email,
            "name": self.name,
            "user_id": self.user_id,
            "total_value": self.total_value,
            "monthly_recurring": self.monthly_recurring,
            "one_time_payments": self.one_time_payments,
            "installation_fees": self.installation_fees,
            "active_deals": self.active_deals,
            "deals_count": self.deals_count,
            "this_month_value": self.this_month_value,
        }
        if include_deals:
            data["deal_ids"] = [_get(d, "id") for d in self.deals]
        return data


@dataclass
class CompanyStats:
    total_value: float = 0.0
    monthly_recurring: float = 0.0
    one_time_payments: float = 0.0
    installation_fees: float = 0.0
    active_deals: int = 0
    total_deals: int = 0
    active_salesmen: int = 0
    this_month_revenue: float = 0.0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "total_value": self.total_value,
            "monthly_recurring": self.monthly_recurring,
            "one_time_payments": self.one_time_payments,
            "installation_fees": self.installation_fees,
            "active_deals": self.active_deals,
            "total_deals": self.total_deals,
            "active_salesmen": self.active_salesmen,
            "this_month_revenue": self.this_month_revenue,
        }


@dataclass
class TreasuryReport:
    window: TimeWindow
    salesmen: List[SalesmanStats]
    company: CompanyStats

    def salesman(self, email: str) -> Optional[SalesmanStats]:
        for stats in self.salesmen:
            if stats.email == email:
                return stats
        return None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "window": self.window.value,
            "company": self.company.as_dict(),
            "salesmen": [s.as_dict(include_deals=True) for s in self.salesmen],
        }


def _salesman_identity(deal: Any) -> Optional[tuple]:
    name = (_get(deal, "salesman_name") or "").strip()
    email = (_get(deal, "salesman_email") or "").strip()
    if not name or not email:
        logger.warning("No salesman info found for deal: %s", _get(deal, "title"))
        return None
    return email, name


def build_treasury(
    deals: Iterable[Any],
    window: TimeWindow = TimeWindow.ALL,
    now: Optional[datetime] = None,
) -> TreasuryReport:
    """
    Group deals by salesman email and roll them up.

    The window narrows every metric except this-month value, which is always
    taken over the full deal set.
    """
    window = TimeWindow(window)
    today = (now or utcnow()).date()
    all_deals = list(deals)

    by_salesman: Dict[str, SalesmanStats] = {}

    def stats_for(deal: Any, identity: tuple) -> SalesmanStats:
        email, name = identity
        if email not in by_salesman:
            by_salesman[email] = SalesmanStats(
                email=email,
                name=name,
                user_id=_get(deal, "user_id"),
            )
        return by_salesman[email]

    for deal in all_deals:
        identity = _salesman_identity(deal)
        if identity is None:
            continue

        if is_this_month(_get(deal, "closed_date"), today):
            stats_for(deal, identity).this_month_value += _num(_get(deal, "deal_value"))

        if not in_time_window(_get(deal, "closed_date"), window, today):
            continue

        stats = stats_for(deal, identity)
        payment_type = _enum_value(_get(deal, "payment_type"))
        status = _enum_value(_get(deal, "status"))
        value = _num(_get(deal, "deal_value"))
        fee = _num(_get(deal, "installation_fee"))

        stats.total_value += value
        stats.deals_count += 1
        stats.installation_fees += fee
        if payment_type == PaymentType.ONE_TIME.value:
            stats.one_time_payments += value + fee
        elif payment_type == PaymentType.MONTHLY.value and status == DealStatus.ACTIVE.value:
            stats.monthly_recurring += _num(_get(deal, "monthly_amount"))
        if status == DealStatus.ACTIVE.value:
            stats.active_deals += 1
        stats.deals.append(deal)

    salesmen = sorted(by_salesman.values(), key=lambda s: s.total_value, reverse=True)

    company = CompanyStats(active_salesmen=len(salesmen))
    for s in salesmen:
        company.total_value += s.total_value
        company.monthly_recurring += s.monthly_recurring
        company.one_time_payments += s.one_time_payments
        company.installation_fees += s.installation_fees
        company.active_deals += s.active_deals
        company.total_deals += s.deals_count
        company.this_month_revenue += s.this_month_value

    logger.info(
        "Treasury computed (window=%s, deals=%d, salesmen=%d, mrr=%.2f)",
        window.value,
        company.total_deals,
        company.active_salesmen,
        company.monthly_recurring,
    )
    return TreasuryReport(window=window, salesmen=salesmen, company=company)
