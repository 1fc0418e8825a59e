"""
Derived figures for the dashboard and profit tabs.

Everything here is read-only and recomputed from the transaction log and
the catalog on each call.
"""
import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from medai.core.config import settings
from medai.core.exceptions import MissingSelectionError
from medai.models.medicine import Medicine
from medai.models.patient import Patient
from medai.models.transaction import Transaction
from medai.services.credit_service import credit_totals

logger = logging.getLogger(__name__)

PROFIT_PERIODS = ("today", "yesterday", "month", "custom", "all")


def _transactions(db: Session) -> List[Transaction]:
    return db.query(Transaction).order_by(Transaction.date, Transaction.seq).all()


def dashboard_stats(db: Session) -> Dict:
    """
    Summary cards: revenue, profit, patients, low/out-of-stock counts and
    the outstanding credit total.
    """
    transactions = _transactions(db)
    medicines = db.query(Medicine).all()
    total_sales = sum((t.total_amount for t in transactions), Decimal("0"))
    total_profit = sum((t.profit for t in transactions), Decimal("0"))

    return {
        "total_sales": total_sales,
        "total_profit": total_profit,
        "total_transactions": len(transactions),
        "total_patients": db.query(Patient).count(),
        "low_stock": sum(1 for m in medicines if m.stock < settings.LOW_STOCK_THRESHOLD),
        "out_of_stock": sum(1 for m in medicines if m.stock <= 0),
        "pending_credit": credit_totals(db)["pending"],
    }


def daily_sales(db: Session, days: int = 7, today: date = None) -> List[Dict]:
    """
    Revenue per day for the last `days` days, oldest first, zero-filled.
    Returns: [{"date": "2026-10-11", "day": "Sun", "amount": Decimal}, ...]
    """
    today = today or datetime.utcnow().date()
    start = today - timedelta(days=days - 1)
    by_day: Dict[date, Decimal] = {}
    for t in _transactions(db):
        d = t.date.date()
        if start <= d <= today:
            by_day[d] = by_day.get(d, Decimal("0")) + t.total_amount

    result = []
    for i in range(days):
        d = start + timedelta(days=i)
        result.append({
            "date": d.isoformat(),
            "day": d.strftime("%a"),
            "amount": by_day.get(d, Decimal("0")),
        })
    return result


def filter_by_period(
    transactions: List[Transaction],
    period: str,
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: date = None,
) -> List[Transaction]:
    """
    period: today | yesterday | month | custom | all

    `custom` needs a start date; the end date defaults to today and is
    inclusive of the whole day.
    """
    if period not in PROFIT_PERIODS:
        raise MissingSelectionError(f"Unknown period: {period}")
    today = today or datetime.utcnow().date()

    if period == "all":
        return list(transactions)
    if period == "today":
        return [t for t in transactions if t.date.date() == today]
    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return [t for t in transactions if t.date.date() == yesterday]
    if period == "month":
        month_start = today.replace(day=1)
        return [t for t in transactions if t.date.date() >= month_start]

    if start is None:
        raise MissingSelectionError("Custom period needs a start date")
    start_at = datetime.combine(start, time.min)
    end_at = datetime.combine(end or today, time.max)
    return [t for t in transactions if start_at <= t.date <= end_at]


def profit_summary(
    db: Session,
    period: str = "today",
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: date = None,
) -> Dict:
    """Revenue, cost, profit and margin % over the selected period."""
    selected = filter_by_period(_transactions(db), period, start, end, today)
    revenue = sum((t.total_amount for t in selected), Decimal("0"))
    cost = sum((t.total_cost for t in selected), Decimal("0"))
    profit = revenue - cost
    margin = (profit / revenue * 100).quantize(Decimal("0.01")) if revenue > 0 else Decimal("0")
    return {
        "period": period,
        "transactions": len(selected),
        "revenue": revenue,
        "cost": cost,
        "profit": profit,
        "margin": margin,
    }


def profit_trend(
    db: Session,
    period: str = "today",
    start: Optional[date] = None,
    end: Optional[date] = None,
    today: date = None,
) -> List[Dict]:
    """One point per transaction in the period, oldest first."""
    selected = filter_by_period(_transactions(db), period, start, end, today)
    return [
        {
            "time": t.date.strftime("%H:%M"),
            "date": t.date.isoformat(),
            "profit": t.profit,
            "revenue": t.total_amount,
        }
        for t in selected
    ]


def top_medicines(db: Session, limit: int = 5) -> List[Medicine]:
    """Best sellers by units sold."""
    return db.query(Medicine).filter(Medicine.sold > 0).order_by(
        Medicine.sold.desc(), Medicine.name
    ).limit(limit).all()
