"""
Analytics API: dashboard cards, sales chart and profit tab.

All figures are recomputed from the transaction log on each request.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from medai.api.deps import get_db
from medai.schemas.medicine import MedicineResponse
from medai.services import analytics_service

router = APIRouter()


@router.get("/dashboard")
def get_dashboard(db: Session = Depends(get_db)):
    """Summary cards: revenue, profit, patients, stock alerts, pending credit."""
    return analytics_service.dashboard_stats(db)


@router.get("/daily-sales")
def get_daily_sales(days: int = Query(7, ge=1, le=90), db: Session = Depends(get_db)):
    """Revenue per day, oldest first, zero-filled."""
    return analytics_service.daily_sales(db, days)


@router.get("/profit")
def get_profit(
    period: str = Query("today", description="today | yesterday | month | custom | all"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return analytics_service.profit_summary(db, period, start, end)


@router.get("/profit-trend")
def get_profit_trend(
    period: str = Query("today"),
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    return analytics_service.profit_trend(db, period, start, end)


@router.get("/top-medicines")
def get_top_medicines(limit: int = Query(5, ge=1, le=50), db: Session = Depends(get_db)):
    return [
        MedicineResponse.model_validate(m).model_dump(mode="json")
        for m in analytics_service.top_medicines(db, limit)
    ]
