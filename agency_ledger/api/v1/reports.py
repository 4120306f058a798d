"""/v1/reports - dashboard and finance report views"""

from datetime import date
from typing import List, Optional, Sequence

from fastapi import APIRouter, Depends

from agency_ledger.api.dependencies import get_current_actor, get_report_service
from agency_ledger.api.v1.schemas import CategoryResponse, DataPointResponse, SummaryResponse
from agency_ledger.domain.models import Actor, FinancialDataPoint
from agency_ledger.services.reports import ReportService

router = APIRouter()


def _points(points: Sequence[FinancialDataPoint]) -> List[DataPointResponse]:
    return [
        DataPointResponse(bucket=p.bucket_label, income=p.income, expense=p.expense, net=p.net) for p in points
    ]


@router.get("/reports/monthly", response_model=List[DataPointResponse])
def monthly_report(
    months: Optional[int] = None,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    """Month-by-month trend; defaults to the dashboard window, months=0 for all time"""
    return _points(service.monthly(actor, months))


@router.get("/reports/daily", response_model=List[DataPointResponse])
def daily_report(
    start: date,
    end: date,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    return _points(service.daily(actor, start, end))


@router.get("/reports/last-days", response_model=List[DataPointResponse])
def last_days_report(
    days: Optional[int] = None,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    return _points(service.last_days(actor, days))


@router.get("/reports/months", response_model=List[str])
def available_months(
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    """Months (YYYY-MM) holding any activity, newest first"""
    return service.available_months(actor)


@router.get("/reports/months/{month_key}", response_model=List[DataPointResponse])
def month_report(
    month_key: str,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    return _points(service.month(actor, month_key))


@router.get("/reports/summary", response_model=SummaryResponse)
def summary_report(
    start: Optional[date] = None,
    end: Optional[date] = None,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    return SummaryResponse.model_validate(service.summary(actor, start, end))


@router.get("/reports/categories", response_model=List[CategoryResponse])
def category_report(
    start: Optional[date] = None,
    end: Optional[date] = None,
    actor: Actor = Depends(get_current_actor),
    service: ReportService = Depends(get_report_service),
):
    return [CategoryResponse.model_validate(c) for c in service.categories(actor, start, end)]
