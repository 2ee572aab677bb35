from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from auth import get_history, get_store
from schemas import Report, utcnow
from services.history_service import AnalysisHistory
from services.journal_service import JournalService
from services.report_service import ReportService
from services.storage_service import UserStore

router = APIRouter(prefix="/api/v1/reports", tags=["Reports"])

PERIODS = ("week", "month", "year")


def _build(period: str, store: UserStore, history: AnalysisHistory) -> Report:
    if period not in PERIODS:
        raise HTTPException(status_code=400, detail=f"period must be one of {', '.join(PERIODS)}")
    today = utcnow().date()
    goals = JournalService.get_goals(store)
    return ReportService.build_report(
        history=history.all(),
        goals=goals.goals,
        habits=goals.habits,
        nutrition=JournalService.get_nutrition(store),
        date_range=ReportService.period_range(period, today),
        today=today,
        entries=JournalService.get_all(store),
    )

@router.get("")
async def get_report(
    period: str = "week",
    store: UserStore = Depends(get_store),
    history: AnalysisHistory = Depends(get_history),
):
    return _build(period, store, history).to_json_dict()

@router.get("/download")
async def download_report(
    period: str = "week",
    store: UserStore = Depends(get_store),
    history: AnalysisHistory = Depends(get_history),
):
    report = _build(period, store, history)
    today = utcnow().date()
    filename = ReportService.report_filename(period, today)
    return PlainTextResponse(
        ReportService.render_text(report, period, today),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
