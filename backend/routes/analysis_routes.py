from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field
from typing import List, Optional, Union

from auth import get_history, get_store
from config import ANALYSIS_DEFAULT_ENTRY_COUNT, ANALYSIS_HISTORY_LIMIT
from services.analysis_service import AnalysisOrchestrator
from services.analytics_service import AnalyticsService
from services.history_service import AnalysisHistory
from services.journal_service import JournalService
from services.storage_service import StorageError, UserStore

router = APIRouter(prefix="/api/v1/analysis", tags=["Analysis"])

class AnalyzeRequest(BaseModel):
    # Omitted entries means "analyze my most recent stored entries"
    entries: Optional[List[Union[str, dict]]] = None
    count: int = Field(default=ANALYSIS_DEFAULT_ENTRY_COUNT, ge=1, le=ANALYSIS_HISTORY_LIMIT)

@router.post("")
async def analyze_journal(
    request: Request,
    body: Optional[AnalyzeRequest] = None,
    store: UserStore = Depends(get_store),
    history: AnalysisHistory = Depends(get_history),
):
    body = body or AnalyzeRequest()
    entries = body.entries
    if entries is None:
        try:
            entries = JournalService.get_recent(store, body.count)
        except StorageError as e:
            raise HTTPException(status_code=500, detail=str(e))

    orchestrator = AnalysisOrchestrator(llm_router=request.app.state.llm_router, history=history)
    record = await orchestrator.analyze(entries)
    return record.to_json_dict()

@router.get("/latest")
async def latest_analysis(history: AnalysisHistory = Depends(get_history)):
    record = history.latest()
    if record is None:
        return None
    return record.to_json_dict()

@router.get("/history")
async def analysis_history(limit: Optional[int] = None, history: AnalysisHistory = Depends(get_history)):
    records = history.all()
    if limit is not None:
        records = records[:max(0, limit)]
    return [r.to_json_dict() for r in records]

@router.get("/charts")
async def analysis_charts(history: AnalysisHistory = Depends(get_history)):
    records = history.all()
    return {
        "series": AnalyticsService.chart_series(records),
        "mood": AnalyticsService.mood_series(records),
        "patterns": AnalyticsService.patterns(records),
        "comparison": AnalyticsService.compare_latest(records),
    }

@router.get("/providers")
async def provider_status(request: Request):
    return request.app.state.llm_router.get_provider_status()
