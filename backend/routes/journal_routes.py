from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from auth import get_store
from config import ANALYSIS_DEFAULT_ENTRY_COUNT
from services.analysis_service import analyze_entry
from services.analytics_service import AnalyticsService
from services.journal_service import JournalService
from services.storage_service import StorageError, UserStore

router = APIRouter(prefix="/api/v1/journal", tags=["Journal"])

class JournalEntryCreate(BaseModel):
    text: str = Field(min_length=1)
    created_at: Optional[datetime] = None

@router.post("")
async def create_journal_entry(entry_data: JournalEntryCreate, store: UserStore = Depends(get_store)):
    if not entry_data.text.strip():
        raise HTTPException(status_code=400, detail="Journal entry text cannot be blank")
    try:
        entry = JournalService.create(store, entry_data.text, entry_data.created_at)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {
        "entry": entry.to_json_dict(),
        "analysis": analyze_entry(entry.text).to_json_dict(),
    }

@router.get("")
async def list_journal_entries(limit: Optional[int] = None, store: UserStore = Depends(get_store)):
    try:
        entries = JournalService.get_all(store)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if limit is not None:
        entries = entries[:max(0, limit)]
    return [e.to_json_dict() for e in entries]

@router.get("/insights")
async def journal_insights(count: int = ANALYSIS_DEFAULT_ENTRY_COUNT, store: UserStore = Depends(get_store)):
    """Per-entry analyses of the most recent entries, combined into one summary."""
    entries = JournalService.get_recent(store, count)
    summary = AnalyticsService.summarize_results([analyze_entry(e.text) for e in entries])
    if summary is None:
        return {"metrics": None, "insights": [], "recommendations": [], "analysisCount": 0}
    return summary

@router.delete("/{entry_id}")
async def delete_journal_entry(entry_id: str, store: UserStore = Depends(get_store)):
    try:
        deleted = JournalService.soft_delete(store, entry_id)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="Journal entry not found")
    return {"status": "success", "id": entry_id}
