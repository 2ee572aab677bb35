from fastapi import APIRouter, Depends, HTTPException

from auth import get_store
from schemas import GoalsSnapshot, NutritionSnapshot
from services.journal_service import JournalService
from services.storage_service import StorageError, UserStore

router = APIRouter(prefix="/api/v1/snapshots", tags=["Snapshots"])

@router.get("/goals")
async def get_goals(store: UserStore = Depends(get_store)):
    return JournalService.get_goals(store).to_json_dict()

@router.put("/goals")
async def save_goals(snapshot: GoalsSnapshot, store: UserStore = Depends(get_store)):
    try:
        return JournalService.save_goals(store, snapshot).to_json_dict()
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))

@router.get("/nutrition")
async def get_nutrition(store: UserStore = Depends(get_store)):
    return JournalService.get_nutrition(store).to_json_dict()

@router.put("/nutrition")
async def save_nutrition(snapshot: NutritionSnapshot, store: UserStore = Depends(get_store)):
    try:
        return JournalService.save_nutrition(store, snapshot).to_json_dict()
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
