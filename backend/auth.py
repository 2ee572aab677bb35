from fastapi import Depends, HTTPException, Request, status

from services.history_service import AnalysisHistory
from services.storage_service import UserStore

USER_HEADER = "X-User-Id"


async def get_current_user(request: Request) -> str:
    """
    FastAPI dependency: returns the opaque user identifier placed in the
    X-User-Id header by the upstream authentication layer.
    Raises HTTP 401 if the header is missing or blank.
    """
    user_id = (request.headers.get(USER_HEADER) or "").strip()
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {USER_HEADER} header",
        )
    return user_id


def get_store(request: Request, user_id: str = Depends(get_current_user)) -> UserStore:
    """The calling user's namespaced view over the process-wide store."""
    state = request.app.state
    return UserStore(state.kv_store, user_id, state.change_feed)


def get_history(store: UserStore = Depends(get_store)) -> AnalysisHistory:
    return AnalysisHistory(store)
