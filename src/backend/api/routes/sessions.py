"""
Chat session CRUD endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Body

from api.dependencies import Store
from models.schemas.mcp import SuccessResponse
from models.schemas.sessions import ChatSession, UpdateSessionRequest

router = APIRouter()


@router.get("", response_model=list[ChatSession], summary="List sessions (newest first)")
def list_sessions(store: Store) -> list[ChatSession]:
    return store.get_sessions()


@router.post("", response_model=ChatSession, status_code=201, summary="Create session")
def create_session(store: Store, session: ChatSession | None = Body(default=None)) -> ChatSession:
    """Store a session ahead of the others. Without a body a blank one is created."""
    return store.create_session(session or ChatSession())


@router.put("/{session_id}", response_model=SuccessResponse, summary="Update session")
def update_session(session_id: str, update: UpdateSessionRequest, store: Store) -> SuccessResponse:
    """Replace messages (and title if given). ``success`` is false for an unknown ID."""
    updated = store.update_session(session_id, update.messages, update.title)
    return SuccessResponse(success=updated)


@router.delete("/{session_id}", response_model=SuccessResponse, summary="Delete session")
def delete_session(session_id: str, store: Store) -> SuccessResponse:
    store.delete_session(session_id)
    return SuccessResponse()
