"""FastAPI REST endpoints for the keypad service.

Routes
------
GET    /keypad                   Keypad layout
POST   /sessions                 Create a calculator session
GET    /sessions                 List sessions
GET    /sessions/{id}            Retrieve a session's state
POST   /sessions/{id}/keys       Press one key
POST   /sessions/{id}/sequence   Press several keys in order
DELETE /sessions/{id}            Delete a session
"""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from keypad import COLUMNS, LAYOUT
from models import (
    KeyPress,
    KeySequence,
    KeySlotPublic,
    KeypadLayout,
    SessionListResponse,
    SessionPublic,
)
from store import SessionLimitError, SessionNotFoundError, SessionStore

keypad_router = APIRouter(prefix="/keypad", tags=["keypad"])
router = APIRouter(prefix="/sessions", tags=["sessions"])

# The store instance is injected by the app factory (see app.py).
_store: SessionStore | None = None


def set_store(store: SessionStore) -> None:
    """Inject the store instance. Called once at app startup."""
    global _store
    _store = store


def get_store() -> SessionStore:
    if _store is None:
        raise RuntimeError("Store not initialized")
    return _store


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session not found: {session_id}")


# ---------------------------------------------------------------------------
# Keypad
# ---------------------------------------------------------------------------

@keypad_router.get("", response_model=KeypadLayout)
def get_keypad() -> KeypadLayout:
    """Return the keypad rows in display order."""
    return KeypadLayout(
        columns=COLUMNS,
        rows=[
            [KeySlotPublic(label=slot.label, span=slot.span) for slot in row]
            for row in LAYOUT
        ],
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@router.post("", response_model=SessionPublic, status_code=201)
def create_session() -> SessionPublic:
    """Start a new calculator session showing '0'."""
    try:
        return get_store().create().to_public()
    except SessionLimitError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


@router.get("", response_model=SessionListResponse)
def list_sessions(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=200, description="Pagination limit"),
) -> SessionListResponse:
    store = get_store()
    items = store.list(offset=offset, limit=limit)
    return SessionListResponse(
        items=[s.to_public() for s in items], total=store.count()
    )


@router.get("/{session_id}", response_model=SessionPublic)
def get_session(session_id: str) -> SessionPublic:
    try:
        return get_store().get(session_id).to_public()
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.post("/{session_id}/keys", response_model=SessionPublic)
def press_key(session_id: str, payload: KeyPress) -> SessionPublic:
    """Press one key.  Labels the calculator does not know are ignored."""
    try:
        return get_store().press(session_id, payload.label).to_public()
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.post("/{session_id}/sequence", response_model=SessionPublic)
def press_sequence(session_id: str, payload: KeySequence) -> SessionPublic:
    try:
        return get_store().press_all(session_id, payload.labels).to_public()
    except SessionNotFoundError:
        raise _not_found(session_id)


@router.delete("/{session_id}", response_model=SessionPublic)
def delete_session(session_id: str) -> SessionPublic:
    try:
        return get_store().delete(session_id).to_public()
    except SessionNotFoundError:
        raise _not_found(session_id)
