"""
Data Routes
===========

Inspection of persisted request payload snapshots.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from docrender.api.dependencies import get_payload_store
from docrender.core.storage.payloads import PayloadStore
from docrender.models.schemas import PayloadRecord

router = APIRouter(prefix="/data", tags=["Data"])


@router.get("", response_model=List[PayloadRecord])
async def list_payloads(store: PayloadStore = Depends(get_payload_store)) -> List[PayloadRecord]:
    """List persisted request snapshots, newest first."""
    return store.list()


@router.get("/{payload_id}")
async def get_payload(
    payload_id: str, store: PayloadStore = Depends(get_payload_store)
) -> Dict[str, Any]:
    """Return one persisted request snapshot."""
    payload = store.get(payload_id)
    if payload is None:
        raise HTTPException(status_code=404, detail="Payload not found")
    return payload
