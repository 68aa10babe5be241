"""Shared endpoint dependencies: connected family lookup and settings."""

from fastapi import Depends, HTTPException, Request

from app.core.enums import UserType
from app.services.connections import FamilyConnections
from app.services.device_prefs import DevicePreferences
from app.services.ledger_store import LedgerStore


def get_connections(request: Request) -> FamilyConnections:
    return request.app.state.connections


def get_preferences(request: Request) -> DevicePreferences:
    return request.app.state.preferences


def get_store(
    family_id: str,
    connections: FamilyConnections = Depends(get_connections),
) -> LedgerStore:
    """Connected store for family_id, or 404."""
    store = connections.get(family_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Family not connected")
    return store


def parse_user(user: str) -> UserType:
    try:
        return UserType(user)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown user {user!r}, expected Dad or Son") from None
