"""Device preferences: remembered family and selected user."""

from fastapi import APIRouter, Depends

from app.api.deps import get_preferences
from app.schemas.family import PreferencesRead, PreferencesUpdate
from app.services.device_prefs import DevicePreferences

router = APIRouter()


@router.get("", response_model=PreferencesRead)
async def read_preferences(prefs: DevicePreferences = Depends(get_preferences)):
    return PreferencesRead(family_id=prefs.family_id, selected_user=prefs.selected_user)


@router.put("", response_model=PreferencesRead)
async def update_preferences(
    payload: PreferencesUpdate,
    prefs: DevicePreferences = Depends(get_preferences),
):
    """Remember which user this device logs for."""
    prefs.set_selected_user(payload.selected_user)
    return PreferencesRead(family_id=prefs.family_id, selected_user=prefs.selected_user)
