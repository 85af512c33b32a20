from fastapi import APIRouter, Depends

from authcode.core.config import Settings, get_settings

router = APIRouter()


@router.get("/health", tags=["Health Check"])
async def health_check():
    return {"ok": True}


@router.get("/debug/env", tags=["Health Check"])
async def debug_env(app_settings: Settings = Depends(get_settings)):
    """Which Appwrite settings are present, plus the raw database and collection ids."""
    return {
        "endpoint": bool(app_settings.APPWRITE_ENDPOINT),
        "project": bool(app_settings.APPWRITE_PROJECT_ID),
        "apiKey": bool(app_settings.APPWRITE_API_KEY),
        "db": app_settings.APPWRITE_DB_ID,
        "collCodes": app_settings.APPWRITE_LOGIN_CODES_COLLECTION_ID,
        "collProfiles": app_settings.APPWRITE_USER_PROFILES_COLLECTION_ID,
    }
