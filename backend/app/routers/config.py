from __future__ import annotations

from fastapi import APIRouter

from app.core.settings import settings

router = APIRouter(tags=["config"])


@router.get("/config")
def get_config() -> dict[str, object]:
    return {
        "clinic_name": settings.clinic_name,
        "currency_symbol": settings.currency_symbol,
        "feature_flags": {
            "odontogram_pdf": settings.feature_odontogram_pdf,
        },
    }
