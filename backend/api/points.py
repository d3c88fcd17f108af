"""Points calculator API endpoints."""

from decimal import Decimal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from services import points_calculator

router = APIRouter(prefix="/api/points", tags=["points"])


class PointsPreviewRequest(BaseModel):
    """Figures for a quick what-if score."""

    start_balance: Decimal = Field(ge=0)
    end_balance: Decimal = Field(ge=0)
    volume: Decimal = Field(ge=0)
    multiplier: Decimal = Field(default=Decimal("1"), gt=0)


class PointsPreviewResponse(BaseModel):
    average_balance: Decimal
    balance_points: int
    volume_points: int
    multiplied_volume_points: int
    total_points: int


class PresetsResponse(BaseModel):
    """Balance and volume options for the record editor."""

    balance: list[int]
    volume: list[int]


@router.post("/preview", response_model=PointsPreviewResponse)
def preview(body: PointsPreviewRequest):
    """Score a day without saving it."""
    return points_calculator.preview_points(
        body.start_balance, body.end_balance, body.volume, body.multiplier
    )


@router.get("/presets", response_model=PresetsResponse)
def presets():
    return PresetsResponse(
        balance=list(points_calculator.BALANCE_PRESETS),
        volume=points_calculator.volume_presets(),
    )
