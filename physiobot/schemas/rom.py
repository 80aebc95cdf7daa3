from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RomSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Opaque pose-analysis payload, typically {"minimum": <deg>, "maximum": <deg>}
    range_of_motion: dict[str, Any] = Field(..., alias="rangeOfMotion")


class RomRecordItem(BaseModel):
    id: int
    range_of_motion: dict[str, Any]
    created_at: str


class RomSummaryResponse(BaseModel):
    assessment_id: int
    count: int
    minimum: float | None = None
    maximum: float | None = None
    records: list[RomRecordItem]
