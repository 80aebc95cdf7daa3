from typing import Any

from pydantic import BaseModel


class Envelope(BaseModel):
    success: bool
    data: Any = None
    error: str | None = None
