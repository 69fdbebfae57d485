"""Rating schemas"""

from typing import Optional

from pydantic import BaseModel, Field

from ...schemas import Rating


class RatingContext(BaseModel):
    """What the public rating page shows before the client submits"""

    appointmentId: str
    businessName: str
    clientName: str
    serviceName: str
    date: str
    time: str
    staff: list[dict] = Field(default_factory=list)
    alreadyRated: bool = False


class RatingSubmit(BaseModel):
    businessRating: Optional[int] = Field(default=None, ge=1, le=5)
    staffRating: Optional[int] = Field(default=None, ge=1, le=5)
    staffId: Optional[str] = None
    comment: Optional[str] = None


class RatingResponse(BaseModel):
    success: bool = True
    rating: Rating
