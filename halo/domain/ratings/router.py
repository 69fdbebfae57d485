"""Public rating router - reached from the link in the rating request email"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import RatingContext, RatingResponse, RatingSubmit
from .service import RatingService

router = APIRouter(prefix="/ratings", tags=["Ratings"])

rate_limit_ratings = create_rate_limiter(limit=30, window_seconds=3600, key_prefix="ratings")


def get_rating_service(db: Session = Depends(get_db)) -> RatingService:
    return RatingService(db)


@router.get("/{appointment_id}", response_model=RatingContext)
async def get_rating_context(
    appointment_id: str,
    token: str = Query(""),
    service: RatingService = Depends(get_rating_service),
):
    return service.get_context(appointment_id, token)


@router.post("/{appointment_id}", response_model=RatingResponse, status_code=201)
async def submit_rating(
    appointment_id: str,
    data: RatingSubmit,
    token: str = Query(""),
    _: None = Depends(rate_limit_ratings),
    service: RatingService = Depends(get_rating_service),
):
    rating = service.submit(appointment_id, token, data)
    return RatingResponse(rating=rating)
