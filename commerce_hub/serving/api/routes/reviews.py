"""
Reviews API Endpoints
"""

from fastapi import APIRouter, Depends, status

from commerce_hub.schemas import ReviewIn, ReviewOut
from commerce_hub.serving.api.dependencies import get_reviews
from commerce_hub.services import ReviewService

router = APIRouter()


@router.post("", response_model=ReviewOut, status_code=status.HTTP_201_CREATED)
async def create_review(body: ReviewIn, reviews: ReviewService = Depends(get_reviews)):
    """
    Store a review and refresh the product's average score.

    The review is returned even when the average could not be refreshed;
    that case is logged and counted.
    """
    outcome = await reviews.create_review(body.model_dump())
    return outcome.review
