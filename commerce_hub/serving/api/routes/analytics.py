"""
Analytics API Endpoints

Visitor event ingestion (views, actions, goals) and the goal details join
across the analytics store.
"""

from fastapi import APIRouter, Depends, status

from commerce_hub.schemas import (
    ActionIn,
    ActionOut,
    GoalDetails,
    GoalIn,
    GoalOut,
    ViewIn,
    ViewOut,
)
from commerce_hub.serving.api.dependencies import get_events, get_lookups
from commerce_hub.services import AnalyticsService, LookupResolver

router = APIRouter()


@router.post("/views", response_model=ViewOut, status_code=status.HTTP_201_CREATED)
async def record_view(body: ViewIn, events: AnalyticsService = Depends(get_events)):
    return await events.record("views", body.model_dump())


@router.post("/actions", response_model=ActionOut, status_code=status.HTTP_201_CREATED)
async def record_action(body: ActionIn, events: AnalyticsService = Depends(get_events)):
    return await events.record("actions", body.model_dump())


@router.post("/goals", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
async def record_goal(body: GoalIn, events: AnalyticsService = Depends(get_events)):
    return await events.record("goals", body.model_dump())


@router.get("/goals/{goal_id}/details", response_model=GoalDetails)
async def get_goal_details(goal_id: str, lookups: LookupResolver = Depends(get_lookups)):
    """A goal with every view and action recorded for the same visitor."""
    return await lookups.goal_details(goal_id)
