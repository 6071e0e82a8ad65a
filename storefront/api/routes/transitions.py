"""Routes exposing cascade transition plans."""

from __future__ import annotations

from fastapi import APIRouter

from storefront.models.navigation import (
    CascadePlanRequest,
    CascadePlanResponse,
    CascadeStepModel,
)
from storefront.services.transitions.cascade import plan_cascade

router = APIRouter(prefix="/transitions", tags=["transitions"])


@router.post(
    "/plan",
    response_model=CascadePlanResponse,
    summary="Highlight schedule for the options passed through by a selection",
)
async def plan(payload: CascadePlanRequest) -> CascadePlanResponse:
    if payload.new_value == payload.current:
        return CascadePlanResponse(changed=False)

    cascade = plan_cascade(payload.options, payload.current, payload.new_value)
    return CascadePlanResponse(
        changed=True,
        step_delay=cascade.step_delay,
        duration=cascade.duration,
        steps=[
            CascadeStepModel(
                option=step.option,
                add_at=step.add_at,
                remove_at=step.remove_at,
            )
            for step in cascade.steps
        ],
    )
