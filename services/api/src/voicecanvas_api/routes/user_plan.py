"""Current user's subscription and character quota."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voicecanvas_shared.db.connection import get_session

from ..dependencies.auth import SessionUser, require_auth
from ..models.user_plan import CharacterQuotaResponse, SubscriptionResponse, UserPlanResponse
from ..services.user_plan_service import UserPlanService

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get(
    "/plan",
    response_model=UserPlanResponse,
    summary="Get current plan",
    description="Return the signed-in user's plan, starting a trial on first access",
)
async def get_user_plan(
    user: SessionUser = Depends(require_auth),
    session: AsyncSession = Depends(get_session),
) -> UserPlanResponse:
    plan = await UserPlanService(session).get_plan(user.email)
    quota = plan.character_quota
    return UserPlanResponse(
        subscription=SubscriptionResponse.model_validate(plan.subscription),
        character_quota=CharacterQuotaResponse(
            id=quota.quota_id,
            permanent_quota=quota.permanent_quota,
            temporary_quota=quota.temporary_quota,
            used_characters=quota.used_characters,
            quota_expiry=quota.quota_expiry,
            last_updated=quota.last_updated,
            remaining_characters=plan.remaining_characters,
        ),
    )
