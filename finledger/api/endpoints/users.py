"""
User profile API endpoints
"""
from fastapi import APIRouter, Depends

from finledger.auth.dependencies import get_current_user_id, get_profile_service
from finledger.schemas.auth import MessageResponse
from finledger.schemas.user import UpdateNamesRequest, UserProfileResponse
from finledger.services import ProfileService

router = APIRouter()


@router.get("", response_model=UserProfileResponse)
def get_user_info(
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Fetch all information about the logged-in user
    """
    view = profiles.get_profile(user_id)
    return UserProfileResponse(
        uid=view.id,
        username=view.username,
        first_name=view.first_name,
        second_name=view.second_name,
        registered_at=view.registered_at,
        income_balance=view.income_balance,
        expense_balance=view.expense_balance,
    )


@router.put("", response_model=MessageResponse)
def update_user_names(
    body: UpdateNamesRequest,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Update the first and second name of the logged-in user
    """
    profiles.update_names(user_id, body.first_name, body.second_name)
    return MessageResponse(message="User names updated successfully")
