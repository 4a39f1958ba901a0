"""
Financial advice endpoint
"""
from fastapi import APIRouter, Depends

from finledger.auth.dependencies import get_advice_service, get_current_user_id
from finledger.schemas.user import AdviceResponse
from finledger.services import AdviceService

router = APIRouter()


@router.get("", response_model=AdviceResponse)
async def get_financial_advice(
    user_id: str = Depends(get_current_user_id),
    advisor: AdviceService = Depends(get_advice_service),
):
    """
    Advice based on the user's expenses, generated by an external model
    """
    return AdviceResponse(advice=await advisor.advise(user_id))
