"""Account funding and balance endpoints."""

from fastapi import APIRouter

from canvas_server.api.models import AccountResponse, FundRequest, UserStatsResponse
from canvas_server.core.engine import CanvasEngine


def router(engine: CanvasEngine) -> APIRouter:
    """Build the accounts router."""
    api = APIRouter(prefix="/accounts", tags=["accounts"])

    def _account(account: str) -> AccountResponse:
        return AccountResponse(
            account=account,
            balance=engine.get_balance(account),
            stats=UserStatsResponse.model_validate(engine.get_user_stats(account)),
        )

    @api.post("/fund", response_model=AccountResponse)
    async def fund(request: FundRequest):
        """Credit an account. Development and CLI funding only."""
        engine.fund_account(request.account, request.amount)
        return _account(request.account)

    @api.get("/{account}", response_model=AccountResponse)
    async def get_account(account: str):
        return _account(account)

    return api
