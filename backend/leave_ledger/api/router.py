from fastapi import APIRouter

from leave_ledger.api.balances import balances_router
from leave_ledger.api.calendar import calendar_router
from leave_ledger.api.holidays import holidays_router
from leave_ledger.api.leaves import leaves_router
from leave_ledger.api.policies import router as policies_router
from leave_ledger.api.visits import visits_router

api_router = APIRouter()
api_router.include_router(policies_router)
api_router.include_router(leaves_router)
api_router.include_router(balances_router)
api_router.include_router(calendar_router)
api_router.include_router(holidays_router)
api_router.include_router(visits_router)
