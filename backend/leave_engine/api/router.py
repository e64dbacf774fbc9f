from fastapi import APIRouter

from leave_engine.api.balances import employee_accrual_router, employee_balance_router
from leave_engine.api.leaves import leaves_router
from leave_engine.api.policy import router as policy_router
from leave_engine.api.unpaid import unpaid_adjustments_router, unpaid_taken_router

api_router = APIRouter()
api_router.include_router(policy_router)
api_router.include_router(employee_balance_router)
api_router.include_router(employee_accrual_router)
api_router.include_router(leaves_router)
api_router.include_router(unpaid_taken_router)
api_router.include_router(unpaid_adjustments_router)
