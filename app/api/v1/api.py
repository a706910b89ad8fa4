from fastapi import APIRouter
from app.api.v1.endpoints import auth, contributions, dashboard, invites, notifications, payment_proofs, rounds, users

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
# Invite routes first so /rounds/preview/{code} never reaches the /rounds/{round_id} routes
api_router.include_router(invites.router, prefix="/rounds", tags=["invites"])
api_router.include_router(rounds.router, prefix="/rounds", tags=["rounds"])
api_router.include_router(contributions.router, prefix="/contributions", tags=["contributions"])
api_router.include_router(payment_proofs.router, prefix="/payment-proofs", tags=["payment-proofs"])
api_router.include_router(dashboard.router, tags=["dashboard"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
