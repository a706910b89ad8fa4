import uuid
from fastapi import APIRouter

from app.api.deps import CurrentUser, Now, SessionDep
from app.schemas.contribution import ProofRead, ProofReject
from app.schemas.response import APIResponse
from app.services import proofs

router = APIRouter()

@router.post("/{proof_id}/approve", response_model=APIResponse[ProofRead])
async def approve_proof(proof_id: uuid.UUID, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Approve a pending proof. Organizer only; the contribution becomes verified.
    """
    proof = await proofs.approve_proof(session, proof_id, current_user.id, now)
    return APIResponse(message="Payment proof approved", data=proof)

@router.post("/{proof_id}/reject", response_model=APIResponse[ProofRead])
async def reject_proof(proof_id: uuid.UUID, reject_in: ProofReject, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Reject a pending proof with a reason. Organizer only; the contribution status is unchanged.
    """
    proof = await proofs.reject_proof(session, proof_id, current_user.id, reject_in.reason, now)
    return APIResponse(message="Payment proof rejected", data=proof)
