from typing import List
import uuid
from fastapi import APIRouter

from app.api.deps import CurrentUser, Now, SessionDep
from app.models.round import Round
from app.schemas.contribution import ContributionRead, ProofRead, ProofSubmit
from app.schemas.response import APIResponse
from app.services import ledger, proofs

router = APIRouter()

@router.post("/{contribution_id}/mark-paid", response_model=APIResponse[ContributionRead])
async def mark_paid(contribution_id: uuid.UUID, current_user: CurrentUser, session: SessionDep, now: Now):
    """
    Record that the current user paid this contribution.

    Calling it again on a settled contribution returns it unchanged.
    """
    contribution = await ledger.mark_paid(session, contribution_id, current_user.id, now)
    round_ = await session.get(Round, contribution.round_id)
    data = ContributionRead.model_validate(
        contribution, update={"status": ledger.contribution_status(contribution, round_, now)}
    )
    return APIResponse(message="Contribution marked as paid", data=data)

@router.post("/{contribution_id}/upload-proof", response_model=APIResponse[ProofRead])
async def upload_proof(contribution_id: uuid.UUID, proof_in: ProofSubmit, current_user: CurrentUser, session: SessionDep):
    """
    Submit payment proof for organizer review.

    Upload files to object storage first and send the resulting URL here.
    """
    proof = await proofs.submit_proof(session, contribution_id, current_user.id, proof_in)
    return APIResponse(message="Payment proof submitted", data=proof)

@router.get("/{contribution_id}/proofs", response_model=APIResponse[List[ProofRead]])
async def get_proofs(contribution_id: uuid.UUID, current_user: CurrentUser, session: SessionDep):
    result = await proofs.list_proofs(session, contribution_id, current_user.id)
    return APIResponse(message="Payment proofs retrieved", data=result)
