"""
Payment proof review.

A contribution's proof state is the status of its most recent proof, ordered
by ``attempt``. Only an approved proof moves a contribution to verified.
"""
import logging
import uuid
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, ForbiddenError, NotFoundError, RoundsError, StateError, ValidationError
from app.models.contribution import Contribution, PaymentProof
from app.models.enums import (
    ContributionStatus,
    NotificationCategory,
    NotificationType,
    ProofStatus,
    ProofType,
)
from app.models.round import Round
from app.schemas.contribution import ProofSubmit
from app.schemas.timeline import ProofApprovedData, ProofRejectedData, ProofUploadedData
from app.services import ledger, notifier
from app.services.rounds import get_round, require_active, require_member

logger = logging.getLogger(__name__)


async def get_current_proof(session: AsyncSession, contribution_id: uuid.UUID) -> PaymentProof | None:
    result = await session.execute(
        select(PaymentProof)
        .where(PaymentProof.contribution_id == contribution_id)
        .order_by(PaymentProof.attempt.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def _check_evidence(proof_in: ProofSubmit) -> None:
    if proof_in.proof_type == ProofType.REFERENCE:
        if not (proof_in.reference_text or "").strip():
            raise ValidationError("reference_text is required for reference proofs")
    elif not (proof_in.proof_url or "").strip():
        raise ValidationError(f"proof_url is required for {proof_in.proof_type} proofs")


async def submit_proof(
    session: AsyncSession,
    contribution_id: uuid.UUID,
    actor_id: uuid.UUID,
    proof_in: ProofSubmit,
) -> PaymentProof:
    contribution = await session.get(Contribution, contribution_id)
    if not contribution:
        raise NotFoundError("Contribution not found")
    if contribution.user_id != actor_id:
        logger.warning(f"User {actor_id} tried to submit proof for contribution {contribution_id}")
        raise ForbiddenError("Only the contributing member can submit proof")

    round_, _ = await require_member(session, contribution.round_id, actor_id)
    require_active(round_)
    _check_evidence(proof_in)

    if contribution.status == ContributionStatus.VERIFIED:
        raise StateError("Contribution is already verified")
    current = await get_current_proof(session, contribution_id)
    if current and current.status == ProofStatus.PENDING:
        raise StateError("A proof is already awaiting review")

    proof = PaymentProof(
        contribution_id=contribution.id,
        round_id=round_.id,
        user_id=actor_id,
        attempt=(current.attempt if current else 0) + 1,
        proof_type=proof_in.proof_type,
        proof_url=proof_in.proof_url,
        reference_text=proof_in.reference_text,
    )
    session.add(proof)

    notifier.record_event(
        session,
        round_.id,
        ProofUploadedData(contribution_id=contribution.id, proof_id=proof.id, proof_type=proof.proof_type),
        actor_id,
    )
    notifier.notify(
        session,
        round_.organizer_id,
        NotificationType.PROOF_UPLOADED,
        "Payment proof awaiting review",
        f'A member submitted payment proof in "{round_.name}"',
        NotificationCategory.ACTION_REQUIRED,
        round_.id,
    )

    try:
        await notifier.commit_with_notifications(session)
    except IntegrityError:
        await notifier.discard_pending(session)
        raise ConflictError("Another proof was submitted at the same time")

    await session.refresh(proof)
    logger.info(f"Proof {proof.id} (attempt {proof.attempt}) submitted for contribution {contribution_id}")
    return proof


async def _review(
    session: AsyncSession,
    proof_id: uuid.UUID,
    actor_id: uuid.UUID,
    action: str,
) -> tuple[PaymentProof, Round]:
    proof = await session.get(PaymentProof, proof_id)
    if not proof:
        raise NotFoundError("Payment proof not found")
    round_ = await get_round(session, proof.round_id)
    if round_.organizer_id != actor_id:
        logger.warning(f"User {actor_id} tried to {action} proof {proof_id}")
        raise ForbiddenError(f"Only the organizer can {action} payment proofs")
    if proof.status != ProofStatus.PENDING:
        raise StateError(f"Payment proof is already {proof.status}")
    return proof, round_


async def _claim(
    session: AsyncSession,
    proof_id: uuid.UUID,
    actor_id: uuid.UUID,
    status: ProofStatus,
    now: datetime,
    rejection_reason: str | None = None,
) -> None:
    """
    Compare-and-set pending -> ``status``; a concurrent review makes this fail.
    """
    result = await session.execute(
        update(PaymentProof)
        .where(PaymentProof.id == proof_id, PaymentProof.status == ProofStatus.PENDING)
        .values(status=status, reviewed_by=actor_id, reviewed_at=now, rejection_reason=rejection_reason)
    )
    if result.rowcount == 0:
        raise StateError("Payment proof was reviewed concurrently")


async def approve_proof(
    session: AsyncSession,
    proof_id: uuid.UUID,
    actor_id: uuid.UUID,
    now: datetime,
) -> PaymentProof:
    proof, round_ = await _review(session, proof_id, actor_id, "approve")
    try:
        await _claim(session, proof_id, actor_id, ProofStatus.APPROVED, now)
        contribution = await session.get(Contribution, proof.contribution_id)
        if not contribution:
            raise NotFoundError("Contribution not found")
        ledger.verify_contribution(session, contribution, now)

        notifier.record_event(
            session,
            round_.id,
            ProofApprovedData(contribution_id=contribution.id, proof_id=proof.id),
            actor_id,
        )
        notifier.notify(
            session,
            proof.user_id,
            NotificationType.PROOF_APPROVED,
            "Payment proof approved",
            f'Your payment in "{round_.name}" has been verified',
            NotificationCategory.INFORMATION,
            round_.id,
        )
        await notifier.commit_with_notifications(session)
    except RoundsError:
        await notifier.discard_pending(session)
        raise

    await session.refresh(proof)
    logger.info(f"Proof {proof_id} approved by {actor_id}")
    return proof


async def reject_proof(
    session: AsyncSession,
    proof_id: uuid.UUID,
    actor_id: uuid.UUID,
    reason: str,
    now: datetime,
) -> PaymentProof:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    proof, round_ = await _review(session, proof_id, actor_id, "reject")
    try:
        await _claim(session, proof_id, actor_id, ProofStatus.REJECTED, now, reason)
        notifier.record_event(
            session,
            round_.id,
            ProofRejectedData(contribution_id=proof.contribution_id, proof_id=proof.id, reason=reason),
            actor_id,
        )
        notifier.notify(
            session,
            proof.user_id,
            NotificationType.PROOF_REJECTED,
            "Payment proof rejected",
            f'Your payment proof in "{round_.name}" was rejected: {reason}',
            NotificationCategory.ACTION_REQUIRED,
            round_.id,
        )
        await notifier.commit_with_notifications(session)
    except RoundsError:
        await notifier.discard_pending(session)
        raise

    await session.refresh(proof)
    logger.info(f"Proof {proof_id} rejected by {actor_id}")
    return proof


async def list_proofs(session: AsyncSession, contribution_id: uuid.UUID, user_id: uuid.UUID) -> list[PaymentProof]:
    contribution = await session.get(Contribution, contribution_id)
    if not contribution:
        raise NotFoundError("Contribution not found")
    await require_member(session, contribution.round_id, user_id)
    result = await session.execute(
        select(PaymentProof)
        .where(PaymentProof.contribution_id == contribution_id)
        .order_by(PaymentProof.attempt.desc())
    )
    return list(result.scalars().all())
