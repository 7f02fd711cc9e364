from fastapi import APIRouter, Depends

from recruitflow import models
from recruitflow.deps import get_invitation_service, get_recruiter_membership
from recruitflow.invitations import InvitationService, IssuedInvitation
from recruitflow.schemas_invitations import InvitationCreate, InvitationIssuedOut, InvitationOut

router = APIRouter(prefix="/invitations", tags=["invitations"])


def _issued_out(issued: IssuedInvitation) -> InvitationIssuedOut:
    return InvitationIssuedOut(
        invitation_id=issued.invitation.id,
        registration_url=issued.registration_url,
        receipt_id=issued.receipt.id,
    )


@router.post("", response_model=InvitationIssuedOut, status_code=201)
def issue_invitation(
    payload: InvitationCreate,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationIssuedOut:
    issued = service.issue(membership.user_id, membership.company_id, payload.email)
    return _issued_out(issued)


@router.get("", response_model=list[InvitationOut])
def list_invitations(
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: InvitationService = Depends(get_invitation_service),
) -> list[InvitationOut]:
    return [
        InvitationOut(
            id=invitation.id,
            email=invitation.email,
            company_id=invitation.company_id,
            status=invitation.status,
            state=state,
            send_attempts=invitation.send_attempts or 0,
            last_sent_at=invitation.last_sent_at,
            used_at=invitation.used_at,
            created_at=invitation.created_at,
        )
        for invitation, state in service.list_for_company(membership.company_id)
    ]


@router.post("/{invitation_id}/resend", response_model=InvitationIssuedOut)
def resend_invitation(
    invitation_id: str,
    membership: models.CompanyMembership = Depends(get_recruiter_membership),
    service: InvitationService = Depends(get_invitation_service),
) -> InvitationIssuedOut:
    issued = service.resend(membership.company_id, invitation_id)
    return _issued_out(issued)
