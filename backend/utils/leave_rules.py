# backend/utils/leave_rules.py
"""
Ownership and state-transition rules for leave requests.

Every check raises an ``HTTPException`` carrying the status code the API
returns for that violation, so routes can call them in sequence and let the
first failure short-circuit the request.
"""
from datetime import date
from typing import Optional

from fastapi import HTTPException, status

from models.leave_request import LeaveRequest, RequestStatus
from models.users import UserRole
from schemas.user import CurrentUser

# Statuses a manager is allowed to delete; rejected requests are kept
MANAGER_DELETABLE = (RequestStatus.PENDING, RequestStatus.APPROVED)

# Target states of an evaluation
EVALUATION_OUTCOMES = (RequestStatus.APPROVED, RequestStatus.REJECTED)


def validate_dates(start: date, end: date, today: Optional[date] = None, allow_past: bool = False) -> None:
    """End must be strictly after start; start may not be before ``today`` unless ``allow_past``."""
    if start >= end:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La data di fine deve essere successiva alla data di inizio",
        )
    if not allow_past and start < (today or date.today()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La data di inizio non può essere nel passato",
        )


def visible_owner_id(current_user: CurrentUser, requested_user_id: Optional[int]) -> Optional[int]:
    """Requester filter for list queries: employees are always pinned to themselves."""
    if current_user.is_manager:
        return requested_user_id
    return current_user.id


def ensure_manager(current_user: CurrentUser, detail: str) -> None:
    if current_user.ruolo != UserRole.MANAGER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def ensure_can_create_for(current_user: CurrentUser, owner_id: int) -> None:
    # Managers may file on behalf of anyone
    if current_user.ruolo == UserRole.EMPLOYEE and owner_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Non hai i permessi per creare richieste per altri utenti",
        )


def ensure_can_view(current_user: CurrentUser, leave_request: LeaveRequest) -> None:
    if current_user.ruolo == UserRole.EMPLOYEE and leave_request.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Non hai i permessi per visualizzare questa richiesta",
        )


def ensure_editable(current_user: CurrentUser, leave_request: LeaveRequest) -> None:
    """Only the owner may edit, and only while the request is still pending."""
    if leave_request.status != RequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Non è possibile modificare una richiesta già valutata",
        )
    if leave_request.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Non hai i permessi per modificare questa richiesta",
        )


def ensure_pending(leave_request: LeaveRequest) -> None:
    if leave_request.status != RequestStatus.PENDING:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="La richiesta è già stata valutata",
        )


def ensure_can_delete(current_user: CurrentUser, leave_request: LeaveRequest) -> None:
    """
    Employees delete only their own pending requests.
    Managers delete any pending or approved request, but not rejected ones.
    """
    if current_user.ruolo == UserRole.EMPLOYEE:
        if leave_request.user_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Non hai i permessi per eliminare questa richiesta",
            )
        if leave_request.status != RequestStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Non è possibile eliminare una richiesta già valutata",
            )
    elif current_user.ruolo == UserRole.MANAGER:
        if leave_request.status not in MANAGER_DELETABLE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Solo le richieste in attesa o approvate possono essere eliminate dai responsabili",
            )
    else:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Non hai i permessi per eliminare richieste",
        )


def parse_outcome(value: str) -> RequestStatus:
    """Map a requested evaluation result to its status, rejecting anything but approve/reject."""
    for outcome in EVALUATION_OUTCOMES:
        if value == outcome.value:
            return outcome
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Lo stato deve essere 'Approvato' o 'Rifiutato'",
    )
