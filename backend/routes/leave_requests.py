# backend/routes/leave_requests.py
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import Integer, case, cast, extract, func
from sqlalchemy.orm import Session, joinedload

from database import get_db
from models.category import Category
from models.leave_request import LeaveRequest, RequestStatus
from models.users import User, UserRole
from schemas.leave_request import (
    EvaluationOut, EvaluationResult, LeaveRequestCreate, LeaveRequestCreated,
    LeaveRequestCreatedResult, LeaveRequestDeleted, LeaveRequestDetail, LeaveRequestEvaluate,
    LeaveRequestList, LeaveRequestResult, LeaveRequestUpdate, LegacyEvaluationOut,
    LegacyEvaluationResult,
)
from schemas.statistics import LeaveStatsResponse, LeaveStatsRow
from schemas.user import CurrentUser
from utils import leave_rules
from utils.tokenJWT import get_current_user

router = APIRouter(prefix="/permessi", tags=["Permessi"])
logger = logging.getLogger(__name__)


# Map LeaveRequest model (with its joined rows) to the detail schema
def _request_to_detail(r: LeaveRequest) -> LeaveRequestDetail:
    evaluator = r.evaluator
    return LeaveRequestDetail(
        RichiestaID=r.id,
        DataRichiesta=r.requested_at,
        DataInizio=r.start_date,
        DataFine=r.end_date,
        Motivazione=r.motivation,
        Stato=r.status,
        DataValutazione=r.evaluated_at,
        UtenteID=r.user_id,
        RichiedenteNome=r.requester.first_name,
        RichiedenteCognome=r.requester.last_name,
        RichiedenteEmail=r.requester.email,
        CategoriaID=r.category.id,
        CategoriaDescrizione=r.category.description,
        UtenteValutazioneID=r.evaluator_id,
        ValutatoreNome=evaluator.first_name if evaluator else None,
        ValutatoreCognome=evaluator.last_name if evaluator else None,
    )


def _detail_query(db: Session):
    return db.query(LeaveRequest).options(
        joinedload(LeaveRequest.requester),
        joinedload(LeaveRequest.category),
        joinedload(LeaveRequest.evaluator),
    )


def _get_request_or_404(db: Session, request_id: int) -> LeaveRequest:
    leave_request = db.query(LeaveRequest).filter(LeaveRequest.id == request_id).first()
    if not leave_request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Richiesta non trovata")
    return leave_request


def _ensure_category_exists(db: Session, category_id: int) -> None:
    if not db.query(Category.id).filter(Category.id == category_id).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Categoria non trovata")


def _evaluate(db: Session, leave_request: LeaveRequest, outcome: RequestStatus, evaluator_id: int) -> LeaveRequest:
    """
    Move a pending request to ``outcome``.

    The update is conditional on the row still being pending, so of two
    concurrent evaluations only the first one lands; the second sees zero
    affected rows and is reported as already evaluated.
    """
    leave_rules.ensure_pending(leave_request)

    updated = (
        db.query(LeaveRequest)
        .filter(LeaveRequest.id == leave_request.id, LeaveRequest.status == RequestStatus.PENDING)
        .update(
            {
                LeaveRequest.status: outcome,
                LeaveRequest.evaluated_at: datetime.now(timezone.utc),
                LeaveRequest.evaluator_id: evaluator_id,
            },
            synchronize_session=False,
        )
    )
    if updated == 0:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="La richiesta è già stata valutata")

    db.commit()
    db.refresh(leave_request)
    logger.info("Request %s set to %s by user %s", leave_request.id, outcome.value, evaluator_id)
    return leave_request


# Number of calendar days covered by a request, both ends included
def _day_span(db: Session):
    if db.get_bind().dialect.name == "sqlite":
        days = func.julianday(LeaveRequest.end_date) - func.julianday(LeaveRequest.start_date)
        return cast(days, Integer) + 1
    return LeaveRequest.end_date - LeaveRequest.start_date + 1


# List requests; employees only ever see their own
@router.get("", response_model=LeaveRequestList)
def list_requests(
    user_id: Optional[int] = Query(None, alias="utenteId"),
    stato: Optional[RequestStatus] = Query(None),
    category_id: Optional[int] = Query(None, alias="categoriaId"),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Listing requests for user %s (%s)", current_user.id, current_user.ruolo.value)
    query = _detail_query(db)

    owner_id = leave_rules.visible_owner_id(current_user, user_id)
    if owner_id is not None:
        query = query.filter(LeaveRequest.user_id == owner_id)
    if stato:
        query = query.filter(LeaveRequest.status == stato)
    if category_id is not None:
        query = query.filter(LeaveRequest.category_id == category_id)

    rows = query.order_by(LeaveRequest.requested_at.desc(), LeaveRequest.id.desc()).all()
    logger.info("Found %d requests for user %s", len(rows), current_user.id)
    return LeaveRequestList(count=len(rows), data=[_request_to_detail(r) for r in rows])


# Pending queue, oldest first (Manager only)
@router.get("/da-approvare", response_model=LeaveRequestList)
def list_pending(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Pending queue requested by user %s", current_user.id)
    leave_rules.ensure_manager(current_user, "Solo i Responsabili possono vedere le richieste da approvare")

    rows = (
        _detail_query(db)
        .filter(LeaveRequest.status == RequestStatus.PENDING)
        .order_by(LeaveRequest.requested_at.asc(), LeaveRequest.id.asc())
        .all()
    )
    logger.info("Found %d requests awaiting approval", len(rows))
    return LeaveRequestList(count=len(rows), data=[_request_to_detail(r) for r in rows])


# Approved leave aggregated per user and month (Manager only)
@router.get("/statistiche", response_model=LeaveStatsResponse)
def get_statistics(
    user_id: Optional[int] = Query(None, alias="utenteId"),
    mese: Optional[int] = Query(None, ge=1, le=12),
    anno: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Statistics requested by user %s (utenteId=%s, mese=%s, anno=%s)", current_user.id, user_id, mese, anno)
    leave_rules.ensure_manager(current_user, "Solo i Responsabili possono vedere le statistiche")

    month = extract("month", LeaveRequest.start_date)
    year = extract("year", LeaveRequest.start_date)
    days = _day_span(db)

    query = (
        db.query(
            User.id.label("user_id"),
            User.first_name,
            User.last_name,
            User.email,
            func.count(LeaveRequest.id).label("request_count"),
            func.sum(days).label("days_requested"),
            func.sum(case((LeaveRequest.status == RequestStatus.APPROVED, days), else_=0)).label("days_approved"),
            month.label("month"),
            year.label("year"),
        )
        .select_from(LeaveRequest)
        .join(User, LeaveRequest.user_id == User.id)
        .filter(LeaveRequest.status == RequestStatus.APPROVED)
    )

    if user_id is not None:
        query = query.filter(LeaveRequest.user_id == user_id)

    # A month on its own is ignored; it only narrows a given year
    if anno is not None:
        query = query.filter(year == anno)
        if mese is not None:
            query = query.filter(month == mese)

    rows = (
        query.group_by(User.id, User.first_name, User.last_name, User.email, month, year)
        .order_by(User.last_name, User.first_name, year.desc(), month.desc())
        .all()
    )

    data = [
        LeaveStatsRow(
            UtenteID=row.user_id,
            Nome=row.first_name,
            Cognome=row.last_name,
            Email=row.email,
            NumeroRichieste=int(row.request_count),
            GiorniTotaliRichiesti=int(row.days_requested or 0),
            GiorniTotaliApprovati=int(row.days_approved or 0),
            Mese=int(row.month) if row.month is not None else None,
            Anno=int(row.year) if row.year is not None else None,
        )
        for row in rows
    ]
    logger.info("Computed %d statistics rows", len(data))
    return LeaveStatsResponse(count=len(data), data=data)


@router.get("/{request_id}", response_model=LeaveRequestResult)
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Fetching request %s for user %s", request_id, current_user.id)
    leave_request = _detail_query(db).filter(LeaveRequest.id == request_id).first()
    if not leave_request:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Richiesta non trovata")

    leave_rules.ensure_can_view(current_user, leave_request)
    return LeaveRequestResult(data=_request_to_detail(leave_request))


# Submit a new request; managers may file on behalf of other users
@router.post("", response_model=LeaveRequestCreatedResult, status_code=status.HTTP_201_CREATED)
def create_request(
    payload: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Creating request for user %s by user %s", payload.utenteId, current_user.id)
    leave_rules.ensure_can_create_for(current_user, payload.utenteId)
    leave_rules.validate_dates(payload.dataInizio, payload.dataFine)

    _ensure_category_exists(db, payload.categoriaId)
    if not db.query(User.id).filter(User.id == payload.utenteId).first():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Utente non trovato")

    leave_request = LeaveRequest(
        user_id=payload.utenteId,
        category_id=payload.categoriaId,
        start_date=payload.dataInizio,
        end_date=payload.dataFine,
        motivation=payload.motivazione or "",
        status=RequestStatus.PENDING,
    )
    db.add(leave_request)
    db.commit()
    db.refresh(leave_request)

    logger.info("Request %s created for user %s by user %s", leave_request.id, payload.utenteId, current_user.id)
    return LeaveRequestCreatedResult(
        message="Richiesta di permesso creata con successo",
        data=LeaveRequestCreated.model_validate(leave_request),
    )


# Edit own pending request
@router.put("/{request_id}", response_model=LeaveRequestResult)
def update_request(
    request_id: int,
    payload: LeaveRequestUpdate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Updating request %s requested by user %s", request_id, current_user.id)
    # Past start dates are tolerated on edit, only the ordering is re-checked
    leave_rules.validate_dates(payload.dataInizio, payload.dataFine, allow_past=True)

    leave_request = _get_request_or_404(db, request_id)
    leave_rules.ensure_editable(current_user, leave_request)
    _ensure_category_exists(db, payload.categoriaId)

    leave_request.start_date = payload.dataInizio
    leave_request.end_date = payload.dataFine
    leave_request.category_id = payload.categoriaId
    leave_request.motivation = payload.motivazione or ""
    db.commit()

    logger.info("Request %s updated by user %s", request_id, current_user.id)
    updated = _detail_query(db).filter(LeaveRequest.id == request_id).one()
    return LeaveRequestResult(message="Richiesta modificata con successo", data=_request_to_detail(updated))


@router.put("/{request_id}/approva", response_model=EvaluationResult)
def approve_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Approval of request %s requested by user %s", request_id, current_user.id)
    leave_rules.ensure_manager(current_user, "Solo i Responsabili possono approvare le richieste")
    leave_request = _get_request_or_404(db, request_id)

    leave_request = _evaluate(db, leave_request, RequestStatus.APPROVED, current_user.id)
    return EvaluationResult(message="Richiesta approvata con successo", data=EvaluationOut.model_validate(leave_request))


@router.put("/{request_id}/rifiuta", response_model=EvaluationResult)
def reject_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Rejection of request %s requested by user %s", request_id, current_user.id)
    leave_rules.ensure_manager(current_user, "Solo i Responsabili possono rifiutare le richieste")
    leave_request = _get_request_or_404(db, request_id)

    leave_request = _evaluate(db, leave_request, RequestStatus.REJECTED, current_user.id)
    return EvaluationResult(message="Richiesta rifiutata con successo", data=EvaluationOut.model_validate(leave_request))


# Older clients send the outcome and the evaluator in the body
@router.put("/{request_id}/valuta", response_model=LegacyEvaluationResult)
def evaluate_request(
    request_id: int,
    payload: LeaveRequestEvaluate,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Evaluation of request %s requested by user %s", request_id, current_user.id)
    leave_rules.ensure_manager(current_user, "Solo i Responsabili possono valutare le richieste")
    outcome = leave_rules.parse_outcome(payload.stato)

    leave_request = _get_request_or_404(db, request_id)
    leave_rules.ensure_pending(leave_request)

    evaluator = db.query(User).filter(User.id == payload.utenteValutazioneId).first()
    if not evaluator:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Valutatore non trovato")
    if evaluator.role != UserRole.MANAGER.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo i Responsabili possono valutare le richieste",
        )

    leave_request = _evaluate(db, leave_request, outcome, evaluator.id)
    return LegacyEvaluationResult(
        message=f"Richiesta {outcome.value.lower()} con successo",
        data=LegacyEvaluationOut.model_validate(leave_request),
    )


@router.delete("/{request_id}", response_model=LeaveRequestDeleted)
def delete_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("Deleting request %s requested by user %s", request_id, current_user.id)
    leave_request = _get_request_or_404(db, request_id)
    leave_rules.ensure_can_delete(current_user, leave_request)

    db.delete(leave_request)
    db.commit()

    logger.info("Request %s deleted by user %s", request_id, current_user.id)
    return LeaveRequestDeleted(message="Richiesta eliminata con successo")
