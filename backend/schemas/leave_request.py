from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime

from models.leave_request import RequestStatus

# Input schema for a new leave request
class LeaveRequestCreate(BaseModel):
    dataInizio: date
    dataFine: date
    categoriaId: int
    utenteId: int
    motivazione: Optional[str] = None

# Input schema for editing a pending request; owner and status cannot change
class LeaveRequestUpdate(BaseModel):
    dataInizio: date
    dataFine: date
    categoriaId: int
    motivazione: Optional[str] = None

# Legacy evaluation payload: outcome plus the evaluating manager
class LeaveRequestEvaluate(BaseModel):
    stato: str = Field(min_length=1)
    utenteValutazioneId: int

# Full view of a request joined with requester, category and evaluator
class LeaveRequestDetail(BaseModel):
    RichiestaID: int
    DataRichiesta: datetime
    DataInizio: date
    DataFine: date
    Motivazione: Optional[str] = None
    Stato: RequestStatus
    DataValutazione: Optional[datetime] = None
    UtenteID: int
    RichiedenteNome: str
    RichiedenteCognome: str
    RichiedenteEmail: str
    CategoriaID: int
    CategoriaDescrizione: str
    UtenteValutazioneID: Optional[int] = None
    ValutatoreNome: Optional[str] = None
    ValutatoreCognome: Optional[str] = None

class LeaveRequestList(BaseModel):
    success: bool = True
    count: int
    data: List[LeaveRequestDetail]

class LeaveRequestResult(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: LeaveRequestDetail

# Record returned right after creation
class LeaveRequestCreated(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    dataRichiesta: datetime = Field(validation_alias="requested_at")
    dataInizio: date = Field(validation_alias="start_date")
    dataFine: date = Field(validation_alias="end_date")
    categoriaId: int = Field(validation_alias="category_id")
    motivazione: str = Field(validation_alias="motivation")
    stato: RequestStatus = Field(validation_alias="status")
    utenteId: int = Field(validation_alias="user_id")

class LeaveRequestCreatedResult(BaseModel):
    success: bool = True
    message: str
    data: LeaveRequestCreated

# Outcome of approve / reject
class EvaluationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    RichiestaID: int = Field(validation_alias="id")
    Stato: RequestStatus = Field(validation_alias="status")
    DataValutazione: datetime = Field(validation_alias="evaluated_at")
    UtenteValutazioneID: int = Field(validation_alias="evaluator_id")

class EvaluationResult(BaseModel):
    success: bool = True
    message: str
    data: EvaluationOut

# Outcome of the legacy /valuta endpoint, kept with its own key names
class LegacyEvaluationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    stato: RequestStatus = Field(validation_alias="status")
    dataValutazione: datetime = Field(validation_alias="evaluated_at")
    utenteValutazioneId: int = Field(validation_alias="evaluator_id")

class LegacyEvaluationResult(BaseModel):
    success: bool = True
    message: str
    data: LegacyEvaluationOut

class LeaveRequestDeleted(BaseModel):
    success: bool = True
    message: str
