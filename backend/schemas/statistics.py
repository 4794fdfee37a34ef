from pydantic import BaseModel
from typing import List, Optional

# Approved leave aggregated per user and month
class LeaveStatsRow(BaseModel):
    UtenteID: int
    Nome: str
    Cognome: str
    Email: str
    NumeroRichieste: int
    GiorniTotaliRichiesti: int
    GiorniTotaliApprovati: int
    Mese: Optional[int] = None
    Anno: Optional[int] = None

class LeaveStatsResponse(BaseModel):
    success: bool = True
    count: int
    data: List[LeaveStatsRow]
