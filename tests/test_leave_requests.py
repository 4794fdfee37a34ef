from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from database import SessionLocal
from models.leave_request import LeaveRequest, RequestStatus
from routes.leave_requests import _evaluate


def _payload(account, start="2099-01-10", end="2099-01-15", category_id=1, owner_id=None):
    return {
        "dataInizio": start,
        "dataFine": end,
        "categoriaId": category_id,
        "utenteId": owner_id or account.id,
    }


def test_employee_creates_request_others_cannot_see_it(employee, other_employee, submit_request):
    created = submit_request(employee, motivazione="Vacanza")
    assert created["stato"] == "In attesa"
    assert created["utenteId"] == employee.id
    assert created["motivazione"] == "Vacanza"
    assert created["dataInizio"] == "2099-01-10"

    resp = other_employee.client.get(f"/permessi/{created['id']}")
    assert resp.status_code == 403

    resp = employee.client.get(f"/permessi/{created['id']}")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["RichiedenteEmail"] == employee.user["email"]
    assert data["CategoriaDescrizione"] == "Ferie"
    assert data["UtenteValutazioneID"] is None


def test_motivation_defaults_to_empty(employee, submit_request):
    assert submit_request(employee)["motivazione"] == ""


def test_create_requires_authentication(client, category):
    resp = client.post("/permessi", json={"dataInizio": "2099-01-10", "dataFine": "2099-01-15", "categoriaId": 1, "utenteId": 1})
    assert resp.status_code == 401


def test_create_rejects_end_not_after_start(employee, category):
    same_day = employee.client.post("/permessi", json=_payload(employee, "2099-02-01", "2099-02-01"))
    assert same_day.status_code == 400
    reversed_range = employee.client.post("/permessi", json=_payload(employee, "2099-02-05", "2099-02-01"))
    assert reversed_range.status_code == 400


def test_create_rejects_past_start(employee, category):
    resp = employee.client.post("/permessi", json=_payload(employee, "2000-01-01", "2000-01-05"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "La data di inizio non può essere nel passato"


def test_create_allows_start_today(employee, category):
    today = date.today()
    resp = employee.client.post(
        "/permessi",
        json=_payload(employee, today.isoformat(), (today + timedelta(days=1)).isoformat()),
    )
    assert resp.status_code == 201


def test_create_requires_fields(employee, category):
    resp = employee.client.post("/permessi", json={"dataInizio": "2099-01-10", "categoriaId": 1, "utenteId": employee.id})
    assert resp.status_code == 400


def test_employee_cannot_create_for_someone_else(employee, other_employee, category):
    resp = employee.client.post("/permessi", json=_payload(employee, owner_id=other_employee.id))
    assert resp.status_code == 403


def test_manager_can_create_for_employee(manager, employee, category):
    resp = manager.client.post("/permessi", json=_payload(manager, owner_id=employee.id))
    assert resp.status_code == 201
    assert resp.json()["data"]["utenteId"] == employee.id


def test_create_unknown_category_or_user(manager, category):
    assert manager.client.post("/permessi", json=_payload(manager, category_id=99)).status_code == 404
    assert manager.client.post("/permessi", json=_payload(manager, owner_id=999)).status_code == 404


def test_get_missing_request(manager):
    assert manager.client.get("/permessi/12345").status_code == 404


def test_list_is_scoped_by_role(employee, other_employee, manager, submit_request):
    submit_request(employee)
    submit_request(employee, start="2099-02-10", end="2099-02-12")
    submit_request(other_employee)

    mine = employee.client.get("/permessi").json()
    assert mine["count"] == 2
    assert {r["UtenteID"] for r in mine["data"]} == {employee.id}

    # The requester filter is ignored for employees
    still_mine = employee.client.get("/permessi", params={"utenteId": other_employee.id}).json()
    assert {r["UtenteID"] for r in still_mine["data"]} == {employee.id}

    everything = manager.client.get("/permessi").json()
    assert everything["count"] == 3

    filtered = manager.client.get("/permessi", params={"utenteId": other_employee.id}).json()
    assert filtered["count"] == 1
    assert filtered["data"][0]["UtenteID"] == other_employee.id


def test_list_newest_first_and_filters(employee, manager, submit_request):
    first = submit_request(employee)
    second = submit_request(employee, start="2099-03-01", end="2099-03-02")
    manager.client.put(f"/permessi/{first['id']}/approva")

    ids = [r["RichiestaID"] for r in employee.client.get("/permessi").json()["data"]]
    assert ids == [second["id"], first["id"]]

    approved = employee.client.get("/permessi", params={"stato": "Approvato"}).json()
    assert [r["RichiestaID"] for r in approved["data"]] == [first["id"]]

    by_category = manager.client.get("/permessi", params={"categoriaId": 1}).json()
    assert by_category["count"] == 2
    assert manager.client.get("/permessi", params={"categoriaId": 2}).json()["count"] == 0

    assert employee.client.get("/permessi", params={"stato": "Sconosciuto"}).status_code == 400


def test_pending_queue_is_manager_only_and_oldest_first(employee, manager, submit_request):
    first = submit_request(employee)
    second = submit_request(employee, start="2099-03-01", end="2099-03-02")
    third = submit_request(employee, start="2099-04-01", end="2099-04-02")
    manager.client.put(f"/permessi/{second['id']}/rifiuta")

    assert employee.client.get("/permessi/da-approvare").status_code == 403

    resp = manager.client.get("/permessi/da-approvare")
    assert resp.status_code == 200
    assert [r["RichiestaID"] for r in resp.json()["data"]] == [first["id"], third["id"]]


def test_approve_scenario(employee, manager, submit_request):
    created = submit_request(employee)

    resp = manager.client.put(f"/permessi/{created['id']}/approva")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["Stato"] == "Approvato"
    assert data["DataValutazione"]
    assert data["UtenteValutazioneID"] == manager.id

    again = manager.client.put(f"/permessi/{created['id']}/approva")
    assert again.status_code == 400
    assert again.json()["detail"] == "La richiesta è già stata valutata"

    # Terminal state: cannot be rejected afterwards either
    assert manager.client.put(f"/permessi/{created['id']}/rifiuta").status_code == 400

    detail = employee.client.get(f"/permessi/{created['id']}").json()["data"]
    assert detail["Stato"] == "Approvato"
    assert detail["ValutatoreNome"] == "Anna"
    assert detail["ValutatoreCognome"] == "Bianchi"


def test_reject(employee, manager, submit_request):
    created = submit_request(employee)
    resp = manager.client.put(f"/permessi/{created['id']}/rifiuta")
    assert resp.status_code == 200
    assert resp.json()["data"]["Stato"] == "Rifiutato"
    assert manager.client.put(f"/permessi/{created['id']}/approva").status_code == 400


def test_employee_cannot_evaluate_even_own_request(employee, submit_request):
    created = submit_request(employee)
    assert employee.client.put(f"/permessi/{created['id']}/approva").status_code == 403
    assert employee.client.put(f"/permessi/{created['id']}/rifiuta").status_code == 403
    assert employee.client.get(f"/permessi/{created['id']}").json()["data"]["Stato"] == "In attesa"


def test_evaluate_missing_request(manager):
    assert manager.client.put("/permessi/999/approva").status_code == 404
    assert manager.client.put("/permessi/999/rifiuta").status_code == 404


def test_legacy_evaluate(employee, manager, submit_request):
    created = submit_request(employee)
    resp = manager.client.put(
        f"/permessi/{created['id']}/valuta",
        json={"stato": "Rifiutato", "utenteValutazioneId": manager.id},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"]["stato"] == "Rifiutato"
    assert body["data"]["utenteValutazioneId"] == manager.id
    assert body["message"] == "Richiesta rifiutato con successo"

    again = manager.client.put(
        f"/permessi/{created['id']}/valuta",
        json={"stato": "Approvato", "utenteValutazioneId": manager.id},
    )
    assert again.status_code == 400


def test_legacy_evaluate_validation(employee, manager, submit_request):
    created = submit_request(employee)
    url = f"/permessi/{created['id']}/valuta"

    assert manager.client.put(url, json={"stato": "In attesa", "utenteValutazioneId": manager.id}).status_code == 400
    assert manager.client.put(url, json={"stato": "Approvato"}).status_code == 400
    assert manager.client.put(url, json={"stato": "Approvato", "utenteValutazioneId": 999}).status_code == 404
    # The named evaluator must be a manager
    assert manager.client.put(url, json={"stato": "Approvato", "utenteValutazioneId": employee.id}).status_code == 403
    # And so must the caller
    assert employee.client.put(url, json={"stato": "Approvato", "utenteValutazioneId": manager.id}).status_code == 403
    assert manager.client.put("/permessi/999/valuta", json={"stato": "Approvato", "utenteValutazioneId": manager.id}).status_code == 404


def test_owner_edits_pending_request(employee, manager, submit_request):
    created = submit_request(employee)
    manager.client.post("/categorie", json={"categoriaId": 2, "descrizione": "Malattia"})

    resp = employee.client.put(
        f"/permessi/{created['id']}",
        json={"dataInizio": "2099-05-01", "dataFine": "2099-05-03", "categoriaId": 2, "motivazione": "Cambio"},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["DataInizio"] == "2099-05-01"
    assert data["CategoriaID"] == 2
    assert data["Motivazione"] == "Cambio"
    assert data["Stato"] == "In attesa"


def test_edit_rules(employee, other_employee, manager, submit_request):
    created = submit_request(employee)
    url = f"/permessi/{created['id']}"
    body = {"dataInizio": "2099-05-01", "dataFine": "2099-05-03", "categoriaId": 1}

    assert other_employee.client.put(url, json=body).status_code == 403
    # Managers do not edit other people's requests either
    assert manager.client.put(url, json=body).status_code == 403
    assert employee.client.put(url, json={**body, "dataFine": "2099-04-30"}).status_code == 400
    assert employee.client.put(url, json={**body, "categoriaId": 77}).status_code == 404
    assert employee.client.put("/permessi/999", json=body).status_code == 404

    manager.client.put(f"{url}/approva")
    resp = employee.client.put(url, json=body)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Non è possibile modificare una richiesta già valutata"


def test_edit_does_not_touch_evaluation(employee, manager, submit_request):
    created = submit_request(employee)
    employee.client.put(
        f"/permessi/{created['id']}",
        json={"dataInizio": "2099-05-01", "dataFine": "2099-05-03", "categoriaId": 1, "stato": "Approvato"},
    )
    data = employee.client.get(f"/permessi/{created['id']}").json()["data"]
    assert data["Stato"] == "In attesa"
    assert data["UtenteValutazioneID"] is None


def test_employee_delete_rules(employee, other_employee, manager, submit_request):
    pending = submit_request(employee)
    approved = submit_request(employee, start="2099-02-01", end="2099-02-03")
    manager.client.put(f"/permessi/{approved['id']}/approva")

    assert other_employee.client.delete(f"/permessi/{pending['id']}").status_code == 403
    assert employee.client.delete(f"/permessi/{approved['id']}").status_code == 400

    resp = employee.client.delete(f"/permessi/{pending['id']}")
    assert resp.status_code == 200
    assert employee.client.get(f"/permessi/{pending['id']}").status_code == 404


def test_manager_delete_rules(employee, manager, submit_request):
    pending = submit_request(employee)
    approved = submit_request(employee, start="2099-02-01", end="2099-02-03")
    rejected = submit_request(employee, start="2099-03-01", end="2099-03-03")
    manager.client.put(f"/permessi/{approved['id']}/approva")
    manager.client.put(f"/permessi/{rejected['id']}/rifiuta")

    assert manager.client.delete(f"/permessi/{pending['id']}").status_code == 200
    assert manager.client.delete(f"/permessi/{approved['id']}").status_code == 200
    assert manager.client.delete(f"/permessi/{rejected['id']}").status_code == 400
    assert manager.client.delete("/permessi/999").status_code == 404


def test_evaluation_that_lost_the_race_changes_nothing(employee, manager, make_account, submit_request):
    second_manager = make_account("carla.neri@example.com", ruolo="Responsabile", nome="Carla", cognome="Neri")
    created = submit_request(employee)

    db = SessionLocal()
    try:
        # Loaded while still pending, then evaluated by someone else
        stale = db.query(LeaveRequest).filter(LeaveRequest.id == created["id"]).one()
        assert stale.status == RequestStatus.PENDING

        assert manager.client.put(f"/permessi/{created['id']}/approva").status_code == 200
        before = manager.client.get(f"/permessi/{created['id']}").json()["data"]

        with pytest.raises(HTTPException) as exc_info:
            _evaluate(db, stale, RequestStatus.REJECTED, second_manager.id)
        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "La richiesta è già stata valutata"
    finally:
        db.close()

    after = manager.client.get(f"/permessi/{created['id']}").json()["data"]
    assert after["Stato"] == "Approvato"
    assert after["UtenteValutazioneID"] == manager.id
    assert after["DataValutazione"] == before["DataValutazione"]
