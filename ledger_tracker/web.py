from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from ledger_tracker.core.errors import InvalidInput, NotFound, StorageUnavailable
from ledger_tracker.outputs.csv_output import render_csv
from ledger_tracker.session import LedgerSession
from ledger_tracker.store import LedgerStore


def create_app(store: LedgerStore, clock: Callable[[], date] = date.today) -> FastAPI:
    app = FastAPI(title="Ledgerbook API")

    def _session(month: str | None = None, year: str | None = None) -> LedgerSession:
        session = LedgerSession(store, clock=clock)
        session.apply_filter(month=month, year=year)
        return session

    @app.exception_handler(InvalidInput)
    async def invalid_input(request: Request, exc: InvalidInput):
        return JSONResponse({"error": exc.message, "field": exc.field}, status_code=400)

    @app.exception_handler(RequestValidationError)
    async def malformed_body(request: Request, exc: RequestValidationError):
        return JSONResponse(
            {"error": "Request body must be a JSON object", "field": "body"}, status_code=400
        )

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound):
        return JSONResponse({"error": str(exc)}, status_code=404)

    @app.exception_handler(StorageUnavailable)
    async def storage_unavailable(request: Request, exc: StorageUnavailable):
        return JSONResponse({"error": "Storage unavailable"}, status_code=500)

    @app.get("/api/ledger")
    def get_ledger():
        return store.load().to_dict()

    @app.post("/api/balance")
    def set_balance(payload: Dict[str, Any] = Body(...)):
        balance = store.set_starting_balance(payload.get("amount"))
        return {"startingBalance": float(balance)}

    @app.post("/api/entries", status_code=201)
    def create_entry(payload: Dict[str, Any] = Body(...)):
        return store.create_entry(payload).to_dict()

    @app.put("/api/entries/{entry_id}")
    def update_entry(entry_id: str, payload: Dict[str, Any] = Body(...)):
        return store.update_entry(entry_id, payload).to_dict()

    @app.delete("/api/entries/{entry_id}")
    def delete_entry(entry_id: str):
        store.delete_entry(entry_id)
        return {"message": "Entry deleted"}

    @app.get("/api/summary")
    def summary(month: str | None = None, year: str | None = None):
        return _session(month, year).dashboard()

    @app.get("/api/export")
    def export(month: str | None = None, year: str | None = None):
        entries = _session(month, year).export_entries()
        if not entries:
            return JSONResponse({"error": "No entries to export"}, status_code=404)
        filename = f"entries_{clock().isoformat()}.csv"
        return Response(
            content=render_csv(entries),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return app
