from datetime import date as dt_date, time as dt_time

from fastapi import FastAPI, Form, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from .context import AppContext, build_context
from .export import export_csv
from .formatting import (
    direction_badge,
    display_tag,
    entry_method_label,
    format_amount,
    format_time,
)
from .logging_setup import configure_logging, get_logger
from .logic import normalize_tag
from .models import Direction, InboundMessage, TimeFormat, Transaction
from .repo import StoreError, TransactionNotFound
from .settings import Settings, get_settings


logger = get_logger("sms_ledger.main")


class SmsIn(BaseModel):
    sender: str
    body: str


def _serialize(txn: Transaction, time_format: TimeFormat) -> dict:
    return {
        "id": txn.id,
        "amount": f"{txn.amount:.2f}",
        "direction": txn.direction.value,
        "account_number": txn.account_number,
        "date": txn.date.isoformat(),
        "time": txn.time.strftime("%H:%M:%S"),
        "counterparty_name": txn.counterparty_name,
        "reference": txn.reference,
        "institution": txn.institution,
        "user_tag": txn.user_tag,
        "is_tagged": txn.is_tagged,
        "entry_method": txn.entry_method.value,
        "raw_source_text": txn.raw_source_text,
        "created_at": txn.created_at,
        "display": {
            "amount": format_amount(txn.amount),
            "badge": direction_badge(txn.direction),
            "time": format_time(txn.time, time_format),
            "tag": display_tag(txn),
            "entry_method": entry_method_label(txn.entry_method),
        },
    }


def _parse_form_date(value: str) -> dt_date:
    try:
        return dt_date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError("date must be YYYY-MM-DD") from exc


def _parse_form_time(value: str) -> dt_time:
    try:
        return dt_time.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError("time must be HH:MM or HH:MM:SS") from exc


def create_app(settings: Settings | None = None, ctx: AppContext | None = None) -> FastAPI:
    configure_logging()
    if ctx is None:
        ctx = build_context(settings or get_settings())
    store = ctx.store
    time_format = ctx.settings.time_format

    app = FastAPI()
    app.state.ctx = ctx

    @app.exception_handler(TransactionNotFound)
    async def _not_found(request: Request, exc: TransactionNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.error("request to %s failed: %s", request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "storage error"})

    @app.post("/sms")
    async def receive_sms(messages: list[SmsIn]):
        outcomes = await ctx.coordinator.process_batch(
            InboundMessage(sender=m.sender, body=m.body) for m in messages
        )
        return [
            {
                "stage": outcome.stage.value,
                "dropped": outcome.dropped,
                "transaction": (
                    _serialize(outcome.transaction, time_format)
                    if outcome.transaction
                    else None
                ),
            }
            for outcome in outcomes
        ]

    @app.get("/transactions")
    def list_transactions(
        view: str = "all",
        q: str | None = None,
        direction: str | None = None,
        start: dt_date | None = None,
        end: dt_date | None = None,
        limit: int | None = None,
        offset: int = 0,
    ):
        if q is not None:
            txns = store.search(q)
        elif direction is not None:
            try:
                txns = store.by_direction(Direction(direction.upper()))
            except ValueError as exc:
                raise HTTPException(status_code=400, detail="invalid direction") from exc
        elif start is not None or end is not None:
            txns = store.by_date_range(start or dt_date.min, end or dt_date.max)
        elif limit is not None:
            try:
                txns = store.paged(limit, offset)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        elif view == "today":
            txns = store.today_transactions()
        elif view == "untagged":
            txns = store.untagged_transactions()
        elif view == "all":
            txns = store.all_transactions()
        else:
            raise HTTPException(status_code=400, detail="unknown view")
        return [_serialize(txn, time_format) for txn in txns]

    @app.get("/transactions/untagged/count")
    def untagged_count():
        return {"count": store.untagged_count()}

    @app.get("/transactions/{txn_id}")
    def get_transaction(txn_id: int):
        txn = store.get(txn_id)
        if txn is None:
            raise HTTPException(status_code=404, detail="transaction not found")
        return _serialize(txn, time_format)

    @app.post("/transactions", status_code=201)
    def create_transaction(
        amount: str = Form(...),
        direction: str = Form(...),
        counterparty_name: str = Form(...),
        date: str = Form(...),
        time: str = Form(...),
        tag: str | None = Form(default=None),
    ):
        try:
            txn = ctx.coordinator.add_manual_entry(
                amount=amount,
                direction=direction,
                counterparty_name=counterparty_name,
                date=_parse_form_date(date),
                time=_parse_form_time(time),
                tag=tag,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _serialize(txn, time_format)

    @app.put("/transactions/{txn_id}/tag")
    def update_tag(txn_id: int, tag: str | None = Form(default=None)):
        try:
            clean = normalize_tag(tag)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        store.update_tag(txn_id, clean)
        txn = store.get(txn_id)
        if txn is None:
            raise HTTPException(status_code=404, detail="transaction not found")
        return _serialize(txn, time_format)

    @app.delete("/transactions/{txn_id}")
    def delete_transaction(txn_id: int):
        store.delete(txn_id)
        return {"deleted": txn_id}

    @app.delete("/transactions")
    def delete_all_transactions():
        store.delete_all()
        return {"deleted": "all"}

    @app.get("/export.csv")
    def export():
        body = "\ufeff" + export_csv(store)
        return Response(
            content=body,
            media_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": 'attachment; filename="sms_ledger_transactions.csv"'
            },
        )

    return app
