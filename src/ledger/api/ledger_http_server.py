from dataclasses import asdict
from threading import Lock
from typing import Literal, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import uvicorn

from src.ledger.domain.exceptions import ErrorCategory, LedgerError
from src.ledger.domain.hint_request import NO_SNIPPET
from src.ledger.logging.structured_ledger_logger import StructuredLedgerLogger
from src.ledger.services.ledger_engine import SnippetLedgerEngine

app = FastAPI(title="snippet-ledger")

# Dependencies (Injected in real app)
engine: SnippetLedgerEngine = None  # type: ignore
runtime_logger = StructuredLedgerLogger()
_engine_lock = Lock()

STATUS_BY_CATEGORY = {
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.IDENTITY: 403,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.LIFECYCLE: 409,
    ErrorCategory.RESOURCE: 409,
    ErrorCategory.INPUT_BOUNDS: 422,
}


def setup_dependencies(
    ledger: Optional[SnippetLedgerEngine] = None,
    logger: Optional[StructuredLedgerLogger] = None,
) -> SnippetLedgerEngine:
    global engine, runtime_logger
    with _engine_lock:
        engine = ledger or SnippetLedgerEngine()
        runtime_logger = logger or StructuredLedgerLogger()
        return engine


def _engine() -> SnippetLedgerEngine:
    global engine
    current = engine
    if current is not None:
        return current
    with _engine_lock:
        if engine is None:
            engine = SnippetLedgerEngine()
        return engine


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    status = STATUS_BY_CATEGORY.get(exc.category, 400)
    runtime_logger.emit(
        event_type="HTTP_REJECTED",
        path=request.url.path,
        kind=exc.kind.name,
        status=status,
    )
    return JSONResponse(status_code=status, content={"error": exc.kind.name, "detail": str(exc)})


# --- request bodies ---

class SubmitSnippetBody(BaseModel):
    author: str
    content: str
    language_id: str
    title: Optional[str] = None


class UpdateSnippetBody(BaseModel):
    author: str
    content: str


class AuthorBody(BaseModel):
    author: str


class TipBody(BaseModel):
    tipper: str
    amount: int


class VoteBody(BaseModel):
    voter: str
    direction: Literal["up", "down"]


class TagBody(BaseModel):
    author: str
    tag_hash: str


class HintBody(BaseModel):
    requester: str
    topic_hash: str
    snippet_id: int = NO_SNIPPET


class CallerBody(BaseModel):
    caller: str


class LanguageBody(BaseModel):
    language_id: str
    caller: str


class PauseBody(BaseModel):
    paused: bool
    caller: str


class BadgeBody(BaseModel):
    account: str
    slot: int
    caller: str


# --- snippets ---

@app.post("/snippets")
def submit_snippet(body: SubmitSnippetBody):
    snippet_id = _engine().submit_snippet(body.author, body.content, body.language_id, body.title)
    return {"snippet_id": snippet_id}


@app.get("/snippets/recent")
def recent_snippets():
    return {"snippet_ids": _engine().recent_snippet_ids()}


@app.get("/snippets/{snippet_id}")
def get_snippet(snippet_id: int):
    snippet = _engine().get_snippet(snippet_id)
    if snippet is None:
        raise HTTPException(status_code=404, detail="Unknown snippet")
    return asdict(snippet)


@app.put("/snippets/{snippet_id}")
def update_snippet(snippet_id: int, body: UpdateSnippetBody):
    snippet = _engine().update_snippet(snippet_id, body.author, body.content)
    return asdict(snippet)


@app.post("/snippets/{snippet_id}/delete")
def delete_snippet(snippet_id: int, body: AuthorBody):
    _engine().delete_snippet(snippet_id, body.author)
    return {"status": "deleted"}


@app.post("/snippets/{snippet_id}/tips")
def tip_snippet(snippet_id: int, body: TipBody):
    return asdict(_engine().tip_snippet(snippet_id, body.tipper, body.amount))


@app.post("/snippets/{snippet_id}/votes")
def vote_snippet(snippet_id: int, body: VoteBody):
    if body.direction == "up":
        score = _engine().upvote_snippet(snippet_id, body.voter)
    else:
        score = _engine().downvote_snippet(snippet_id, body.voter)
    return {"snippet_id": snippet_id, "score": score}


@app.post("/snippets/{snippet_id}/tags")
def tag_snippet(snippet_id: int, body: TagBody):
    added = _engine().add_snippet_tag(snippet_id, body.tag_hash, body.author)
    return {"added": added, "tags": _engine().tags_of(snippet_id)}


# --- accounts ---

@app.get("/accounts/{account}")
def get_account(account: str):
    ledger = _engine()
    return {
        "account": account,
        "tip_balance": ledger.tip_balance_of(account),
        "reputation": ledger.reputation_of(account),
        "badges": ledger.badges_of(account),
        "snippet_ids": ledger.snippet_ids_by_author(account),
        "open_hint_ids": ledger.open_hint_ids(account),
    }


@app.post("/accounts/{account}/withdrawals")
def withdraw_tips(account: str):
    return {"amount": _engine().withdraw_tips(account)}


# --- hints ---

@app.post("/hints")
def request_hint(body: HintBody):
    return {"hint_id": _engine().request_hint(body.requester, body.topic_hash, body.snippet_id)}


@app.get("/hints/{hint_id}")
def get_hint(hint_id: int):
    hint = _engine().get_hint(hint_id)
    if hint is None:
        raise HTTPException(status_code=404, detail="Unknown hint")
    return asdict(hint)


@app.post("/hints/{hint_id}/fulfill")
def fulfill_hint(hint_id: int, body: CallerBody):
    return asdict(_engine().fulfill_hint(hint_id, body.caller))


# --- roles ---

@app.post("/languages")
def register_language(body: LanguageBody):
    _engine().register_language(body.language_id, body.caller)
    return {"status": "registered", "language_id": body.language_id}


@app.post("/admin/pause")
def set_paused(body: PauseBody):
    _engine().set_paused(body.paused, body.caller)
    return {"paused": _engine().is_paused()}


@app.post("/admin/badges")
def award_badge(body: BadgeBody):
    awarded = _engine().award_badge(body.account, body.slot, body.caller)
    return {"awarded": awarded, "badges": _engine().badges_of(body.account)}


@app.post("/treasury/withdrawals")
def withdraw_treasury_fees(body: CallerBody):
    return {"amount": _engine().withdraw_treasury_fees(body.caller)}


# --- snapshots ---

@app.get("/stats")
def stats():
    snapshot = _engine().stats()
    payload = asdict(snapshot)
    payload["pending_treasury_fees"] = snapshot.pending_treasury_fees
    return payload


@app.get("/config")
def config():
    return asdict(_engine().config)


def run_server(host="0.0.0.0", port=8000):
    uvicorn.run(app, host=host, port=port)
