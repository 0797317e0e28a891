import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import List, Optional, Dict, Any

from . import config, database
from .errors import DraftError, TradeRejectedError
from .models.draft import (
    AdvancePickRequest,
    CreateDraftRequest,
    Draft,
    DraftSelection,
    Manager,
    ManagerUpdate,
    MarkPickRequest,
    PickPointer,
    UpdateActivePickRequest,
)
from .models.trade import PlayerTransfer, Trade, TradeProposal, TradeResult, TradeValidation
from .services import draft_service, manager_service, trade_service

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await database.create_tables()
    logger.info("Database ready at %s", database.DATABASE_URL)
    yield


app = FastAPI(lifespan=lifespan)

# Configure CORS for frontend integration
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TradeRejectedError)
async def trade_rejected_handler(request: Request, exc: TradeRejectedError):
    logger.warning("Trade rejected: %s", exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": str(exc), "validation": exc.validation.model_dump()},
    )


@app.exception_handler(DraftError)
async def draft_error_handler(request: Request, exc: DraftError):
    logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc, exc.code)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code, "detail": str(exc)})


@app.get("/")
def read_root():
    return {"service": "draftroom"}


@app.get("/managers", response_model=List[Manager])
async def list_managers():
    return await manager_service.list_managers()


@app.post("/managers", response_model=Manager)
async def create_manager(manager: Manager):
    return await manager_service.create_manager(manager)


@app.get("/managers/{manager_id}", response_model=Manager)
async def get_manager(manager_id: str):
    return await manager_service.get_manager(manager_id)


@app.patch("/managers/{manager_id}", response_model=Manager)
async def update_manager(manager_id: str, changes: ManagerUpdate):
    return await manager_service.update_manager(manager_id, changes)


@app.delete("/managers/{manager_id}")
async def delete_manager(manager_id: str):
    return {"value": await manager_service.delete_manager(manager_id)}


@app.get("/drafts", response_model=List[Draft])
async def list_drafts():
    return await draft_service.list_drafts()


@app.post("/drafts", response_model=Draft)
async def create_draft(request: CreateDraftRequest):
    return await draft_service.create_draft(
        request.year,
        request.type,
        request.is_snake_draft,
        request.initial_rounds,
        request.draft_order,
    )


@app.get("/drafts/active", response_model=Draft)
async def get_active_draft():
    draft = await draft_service.get_active_draft()
    if not draft:
        raise HTTPException(status_code=404, detail="No active draft found")
    return draft


@app.get("/drafts/{draft_id}", response_model=Draft)
async def get_draft(draft_id: str):
    return await draft_service.get_draft(draft_id)


@app.delete("/drafts/{draft_id}")
async def delete_draft(draft_id: str):
    return {"value": await draft_service.delete_draft(draft_id)}


@app.post("/drafts/{draft_id}/rounds", response_model=Draft)
async def add_round(draft_id: str):
    return await draft_service.add_round(draft_id)


@app.delete("/drafts/{draft_id}/rounds/last", response_model=Draft)
async def remove_round(draft_id: str):
    return await draft_service.remove_round(draft_id)


@app.post("/drafts/{draft_id}/picks", response_model=Draft)
async def mark_pick_complete(draft_id: str, request: MarkPickRequest):
    """Record that ``manager_id`` used their pick in ``round_number`` on ``player_id``.

    Does not move the current pick; call ``/advance`` for that.
    """
    return await draft_service.mark_pick_complete(
        draft_id,
        request.round_number,
        request.manager_id,
        request.player_id,
        request.expected_version,
    )


@app.post("/drafts/{draft_id}/advance", response_model=PickPointer)
async def advance_pick(draft_id: str, request: Optional[AdvancePickRequest] = None):
    request = request or AdvancePickRequest()
    return await draft_service.advance_pick(draft_id, request.skip_completed, request.expected_version)


@app.put("/drafts/{draft_id}/active-pick", response_model=Draft)
async def update_active_pick(draft_id: str, request: UpdateActivePickRequest):
    return await draft_service.update_active_pick(draft_id, request.round, request.pick, request.overall_pick_number)


@app.get("/drafts/{draft_id}/current-pick", response_model=Optional[PickPointer])
async def get_current_pick(draft_id: str):
    """First pick not yet completed, in selection order."""
    return await draft_service.get_current_pick(draft_id)


@app.get("/drafts/{draft_id}/display-pick", response_model=Dict[str, Any])
async def get_display_pick_number(draft_id: str, pick: int, round: Optional[int] = None):
    display = await draft_service.get_display_pick_number(draft_id, pick, round)
    return {"pick_number": pick, "round": round, "display_pick_number": display}


@app.post("/drafts/{draft_id}/reset")
async def reset_draft(draft_id: str):
    return {"value": await draft_service.reset_draft(draft_id)}


@app.post("/drafts/{draft_id}/toggle-active", response_model=Draft)
async def toggle_active(draft_id: str):
    return await draft_service.toggle_active(draft_id)


@app.get("/drafts/{draft_id}/selections", response_model=List[DraftSelection])
async def list_selections(draft_id: str):
    return await draft_service.list_selections(draft_id)


@app.get("/drafts/{draft_id}/trades", response_model=List[Trade])
async def list_draft_trades(draft_id: str):
    return await trade_service.list_trades(draft_id)


@app.post("/drafts/{draft_id}/trades/validate", response_model=TradeValidation)
async def validate_trade(draft_id: str, proposal: TradeProposal):
    return await trade_service.validate_trade(draft_id, proposal)


@app.post("/drafts/{draft_id}/trades", response_model=TradeResult)
async def propose_trade(draft_id: str, proposal: TradeProposal):
    """Validate and commit a trade; a rejected trade answers 422 with its validation issues."""
    return await trade_service.propose_trade(draft_id, proposal)


@app.get("/trades", response_model=List[Trade])
async def list_trades():
    return await trade_service.list_trades()


@app.get("/trades/{trade_id}/transfers", response_model=List[PlayerTransfer])
async def list_player_transfers(trade_id: str):
    return await trade_service.list_player_transfers(trade_id)


@app.post("/trades/{trade_id}/cancel", response_model=Trade)
async def cancel_trade(trade_id: str):
    return await trade_service.cancel_trade(trade_id)


@app.delete("/trades/{trade_id}")
async def delete_trade(trade_id: str):
    return {"value": await trade_service.delete_trade(trade_id)}
