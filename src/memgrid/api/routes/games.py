from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from memgrid.api.deps import get_game, get_runtime
from memgrid.api.routes.leaderboard import (
    LeaderboardEntryResponse,
    PersonalBestResponse,
    personal_best_response,
    ranked,
)
from memgrid.app.assembly import release_game
from memgrid.app.registry import GameRecord
from memgrid.app.runtime import AppRuntime
from memgrid.app.session import SaveNotOffered
from memgrid.core.engine.state import RoundState
from memgrid.core.engine.transitions import TapOutcome

router = APIRouter(tags=["games"])


# =========================
# Schemas
# =========================

class CreateGameResponse(BaseModel):
    game_id: str


class GameDetailsResponse(BaseModel):
    game_id: str
    created_at_utc: datetime
    session_id: int
    round_state: RoundState
    level: int
    score: int
    high_score: int
    highlighted_tile: int | None = None
    message: str
    start_label: str
    can_start: bool
    offer_save: bool
    score_saved: bool


class GamesListResponse(BaseModel):
    games: list[GameDetailsResponse]


class TapRequest(BaseModel):
    index: int = Field(..., description="Tile index; out-of-range taps are ignored")


class TapResponse(BaseModel):
    outcome: TapOutcome
    game: GameDetailsResponse


class SaveScoreRequest(BaseModel):
    name: str = Field(default="", max_length=20, description="Blank -> 'Anonymous Player'")


class SaveScoreResponse(BaseModel):
    # None -> response arrived after a new game / stop and was dropped
    saved: bool | None
    game: GameDetailsResponse


class BoardLeaderboardResponse(BaseModel):
    # None -> superseded by a newer load or a new game
    entries: list[LeaderboardEntryResponse] | None


class BoardBestResponse(BaseModel):
    personal_best: PersonalBestResponse | None


def _details(rec: GameRecord) -> GameDetailsResponse:
    v = rec.handle.host.view()
    return GameDetailsResponse(
        game_id=rec.game_id,
        created_at_utc=rec.created_at_utc,
        session_id=v.session_id,
        round_state=v.round_state,
        level=v.level,
        score=v.score,
        high_score=v.high_score,
        highlighted_tile=v.highlighted_tile,
        message=v.message,
        start_label=v.start_label,
        can_start=v.can_start,
        offer_save=v.offer_save,
        score_saved=v.score_saved,
    )


# =========================
# Routes
# =========================

# Engine calls are async routes so timers attach to the server's event loop.

@router.post("/games", response_model=CreateGameResponse)
async def create_game(runtime: AppRuntime = Depends(get_runtime)) -> CreateGameResponse:
    rec = runtime.new_game()
    return CreateGameResponse(game_id=rec.game_id)


@router.get("/games", response_model=GamesListResponse)
async def list_games(runtime: AppRuntime = Depends(get_runtime)) -> GamesListResponse:
    return GamesListResponse(games=[_details(r) for r in runtime.registry.list()])


@router.get("/games/{game_id}", response_model=GameDetailsResponse)
async def get_game_details(rec: GameRecord = Depends(get_game)) -> GameDetailsResponse:
    return _details(rec)


@router.post("/games/{game_id}/start", response_model=GameDetailsResponse)
async def start_game(rec: GameRecord = Depends(get_game)) -> GameDetailsResponse:
    if not rec.handle.host.start():
        raise HTTPException(status_code=409, detail="game already in progress")
    return _details(rec)


@router.post("/games/{game_id}/taps", response_model=TapResponse)
async def tap(payload: TapRequest, rec: GameRecord = Depends(get_game)) -> TapResponse:
    outcome = rec.handle.engine.submit_tap(payload.index)
    return TapResponse(outcome=outcome, game=_details(rec))


@router.post("/games/{game_id}/stop", response_model=GameDetailsResponse)
async def stop_game(rec: GameRecord = Depends(get_game)) -> GameDetailsResponse:
    rec.handle.host.close()
    return _details(rec)


@router.post("/games/{game_id}/score", response_model=SaveScoreResponse)
async def save_score(payload: SaveScoreRequest, rec: GameRecord = Depends(get_game)) -> SaveScoreResponse:
    try:
        saved = await rec.handle.host.save_score(payload.name)
    except SaveNotOffered as e:
        raise HTTPException(status_code=409, detail=str(e))
    return SaveScoreResponse(saved=saved, game=_details(rec))


@router.post("/games/{game_id}/skip-save", response_model=GameDetailsResponse)
async def skip_save(rec: GameRecord = Depends(get_game)) -> GameDetailsResponse:
    rec.handle.host.skip_save()
    return _details(rec)


@router.get("/games/{game_id}/leaderboard", response_model=BoardLeaderboardResponse)
async def board_leaderboard(
    limit: int = Query(default=10, ge=1, le=100),
    rec: GameRecord = Depends(get_game),
) -> BoardLeaderboardResponse:
    entries = await rec.handle.host.load_leaderboard(limit)
    return BoardLeaderboardResponse(entries=None if entries is None else ranked(entries))


@router.get("/games/{game_id}/personal-best", response_model=BoardBestResponse)
async def board_personal_best(rec: GameRecord = Depends(get_game)) -> BoardBestResponse:
    return BoardBestResponse(personal_best=personal_best_response(await rec.handle.host.personal_best()))


@router.delete("/games/{game_id}", status_code=204)
async def delete_game(game_id: str, runtime: AppRuntime = Depends(get_runtime)) -> None:
    rec = runtime.registry.remove(game_id=game_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="game not found")
    release_game(rec.handle)
