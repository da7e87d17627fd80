from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from memgrid.api.deps import get_runtime
from memgrid.app.runtime import AppRuntime
from memgrid.leaderboard.models import LeaderboardEntry, PersonalBest

router = APIRouter(tags=["leaderboard"])


class LeaderboardEntryResponse(BaseModel):
    rank: int
    player_name: str
    score: int
    timestamp: datetime


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]


class SubmitScoreRequest(BaseModel):
    score: int = Field(..., ge=0)
    name: str = Field(default="", max_length=20)
    client_id: str | None = Field(
        default=None,
        description="Opaque anonymous identity; a new one is minted when omitted",
    )


class SubmitScoreResponse(BaseModel):
    saved: bool


class PersonalBestResponse(BaseModel):
    player_name: str
    score: int
    timestamp: datetime


class MyBestResponse(BaseModel):
    personal_best: PersonalBestResponse | None


def ranked(entries: list[LeaderboardEntry]) -> list[LeaderboardEntryResponse]:
    return [
        LeaderboardEntryResponse(rank=i + 1, player_name=e.player_name, score=e.score, timestamp=e.timestamp)
        for i, e in enumerate(entries)
    ]


def personal_best_response(best: PersonalBest | None) -> PersonalBestResponse | None:
    if best is None:
        return None
    return PersonalBestResponse(player_name=best.player_name, score=best.score, timestamp=best.timestamp)


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def top_scores(
    limit: int | None = Query(default=None, ge=1, le=100),
    runtime: AppRuntime = Depends(get_runtime),
) -> LeaderboardResponse:
    entries = await runtime.gateway_for().fetch_top_scores(limit or runtime.settings.leaderboard_limit)
    return LeaderboardResponse(entries=ranked(entries))


@router.get("/leaderboard/me", response_model=MyBestResponse)
async def my_best(
    client_id: str = Query(..., min_length=1),
    runtime: AppRuntime = Depends(get_runtime),
) -> MyBestResponse:
    best = await runtime.gateway_for(client_id).personal_best()
    return MyBestResponse(personal_best=personal_best_response(best))


@router.post("/leaderboard/scores", response_model=SubmitScoreResponse)
async def submit_score(payload: SubmitScoreRequest, runtime: AppRuntime = Depends(get_runtime)) -> SubmitScoreResponse:
    # raw gateway access: the save threshold is a board policy, not enforced here
    ok = await runtime.gateway_for(payload.client_id).submit_score(payload.score, payload.name)
    return SubmitScoreResponse(saved=ok)
