from __future__ import annotations

from fastapi import HTTPException, Request

from memgrid.app.registry import GameRecord
from memgrid.app.runtime import AppRuntime


def get_runtime(request: Request) -> AppRuntime:
    return request.app.state.runtime


def get_game(game_id: str, request: Request) -> GameRecord:
    rec = get_runtime(request).registry.get(game_id=game_id)
    if rec is None:
        raise HTTPException(status_code=404, detail="game not found")
    return rec
