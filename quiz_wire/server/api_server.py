"""FastAPI server exposing operator endpoints: dashboard, status, ranking, start."""

from __future__ import annotations

from threading import Thread

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
import uvicorn

from quiz_wire.constants.network_constants import DEFAULT_API_HOST, DEFAULT_API_PORT
from quiz_wire.core.markdown_renderer import escape, renderer
from quiz_wire.core.models import GamePhase, GameStatus, RankingEntry
from quiz_wire.core.services.round_orchestrator import RoundOrchestrator

_DASHBOARD_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>Quiz operator</title>
    <meta http-equiv="refresh" content="2" />
    <style>
      :root {{ font-family: system-ui, sans-serif; background: #0b1120; color: #f5f7ff; }}
      body {{ margin: 0; padding: 1.5rem; display: flex; flex-direction: column; gap: 1rem; }}
      .card {{ background: #111a30; border-radius: 0.75rem; padding: 1.5rem; }}
      .options {{ list-style: none; padding: 0; }}
      table {{ border-collapse: collapse; }}
      td {{ padding: 0.25rem 0.75rem; }}
    </style>
  </head>
  <body>
    <section class="card">
      <h1>Quiz operator</h1>
      <p>Phase: <b>{phase}</b> | Round {round_number}/{total_rounds} | Players: {player_count}</p>
    </section>
    <section class="card">{question_html}</section>
    <section class="card">
      <h2>Ranking</h2>
      <table>{ranking_rows}</table>
    </section>
  </body>
</html>
"""


class RankingRow(BaseModel):
    """Serialized ranking entry."""

    position: int
    display_name: str
    total_score: int


class StatusPayload(BaseModel):
    """Serialized game status."""

    phase: GamePhase
    round_number: int
    total_rounds: int
    player_count: int
    current_prompt: str | None
    ranking: list[RankingRow]


class StartResponse(BaseModel):
    started: bool
    player_count: int


def _ranking_rows(entries: list[RankingEntry]) -> list[RankingRow]:
    return [
        RankingRow(position=entry.position, display_name=entry.display_name, total_score=entry.total_score)
        for entry in entries
    ]


def _status_payload(status: GameStatus) -> StatusPayload:
    return StatusPayload(
        phase=status.phase,
        round_number=status.round_number,
        total_rounds=status.total_rounds,
        player_count=status.player_count,
        current_prompt=status.current_question.prompt if status.current_question else None,
        ranking=_ranking_rows(status.ranking),
    )


def _render_dashboard(status: GameStatus) -> str:
    if status.current_question is None:
        question_html = "<p><em>No question in progress.</em></p>"
    else:
        question_html = renderer.render_question(
            status.current_question,
            reveal_answer=status.phase is not GamePhase.QUESTION_OPEN,
        )
    rows = "".join(
        f"<tr><td>{entry.position}</td><td>{escape(entry.display_name)}</td><td>{entry.total_score} pts</td></tr>"
        for entry in status.ranking
    )
    return _DASHBOARD_HTML.format(
        phase=status.phase.value,
        round_number=status.round_number,
        total_rounds=status.total_rounds,
        player_count=status.player_count,
        question_html=question_html,
        ranking_rows=rows or "<tr><td>No players yet.</td></tr>",
    )


def _get_orchestrator_dependency(orchestrator: RoundOrchestrator):
    def dependency() -> RoundOrchestrator:
        return orchestrator

    return dependency


def create_api_app(orchestrator: RoundOrchestrator) -> FastAPI:
    """Create a FastAPI application wired to the provided game."""
    app = FastAPI(title="Quiz operator API", version="0.1.0")
    orchestrator_dep = _get_orchestrator_dependency(orchestrator)

    @app.get("/", response_class=HTMLResponse)
    def serve_dashboard(game: RoundOrchestrator = Depends(orchestrator_dep)) -> str:
        return _render_dashboard(game.status())

    @app.get("/status", response_model=StatusPayload)
    def get_status(game: RoundOrchestrator = Depends(orchestrator_dep)) -> StatusPayload:
        return _status_payload(game.status())

    @app.get("/ranking", response_model=list[RankingRow])
    def get_ranking(game: RoundOrchestrator = Depends(orchestrator_dep)) -> list[RankingRow]:
        return _ranking_rows(game.current_ranking())

    @app.post("/start", response_model=StartResponse)
    def request_start(game: RoundOrchestrator = Depends(orchestrator_dep)) -> StartResponse:
        status = game.status()
        if status.phase is not GamePhase.WAITING:
            raise HTTPException(status_code=409, detail="The game is not waiting to start.")
        if status.player_count == 0:
            raise HTTPException(status_code=409, detail="No players have joined yet.")
        if not game.start_gate.request_start():
            raise HTTPException(status_code=409, detail="Start requests are not accepted.")
        return StartResponse(started=True, player_count=status.player_count)

    return app


def start_api_server(
    orchestrator: RoundOrchestrator,
    host: str = DEFAULT_API_HOST,
    port: int = DEFAULT_API_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(orchestrator)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="warning")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
