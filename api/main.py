"""
FastAPI Backend for step-through long division diagrams.

Endpoints:
    GET    /                          - Status
    POST   /problems                  - Generate a problem and its trace
    POST   /layout                    - Stateless layout for a trace + stage
    POST   /sessions                  - Start a diagram session
    GET    /sessions/{id}             - Current layout of a session
    POST   /sessions/{id}/advance     - Next stage
    POST   /sessions/{id}/retreat     - Previous stage
    POST   /sessions/{id}/goto        - Jump to a stage
    POST   /sessions/{id}/practice    - Submit a practice answer
    POST   /sessions/{id}/practice/hint - Hint for the current practice step
    POST   /sessions/{id}/narrate     - LLM narration of the current stage
    DELETE /sessions/{id}             - Delete a session

Placement defects in a trace never become HTTP errors: they are returned in
the layout's "errors" list so the frontend can show a placeholder.
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List
from dataclasses import asdict
import logging
import uuid
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import get_settings
from logging_config import setup_logging
from diagrams.division import DividendDivisor, TraceStepModel
from diagrams.errors import InvalidProblem
from diagrams.layout_engine import LongDivisionLayoutEngine, LayoutResult, helper_table
from diagrams.practice import PracticeSession
from diagrams.problem_generator import DIFFICULTIES, generate_problem, build_trace
from diagrams.stages import CYCLE, GRANULARITIES
from diagrams.step_cursor import StepCursor
from diagrams.trace_validation import validate_trace
from diagram_store import DiagramStore
from narration.step_narrator import StepNarrator

settings = get_settings()
setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

# ==================== Initialize ====================

app = FastAPI(
    title="Stepwise Diagrams API",
    description="Step-through long division with column-aligned layouts",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

store = DiagramStore(settings)
narrator: Optional[StepNarrator] = None


def get_narrator() -> Optional[StepNarrator]:
    """Shared narrator, created on first use. None when no API key is configured."""
    global narrator
    if narrator is None and settings.narration_enabled:
        narrator = StepNarrator(model=settings.narrator_model,
                                temperature=settings.narrator_temperature)
    return narrator


# ==================== Request/Response Models ====================

class ProblemRequest(BaseModel):
    difficulty: str = "medium"


class LayoutRequest(BaseModel):
    dividend: int
    divisor: int
    trace: Optional[List[TraceStepModel]] = None  # generated when omitted
    stage_index: int = 0
    granularity: str = CYCLE
    check_trace: bool = False


class StartSessionRequest(BaseModel):
    session_id: Optional[str] = None
    dividend: Optional[int] = None  # generated when omitted
    divisor: Optional[int] = None
    difficulty: str = "medium"
    granularity: str = CYCLE


class GoToRequest(BaseModel):
    stage_index: int


class PracticeRequest(BaseModel):
    answer: str


class LayoutResponse(BaseModel):
    session_id: Optional[str] = None
    problem: dict
    stage_ids: List[str]
    current_steps: List[dict]
    helper_table: List[List[int]]
    layout: dict


# ==================== Helper Functions ====================

def check_granularity(granularity: str):
    if granularity not in GRANULARITIES:
        raise HTTPException(status_code=400, detail=f"Unknown granularity: {granularity}")


def make_problem(dividend: int, divisor: int) -> DividendDivisor:
    try:
        return DividendDivisor(dividend, divisor)
    except InvalidProblem as e:
        raise HTTPException(status_code=400, detail=str(e))


def log_layout_issues(layout: LayoutResult, context: str):
    """Generation defects are the caller's to flag; the engine only reports them."""
    for warning in layout.warnings:
        logger.warning("%s: %s", context, warning)
    for error in layout.errors:
        logger.error("%s: %s", context, error)


def build_layout_response(engine: LongDivisionLayoutEngine, layout: LayoutResult,
                          session_id: Optional[str] = None) -> dict:
    stage_steps = []
    if engine.stages:
        stage = engine.stages[layout.stage_index]
        stage_steps = [engine.trace[p].to_dict() for p in stage.positions]

    return {
        "session_id": session_id,
        "problem": engine.problem.to_dict(),
        "stage_ids": engine.stage_ids,
        "current_steps": stage_steps,
        "helper_table": [list(pair) for pair in helper_table(engine.problem.divisor)],
        "layout": layout.to_dict(),
    }


def load_session(session_id: str):
    """Rebuild the engine and cursor for a stored session."""
    session = store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")

    problem = DividendDivisor(session["problem"]["dividend"], session["problem"]["divisor"])
    engine = LongDivisionLayoutEngine.for_problem(problem, granularity=session["granularity"])
    cursor = engine.create_cursor(
        initial=session["cursor"]["index"],
        on_change=lambda index: store.set_cursor_index(session_id, index),
    )
    return engine, cursor


def session_layout(session_id: str, engine: LongDivisionLayoutEngine, cursor: StepCursor) -> dict:
    layout = engine.compute_layout(cursor)
    log_layout_issues(layout, f"session {session_id}")
    return build_layout_response(engine, layout, session_id)


def get_practice(session_id: str, problem: DividendDivisor) -> PracticeSession:
    practice = store.load_practice(session_id)
    if practice is None:
        practice = PracticeSession.for_problem(problem, max_attempts=settings.practice_max_attempts)
    return practice


# ==================== Core Endpoints ====================

@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "Stepwise Diagrams API is running",
        "version": "1.0.0",
        "features": {
            "long_division_layout": True,
            "practice_grading": True,
            "narration": settings.narration_enabled,
        }
    }


@app.post("/problems")
def create_problem(request: ProblemRequest):
    """Generate a random problem with its full solution trace."""
    if request.difficulty not in DIFFICULTIES:
        raise HTTPException(status_code=400, detail=f"Unknown difficulty: {request.difficulty}")

    problem = generate_problem(request.difficulty)
    return {
        "problem": problem.to_dict(),
        "difficulty": request.difficulty,
        "trace": [step.to_dict() for step in build_trace(problem)],
    }


@app.post("/layout", response_model=LayoutResponse)
def compute_layout(request: LayoutRequest):
    """Layout for an explicit trace (or the generated one) at a stage index."""
    check_granularity(request.granularity)
    problem = make_problem(request.dividend, request.divisor)

    if request.trace is None:
        trace = build_trace(problem)
    else:
        trace = [step.to_step() for step in request.trace]

    if request.check_trace:
        issues = validate_trace(problem, trace)
        if issues:
            raise HTTPException(status_code=422, detail={"issues": issues})

    engine = LongDivisionLayoutEngine(problem, trace, granularity=request.granularity)
    layout = engine.compute_layout(request.stage_index)
    log_layout_issues(layout, f"layout {problem.dividend} ÷ {problem.divisor}")
    return build_layout_response(engine, layout)


# ==================== Session Endpoints ====================

@app.post("/sessions", response_model=LayoutResponse)
def start_session(request: StartSessionRequest):
    """Start a diagram session on the first stage."""
    check_granularity(request.granularity)
    session_id = request.session_id or str(uuid.uuid4())

    if request.dividend is not None and request.divisor is not None:
        problem = make_problem(request.dividend, request.divisor)
    else:
        problem = generate_problem(request.difficulty)

    engine = LongDivisionLayoutEngine.for_problem(problem, granularity=request.granularity)
    store.create_session(session_id, problem, engine.total_stages, granularity=request.granularity)
    return session_layout(session_id, engine, engine.create_cursor())


@app.get("/sessions/{session_id}", response_model=LayoutResponse)
def get_session(session_id: str):
    engine, cursor = load_session(session_id)
    return session_layout(session_id, engine, cursor)


@app.post("/sessions/{session_id}/advance", response_model=LayoutResponse)
def advance(session_id: str):
    engine, cursor = load_session(session_id)
    cursor.advance()
    return session_layout(session_id, engine, cursor)


@app.post("/sessions/{session_id}/retreat", response_model=LayoutResponse)
def retreat(session_id: str):
    engine, cursor = load_session(session_id)
    cursor.retreat()
    return session_layout(session_id, engine, cursor)


@app.post("/sessions/{session_id}/goto", response_model=LayoutResponse)
def go_to(session_id: str, request: GoToRequest):
    engine, cursor = load_session(session_id)
    cursor.go_to(request.stage_index)
    return session_layout(session_id, engine, cursor)


@app.post("/sessions/{session_id}/practice")
def submit_practice(session_id: str, request: PracticeRequest):
    """Grade one practice answer against the solution trace."""
    engine, _ = load_session(session_id)
    practice = get_practice(session_id, engine.problem)

    try:
        feedback = practice.submit(request.answer)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    store.save_practice(session_id, practice)
    return {
        "session_id": session_id,
        "feedback": asdict(feedback),
        "current_step": asdict(practice.current_step) if practice.current_step else None,
        "is_complete": practice.is_complete,
        "all_correct": practice.all_correct,
        "total_attempts": practice.total_attempts,
    }


@app.post("/sessions/{session_id}/practice/hint")
def practice_hint(session_id: str):
    """Hint for the current practice step (Socratic LLM hint when narration is on)."""
    engine, _ = load_session(session_id)
    practice = get_practice(session_id, engine.problem)

    try:
        static_hint = practice.current_hint()
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))

    step = practice.current_step
    hint, source = static_hint, "static"

    step_narrator = get_narrator()
    if step_narrator is not None:
        hint = step_narrator.hint(engine.problem, engine.trace[step.step_index])
        source = "narrator"

    return {
        "session_id": session_id,
        "step_index": step.step_index,
        "kind": step.kind,
        "instruction": step.instruction,
        "hint": hint,
        "static_hint": static_hint,
        "source": source,
    }


@app.post("/sessions/{session_id}/narrate")
def narrate(session_id: str):
    """LLM narration for the steps of the current stage."""
    step_narrator = get_narrator()
    if step_narrator is None:
        raise HTTPException(status_code=503, detail="Narration is not configured (OPENAI_API_KEY)")

    engine, cursor = load_session(session_id)
    narrations = []
    if engine.stages:
        for position in engine.stages[cursor.index].positions:
            step = engine.trace[position]
            narrations.append({
                "step_index": step.step_index,
                "kind": step.kind.value,
                "explanation": step_narrator.narrate_step(engine.problem, step),
            })

    return {
        "session_id": session_id,
        "stage_id": cursor.current_stage_id,
        "narrations": narrations,
    }


@app.delete("/sessions/{session_id}")
def delete_session(session_id: str):
    """Delete a session."""
    store.delete_session(session_id)
    return {"status": "deleted", "session_id": session_id}


# ==================== Run Server ====================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("api.main:app", host="0.0.0.0", port=8000, reload=True)
