#!/usr/bin/env python3
"""
Course Map API - render snapshots and pointer-driven session state over HTTP
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from coursemap_catalog import CourseCatalog
from coursemap_core import classify_levels, compute_layout
from coursemap_session import CourseMapSession, PointerEvent, build_snapshot

load_dotenv()

# ============================================================================
# CONFIGURATION
# ============================================================================

PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_DATA_PATH = PROJECT_ROOT / "data"


def resolve_data_path(raw: Optional[str] = None) -> Path:
    """Catalog directory from COURSEMAP_DATA_PATH; relative paths are taken from the project root"""
    if raw is None:
        raw = os.environ.get("COURSEMAP_DATA_PATH", "")
    raw = raw.strip()
    if not raw:
        return _DEFAULT_DATA_PATH
    if not os.path.isabs(raw):
        return PROJECT_ROOT / raw
    return Path(raw)


DATA_PATH = resolve_data_path()

# ============================================================================
# DATA MODELS
# ============================================================================

class PositionModel(BaseModel):
    x: float
    y: float

class ExtentModel(BaseModel):
    width: float
    height: float

class NodeModel(BaseModel):
    course_number: str
    x: float
    y: float
    department: str
    number: str
    hue: float
    outlined: bool
    link: str = ""

class EdgeModel(BaseModel):
    id: str
    prerequisite: str
    course: str
    x1: float
    y1: float
    x2: float
    y2: float
    opacity: float

class MapSnapshot(BaseModel):
    program: Optional[str]
    positions: Dict[str, PositionModel]
    extent: ExtentModel
    nodes: List[NodeModel]
    arrow_edges: List[EdgeModel]
    plain_edges: List[EdgeModel]
    offset: PositionModel
    transform: str
    cursor: str
    selected_course: Optional[str]

class PrerequisiteEntry(BaseModel):
    course_number: str
    title: Optional[str] = None
    has_position: bool

class CourseDetails(BaseModel):
    course_number: str
    course_title: str
    credits: float
    prerequisites: List[PrerequisiteEntry]

class ProgramChoice(BaseModel):
    program: Optional[str] = None

class CanvasWidth(BaseModel):
    width: float

class PointerInput(BaseModel):
    x: float = 0.0
    y: float = 0.0
    button: int = 0

class CourseInput(BaseModel):
    course_number: str

class ActivationResult(BaseModel):
    course_number: str
    link: Optional[str]
    selected_course: Optional[str]

# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

app = FastAPI(
    title="Course Map API",
    description="Leveled prerequisite maps with pan and hover state for course programs",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

catalog = CourseCatalog(str(DATA_PATH))
session = CourseMapSession(catalog, opener=lambda url: None)


def reset_session(new_catalog: Optional[CourseCatalog] = None, **kwargs) -> CourseMapSession:
    """Replace the catalog and/or the shared session (used on reload and in tests)"""
    global catalog, session
    if new_catalog is not None:
        catalog = new_catalog
    kwargs.setdefault("opener", lambda url: None)
    session = CourseMapSession(catalog, **kwargs)
    return session


def _require_catalog():
    if not catalog.is_loaded:
        raise HTTPException(status_code=503, detail="Data not loaded")


def _program_or_404(program: str):
    try:
        return catalog.get_program_courses(program)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Program {program} not found")

# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Load data on startup"""
    try:
        catalog.load_data(str(DATA_PATH))
    except (FileNotFoundError, ValueError) as e:
        print(f"Warning: Could not load data on startup: {e}")
        print("API will return 503 until data is loaded")

@app.get("/")
async def root():
    """API health check"""
    return {
        "status": "online",
        "message": "Course Map API",
        "data_loaded": catalog.is_loaded
    }

@app.get("/programs", response_model=List[str])
async def get_programs():
    """Program identifiers for the program selector"""
    _require_catalog()
    return catalog.get_program_list()

@app.get("/programs/{program}/map", response_model=MapSnapshot)
async def get_program_map(
    program: str,
    width: float = Query(1000.0, ge=0, description="Canvas width in pixels")
):
    """Fresh layout for a program, with no selection and no pan"""
    _require_catalog()
    courses = _program_or_404(program)
    layout = compute_layout(classify_levels(courses), width)
    return build_snapshot(courses, layout, program=program)

@app.get("/session", response_model=MapSnapshot)
async def get_session():
    """Current session snapshot"""
    return session.snapshot()

@app.put("/session/program", response_model=MapSnapshot)
async def put_program(choice: ProgramChoice):
    """Switch program; the pan offset is kept"""
    if choice.program:
        _require_catalog()
        try:
            session.select_program(choice.program)
        except ValueError:
            raise HTTPException(status_code=404, detail=f"Program {choice.program} not found")
    else:
        session.select_program(None)
    return session.snapshot()

@app.put("/session/width", response_model=MapSnapshot)
async def put_width(canvas: CanvasWidth):
    session.set_canvas_width(canvas.width)
    return session.snapshot()

@app.post("/session/pointer/{action}", response_model=MapSnapshot)
async def post_pointer(action: str, pointer: PointerInput):
    """Pan the map: press, move, release or leave"""
    event = PointerEvent(x=pointer.x, y=pointer.y, button=pointer.button)
    if action == "press":
        session.press(event)
    elif action == "move":
        session.move(event)
    elif action == "release":
        session.release(event)
    elif action == "leave":
        session.leave_surface(event)
    else:
        raise HTTPException(status_code=400, detail=f"Unknown pointer action: {action}")
    return session.snapshot()

@app.post("/session/hover/enter", response_model=MapSnapshot)
async def post_hover_enter(target: CourseInput):
    session.hover_enter(target.course_number)
    return session.snapshot()

@app.post("/session/hover/leave", response_model=MapSnapshot)
async def post_hover_leave():
    session.hover_leave()
    return session.snapshot()

@app.post("/session/activate", response_model=ActivationResult)
async def post_activate(target: CourseInput):
    """Click on a node; returns the link for the shell to open"""
    link = session.activate(target.course_number)
    if link is None:
        raise HTTPException(status_code=404, detail=f"Course {target.course_number} not on the map")
    return ActivationResult(
        course_number=target.course_number,
        link=link or None,
        selected_course=session.selection.selected
    )

@app.post("/session/pick", response_model=MapSnapshot)
async def post_pick(target: CourseInput):
    """Prerequisite clicked in the details list; no-op if it is not on the map"""
    session.pick_prerequisite(target.course_number)
    return session.snapshot()

@app.get("/session/details", response_model=Optional[CourseDetails])
async def get_details():
    """Details panel data for the selected course, null when nothing is selected"""
    return session.details()
