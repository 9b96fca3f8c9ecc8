#!/usr/bin/env python3
"""
Course Map Session - pan/drag viewport, hover selection and the render snapshot
"""

import webbrowser
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from coursemap_core import (
    Course,
    Layout,
    WINDOW_PADDING,
    arrow_edge_opacity,
    canvas_width_from_window,
    classify_levels,
    compute_layout,
    course_details,
    derive_edges,
    node_hue,
    node_label,
    normalize_edge_match,
    plain_edge_opacity,
)

PRIMARY_BUTTON = 0

# ============================================================================
# POINTER EVENTS
# ============================================================================


@dataclass
class PointerEvent:
    x: float = 0.0
    y: float = 0.0
    button: int = PRIMARY_BUTTON
    target: Optional[str] = None
    propagation_stopped: bool = False

    def stop_propagation(self):
        self.propagation_stopped = True


# ============================================================================
# VIEWPORT CONTROLLER
# ============================================================================

class ViewportController:
    """Idle/Dragging pan state. The offset is unbounded and only moves while dragging."""

    def __init__(self):
        self.offset: Tuple[float, float] = (0.0, 0.0)
        self.is_dragging = False
        self.drag_anchor: Tuple[float, float] = (0.0, 0.0)

    def press(self, x: float, y: float, button: int = PRIMARY_BUTTON) -> bool:
        """Start a drag on primary press. Returns whether dragging started."""
        if button != PRIMARY_BUTTON:
            return False
        self.is_dragging = True
        self.drag_anchor = (x - self.offset[0], y - self.offset[1])
        return True

    def move(self, x: float, y: float):
        if not self.is_dragging:
            return
        self.offset = (x - self.drag_anchor[0], y - self.drag_anchor[1])

    def release(self):
        self.is_dragging = False

    def leave(self):
        self.release()

    @property
    def cursor(self) -> str:
        return "grabbing" if self.is_dragging else "grab"

    @property
    def transform(self) -> str:
        return f"translate({self.offset[0]:g}, {self.offset[1]:g})"


# ============================================================================
# SELECTION STATE
# ============================================================================

class SelectionState:
    """
    Focused course driven by hover.

    Activation opens the course link and never changes the selection.
    """

    def __init__(self, opener: Optional[Callable[[str], object]] = None):
        self.selected: Optional[str] = None
        self.opener = opener or _open_in_new_tab

    def on_enter(self, course_number: str):
        self.selected = course_number

    def on_leave(self):
        self.selected = None

    def on_activate(self, course: Course, event: Optional[PointerEvent] = None) -> str:
        if event is not None:
            event.stop_propagation()
        if course.link:
            self.opener(course.link)
        return course.link

    def pick_prerequisite(self, course_number: str, positions: Dict) -> bool:
        """Select a prerequisite from the details list if it is on the map"""
        if course_number not in positions:
            return False
        self.selected = course_number
        return True

    def is_outlined(self, course_number: str) -> bool:
        return self.selected == course_number


def _open_in_new_tab(url: str):
    return webbrowser.open_new_tab(url)


# ============================================================================
# RESIZE SUBSCRIPTION
# ============================================================================

class ResizeSignal:
    """Minimal publisher of window widths"""

    def __init__(self, width: float = 0.0):
        self.width = float(width)
        self._listeners: List[Callable[[float], None]] = []

    def subscribe(self, listener: Callable[[float], None]):
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[float], None]):
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def emit(self, width: float):
        self.width = float(width)
        for listener in list(self._listeners):
            listener(self.width)


# ============================================================================
# SESSION
# ============================================================================

class CourseMapSession:
    """
    Owns the program selection, canvas width, viewport and selection.

    Structure and layout each remember only their last input (program, and
    program + width); any change recomputes. Switching programs keeps the
    current pan offset.
    """

    def __init__(self, catalog,
                 rng: Optional[np.random.Generator] = None,
                 opener: Optional[Callable[[str], object]] = None,
                 edge_match: Optional[str] = None):
        self.catalog = catalog
        self.rng = rng
        self.edge_match = normalize_edge_match(edge_match)
        self.program: Optional[str] = None
        self.canvas_width: float = 0.0
        self.viewport = ViewportController()
        self.selection = SelectionState(opener=opener)
        self._structure_key: Optional[str] = None
        self._structure_value: Optional[Tuple[List[Course], Dict[int, List[Course]]]] = None
        self._layout_key: Optional[Tuple[str, float]] = None
        self._layout_value: Optional[Layout] = None

    # -- inputs --------------------------------------------------------------

    def select_program(self, program: Optional[str]):
        """Switch program. Raises ValueError for an unknown program."""
        if program:
            self._structure(program)
        self.program = program or None

    def set_canvas_width(self, width: float):
        self.canvas_width = float(width)

    @contextmanager
    def watch_resize(self, signal: ResizeSignal, padding: float = WINDOW_PADDING):
        """Track a window width signal for the duration of the block"""
        def update_width(inner_width: float):
            self.set_canvas_width(canvas_width_from_window(inner_width, padding))

        update_width(signal.width)
        signal.subscribe(update_width)
        try:
            yield self
        finally:
            signal.unsubscribe(update_width)

    # -- derived state -------------------------------------------------------

    def _structure(self, program: str):
        if program != self._structure_key:
            courses = self.catalog.get_program_courses(program)
            self._structure_value = (courses, classify_levels(courses))
            self._structure_key = program
        return self._structure_value

    @property
    def courses(self) -> List[Course]:
        if not self.program:
            return []
        return self._structure(self.program)[0]

    @property
    def layout(self) -> Layout:
        if not self.program:
            return Layout()
        key = (self.program, self.canvas_width)
        if key != self._layout_key:
            _, levels = self._structure(self.program)
            self._layout_value = compute_layout(levels, self.canvas_width, rng=self.rng)
            self._layout_key = key
        return self._layout_value

    @property
    def edges(self):
        return derive_edges(self.courses, self.layout.positions)

    # -- pointer handlers ----------------------------------------------------

    def _course(self, course_number: str) -> Optional[Course]:
        for course in self.courses:
            if course.course_number == course_number:
                return course
        return None

    def press(self, event: PointerEvent) -> bool:
        """Surface press; ignored when a node already consumed the event"""
        if event.propagation_stopped:
            return False
        return self.viewport.press(event.x, event.y, event.button)

    def move(self, event: PointerEvent):
        self.viewport.move(event.x, event.y)

    def release(self, event: Optional[PointerEvent] = None):
        self.viewport.release()

    def leave_surface(self, event: Optional[PointerEvent] = None):
        self.viewport.leave()

    def hover_enter(self, course_number: str):
        self.selection.on_enter(course_number)

    def hover_leave(self):
        self.selection.on_leave()

    def activate(self, course_number: str, event: Optional[PointerEvent] = None) -> Optional[str]:
        """Click on a node: open its link. Returns the link, None for unknown courses."""
        event = event or PointerEvent(target=course_number)
        course = self._course(course_number)
        if course is None:
            return None
        return self.selection.on_activate(course, event)

    def pick_prerequisite(self, course_number: str) -> bool:
        return self.selection.pick_prerequisite(course_number, self.layout.positions)

    # -- outputs -------------------------------------------------------------

    def details(self) -> Optional[Dict]:
        return course_details(self.selection.selected, self.courses, self.layout.positions)

    def snapshot(self) -> Dict:
        return build_snapshot(
            self.courses, self.layout,
            selected=self.selection.selected,
            viewport=self.viewport,
            edge_match=self.edge_match,
            program=self.program,
        )


def build_snapshot(courses: List[Course],
                   layout: Layout,
                   selected: Optional[str] = None,
                   viewport: Optional[ViewportController] = None,
                   edge_match: Optional[str] = None,
                   program: Optional[str] = None) -> Dict:
    """Everything a renderer needs to draw the map without re-deriving layout"""
    viewport = viewport or ViewportController()
    edges = derive_edges(courses, layout.positions)

    nodes = []
    for course in courses:
        position = layout.positions.get(course.course_number)
        if position is None:
            continue
        dept, num = node_label(course.course_number)
        nodes.append({
            "course_number": course.course_number,
            "x": position.x,
            "y": position.y,
            "department": dept,
            "number": num,
            "hue": node_hue(course.course_number),
            "outlined": selected == course.course_number,
            "link": course.link,
        })

    def _edge(edge, opacity):
        return {
            "id": edge.id,
            "prerequisite": edge.prerequisite,
            "course": edge.course,
            "x1": edge.source.x,
            "y1": edge.source.y,
            "x2": edge.target.x,
            "y2": edge.target.y,
            "opacity": opacity,
        }

    return {
        "program": program,
        "positions": {k: {"x": p.x, "y": p.y} for k, p in layout.positions.items()},
        "extent": {"width": layout.extent[0], "height": layout.extent[1]},
        "nodes": nodes,
        "arrow_edges": [_edge(e, arrow_edge_opacity(e, selected, edge_match)) for e in edges],
        "plain_edges": [_edge(e, plain_edge_opacity(e, selected)) for e in edges],
        "offset": {"x": viewport.offset[0], "y": viewport.offset[1]},
        "transform": viewport.transform,
        "cursor": viewport.cursor,
        "selected_course": selected,
    }


__all__ = [
    'PointerEvent',
    'ViewportController',
    'SelectionState',
    'ResizeSignal',
    'CourseMapSession',
    'build_snapshot',
]
