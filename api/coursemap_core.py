#!/usr/bin/env python3
"""
Course Map Core - level classification, layout and edge derivation
"""

import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

# ============================================================================
# LAYOUT CONSTANTS
# ============================================================================

LEVEL_HEIGHT = 150
TOP_MARGIN = 100
NODE_WIDTH = 120
MAP_WIDTH_RATIO = 0.7          # remaining 30% is the details panel
VERTICAL_NOISE = 30            # jitter band, y moves at most half of it
NODE_HALF_EXTENT = 60
EXTENT_PADDING = 100
FALLBACK_EXTENT = (1000.0, 800.0)
WINDOW_PADDING = 48

EDGE_MATCH_SUBSTRING = "substring"
EDGE_MATCH_EXACT = "exact"
EDGE_MATCH_MODES = (EDGE_MATCH_SUBSTRING, EDGE_MATCH_EXACT)


def normalize_edge_match(mode: Optional[str]) -> Optional[str]:
    """
    Validate an edge match mode ("Exact " -> "exact"). None stays None.

    Raises:
        ValueError: If the mode is not "substring" or "exact"
    """
    if mode is None:
        return None
    value = str(mode).strip().lower()
    if value not in EDGE_MATCH_MODES:
        raise ValueError(f"Unknown edge match mode: {mode}")
    return value


def default_edge_match() -> str:
    """COURSEMAP_EDGE_MATCH from the environment, substring when unset or invalid"""
    raw = os.environ.get("COURSEMAP_EDGE_MATCH", "").strip().lower()
    if raw in EDGE_MATCH_MODES:
        return raw
    return EDGE_MATCH_SUBSTRING


# ============================================================================
# DATA MODEL
# ============================================================================


@dataclass(frozen=True)
class Course:
    course_number: str
    course_title: str = ""
    credits: float = 0.0
    prerequisites: Tuple[str, ...] = ()
    link: str = ""


@dataclass(frozen=True)
class Position:
    x: float
    y: float


@dataclass(frozen=True)
class Edge:
    """Prerequisite -> dependent segment. `id` is "<prerequisite>-<course>"."""
    id: str
    prerequisite: str
    course: str
    source: Position
    target: Position


@dataclass
class Layout:
    positions: Dict[str, Position] = field(default_factory=dict)
    extent: Tuple[float, float] = FALLBACK_EXTENT
    level_base_y: Dict[int, float] = field(default_factory=dict)


# ============================================================================
# LEVEL CLASSIFIER
# ============================================================================

def extract_course_number(course_number: str) -> int:
    """Extract the leading digits after the department token, 0 if there are none"""
    parts = str(course_number).strip().split(" ", 1)
    if len(parts) < 2:
        # "COMP250" style, no separator
        match = re.match(r"[A-Za-z]+(\d+)", parts[0])
        return int(match.group(1)) if match else 0
    match = re.match(r"(\d+)", parts[1].strip())
    return int(match.group(1)) if match else 0


def course_level(course_number: str) -> int:
    """Level bucket of a course, e.g. "COMP 250" -> 200"""
    return (extract_course_number(course_number) // 100) * 100


def classify_levels(courses: List[Course]) -> Dict[int, List[Course]]:
    """
    Group courses into level buckets.

    Buckets come back in ascending level order and keep the list order of
    their courses. Unparseable course numbers land in level 0.
    """
    levels: Dict[int, List[Course]] = {}
    for course in courses:
        levels.setdefault(course_level(course.course_number), []).append(course)
    return {level: levels[level] for level in sorted(levels)}


# ============================================================================
# LAYOUT ENGINE
# ============================================================================

def canvas_width_from_window(inner_width: float, padding: float = WINDOW_PADDING) -> float:
    """Canvas width available to the map for a given window width"""
    return max(0.0, float(inner_width) - padding)


def map_width_for(canvas_width: float) -> float:
    return canvas_width * MAP_WIDTH_RATIO


def compute_layout(levels: Dict[int, List[Course]],
                   canvas_width: float,
                   rng: Optional[np.random.Generator] = None) -> Layout:
    """
    Place every course on the canvas.

    Args:
        levels: Output of classify_levels()
        canvas_width: Width in pixels available to map + details panel
        rng: Source of vertical jitter (default: fresh unseeded generator)

    Returns:
        Layout with positions keyed by course number and the (width, height) extent.
        Two calls with the same input share x values and extent; y values
        only agree within the jitter band.
    """
    if not any(levels.values()):
        return Layout()

    if rng is None:
        rng = np.random.default_rng()

    map_width = map_width_for(canvas_width)
    half_noise = VERTICAL_NOISE / 2

    positions: Dict[str, Position] = {}
    level_base_y: Dict[int, float] = {}
    max_x = 0.0
    max_y = 0.0

    for level_index, level in enumerate(sorted(levels)):
        courses = levels[level]
        base_y = float(level_index * LEVEL_HEIGHT + TOP_MARGIN)
        level_base_y[level] = base_y
        max_y = max(max_y, base_y + EXTENT_PADDING)

        for index, course in enumerate(courses):
            jitter = float(rng.uniform(-half_noise, half_noise))
            x = (index - (len(courses) - 1) / 2) * NODE_WIDTH + map_width / 2
            positions[course.course_number] = Position(x=x, y=base_y + jitter)
            max_x = max(max_x, x + NODE_HALF_EXTENT)

    extent = (max(map_width, max_x + EXTENT_PADDING), max_y + EXTENT_PADDING)
    return Layout(positions=positions, extent=extent, level_base_y=level_base_y)


# ============================================================================
# EDGE DERIVER
# ============================================================================

def edge_id(prerequisite: str, course_number: str) -> str:
    return f"{prerequisite}-{course_number}"


def derive_edges(courses: List[Course], positions: Dict[str, Position]) -> List[Edge]:
    """
    Build prerequisite -> course edges.

    An edge is emitted only when both the course and the prerequisite have a
    position; dangling prerequisites produce nothing.
    """
    edges = []
    for course in courses:
        target = positions.get(course.course_number)
        if target is None:
            continue
        for prereq in course.prerequisites:
            source = positions.get(prereq)
            if source is None:
                continue
            edges.append(Edge(
                id=edge_id(prereq, course.course_number),
                prerequisite=prereq,
                course=course.course_number,
                source=source,
                target=target,
            ))
    return edges


def find_dangling_prerequisites(courses: List[Course],
                                positions: Dict[str, Position]) -> Dict[str, List[str]]:
    """Prerequisites that have no position, keyed by the course that lists them"""
    dangling = {}
    for course in courses:
        missing = [p for p in course.prerequisites if p not in positions]
        if missing:
            dangling[course.course_number] = missing
    return dangling


def edge_matches_selection(edge: Edge, selected: Optional[str],
                           mode: Optional[str] = None) -> bool:
    """
    Whether an arrowed edge touches the selected course.

    "substring" tests `selected in edge.id`, so "COMP 25" also matches
    "COMP 250-COMP 251". "exact" compares both halves of the edge.
    """
    if not selected:
        return False
    mode = normalize_edge_match(mode) or default_edge_match()
    if mode == EDGE_MATCH_EXACT:
        return selected in (edge.prerequisite, edge.course)
    return selected in edge.id


def arrow_edge_opacity(edge: Edge, selected: Optional[str],
                       mode: Optional[str] = None) -> float:
    if not selected:
        return 0.01
    return 1.0 if edge_matches_selection(edge, selected, mode) else 0.1


def plain_edge_opacity(edge: Edge, selected: Optional[str]) -> float:
    if not selected:
        return 0.5
    if selected == edge.course or selected == edge.prerequisite:
        return 1.0
    return 0.2


# ============================================================================
# NODE PRESENTATION
# ============================================================================

def node_label(course_number: str) -> Tuple[str, str]:
    """Split "COMP 250" into ("COMP", "250") for the two text lines of a node"""
    parts = str(course_number).split(" ", 1)
    return parts[0], parts[1] if len(parts) > 1 else ""


def node_hue(course_number: str) -> float:
    """Fill hue in degrees; the renderer uses hsl(hue, 70%, 80%)"""
    return extract_course_number(course_number) * 1.5


def course_details(selected: Optional[str],
                   courses: List[Course],
                   positions: Dict[str, Position]) -> Optional[Dict]:
    """
    Details panel data for the selected course.

    Returns:
        Dict with course_number, course_title, credits and prerequisites
        ([{course_number, title, has_position}]), or None if nothing is selected
        or the selection is not in the course list.
    """
    if not selected:
        return None

    by_number = {c.course_number: c for c in courses}
    course = by_number.get(selected)
    if course is None:
        return None

    prerequisites = []
    for prereq in course.prerequisites:
        prereq_course = by_number.get(prereq)
        prerequisites.append({
            "course_number": prereq,
            "title": prereq_course.course_title if prereq_course else None,
            "has_position": prereq in positions,
        })

    return {
        "course_number": course.course_number,
        "course_title": course.course_title,
        "credits": course.credits,
        "prerequisites": prerequisites,
    }


def get_map_statistics(courses: List[Course], layout: Layout, edges: List[Edge]) -> Dict:
    """Summary numbers for a computed map"""
    dangling = find_dangling_prerequisites(courses, layout.positions)
    return {
        "total_courses": len(courses),
        "positioned_courses": len(layout.positions),
        "levels": len(layout.level_base_y),
        "edges": len(edges),
        "dangling_prerequisites": sum(len(v) for v in dangling.values()),
        "width": layout.extent[0],
        "height": layout.extent[1],
    }


# ============================================================================
# GRAPH VISUALIZATION FUNCTIONS
# ============================================================================

def create_graph(courses: List[Course], layout: Layout, edges: List[Edge]):
    """
    Create a NetworkX graph from a computed map.

    Returns:
        tuple: (G, pos) - NetworkX DiGraph and position dictionary in screen
        coordinates (y grows downward)

    Requires:
        networkx (import networkx as nx)
    """
    try:
        import networkx as nx
    except ImportError:
        raise ImportError(
            "NetworkX is required. Install with: pip install networkx")

    G = nx.DiGraph()
    for course in courses:
        position = layout.positions.get(course.course_number)
        if position is None:
            continue
        G.add_node(
            course.course_number,
            title=course.course_title,
            credits=course.credits,
            level=course_level(course.course_number),
        )

    for edge in edges:
        G.add_edge(edge.prerequisite, edge.course, id=edge.id)

    pos = {node: (p.x, p.y) for node, p in layout.positions.items()}
    return G, pos


def analyze_map(courses: List[Course], layout: Layout, edges: List[Edge],
                top_n: int = 10) -> Dict:
    """
    Rank courses of a computed map by prerequisite fan-in and fan-out.

    Requires:
        networkx (import networkx as nx)
    """
    G, _ = create_graph(courses, layout, edges)

    prereq_counts = {node: G.in_degree(node) for node in G.nodes()}
    dependent_counts = {node: G.out_degree(node) for node in G.nodes()}

    return {
        "total_courses": G.number_of_nodes(),
        "total_prerequisites": G.number_of_edges(),
        "courses_with_most_prereqs": sorted(
            prereq_counts.items(), key=lambda x: x[1], reverse=True)[:top_n],
        "most_required_courses": sorted(
            dependent_counts.items(), key=lambda x: x[1], reverse=True)[:top_n],
    }


def _hsl_to_rgb(hue: float, saturation: float = 0.7, lightness: float = 0.8):
    """hsl() as the browser reads it, hue wrapping at 360"""
    import colorsys
    r, g, b = colorsys.hls_to_rgb((hue % 360) / 360.0, lightness, saturation)
    return (r, g, b)


def visualize_map(courses: List[Course],
                  layout: Layout,
                  edges: List[Edge],
                  selected: Optional[str] = None,
                  offset: Tuple[float, float] = (0.0, 0.0),
                  title: Optional[str] = None,
                  save_path: Optional[str] = None,
                  show: bool = True,
                  dpi: int = 100,
                  edge_match: Optional[str] = None) -> tuple:
    """
    Draw a computed map with matplotlib.

    Edges are drawn twice like the interactive view: a thin grey connector
    and an arrowed black line, each with its own selection opacity.

    Returns:
        tuple: (figure, axis, graph, positions)

    Requires:
        matplotlib (import matplotlib.pyplot as plt)
        networkx (import networkx as nx)
    """
    try:
        import matplotlib.pyplot as plt
        from matplotlib.patches import Circle, FancyArrowPatch
    except ImportError:
        raise ImportError(
            "Matplotlib is required. Install with: pip install matplotlib")

    G, pos = create_graph(courses, layout, edges)
    width, height = layout.extent
    dx, dy = offset

    fig, ax = plt.subplots(figsize=(width / dpi, height / dpi), dpi=dpi)
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_aspect("equal")
    ax.axis("off")

    for edge in edges:
        x1, y1 = edge.source.x + dx, edge.source.y + dy
        x2, y2 = edge.target.x + dx, edge.target.y + dy
        ax.plot([x1, x2], [y1, y2], color="#999999", linewidth=1,
                alpha=plain_edge_opacity(edge, selected), zorder=1)
        ax.add_patch(FancyArrowPatch(
            (x1, y1), (x2, y2),
            arrowstyle="-|>", mutation_scale=12, shrinkB=30,
            color="#000000", linewidth=1.5,
            alpha=arrow_edge_opacity(edge, selected, edge_match), zorder=2))

    for node, (x, y) in pos.items():
        dept, num = node_label(node)
        outlined = node == selected
        ax.add_patch(Circle(
            (x + dx, y + dy), 30,
            facecolor=_hsl_to_rgb(node_hue(node)),
            edgecolor="#000000" if outlined else "none",
            linewidth=2, zorder=3))
        ax.text(x + dx, y + dy - 6, dept, ha="center", va="center", fontsize=7, zorder=4)
        ax.text(x + dx, y + dy + 10, num, ha="center", va="center", fontsize=8, zorder=4)

    if title:
        ax.set_title(title, fontsize=14, fontweight="bold")

    if save_path:
        fig.savefig(save_path, dpi=dpi, bbox_inches="tight")
        print(f"Map saved to: {save_path}")

    if show:
        plt.show()

    return fig, ax, G, pos


__all__ = [
    'normalize_edge_match',
    'default_edge_match',
    'Course',
    'Position',
    'Edge',
    'Layout',
    'extract_course_number',
    'course_level',
    'classify_levels',
    'canvas_width_from_window',
    'map_width_for',
    'compute_layout',
    'edge_id',
    'derive_edges',
    'find_dangling_prerequisites',
    'edge_matches_selection',
    'arrow_edge_opacity',
    'plain_edge_opacity',
    'node_label',
    'node_hue',
    'course_details',
    'get_map_statistics',
    'create_graph',
    'analyze_map',
    'visualize_map',
]
