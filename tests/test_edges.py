import numpy as np
import pytest

from coursemap_core import (
    EDGE_MATCH_EXACT,
    EDGE_MATCH_SUBSTRING,
    Course,
    Edge,
    Position,
    arrow_edge_opacity,
    classify_levels,
    compute_layout,
    derive_edges,
    edge_matches_selection,
    find_dangling_prerequisites,
    plain_edge_opacity,
)


@pytest.fixture
def scenario():
    return [
        Course("A 100", "First"),
        Course("A 200", "Second", prerequisites=("A 100",)),
        Course("A 300", "Third", prerequisites=("A 200", "A 999")),
    ]


def _layout(courses):
    return compute_layout(classify_levels(courses), 1000, rng=np.random.default_rng(3))


def _edge(prereq, course):
    return Edge(f"{prereq}-{course}", prereq, course, Position(0, 0), Position(1, 1))


class TestDeriveEdges:
    def test_scenario(self, scenario):
        layout = _layout(scenario)
        edges = derive_edges(scenario, layout.positions)
        assert len(layout.positions) == 3
        assert len(classify_levels(scenario)) == 3
        assert [e.id for e in edges] == ["A 100-A 200", "A 200-A 300"]

    def test_endpoints_are_positioned(self, scenario):
        layout = _layout(scenario)
        for edge in derive_edges(scenario, layout.positions):
            assert edge.prerequisite in layout.positions
            assert edge.course in layout.positions
            assert edge.source == layout.positions[edge.prerequisite]
            assert edge.target == layout.positions[edge.course]

    def test_course_without_position_emits_nothing(self, scenario):
        positions = {"A 100": Position(0, 0), "A 200": Position(0, 100)}
        edges = derive_edges(scenario, positions)
        assert [e.id for e in edges] == ["A 100-A 200"]

    def test_no_prerequisites(self):
        courses = [Course("A 100"), Course("B 100")]
        assert derive_edges(courses, _layout(courses).positions) == []

    def test_dangling_prerequisites_reported(self, scenario):
        layout = _layout(scenario)
        assert find_dangling_prerequisites(scenario, layout.positions) == {"A 300": ["A 999"]}


class TestEdgeMatching:
    def test_substring_matches_either_half(self):
        edge = _edge("COMP 250", "COMP 251")
        assert edge_matches_selection(edge, "COMP 250", EDGE_MATCH_SUBSTRING)
        assert edge_matches_selection(edge, "COMP 251", EDGE_MATCH_SUBSTRING)

    def test_substring_false_positive(self):
        edge = _edge("COMP 250", "COMP 251")
        assert edge_matches_selection(edge, "COMP 25", EDGE_MATCH_SUBSTRING)
        assert not edge_matches_selection(edge, "COMP 25", EDGE_MATCH_EXACT)

    def test_exact_matches_components(self):
        edge = _edge("COMP 250", "COMP 251")
        assert edge_matches_selection(edge, "COMP 251", EDGE_MATCH_EXACT)
        assert not edge_matches_selection(edge, "COMP 302", EDGE_MATCH_EXACT)

    def test_nothing_selected(self):
        assert not edge_matches_selection(_edge("A 100", "A 200"), None)


class TestOpacity:
    def test_arrow_edges(self):
        edge = _edge("A 100", "A 200")
        assert arrow_edge_opacity(edge, None) == 0.01
        assert arrow_edge_opacity(edge, "A 200", EDGE_MATCH_EXACT) == 1.0
        assert arrow_edge_opacity(edge, "A 300", EDGE_MATCH_EXACT) == 0.1

    def test_plain_edges_exact(self):
        edge = _edge("COMP 250", "COMP 251")
        assert plain_edge_opacity(edge, None) == 0.5
        assert plain_edge_opacity(edge, "COMP 250") == 1.0
        assert plain_edge_opacity(edge, "COMP 251") == 1.0
        assert plain_edge_opacity(edge, "COMP 25") == 0.2
