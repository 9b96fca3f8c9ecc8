import numpy as np
import pytest

from coursemap_core import (
    FALLBACK_EXTENT,
    LEVEL_HEIGHT,
    NODE_WIDTH,
    TOP_MARGIN,
    VERTICAL_NOISE,
    Course,
    canvas_width_from_window,
    classify_levels,
    compute_layout,
    map_width_for,
)


def _levels(*numbers):
    return classify_levels([Course(course_number=n) for n in numbers])


@pytest.fixture
def levels():
    return _levels("COMP 202", "COMP 250", "COMP 251", "MATH 240",
                   "MATH 133", "COMP 302", "COMP 303", "COMP 421")


class TestHorizontalPlacement:
    @pytest.mark.parametrize("n", [1, 2, 3, 4, 7])
    def test_level_is_centered(self, n):
        levels = _levels(*[f"COMP {200 + i}" for i in range(n)])
        layout = compute_layout(levels, 1000, rng=np.random.default_rng(0))
        xs = [p.x for p in layout.positions.values()]
        assert np.mean(xs) == pytest.approx(map_width_for(1000) / 2)

    def test_single_course_exactly_centered(self):
        layout = compute_layout(_levels("COMP 250"), 1000, rng=np.random.default_rng(1))
        assert layout.positions["COMP 250"].x == pytest.approx(350.0)

    def test_nodes_spaced_by_node_width(self):
        layout = compute_layout(_levels("COMP 250", "COMP 251", "COMP 252"), 1000)
        xs = [layout.positions[n].x for n in ("COMP 250", "COMP 251", "COMP 252")]
        assert xs == pytest.approx([350 - NODE_WIDTH, 350, 350 + NODE_WIDTH])


class TestVerticalPlacement:
    def test_base_y_strictly_increasing(self, levels):
        layout = compute_layout(levels, 1200)
        base = [layout.level_base_y[level] for level in sorted(layout.level_base_y)]
        assert base == [TOP_MARGIN + i * LEVEL_HEIGHT for i in range(len(base))]
        assert all(a < b for a, b in zip(base, base[1:]))

    def test_jitter_within_band(self, levels):
        for seed in range(20):
            layout = compute_layout(levels, 1200, rng=np.random.default_rng(seed))
            for level, bucket in levels.items():
                for course in bucket:
                    y = layout.positions[course.course_number].y
                    assert abs(y - layout.level_base_y[level]) <= VERTICAL_NOISE / 2

    def test_levels_use_index_not_value(self):
        layout = compute_layout(_levels("COMP 100", "COMP 500"), 1000)
        assert layout.level_base_y == {100: 100.0, 500: 250.0}


class TestRecompute:
    def test_same_x_and_extent(self, levels):
        a = compute_layout(levels, 1200, rng=np.random.default_rng(1))
        b = compute_layout(levels, 1200, rng=np.random.default_rng(2))
        assert a.extent == b.extent
        for number, pos in a.positions.items():
            assert b.positions[number].x == pytest.approx(pos.x)
            assert abs(b.positions[number].y - pos.y) <= VERTICAL_NOISE

    def test_seeded_rng_is_reproducible(self, levels):
        a = compute_layout(levels, 1200, rng=np.random.default_rng(7))
        b = compute_layout(levels, 1200, rng=np.random.default_rng(7))
        assert a.positions == b.positions

    def test_positions_match_course_list(self, levels):
        layout = compute_layout(levels, 1200)
        expected = {c.course_number for bucket in levels.values() for c in bucket}
        assert set(layout.positions) == expected


class TestExtent:
    def test_narrow_level_uses_map_width(self):
        layout = compute_layout(_levels("COMP 250", "COMP 302"), 1000)
        assert layout.extent == (pytest.approx(700.0), pytest.approx(250 + 100 + 100))

    def test_wide_level_grows_past_map_width(self):
        numbers = [f"COMP {200 + i}" for i in range(10)]
        layout = compute_layout(_levels(*numbers), 500)
        max_x = max(p.x for p in layout.positions.values())
        assert layout.extent[0] == pytest.approx(max_x + 60 + 100)
        assert layout.extent[0] > map_width_for(500)

    def test_height_from_last_level(self, levels):
        layout = compute_layout(levels, 1200)
        last_base = max(layout.level_base_y.values())
        assert layout.extent[1] == pytest.approx(last_base + 200)

    def test_empty_course_list_falls_back(self):
        layout = compute_layout({}, 1200)
        assert layout.positions == {}
        assert layout.extent == FALLBACK_EXTENT

    def test_zero_width(self):
        layout = compute_layout(_levels("COMP 250"), 0)
        assert layout.positions["COMP 250"].x == 0
        assert layout.extent[0] == pytest.approx(160.0)


def test_canvas_width_from_window():
    assert canvas_width_from_window(1048) == 1000
    assert canvas_width_from_window(20) == 0
