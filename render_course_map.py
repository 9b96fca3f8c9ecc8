#!/usr/bin/env python3

import argparse
import os
import sys

import numpy as np
from dotenv import load_dotenv

# Ensure api/ is on sys.path so the course map modules import when run from a checkout
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "api"))

from coursemap_catalog import CourseCatalog
from coursemap_core import (
    EDGE_MATCH_MODES,
    analyze_map,
    classify_levels,
    compute_layout,
    derive_edges,
    find_dangling_prerequisites,
    get_map_statistics,
    visualize_map,
)

load_dotenv()


def build_program_map(data_path: str, program: str, width: float, seed=None):
    """Load one program and compute its layout and edges."""
    catalog = CourseCatalog(data_path)
    catalog.load_data(verbose=False)

    courses = catalog.get_program_courses(program)
    levels = classify_levels(courses)
    rng = np.random.default_rng(seed)
    layout = compute_layout(levels, width, rng=rng)
    edges = derive_edges(courses, layout.positions)
    return courses, levels, layout, edges


def main():
    ap = argparse.ArgumentParser(description="Render a program's course map to an image")
    ap.add_argument("--data", default=os.environ.get("COURSEMAP_DATA_PATH") or "data",
                    help="Catalog directory with programs.json (default: $COURSEMAP_DATA_PATH or data)")
    ap.add_argument("--program", help="Program name (omit to list programs)")
    ap.add_argument("--width", type=float, default=1400, help="Canvas width in pixels")
    ap.add_argument("--out", help="Output image path (e.g. map.png)")
    ap.add_argument("--select", help="Course to render as hovered")
    ap.add_argument("--seed", type=int, help="Seed for the vertical jitter")
    ap.add_argument("--edge-match", choices=EDGE_MATCH_MODES,
                    help="Arrowed edge highlight matching (default: $COURSEMAP_EDGE_MATCH or substring)")

    args = ap.parse_args()

    if not args.program:
        catalog = CourseCatalog(args.data)
        catalog.load_data(verbose=False)
        print("Available programs:")
        for name in catalog.get_program_list():
            print(f"  {name}")
        return

    courses, levels, layout, edges = build_program_map(
        args.data, args.program, args.width, seed=args.seed)

    stats = get_map_statistics(courses, layout, edges)
    print(f"\nCourse map for {args.program}:")
    print(f"Courses: {stats['total_courses']} in {stats['levels']} levels")
    print(f"Prerequisite edges: {stats['edges']}")
    print(f"Canvas: {stats['width']:.0f} x {stats['height']:.0f}")

    for level, level_courses in levels.items():
        print(f"  {level:>4}: {', '.join(c.course_number for c in level_courses)}")

    dangling = find_dangling_prerequisites(courses, layout.positions)
    if dangling:
        print(f"\nPrerequisites outside the program ({stats['dangling_prerequisites']}):")
        for course_number, missing in dangling.items():
            print(f"  {course_number} requires {', '.join(missing)}")

    analysis = analyze_map(courses, layout, edges, top_n=3)
    print(f"\nMost required courses:")
    for course_number, count in analysis['most_required_courses']:
        if count > 0:
            print(f"  {course_number}: required by {count} courses")

    if args.out:
        visualize_map(courses, layout, edges,
                      selected=args.select,
                      title=args.program,
                      save_path=args.out,
                      show=False,
                      edge_match=args.edge_match)


if __name__ == "__main__":
    main()
