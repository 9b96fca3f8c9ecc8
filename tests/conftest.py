import json
import os
import sys

import pytest

# Add api/ to path so tests can import the course map modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

# Add the repo root so tests can import the scripts directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))


PROGRAMS = [
    {
        "program": "Test Major",
        "courses": [
            {"course_number": "COMP 202", "course_title": "Programming", "credits": 3},
            {"course_number": "COMP 250", "course_title": "Intro CS", "credits": 3},
            {"course_number": "COMP 251", "course_title": "Algorithms", "credits": 3},
            {"course_number": "MATH 240", "course_title": "Discrete", "credits": 3},
            {"course_number": "COMP 302", "course_title": "Languages", "credits": 3},
        ],
    },
    {
        "program": "Scenario",
        "courses": [
            {"course_number": "A 100", "course_title": "First", "credits": 3, "prerequisites": []},
            {"course_number": "A 200", "course_title": "Second", "credits": 3, "prerequisites": ["A 100"]},
            {"course_number": "A 300", "course_title": "Third", "credits": 3,
             "prerequisites": ["A 200", "A 999"], "link": "https://example.edu/a-300"},
        ],
    },
    {"program": "Empty", "courses": []},
]

COMP = [
    {"course_number": "COMP 202", "course_title": "Foundations of Programming", "credits": 3,
     "prerequisites": [], "link": "https://example.edu/comp-202"},
    {"course_number": "COMP 250", "course_title": "Introduction to Computer Science", "credits": 3,
     "prerequisites": ["COMP 202"], "link": "https://example.edu/comp-250"},
    {"course_number": "COMP 251", "course_title": "Algorithms and Data Structures", "credits": 3,
     "prerequisites": ["COMP 250", "MATH 240"], "link": "https://example.edu/comp-251"},
    {"course_number": "COMP 302", "course_title": "Programming Languages", "credits": 3,
     "prerequisites": ["COMP 250", "MATH 240", "COMP 360"], "link": "https://example.edu/comp-302"},
]


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "programs.json").write_text(json.dumps(PROGRAMS), encoding="utf-8")
    (tmp_path / "COMP.json").write_text(json.dumps(COMP), encoding="utf-8")
    # no MATH.json; A.json is unreadable
    (tmp_path / "A.json").write_text("{not json", encoding="utf-8")
    return tmp_path


@pytest.fixture
def catalog(data_dir):
    from coursemap_catalog import CourseCatalog
    c = CourseCatalog(str(data_dir))
    c.load_data(verbose=False)
    return c


@pytest.fixture(autouse=True)
def _default_edge_match(monkeypatch):
    # a developer's .env or shell must not change highlight expectations
    monkeypatch.delenv("COURSEMAP_EDGE_MATCH", raising=False)
