#!/usr/bin/env python3
"""
Course Map Catalog - file-backed program and department course data
"""

import re
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from coursemap_core import Course

# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

_COURSE_PAT = re.compile(r"([A-Z]{2,4})\s*(\d{2,4}[A-Z]?\d*)")


def norm_course_number(token: str) -> str:
    """Normalize course number to uppercase with single spaces ("comp250" -> "COMP 250")"""
    token = re.sub(r"\s+", " ", str(token).strip()).upper()
    match = _COURSE_PAT.fullmatch(token.replace("-", " "))
    if match:
        return f"{match.group(1)} {match.group(2)}"
    return token


def department_of(course_number: str) -> str:
    """Department token of a course number ("COMP 250" -> "COMP")"""
    return str(course_number).split(" ")[0]


def _clean_value(value):
    """Turn pandas missing markers into None"""
    if isinstance(value, (list, tuple)):
        return value
    if value is None or pd.isna(value):
        return None
    return value


def _clean_credits(value) -> float:
    value = _clean_value(value)
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _clean_prerequisites(value) -> tuple:
    value = _clean_value(value)
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(p).strip() for p in value if str(p).strip())


def course_from_record(record: Dict) -> Course:
    """Build a Course from a raw JSON/DataFrame record, tolerating missing fields"""
    return Course(
        course_number=str(record.get("course_number", "")).strip(),
        course_title=_clean_value(record.get("course_title")) or "",
        credits=_clean_credits(record.get("credits")),
        prerequisites=_clean_prerequisites(record.get("prerequisites")),
        link=_clean_value(record.get("link")) or "",
    )


# ============================================================================
# CATALOG CLASS
# ============================================================================

class CourseCatalog:
    """
    Catalog provider backed by a data directory:

        <data_path>/programs.json   [{"program": ..., "courses": [...]}, ...]
        <data_path>/<DEPT>.json     [{"course_number": ..., ...}, ...]

    Program records are merged with their department record, department
    fields winning. A department that cannot be read contributes nothing.
    """

    def __init__(self, data_path: Optional[str] = None):
        self.data_path: Optional[Path] = Path(data_path) if data_path else None
        self.programs_df: Optional[pd.DataFrame] = None
        self._departments: Dict[str, Optional[pd.DataFrame]] = {}

    def load_data(self, data_path: Optional[str] = None, verbose: bool = True) -> None:
        """
        Load the program list from the data directory.

        Department files are read lazily on first lookup.

        Raises:
            FileNotFoundError: If the directory or programs.json is missing
        """
        if data_path is not None:
            self.data_path = Path(data_path)
        if self.data_path is None or not self.data_path.is_dir():
            raise FileNotFoundError(f"Catalog directory not found: {self.data_path}")

        programs_path = self.data_path / "programs.json"
        if verbose:
            print(f"Loading programs from {programs_path}...")
        if not programs_path.exists():
            raise FileNotFoundError(f"Programs file not found: {programs_path}")

        programs_df = pd.read_json(programs_path, orient="records")
        if "program" not in programs_df.columns:
            raise ValueError(f"Programs file has no 'program' column: {programs_path}")
        if "courses" not in programs_df.columns:
            programs_df["courses"] = [[] for _ in range(len(programs_df))]

        self.programs_df = programs_df
        self._departments = {}

        if verbose:
            total = sum(len(c) for c in programs_df["courses"] if isinstance(c, list))
            print(f"Loaded {len(programs_df)} programs, {total} program courses")

    @property
    def is_loaded(self) -> bool:
        return self.programs_df is not None

    def _require_loaded(self):
        if self.programs_df is None:
            raise RuntimeError("Catalog not loaded. Call load_data() first.")

    def get_program_list(self) -> List[str]:
        """Program identifiers in file order, for the program selector"""
        self._require_loaded()
        return [str(p) for p in self.programs_df["program"]]

    def lookup_department(self, code: str) -> Optional[List[Course]]:
        """
        Get every course of a department.

        Args:
            code: Department code (e.g., "COMP")

        Returns:
            List of Course, or None if the department file is missing or unreadable
        """
        df = self._department_df(code)
        if df is None:
            return None
        return [course_from_record(row) for row in df.to_dict("records")]

    def _department_df(self, code: str) -> Optional[pd.DataFrame]:
        code = str(code).strip().upper()
        if code in self._departments:
            return self._departments[code]

        df = None
        if self.data_path is not None and re.fullmatch(r"[A-Z]{1,6}", code):
            path = self.data_path / f"{code}.json"
            try:
                df = pd.read_json(path, orient="records")
            except (OSError, ValueError):
                df = None
            if df is not None and "course_number" not in df.columns:
                df = None

        self._departments[code] = df
        return df

    def get_course_details(self, course_number: str) -> Optional[Dict]:
        """Department record for a course, or None when it cannot be found"""
        df = self._department_df(department_of(course_number))
        if df is None:
            return None

        match = df[df["course_number"].astype(str).str.strip() == course_number]
        if match.empty:
            return None
        return {k: v for k, v in match.iloc[0].to_dict().items() if _clean_value(v) is not None}

    def get_program_courses(self, program: str) -> List[Course]:
        """
        Get the ordered course list of a program, merged with department details.

        Raises:
            RuntimeError: If data not loaded
            ValueError: If program not found
        """
        self._require_loaded()

        match = self.programs_df[self.programs_df["program"].astype(str) == str(program)]
        if match.empty:
            raise ValueError(f"Program not found: {program}")

        raw_courses = match.iloc[0]["courses"]
        if not isinstance(raw_courses, list):
            return []

        courses = []
        for record in raw_courses:
            record = dict(record)
            details = self.get_course_details(str(record.get("course_number", "")).strip())
            if details:
                record.update(details)
            courses.append(course_from_record(record))
        return courses


__all__ = [
    'CourseCatalog',
    'course_from_record',
    'department_of',
    'norm_course_number',
]
