#!/usr/bin/env python3

import argparse
import os
import sys
from pathlib import Path

import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), "api"))

from coursemap_catalog import norm_course_number


#basic cleaning for department files
def clean_department_data(path: str) -> pd.DataFrame:

    df = pd.read_json(path, orient="records")

    #course numbers as "DEPT 123"
    if "course_number" in df.columns:
        df["course_number"] = df["course_number"].apply(norm_course_number)
        df = df.drop_duplicates(subset=["course_number"], keep="first")

    #prerequisite lists use the same format, missing -> []
    if "prerequisites" in df.columns:
        df["prerequisites"] = df["prerequisites"].apply(
            lambda ps: [norm_course_number(p) for p in ps] if isinstance(ps, list) else []
        )

    #make sure credits are numeric
    if "credits" in df.columns:
        df["credits"] = pd.to_numeric(df["credits"], errors="coerce").fillna(0)

    #strip extra spaces from titles
    if "course_title" in df.columns:
        df["course_title"] = df["course_title"].fillna("").astype(str).str.strip()

    return df.reset_index(drop=True)


def main():
    ap = argparse.ArgumentParser(description="Normalize department course JSON files")
    ap.add_argument("files", nargs="+", help="Department JSON files (e.g. data/COMP.json)")
    ap.add_argument("--out-dir", help="Write cleaned files here instead of in place")

    args = ap.parse_args()

    for path in args.files:
        df = clean_department_data(path)
        out_path = Path(args.out_dir) / Path(path).name if args.out_dir else Path(path)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_json(out_path, orient="records", indent=2)
        print(f"Cleaned {path}: {len(df)} courses -> {out_path}")


if __name__ == "__main__":
    main()
