"""
Detect SQL that touches the `recipes` table without scoping on `user_id`.

Queries like `SELECT count(*) FROM recipes` return data for all users,
which leaks across accounts. Every statement that reads or writes
`recipes` must mention `user_id` somewhere in the same SQL string.

Usage:
    python -m hauptgang.tools.scoped_queries [PATH ...]
"""

from __future__ import annotations

import argparse
import ast
import re
import sys
from dataclasses import dataclass
from pathlib import Path

MESSAGE = "Avoid unscoped `recipes` queries. Filter on user_id so data stays scoped to the current user."

RECIPES_TABLE_PATTERN = re.compile(r"\b(?:FROM|JOIN|UPDATE|INTO)\s+recipes\b", re.IGNORECASE)
USER_SCOPE_PATTERN = re.compile(r"\buser_id\b", re.IGNORECASE)
SKIPPED_DIRS = {"tests", "test", ".venv", "venv", "__pycache__"}


@dataclass(frozen=True)
class Finding:
    path: Path
    line: int
    message: str = MESSAGE

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: {self.message}"


def _string_literals(tree: ast.AST) -> list[tuple[int, str]]:
    """
    All string literals with their line numbers. f-strings contribute their
    constant parts joined together.
    """
    literals: list[tuple[int, str]] = []
    fstring_parts: set[int] = set()

    for node in ast.walk(tree):
        if isinstance(node, ast.JoinedStr):
            parts = []
            for value in node.values:
                if isinstance(value, ast.Constant) and isinstance(value.value, str):
                    parts.append(value.value)
                    fstring_parts.add(id(value))
                else:
                    parts.append(" ")
            literals.append((node.lineno, "".join(parts)))

    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str) and id(node) not in fstring_parts:
            literals.append((node.lineno, node.value))

    return literals


def is_unscoped_recipe_query(sql: str) -> bool:
    return bool(RECIPES_TABLE_PATTERN.search(sql)) and not USER_SCOPE_PATTERN.search(sql)


def check_source(source: str, path: Path) -> list[Finding]:
    tree = ast.parse(source, filename=str(path))
    findings = [
        Finding(path=path, line=line)
        for line, text in _string_literals(tree)
        if is_unscoped_recipe_query(text)
    ]
    return sorted(findings, key=lambda f: f.line)


def iter_python_files(paths: list[Path]) -> list[Path]:
    files: list[Path] = []
    for path in paths:
        if path.is_file() and path.suffix == ".py":
            files.append(path)
            continue
        for candidate in sorted(path.rglob("*.py")):
            # Only directories below the scanned root are skipped.
            skipped = SKIPPED_DIRS.intersection(candidate.relative_to(path).parts)
            if skipped or candidate.name.startswith("test_"):
                continue
            files.append(candidate)
    return files


def check_paths(paths: list[Path]) -> list[Finding]:
    findings: list[Finding] = []
    for file_path in iter_python_files(paths):
        findings.extend(check_source(file_path.read_text(encoding="utf-8"), file_path))
    return findings


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Report SQL on `recipes` that is not scoped by user_id.")
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        default=[Path(__file__).resolve().parents[1]],
        help="Files or directories to scan (default: the hauptgang package).",
    )
    args = parser.parse_args(argv)

    findings = check_paths(args.paths)
    for finding in findings:
        print(finding)
    return 1 if findings else 0


if __name__ == "__main__":
    sys.exit(main())
