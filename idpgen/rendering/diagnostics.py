"""Suggestions for unresolved template variables."""

from __future__ import annotations

MAX_SUGGESTIONS = 5
MAX_EXAMPLES = 10


def levenshtein_distance(s1: str, s2: str) -> int:
    """Minimum number of single-character insertions, deletions or
    substitutions turning ``s1`` into ``s2``."""
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    matrix = [[0] * (len(s2) + 1) for _ in range(len(s1) + 1)]
    for i in range(len(s1) + 1):
        matrix[i][0] = i
    for j in range(len(s2) + 1):
        matrix[0][j] = j

    for i, c1 in enumerate(s1):
        for j, c2 in enumerate(s2):
            cost = 0 if c1 == c2 else 1
            matrix[i + 1][j + 1] = min(
                matrix[i][j + 1] + 1,
                matrix[i + 1][j] + 1,
                matrix[i][j] + cost,
            )

    return matrix[len(s1)][len(s2)]


def is_similar(search: str, candidate: str) -> bool:
    """Typo heuristic used for "did you mean" suggestions (case-insensitive)."""
    search = search.lower()
    candidate = candidate.lower()

    if search == candidate:
        return True
    if search in candidate or candidate in search:
        return True
    if len(search) >= 3 and len(candidate) >= 3 and search[:3] == candidate[:3]:
        return True
    return levenshtein_distance(search, candidate) <= 2


def similar_paths(name: str, known_paths: list[str]) -> list[str]:
    """Up to five similar paths, sorted alphabetically."""
    matches = [path for path in known_paths if is_similar(name, path)]
    return sorted(matches[:MAX_SUGGESTIONS])


def suggest_similar_variables(name: str, known_paths: list[str]) -> tuple[str, list[str]]:
    """Build the suggestion text for an unresolved ``name``.

    Args:
        name: The unresolved variable name
        known_paths: Store paths in enumeration order

    Returns:
        (human readable suggestion, ranked list of similar paths)
    """
    if not known_paths:
        return (
            "No variables are available in the current context.\n"
            "Use the 'list-variables' command to see what variables are available.",
            [],
        )

    suggestions = similar_paths(name, known_paths)
    if not suggestions:
        sample = "\n".join(f"  - {path}" for path in known_paths[:MAX_EXAMPLES])
        return (
            f"Did you mean one of these variables?\n{sample}\n\n"
            "Use the 'list-variables' command to see all available variables.",
            [],
        )

    listing = "\n".join(f"  - {path}" for path in suggestions)
    return f"Did you mean one of these?\n{listing}", suggestions
