"""Data validation helpers.

ID conventions:
- set_id: slug of the file name (lowercase, hyphens, no accents)
- Built-in set ids are the JSON file stems under data/sets/

Functions:
- resolve_set_id(prefix, candidates) -> str: Resolve prefix to unique set_id
- parse_confidence(raw) -> int: Parse a typed confidence level
"""

from estudio.core.progress import InvalidConfidenceError, validate_confidence


class AmbiguousSetIdError(Exception):
    """Raised when a set_id prefix matches multiple sets."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f"Prefijo '{prefix}' es ambiguo. Candidatos:\n"
            + "\n".join(f"  - {c}" for c in candidates)
        )


class SetNotFoundError(Exception):
    """Raised when no set matches the given prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No se encontró ningún conjunto con prefijo '{prefix}'")


def resolve_set_id(prefix: str, candidates: list[str]) -> str:
    """Resolve a set_id prefix to a unique full set_id.

    Args:
        prefix: Partial or full set_id (e.g., "penal" or "penal-general")
        candidates: List of all available set_ids

    Returns:
        The unique matching set_id

    Raises:
        SetNotFoundError: If no candidates match the prefix
        AmbiguousSetIdError: If multiple candidates match the prefix
    """
    # Exact match first
    if prefix in candidates:
        return prefix

    matches = [c for c in candidates if c.startswith(prefix)]

    if len(matches) == 0:
        raise SetNotFoundError(prefix)
    elif len(matches) == 1:
        return matches[0]
    else:
        raise AmbiguousSetIdError(prefix, matches)


def parse_confidence(raw: str) -> int:
    """Parse a confidence level typed by the user.

    Raises:
        InvalidConfidenceError: If not an integer in 1-5
    """
    try:
        level = int(raw.strip())
    except ValueError:
        raise InvalidConfidenceError(raw) from None
    return validate_confidence(level)
