# agente_gateway/modules/query/fuzzy.py

import unicodedata
from typing import Optional, Sequence

from rapidfuzz import fuzz

from agente_gateway.models.query import FuzzyMatchResult


def strip_diacritics(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def normalize_text(text: str, strip_accents: bool = False) -> str:
    folded = str(text).strip().casefold()
    return strip_diacritics(folded) if strip_accents else folded


def similarity(a: str, b: str, strip_accents: bool = False) -> float:
    """Normalized Indel similarity in [0, 1] after case folding."""
    left = normalize_text(a, strip_accents)
    right = normalize_text(b, strip_accents)
    if not left and not right:
        return 1.0
    return fuzz.ratio(left, right) / 100.0


def find_best_match(
    target: str,
    candidates: Sequence[str],
    threshold: float,
    strip_accents: bool = False,
    sources: Optional[Sequence[Optional[str]]] = None,
) -> Optional[FuzzyMatchResult]:
    """Best candidate scoring >= threshold, or None.

    Ties go to the first candidate reaching the maximum score. ``sources``
    is parallel to ``candidates`` and names the column each one came from.
    """
    if target is None or not str(target).strip():
        return None

    best_index = -1
    best_score = -1.0
    for index, candidate in enumerate(candidates):
        if candidate is None:
            continue
        score = similarity(str(target), str(candidate), strip_accents)
        if score > best_score:
            best_index, best_score = index, score

    if best_index < 0 or best_score < threshold:
        return None

    return FuzzyMatchResult(
        matched_value=str(candidates[best_index]),
        similarity_score=min(max(best_score, 0.0), 1.0),
        source_column=sources[best_index] if sources is not None else None,
    )
