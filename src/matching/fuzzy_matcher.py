"""
Fuzzy String Matcher - scores receipt text against known names.

Combines two signals:
- Normalized edit distance over the whole string (catches typos and
  OCR character drift: "BANANNA" vs "Banana")
- Token-set overlap (catches reordering, extra words and receipt
  abbreviations: "KS ALMOND MILK" vs "Kirkland Signature Almond Milk")

Token overlap dominates for multi-word names, edit distance for single
tokens. All functions are pure: no mutation, no I/O.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from rapidfuzz.distance import Levenshtein

from src.utils.logging_config import logger
from src.utils.normalization import normalize_match_text

DEFAULT_THRESHOLD = 0.75
DEFAULT_TOKEN_WEIGHT = 0.6
SINGLE_TOKEN_WEIGHT = 0.2

# Two tokens count as the same word above this edit ratio ("chiken"/"chicken")
TOKEN_EDIT_RATIO = 0.8


def edit_ratio(a: str, b: str) -> float:
    """1 - levenshtein(a, b) / max(len(a), len(b)); 0.0 for empty input."""
    if not a or not b:
        return 0.0
    return 1.0 - Levenshtein.distance(a, b) / max(len(a), len(b))


def _is_abbreviation(short: str, word: str) -> bool:
    """
    Receipt-style abbreviation check: same first letter and the short
    form's letters appear in order ("mlk" -> "milk", "chkn" -> "chicken").
    """
    if len(short) < 2 or len(short) >= len(word) or short[0] != word[0]:
        return False
    remaining = iter(word)
    return all(ch in remaining for ch in short)


def _tokens_equivalent(q: str, c: str) -> bool:
    if q == c:
        return True
    if q.isdigit() or c.isdigit():
        return False
    return _is_abbreviation(q, c) or _is_abbreviation(c, q) or edit_ratio(q, c) >= TOKEN_EDIT_RATIO


def token_overlap(a: str, b: str) -> float:
    """
    |tokens(a) ∩ tokens(b)| / |tokens(a) ∪ tokens(b)| over normalized text.

    Besides identical tokens, the intersection counts initialisms spanning
    several words ("ks" covers "kirkland signature") and abbreviated or
    slightly misspelled words. Each candidate word is used at most once.
    """
    q_tokens = _unique(a.split())
    c_tokens = _unique(b.split())
    if not q_tokens or not c_tokens:
        return 0.0

    covered = [False] * len(c_tokens)
    matched_q = 0
    pending = []

    # Exact tokens first so fuzzier rules cannot steal their partners
    for q in q_tokens:
        if q in c_tokens and not covered[c_tokens.index(q)]:
            covered[c_tokens.index(q)] = True
            matched_q += 1
        else:
            pending.append(q)

    unmatched = []
    for q in pending:
        span = _initialism_span(q, c_tokens, covered)
        if span is None:
            unmatched.append(q)
            continue
        for idx in span:
            covered[idx] = True
        matched_q += 1

    for q in unmatched:
        for idx, c in enumerate(c_tokens):
            if not covered[idx] and _tokens_equivalent(q, c):
                covered[idx] = True
                matched_q += 1
                break

    union = len(q_tokens) + covered.count(False)
    return matched_q / union


def _initialism_span(q: str, c_tokens: List[str], covered: List[bool]) -> Optional[range]:
    """Finds a run of uncovered words whose initials spell q."""
    if len(q) < 2 or not q.isalpha():
        return None
    width = len(q)
    for start in range(len(c_tokens) - width + 1):
        span = range(start, start + width)
        if any(covered[i] for i in span):
            continue
        if ''.join(c_tokens[i][0] for i in span) == q:
            return span
    return None


def _unique(tokens: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for token in tokens:
        if token not in seen:
            seen.add(token)
            result.append(token)
    return result


class FuzzyMatcher:
    """
    Hybrid edit-distance / token-overlap matcher.

    Threshold and weighting are tunable; see ReconcilerSettings.
    """

    def __init__(self, threshold: float = DEFAULT_THRESHOLD, token_weight: float = DEFAULT_TOKEN_WEIGHT):
        self.threshold = threshold
        self.token_weight = token_weight

    @classmethod
    def from_settings(cls, settings) -> "FuzzyMatcher":
        return cls(threshold=settings.fuzzy_match_threshold, token_weight=settings.fuzzy_token_weight)

    def score(self, query: str, candidate: str) -> float:
        """Combined similarity in [0, 1] between two raw strings."""
        return self._score_normalized(normalize_match_text(query), normalize_match_text(candidate))

    def _score_normalized(self, a: str, b: str) -> float:
        if not a or not b:
            return 0.0
        if a == b:
            return 1.0
        weight = self.token_weight
        if ' ' not in a and ' ' not in b:
            weight = SINGLE_TOKEN_WEIGHT
        return weight * token_overlap(a, b) + (1.0 - weight) * edit_ratio(a, b)

    def best_match_with_score(
        self,
        query: str,
        candidates: Sequence[str],
        threshold: Optional[float] = None
    ) -> Optional[Tuple[str, float]]:
        """
        Returns (candidate, score) for the highest scoring candidate that
        meets the threshold, else None.

        Ties go to the shorter candidate (fewer extraneous tokens), then to
        the earlier one in input order.
        """
        if threshold is None:
            threshold = self.threshold

        norm_query = normalize_match_text(query)
        if not norm_query or not candidates:
            return None

        best = None
        best_key = None
        for position, candidate in enumerate(candidates):
            norm_candidate = normalize_match_text(candidate)
            score = self._score_normalized(norm_query, norm_candidate)
            key = (-score, len(norm_candidate), position)
            if best_key is None or key < best_key:
                best_key = key
                best = (candidate, score)

        if best is None or best[1] < threshold:
            logger.debug(f"No fuzzy match for '{query}' (best score: {best[1] if best else 0.0:.2f})")
            return None

        logger.debug(f"Fuzzy match: '{query}' → '{best[0]}' (score: {best[1]:.2f})")
        return best

    def best_match(
        self,
        query: str,
        candidates: Sequence[str],
        threshold: Optional[float] = None
    ) -> Optional[str]:
        result = self.best_match_with_score(query, candidates, threshold)
        return result[0] if result else None


def best_match(
    query: str,
    candidates: Sequence[str],
    threshold: float = DEFAULT_THRESHOLD
) -> Optional[str]:
    """
    Convenience function for one-off matching with default weighting.

    Example:
        >>> best_match("KS ALMOND MILK", ["Kirkland Signature Almond Milk", "Oat Milk"])
        'Kirkland Signature Almond Milk'
    """
    return FuzzyMatcher(threshold=threshold).best_match(query, candidates)
