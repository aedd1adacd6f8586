"""Employee name search with tiered relevance scoring and typo tolerance."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import NamedTuple, Protocol

from rapidfuzz.distance import Levenshtein

from app.models.employee import Employee
from app.services.employee_service import employee_service

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 3

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class SearchWeights:
    exact_match: int = 100
    starts_with: int = 80
    contains: int = 60
    fuzzy: int = 40
    # points lost per edit
    fuzzy_step: int = 10
    # max edit distance, also max word length difference
    fuzzy_threshold: int = 3
    min_fuzzy_length: int = 3
    multi_term_bonus: int = 20
    min_term_length: int = 2


DEFAULT_WEIGHTS = SearchWeights()


class EmployeeStore(Protocol):
    async def get_active_employees(self) -> list[Employee]: ...


@dataclass(frozen=True)
class EmployeeText:
    """Lowercased searchable text of one employee."""

    full_name: str
    email: str
    name_words: tuple[str, ...]

    @classmethod
    def from_employee(cls, employee: Employee) -> EmployeeText:
        full_name = employee.full_name.lower()
        return cls(
            full_name=full_name,
            email=(employee.email or "").lower(),
            name_words=tuple(full_name.split(" ")),
        )


class MatchRule(NamedTuple):
    name: str
    matches: Callable[[str, EmployeeText], bool]
    weight: str


# Evaluated in order, first match wins. Fuzzy matching runs after all of these.
MATCH_RULES: tuple[MatchRule, ...] = (
    MatchRule("full_name_exact", lambda term, text: text.full_name == term, "exact_match"),
    MatchRule("word_exact", lambda term, text: term in text.name_words, "exact_match"),
    MatchRule("name_starts_with", lambda term, text: text.full_name.startswith(term), "starts_with"),
    MatchRule(
        "word_starts_with",
        lambda term, text: any(word.startswith(term) for word in text.name_words),
        "starts_with",
    ),
    MatchRule("name_contains", lambda term, text: term in text.full_name, "contains"),
    MatchRule("email_contains", lambda term, text: bool(text.email) and term in text.email, "contains"),
)


def extract_search_terms(query: str, min_length: int = DEFAULT_WEIGHTS.min_term_length) -> list[str]:
    """Split a raw query into lowercase terms, dropping terms shorter than ``min_length``.

    Order and duplicates are preserved.
    """
    normalized = _WHITESPACE_RE.sub(" ", query.strip())
    return [word.lower() for word in normalized.split(" ") if len(word) >= min_length]


def levenshtein(a: str, b: str) -> int:
    return Levenshtein.distance(a, b)


def fuzzy_score(term: str, name_words: Iterable[str], weights: SearchWeights = DEFAULT_WEIGHTS) -> int:
    best = 0
    for word in name_words:
        if abs(len(term) - len(word)) > weights.fuzzy_threshold:
            continue

        distance = levenshtein(term, word)
        if 0 < distance <= weights.fuzzy_threshold:
            best = max(best, weights.fuzzy - distance * weights.fuzzy_step)

    return best


def term_score(term: str, text: EmployeeText, weights: SearchWeights = DEFAULT_WEIGHTS) -> int:
    for rule in MATCH_RULES:
        if rule.matches(term, text):
            return getattr(weights, rule.weight)

    if len(term) >= weights.min_fuzzy_length:
        return fuzzy_score(term, text.name_words, weights)

    return 0


def count_matched_terms(text: EmployeeText, terms: Iterable[str]) -> int:
    """Count terms found as a plain substring of the name or email.

    Only substring hits count here, not prefix or fuzzy tiers.
    """
    return sum(1 for term in terms if term in text.full_name or term in text.email)


def calculate_relevance_score(
    employee: Employee,
    terms: Sequence[str],
    weights: SearchWeights = DEFAULT_WEIGHTS,
) -> int:
    text = EmployeeText.from_employee(employee)
    total = sum(term_score(term, text, weights) for term in terms)

    matched = count_matched_terms(text, terms)
    if matched > 1:
        total += (matched - 1) * weights.multi_term_bonus

    return total


def score_employees(
    employees: Iterable[Employee],
    terms: Sequence[str],
    weights: SearchWeights = DEFAULT_WEIGHTS,
) -> list[tuple[Employee, int]]:
    return [(employee, calculate_relevance_score(employee, terms, weights)) for employee in employees]


def rank_employees(
    employees: Iterable[Employee],
    terms: Sequence[str],
    limit: int = DEFAULT_LIMIT,
    weights: SearchWeights = DEFAULT_WEIGHTS,
) -> list[Employee]:
    """Return the ``limit`` best scoring employees, highest score first.

    Employees scoring zero are dropped. Equal scores keep their input order.
    """
    if limit <= 0 or not terms:
        return []

    scored = [item for item in score_employees(employees, terms, weights) if item[1] > 0]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [employee for employee, _score in scored[:limit]]


class EmployeeSearchService:
    def __init__(self, store: EmployeeStore, weights: SearchWeights = DEFAULT_WEIGHTS) -> None:
        self.store = store
        self.weights = weights

    async def search(self, query: str, limit: int = DEFAULT_LIMIT) -> list[Employee]:
        if not query.strip():
            return []

        terms = extract_search_terms(query, self.weights.min_term_length)
        if not terms:
            return []

        employees = await self.store.get_active_employees()
        # inactive employees never reach the ranker
        candidates = [employee for employee in employees if employee.is_active]

        results = rank_employees(candidates, terms, limit, self.weights)
        logger.debug(
            "Employee search: %d terms, %d candidates, %d results",
            len(terms),
            len(candidates),
            len(results),
        )
        return results


employee_search_service = EmployeeSearchService(employee_service)
