"""Profile-context scoring strategies.

Compares a user's free-text career narrative with a job. The interface is
async so an embedding-backed strategy can slot in later; the keyword strategy
does no I/O.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod

from jobrank.log import get_logger
from jobrank.models import Job, UserJobProfile

log = get_logger(__name__)

# Resume boilerplate that would otherwise inflate overlap.
CONTEXT_STOPWORDS: frozenset[str] = frozenset({
    "specializing", "seeking", "building", "driving", "involve", "involves",
    "focus", "focused", "outcomes", "environments", "solutions", "innovative",
    "ambiguous", "measurable", "experience", "working", "looking", "strong",
    "excellent", "great", "passionate", "dedicated", "motivated", "team",
    "company", "position", "role", "opportunity", "career", "professional",
    "skills", "ability", "responsibilities", "requirements", "qualifications",
})

_FUNCTION_WORDS: frozenset[str] = frozenset({
    "the", "this", "that", "with", "from", "have", "been", "will",
    "would", "should", "could", "their", "there", "which", "where", "about",
})

ROLE_TERMS: tuple[str, ...] = (
    "product", "manager", "director", "senior", "lead", "principal", "chief", "head",
)

_DOMAIN_RE = re.compile(
    r"\b(?:ai|edtech|saas|b2b|platform|marketplace|mobile|web|cloud|data|analytics|ml|machine learning)\b",
    re.IGNORECASE,
)
_STRIP_CHARS = ".,;:!?()[]{}\"'"
_MAX_CONTEXT_WORDS = 20
_MIN_WORD_LEN = 5
IMPORTANT_BONUS = 2


class ContextStrategy(ABC):
    name: str = ""

    @abstractmethod
    async def score(self, job: Job, profile: UserJobProfile) -> float:
        """Return similarity in [0, 1]."""


class KeywordContextStrategy(ContextStrategy):
    """Keyword overlap with double weight for role and domain terms."""

    name = "keyword"

    async def score(self, job: Job, profile: UserJobProfile) -> float:
        return keyword_similarity(profile.profile_context_text or "", job)


def extract_important_terms(context: str) -> list[str]:
    text = context.lower()
    terms: list[str] = [w for w in ROLE_TERMS if w in text]
    for m in _DOMAIN_RE.findall(text):
        term = m.lower()
        if term not in terms:
            terms.append(term)
    return terms


def extract_context_words(context: str) -> list[str]:
    words: list[str] = []
    for raw in context.lower().split():
        w = raw.strip(_STRIP_CHARS)
        if len(w) < _MIN_WORD_LEN or w in CONTEXT_STOPWORDS or w in _FUNCTION_WORDS:
            continue
        words.append(w)
    return words[:_MAX_CONTEXT_WORDS]


def keyword_similarity(context: str, job: Job) -> float:
    if not context.strip():
        return 0.0
    job_text = f"{job.display_title} {job.description_text}".lower()

    important = extract_important_terms(context)
    terms = list(dict.fromkeys(important + extract_context_words(context)))
    if not terms:
        return 0.0

    important_set = set(important)
    matched = 0
    bonus = 0
    for term in terms:
        if term in job_text:
            matched += 1
            if term in important_set:
                bonus += IMPORTANT_BONUS
    max_weight = len(terms) + IMPORTANT_BONUS * len(important)
    score = (matched + bonus) / max_weight
    log.debug("Context similarity for job %s: %d/%d terms, %.2f", job.id, matched, len(terms), score)
    return score


STRATEGIES: dict[str, type[ContextStrategy]] = {
    KeywordContextStrategy.name: KeywordContextStrategy,
}


def get_context_strategy(name: str = "keyword") -> ContextStrategy:
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"unknown context strategy {name!r}; choose from {sorted(STRATEGIES)}") from None
