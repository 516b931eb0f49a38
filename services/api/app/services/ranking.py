"""Relevance ranking for record search.

Ranking logic:
1. Base score from the name, first matching tier only:
   exact (1000) > prefix (500) > substring (250) > all terms (100)
   > 30 per term found in the name
2. Boosts stack on top of the base score:
   description head (+75), occupation (+50), category (+40), tag (+35),
   likes capped at +50, and 10x the text-index score when present
3. Stable sort by total score DESC (ties keep input order)

Boosts can lift a lower-tier record above a higher-tier one; e.g. a
substring match (250) with every boost outranks a plain prefix match (500).
That arithmetic is intentional and covered by tests.

Pure CPU work: callers assemble the candidate snapshot first, then rank it
in one synchronous pass.
"""

from dataclasses import dataclass

from app.schemas import RecordOut

# Base tiers
SCORE_EXACT_NAME = 1000
SCORE_NAME_PREFIX = 500
SCORE_NAME_SUBSTRING = 250
SCORE_ALL_TERMS = 100
SCORE_PER_TERM = 30

# Boosts
BOOST_DESCRIPTION = 75
BOOST_OCCUPATION = 50
BOOST_CATEGORY = 40
BOOST_TAG = 35
LIKES_BOOST_CAP = 50
TEXT_SCORE_WEIGHT = 10

DESCRIPTION_HEAD_CHARS = 200


@dataclass
class SearchCandidate:
    """A record snapshot plus scoring state, dropped after ranking."""

    record: RecordOut
    text_score: float | None = None
    score: float = 0.0


def _name_score(name: str, query: str, terms: list[str]) -> int:
    if name == query:
        return SCORE_EXACT_NAME
    if name.startswith(query):
        return SCORE_NAME_PREFIX
    if query in name:
        return SCORE_NAME_SUBSTRING

    found = sum(1 for term in terms if term in name)
    if terms and found == len(terms):
        return SCORE_ALL_TERMS
    return SCORE_PER_TERM * found


def _any_contains(values: list[str] | None, query: str) -> bool:
    return any(query in value.lower() for value in values or [] if value)


def score_candidate(query: str, candidate: SearchCandidate) -> float:
    """Compute the relevance score of one candidate.

    Args:
        query: Normalized (trimmed, lower-cased) query.
        candidate: Candidate to score.

    Returns:
        Base tier score plus every applicable boost.
    """
    record = candidate.record
    terms = query.split()

    score: float = _name_score((record.name or "").lower(), query, terms)

    description_head = (record.description or "")[:DESCRIPTION_HEAD_CHARS].lower()
    if query in description_head:
        score += BOOST_DESCRIPTION
    if _any_contains(record.occupation, query):
        score += BOOST_OCCUPATION
    if _any_contains(record.categories, query):
        score += BOOST_CATEGORY
    if _any_contains(record.tags, query):
        score += BOOST_TAG

    score += min(record.likes or 0, LIKES_BOOST_CAP)

    if candidate.text_score is not None:
        score += TEXT_SCORE_WEIGHT * candidate.text_score

    return score


def rank_candidates(query: str, candidates: list[SearchCandidate]) -> list[RecordOut]:
    """Score and order candidates for a query.

    Args:
        query: Normalized query. Must be non-empty (validated by the caller).
        candidates: Candidates deduplicated by record id.

    Returns:
        The candidates' records, best first. Same length as the input.
    """
    for candidate in candidates:
        candidate.score = score_candidate(query, candidate)

    ranked = sorted(candidates, key=lambda c: -c.score)
    return [candidate.record for candidate in ranked]
