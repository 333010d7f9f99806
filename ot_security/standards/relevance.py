#!/usr/bin/env python3
# CUI // SP-CTI
"""Tiered relevance scoring and snippet extraction for requirement search.

Scoring tiers (case-insensitive substring match):

    title        1.0
    description  0.7
    rationale    0.5
    otherwise    0.3

Snippets prefer the title verbatim; otherwise a window around the first
match in the description, then the rationale.
"""

TITLE_SCORE = 1.0
DESCRIPTION_SCORE = 0.7
RATIONALE_SCORE = 0.5
FALLBACK_SCORE = 0.3

SNIPPET_LENGTH = 150
CONTEXT_BEFORE = 50
CONTEXT_AFTER = 100
ELLIPSIS = "..."


def _contains(text, term):
    return bool(text) and term in text.lower()


def calculate_relevance(requirement, query):
    """Score a requirement against a query by the field the query hit first."""
    term = (query or "").lower()
    if _contains(requirement.title, term):
        return TITLE_SCORE
    if _contains(requirement.description, term):
        return DESCRIPTION_SCORE
    if _contains(requirement.rationale, term):
        return RATIONALE_SCORE
    return FALLBACK_SCORE


def extract_context(text, term, max_length=SNIPPET_LENGTH,
                    before=CONTEXT_BEFORE, after=CONTEXT_AFTER):
    """Cut a window of text around the first occurrence of a lowercase term.

    The window runs from ``before`` characters ahead of the match to ``after``
    characters past its end. An ellipsis marks each side that does not reach
    the text boundary. When the term is absent the first ``max_length``
    characters are returned.
    """
    index = text.lower().find(term)
    if index == -1:
        return text[:max_length] + (ELLIPSIS if len(text) > max_length else "")

    start = max(0, index - before)
    end = min(len(text), index + len(term) + after)

    snippet = text[start:end]
    if start > 0:
        snippet = ELLIPSIS + snippet
    if end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def extract_snippet(requirement, query, max_length=SNIPPET_LENGTH,
                    before=CONTEXT_BEFORE, after=CONTEXT_AFTER):
    """Pick the snippet that best shows why a requirement matched."""
    term = (query or "").lower()
    title = requirement.title

    if _contains(title, term):
        if len(title) > max_length:
            return title[:max_length] + ELLIPSIS
        return title

    for text in (requirement.description, requirement.rationale):
        if _contains(text, term):
            return extract_context(text, term, max_length, before, after)

    if title:
        return title
    if requirement.description:
        return requirement.description[:max_length]
    return ""
