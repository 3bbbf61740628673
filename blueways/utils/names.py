# path: blueways-api/blueways/utils/names.py

from __future__ import annotations

from typing import Callable, Iterable, List, Optional, Sequence, TypeVar
import logging
import re

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_QUALIFIER = "(private)"
DEFAULT_GENERIC_TOKENS = ("river", "creek", "fork")


def _exact_or_substring(name: str, candidate: str) -> bool:
    return candidate == name or name in candidate or candidate in name


def strip_qualifier(name: str, qualifier: str = DEFAULT_QUALIFIER) -> str:
    return re.sub(re.escape(qualifier), "", name, count=1, flags=re.IGNORECASE).strip()


def find_by_name(
    name: str,
    candidates: Iterable[T],
    key: Callable[[T], str] = lambda c: c.name,
    qualifier: str = DEFAULT_QUALIFIER,
) -> Optional[T]:
    """
    Fuzzy lookup of ``name`` among ``candidates``.

    Tiers, first one with a hit wins:
      1. exact, case-insensitive
      2. substring in either direction
      3. same as 1-2 after removing ``qualifier`` from both sides

    Within a tier the first candidate in iteration order wins.
    """
    needle = (name or "").strip().lower()
    # An empty name would substring-match every candidate.
    if not needle:
        return None

    pool = []
    for c in candidates:
        cand = (key(c) or "").strip().lower()
        pool.append((c, cand, strip_qualifier(cand, qualifier)))
    cleaned_needle = strip_qualifier(needle, qualifier)

    tiers = [
        ("exact", lambda cand, _: cand == needle),
        ("substring", lambda cand, _: bool(cand) and (needle in cand or cand in needle)),
        ("cleaned", lambda _, clean: bool(clean and cleaned_needle) and _exact_or_substring(cleaned_needle, clean)),
    ]
    for tier, matches in tiers:
        hits = [c for c, cand, clean in pool if matches(cand, clean)]
        if not hits:
            continue
        distinct = _distinct_names(hits, key)
        if len(distinct) > 1:
            logger.warning(
                "Ambiguous %s match for %r: %s; using %r",
                tier, name, ", ".join(repr(n) for n in distinct), key(hits[0]),
            )
        return hits[0]
    return None


def _distinct_names(hits: Sequence[T], key: Callable[[T], str]) -> List[str]:
    out: List[str] = []
    for h in hits:
        n = key(h)
        if n not in out:
            out.append(n)
    return out


def normalize_waterway_name(name: Optional[str], tokens: Sequence[str] = DEFAULT_GENERIC_TOKENS) -> str:
    """'Drakes  Creek' -> 'drakes'; generic water-body words are dropped."""
    if not name:
        return ""
    out = " ".join(name.lower().split())
    if tokens:
        pattern = r"\b(?:%s)\b" % "|".join(re.escape(t.lower()) for t in tokens)
        out = re.sub(pattern, "", out, flags=re.IGNORECASE)
    return " ".join(out.split())
