"""Source filtering and link classification for CCL announcement pages.

Classification is an ordered table of ``(bucket, predicate)`` pairs. Every
predicate receives the lower-cased absolute href and lower-cased visible
text of one anchor; an anchor may land in several buckets. Site chrome
links (chess.com register/login) are dropped before any rule runs.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Sequence, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from ccl_pipeline.ingest.schemas import CandidatePage

logger = logging.getLogger(__name__)

# Precision over recall: a citation mentioning these is never a CCL source.
FALSE_POSITIVE_TOKENS = ("india",)

EXCLUDED_HREF_TOKENS = ("chess.com/register", "chess.com/login")

DRIVE_HOST = "drive.google.com"
DOCS_HOST = "docs.google.com"
FORMS_SUBPATH = "/forms/"
SHORT_FORM_HOSTS = ("forms.gle",)
PLATFORM_HOSTS = ("pcl.gg",)
FAIRPLAY_TOKEN = "fairplay-agreement"
FAIRPLAY_DENY_TOKENS = ("user-agreement", "/cheating", "legal")

Predicate = Callable[[str, str], bool]


def _is_document(href: str, text: str) -> bool:
    return (
        "pdf" in text
        or ".pdf" in href
        or DRIVE_HOST in href
        or (DOCS_HOST in href and FORMS_SUBPATH not in href)
    )


def _is_instructions(href: str, text: str) -> bool:
    return "instruction" in text


def _is_registration(href: str, text: str) -> bool:
    if any(word in text for word in ("registration", "register", "sign up")):
        return True
    return any(host in href for host in SHORT_FORM_HOSTS) or f"{DOCS_HOST}/forms" in href


def _is_fair_play(href: str, text: str) -> bool:
    if FAIRPLAY_TOKEN in href:
        return True
    return "fair play" in text and not any(tok in href for tok in FAIRPLAY_DENY_TOKENS)


def _is_platform(href: str, text: str) -> bool:
    return any(host in href for host in PLATFORM_HOSTS)


CLASSIFICATION_RULES: Sequence[Tuple[str, Predicate]] = (
    ("pdf", _is_document),
    ("instructions", _is_instructions),
    ("registration", _is_registration),
    ("fairPlay", _is_fair_play),
    ("platform", _is_platform),
)


def source_is_relevant(url: str, season: str, year) -> bool:
    """Keep a citation only if it names the year and season and no known false positive."""
    lowered = url.lower()
    return (
        str(year) in lowered
        and season.lower() in lowered
        and not any(tok in lowered for tok in FALSE_POSITIVE_TOKENS)
    )


def filter_sources(urls: Iterable[str], season: str, year) -> List[str]:
    kept = []
    for url in urls:
        if source_is_relevant(url, season, year):
            kept.append(url)
        else:
            logger.info(f"[discover] dropping citation {url}")
    return kept


def is_excluded(href: str) -> bool:
    lowered = href.lower()
    return any(tok in lowered for tok in EXCLUDED_HREF_TOKENS)


def classify_anchor(href: str, text: str) -> List[str]:
    """Return every bucket the anchor belongs to (empty when excluded)."""
    if is_excluded(href):
        return []
    h, t = href.lower(), text.lower()
    return [bucket for bucket, predicate in CLASSIFICATION_RULES if predicate(h, t)]


def iter_anchors(html: str, base_url: str = "") -> List[Tuple[str, str]]:
    soup = BeautifulSoup(html, "html.parser")
    anchors = []
    for a in soup.find_all("a"):
        raw = (a.get("href") or "").strip()
        if not raw or raw.startswith("#"):
            continue
        try:
            href = urljoin(base_url, raw) if base_url else raw
        except ValueError as e:
            logger.warning(f"[discover] skipping malformed href {raw!r} on {base_url or 'page'}: {e}")
            continue
        if not href.lower().startswith(("http://", "https://")):
            continue
        anchors.append((href, a.get_text(" ", strip=True)))
    return anchors


def classify_page(url: str, html: str) -> CandidatePage:
    page = CandidatePage(url=url)
    for href, text in iter_anchors(html, url):
        for bucket in classify_anchor(href, text):
            page.add(bucket, href)
    return page


__all__ = [
    'CLASSIFICATION_RULES', 'source_is_relevant', 'filter_sources', 'is_excluded',
    'classify_anchor', 'iter_anchors', 'classify_page',
]
