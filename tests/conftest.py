import json
import os
import sys
import tempfile

import pytest

# Ensure the `src/` directory is on sys.path so we can import `ccl_pipeline` package
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(PROJECT_ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

# Keep the app's default file stores out of the repo and disable auth before config is imported
_TMP_ROOT = tempfile.mkdtemp(prefix="ccl_tests_")
os.environ.setdefault("STORE_PATH", os.path.join(_TMP_ROOT, "tournaments"))
os.environ.setdefault("BLOB_ROOT", os.path.join(_TMP_ROOT, "blobs"))
os.environ["API_KEY"] = ""
os.environ["SENTRY_DSN"] = ""

from ccl_pipeline import errors  # noqa: E402
from ccl_pipeline.ingest.store import InMemoryBlobStore, InMemoryDocumentStore  # noqa: E402
from ccl_pipeline.pipeline import PipelineContext  # noqa: E402
from ccl_pipeline.rag.pipeline import RulebookIndexRegistry  # noqa: E402
from ccl_pipeline.scraper.search import SearchResult  # noqa: E402

SPRING_2026_URL = "https://www.chess.com/club/collegiate-chess-league/2026-spring-season"

SPRING_2026_PAGE = """
<html><body>
  <a href="https://drive.google.com/file/d/XYZ789/view">Rules</a>
  <a href="https://forms.gle/abc">Sign up here</a>
  <a href="https://www.chess.com/legal/fairplay-agreement">Agreement</a>
  <a href="https://www.chess.com/register">Join chess.com</a>
  <a href="https://pcl.gg/ccl">Team portal</a>
  <a href="/news/view/ccl-player-instructions">Player Instructions</a>
</body></html>
"""

RULEBOOK_TEXT = """%PDF-1.4
Collegiate Chess League Spring 2026 Rules.

Section 1. Eligibility. Players need a minimum account age of 30 days and must have completed at least 25 rated blitz games before roster lock.

Section 2. Schedule. Registration opens on January 5 and closes on January 20. Regular season rounds are played on Saturdays.

Section 3. Playoffs. Division 1 plays quarterfinals, semifinals and a final. Division 2+ adds a first round.

Section 4. Fair play. Every player must accept the fair play agreement. Engine use results in disqualification.
"""

TOURNAMENT_INFO = {
    "logistics": [
        {"title": "Registration Opens", "date": "2026-01-05 09:00 AM PT"},
        {"title": "Registration Closes", "date": "2026-01-20 11:59 PM PT"},
        {"title": "Schedule Release", "date": "2026-01-25 12:00 PM PT"},
        {"title": "Roster Lock", "date": "2026-02-01 11:59 PM PT"},
    ],
    "regular_season": [
        {"title": "Regular Season Round 1", "date": "2026-02-07 10:00 AM PT"},
    ],
    "divisions": [
        {"division": 1, "playoff_rounds": [
            {"title": "Quarterfinals", "date": "2026-04-04 10:00 AM PT"},
            {"title": "Semifinals", "date": "2026-04-11 10:00 AM PT"},
            {"title": "3rd Place/Final", "date": "2026-04-18 10:00 AM PT"},
        ]},
        {"division": "2+", "playoff_rounds": [
            {"title": "Round 1", "date": "2026-03-28 10:00 AM PT"},
        ]},
    ],
    "requirements": {"minimum_account_age": 30, "minimum_games": 25},
}


class FakeSearch:
    def __init__(self, citations=None, answer="CCL Spring 2026 runs from February to April.", error=None):
        self.citations = list(citations or [])
        self.answer = answer
        self.error = error
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return SearchResult(answer=self.answer, citations=list(self.citations))


class FakeFetcher:
    """Serves canned pages/binaries and reads back blobs from an InMemoryBlobStore."""

    def __init__(self, pages=None, binaries=None, blobs=None):
        self.pages = dict(pages or {})
        self.binaries = dict(binaries or {})
        self.blobs = blobs
        self.requests = []

    def get_text(self, url):
        self.requests.append(url)
        if url not in self.pages:
            raise errors.FetchError(f"HTTP 404 from {url}", url=url, status=404)
        return self.pages[url]

    def get_bytes(self, url):
        self.requests.append(url)
        if self.blobs is not None:
            data = self.blobs.read_url(url)
            if data is not None:
                return data
        if url not in self.binaries:
            raise errors.FetchError(f"HTTP 404 from {url}", url=url, status=404)
        return self.binaries[url]


class FakeLLM:
    def __init__(self, response=None, error=None):
        self.response = response if response is not None else json.dumps(TOURNAMENT_INFO)
        self.error = error
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class FakeTextExtractor:
    def extract_text(self, data):
        if b"%PDF" not in data[:1024]:
            raise errors.DocumentTextError("Archived document is not a PDF")
        return data.decode("utf-8", "ignore")


@pytest.fixture
def blobs():
    return InMemoryBlobStore()


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def search():
    return FakeSearch(citations=[SPRING_2026_URL])


@pytest.fixture
def fetcher(blobs):
    return FakeFetcher(
        pages={SPRING_2026_URL: SPRING_2026_PAGE},
        binaries={"https://drive.google.com/uc?export=download&id=XYZ789": RULEBOOK_TEXT.encode("utf-8")},
        blobs=blobs,
    )


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def ctx(store, blobs, search, fetcher, llm):
    return PipelineContext(
        store=store,
        blobs=blobs,
        search=search,
        fetcher=fetcher,
        llm=llm,
        text_extractor=FakeTextExtractor(),
    )


@pytest.fixture
def registry():
    return RulebookIndexRegistry(chunk_size=200, chunk_overlap=40)


@pytest.fixture
def client(ctx, registry, monkeypatch):
    from ccl_pipeline.api import state
    from ccl_pipeline.api.extensions import limiter
    from ccl_pipeline.api.server import app

    monkeypatch.setattr(state, "pipeline", ctx)
    monkeypatch.setattr(state, "rulebook_indexes", registry)
    monkeypatch.setattr(limiter, "enabled", False)
    with app.test_client() as c:
        yield c


def seed_record(store, season="spring", year=2026, **fields):
    doc = {
        "season": season,
        "year": year,
        "source": fields.pop("source", SPRING_2026_URL),
        "documentLink": fields.pop("documentLink", "https://drive.google.com/file/d/XYZ789/view"),
        "archivedDocumentUrl": "",
        "instructionsLink": "",
        "registrationLink": "",
        "fairPlayLink": "",
        "platformLink": "",
        "extractedInfo": None,
    }
    doc.update(fields)
    return store.insert(doc)
