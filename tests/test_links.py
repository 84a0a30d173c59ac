from ccl_pipeline.scraper.links import (
    classify_anchor,
    classify_page,
    filter_sources,
    iter_anchors,
    source_is_relevant,
)
from ccl_pipeline.scraper.search import build_search_query

from conftest import SPRING_2026_PAGE, SPRING_2026_URL


def test_search_query_names_league_season_and_site():
    assert build_search_query("spring", 2026) == "Collegiate Chess League Spring 2026 site:chess.com"
    assert build_search_query("fall", 2025, site="example.org").endswith("site:example.org")


def test_filter_sources_keeps_only_matching_season_and_year():
    urls = [
        "https://www.chess.com/news/view/ccl-2026-spring-season",
        "https://www.chess.com/news/view/india-ccl-2026-spring",
        "https://www.chess.com/news/view/ccl-2025-spring-season",
        "https://www.chess.com/news/view/ccl-2026-fall-season",
    ]
    assert filter_sources(urls, "spring", 2026) == ["https://www.chess.com/news/view/ccl-2026-spring-season"]


def test_source_relevance_is_case_insensitive():
    assert source_is_relevant("https://www.chess.com/CCL-Spring-2026", "spring", 2026)
    assert not source_is_relevant("https://www.chess.com/CCL-INDIA-Spring-2026", "spring", 2026)


def test_drive_link_is_a_document():
    assert classify_anchor("https://drive.google.com/file/d/XYZ789/view", "Rules") == ["pdf"]


def test_pdf_text_or_extension_is_a_document():
    assert "pdf" in classify_anchor("https://example.org/rules", "Download PDF")
    assert "pdf" in classify_anchor("https://example.org/ccl-rules.pdf", "rules")


def test_google_form_is_registration_not_document():
    buckets = classify_anchor("https://docs.google.com/forms/d/e/abc/viewform", "Form")
    assert buckets == ["registration"]


def test_short_form_and_signup_text_are_registration():
    assert classify_anchor("https://forms.gle/abc", "here") == ["registration"]
    assert classify_anchor("https://example.org/teams", "Sign up") == ["registration"]


def test_chess_com_register_and_login_are_excluded():
    assert classify_anchor("https://www.chess.com/register", "Register") == []
    assert classify_anchor("https://www.chess.com/login_and_go", "Log in to register") == []


def test_fair_play_rules():
    assert classify_anchor("https://www.chess.com/legal/fairplay-agreement", "agreement") == ["fairPlay"]
    assert classify_anchor("https://example.org/ccl-policy", "Fair Play Policy") == ["fairPlay"]
    # generic site policy pages mentioning fair play are not the CCL agreement
    assert classify_anchor("https://www.chess.com/legal/user-agreement", "fair play") == []
    assert classify_anchor("https://www.chess.com/cheating", "Fair play") == []


def test_platform_link():
    assert classify_anchor("https://pcl.gg/ccl", "Team portal") == ["platform"]


def test_anchor_can_land_in_several_buckets():
    buckets = classify_anchor("https://drive.google.com/file/d/1/view", "Registration instructions")
    assert buckets == ["pdf", "instructions", "registration"]


def test_iter_anchors_resolves_relative_links_and_skips_fragments():
    html = '<a href="#top">Top</a><a href="mailto:x@y.z">Mail</a><a href="/rules">Rules <b>PDF</b></a>'
    anchors = iter_anchors(html, "https://www.chess.com/news/view/ccl")
    assert anchors == [("https://www.chess.com/rules", "Rules PDF")]


def test_classify_page_buckets_and_first_wins():
    page = classify_page(SPRING_2026_URL, SPRING_2026_PAGE + '<a href="https://drive.google.com/file/d/OTHER/view">x</a>')
    assert page.first("pdf") == "https://drive.google.com/file/d/XYZ789/view"
    assert page.buckets["pdf"][1] == "https://drive.google.com/file/d/OTHER/view"
    assert page.first("registration") == "https://forms.gle/abc"
    assert page.first("fairPlay") == "https://www.chess.com/legal/fairplay-agreement"
    assert page.first("platform") == "https://pcl.gg/ccl"
    assert page.first("instructions") == "https://www.chess.com/news/view/ccl-player-instructions"
    assert "https://www.chess.com/register" not in sum(page.buckets.values(), [])


def test_page_without_matching_links_is_empty():
    page = classify_page(SPRING_2026_URL, '<a href="https://www.chess.com/home">Home</a>')
    assert page.is_empty()


def test_malformed_href_is_skipped_not_raised():
    html = ('<a href="http://[broken/rules.pdf">Rules PDF</a>'
            '<a href="https://drive.google.com/file/d/XYZ789/view">Rules</a>')
    anchors = iter_anchors(html, SPRING_2026_URL)
    assert anchors == [("https://drive.google.com/file/d/XYZ789/view", "Rules")]
