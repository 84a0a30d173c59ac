import json

import pytest

from ccl_pipeline import errors
from ccl_pipeline.extraction.prompt import (
    DIVISION_1_ROUNDS,
    build_extraction_prompt,
    parse_tournament_info,
    strip_code_fences,
)
from ccl_pipeline.pipeline import archive, discover, extract

from conftest import TOURNAMENT_INFO, FakeLLM, seed_record


def _archived(ctx):
    discover(ctx, "spring", 2026)
    archive(ctx, "spring", 2026)


def test_prompt_embeds_rulebook_text_and_structure():
    prompt = build_extraction_prompt("Section 9. Roster lock is final.")
    assert prompt.endswith("Section 9. Roster lock is final.\n")
    assert '"minimum_account_age"' in prompt
    assert "YYYY-MM-DD HH:MM AM/PM PT" in prompt
    for round_name in DIVISION_1_ROUNDS:
        assert round_name in prompt


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('```{"a": 1}```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_parse_accepts_fenced_json():
    info = parse_tournament_info("```json\n" + json.dumps(TOURNAMENT_INFO) + "\n```")
    assert info["requirements"] == {"minimum_account_age": 30, "minimum_games": 25}
    assert info["divisions"][1]["division"] == "2+"


def test_parse_keeps_missing_dates_as_null():
    payload = json.loads(json.dumps(TOURNAMENT_INFO))
    payload["logistics"][0]["date"] = None
    assert parse_tournament_info(json.dumps(payload))["logistics"][0]["date"] is None


@pytest.mark.parametrize("text", ["not json at all", "[1, 2, 3]", '{"logistics": []}'])
def test_parse_rejects_malformed_output(text):
    with pytest.raises(errors.ExtractionParseError):
        parse_tournament_info(text)


def test_extract_saves_tournament_info(ctx, store, llm):
    _archived(ctx)
    result = extract(ctx, "spring", 2026)

    assert len(llm.prompts) == 1
    assert "minimum account age of 30 days" in llm.prompts[0]
    doc = store.find({"season": "spring", "year": 2026})[0]
    assert doc["extractedInfo"] == result.tournament_info
    body = result.to_response()
    assert body["message"] == "Tournament info extracted and saved successfully"
    assert body["id"] == doc["id"]
    assert body["tournamentInfo"]["regular_season"][0]["title"] == "Regular Season Round 1"


def test_extract_before_archive_never_calls_model(ctx, store, llm):
    discover(ctx, "spring", 2026)
    with pytest.raises(errors.PreconditionError) as exc_info:
        extract(ctx, "spring", 2026)
    assert exc_info.value.status_code == 400
    assert exc_info.value.missing == "archivedDocumentUrl"
    assert llm.prompts == []


def test_extract_unknown_key_is_not_found(ctx, llm):
    with pytest.raises(errors.NotFoundError):
        extract(ctx, "fall", 2030)
    assert llm.prompts == []


def test_unparseable_model_output_leaves_record_unchanged(ctx, store):
    _archived(ctx)
    ctx.llm = FakeLLM(response="Sorry, I cannot help with that.")
    with pytest.raises(errors.ExtractionParseError):
        extract(ctx, "spring", 2026)
    assert store.find({})[0].get("extractedInfo") is None


def test_model_failure_is_reported_as_provider_error(ctx):
    _archived(ctx)
    ctx.llm = FakeLLM(error=TimeoutError("read timed out"))
    with pytest.raises(errors.ModelProviderError):
        extract(ctx, "spring", 2026)


def test_extract_again_overwrites_previous_result(ctx, store):
    _archived(ctx)
    extract(ctx, "spring", 2026)
    changed = json.loads(json.dumps(TOURNAMENT_INFO))
    changed["requirements"]["minimum_games"] = 40
    ctx.llm = FakeLLM(response="```json\n" + json.dumps(changed) + "\n```")
    extract(ctx, "spring", 2026)
    assert store.find({})[0]["extractedInfo"]["requirements"]["minimum_games"] == 40


def test_extract_uses_first_archived_record(ctx, store, blobs):
    seed_record(store, source="not-archived")
    _ = seed_record(store, source="archived", archivedDocumentUrl="memory://blobs/ccl/spring/2026/r.pdf")
    blobs.put("ccl/spring/2026/r.pdf", b"%PDF-1.4 rulebook text", "application/pdf")
    result = extract(ctx, "spring", 2026)
    archived = [d for d in store.find({}) if d["source"] == "archived"][0]
    assert result.record_id == archived["id"]


def test_unreachable_archive_fails_before_prompting(ctx, store, llm):
    seed_record(store, archivedDocumentUrl="memory://blobs/ccl/spring/2026/gone.pdf")
    with pytest.raises(errors.FetchError) as exc_info:
        extract(ctx, "spring", 2026)

    assert exc_info.value.status == 404
    assert exc_info.value.url == "memory://blobs/ccl/spring/2026/gone.pdf"
    assert llm.prompts == []
    assert store.find({})[0].get("extractedInfo") is None
