from ccl_pipeline.ingest.schemas import Stage
from ccl_pipeline.pipeline import archive, discover, extract, status

from conftest import TOURNAMENT_INFO, seed_record


def test_status_walks_through_every_stage(ctx):
    assert status(ctx, "spring", 2026).to_response() == {"exists": False, "stage": "none"}

    discover(ctx, "spring", 2026)
    assert status(ctx, "spring", 2026).stage is Stage.DISCOVERED

    archive(ctx, "spring", 2026)
    assert status(ctx, "spring", 2026).stage is Stage.ARCHIVED

    extract(ctx, "spring", 2026)
    body = status(ctx, "spring", 2026).to_response()
    assert body["exists"] is True
    assert body["stage"] == "extracted"
    assert body["data"]["extractedInfo"]["requirements"]["minimum_games"] == 25
    assert body["records"] == 1


def test_status_reports_most_advanced_record(ctx, store):
    seed_record(store, source="a")
    seed_record(store, source="b", archivedDocumentUrl="memory://blobs/x.pdf")
    report = status(ctx, "spring", 2026)
    assert report.stage is Stage.ARCHIVED
    assert report.record.source == "b"
    assert len(report.records) == 2


def test_extracted_info_without_archive_is_still_discovered(ctx, store):
    seed_record(store, extractedInfo=TOURNAMENT_INFO)
    assert status(ctx, "spring", 2026).stage is Stage.DISCOVERED


def test_status_never_writes(ctx, store):
    seed_record(store)
    before = store.find({})
    status(ctx, "spring", 2026)
    assert store.find({}) == before
