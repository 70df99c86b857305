import argparse
import json

import pytest

from leadmap.core.config import ConfigError, Settings
from leadmap.jobs import run_batch, run_query
from leadmap.models import Candidate, PlaceDetails, SearchPage


class FakeProvider:
    instances = []

    def __init__(self, api_key, region=None, language=None):
        self.api_key = api_key
        self.region = region
        self.language = language
        self.queries = []
        FakeProvider.instances.append(self)

    def search(self, query, page_token=None):
        self.queries.append(query.text)
        return SearchPage(status="OK", candidates=[Candidate(place_id=f"{query.text}-1"), Candidate(place_id="shared")])

    def details(self, place_id):
        return PlaceDetails(name=place_id, phone="123")


@pytest.fixture
def settings(tmp_path):
    return Settings(google_api_key="abc", output_dir=str(tmp_path), max_pages=2)


@pytest.fixture(autouse=True)
def patch_collaborators(monkeypatch, settings):
    FakeProvider.instances = []
    monkeypatch.setattr(run_query, "get_settings", lambda: settings)
    monkeypatch.setattr(run_query, "GooglePlacesProvider", FakeProvider)
    monkeypatch.setattr(run_batch, "get_settings", lambda: settings)
    monkeypatch.setattr(run_batch, "GooglePlacesProvider", FakeProvider)
    monkeypatch.setattr(run_batch.time, "sleep", lambda _: None)
    monkeypatch.setattr("leadmap.core.collector.time.sleep", lambda _: None)


def test_run_query_job_requires_api_key(monkeypatch):
    monkeypatch.setattr(run_query, "get_settings", lambda: Settings(google_api_key=""))

    with pytest.raises(ConfigError):
        run_query.run_query_job(sector="hoteles")


def test_run_query_job_requires_sector():
    with pytest.raises(ValueError):
        run_query.run_query_job(sector=" ")


def test_run_query_job_builds_default_query(tmp_path):
    path = run_query.run_query_job(sector="hoteles")

    assert path == tmp_path / "hoteles_huancayo.json"
    assert FakeProvider.instances[0].queries == ["hoteles en Huancayo"]
    assert FakeProvider.instances[0].region == "pe"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["meta"]["search_query"] == "hoteles en Huancayo"
    assert data["stats"]["total"] == 2


def test_run_query_job_deep_search_dedupes(tmp_path):
    path = run_query.run_query_job(
        sector="Venta de Ropa",
        queries=["boutiques en Huancayo", "jeans en Huancayo"],
        output="ropa_huancayo.json",
    )

    data = json.loads(path.read_text(encoding="utf-8"))
    ids = [b["place_id"] for b in data["businesses"]]
    assert ids == ["boutiques en Huancayo-1", "shared", "jeans en Huancayo-1"]
    assert data["meta"]["search_query"] == "MULTIPLE (Deep Search)"
    assert data["meta"]["sector"] == "Venta de Ropa"
    assert all(b["category"] == "Venta de Ropa" for b in data["businesses"])


def test_build_parser_defaults(settings):
    parser = run_query.build_parser()
    args = parser.parse_args(["--sector", "hoteles", "--query", "a", "--query", "b"])
    assert isinstance(parser, argparse.ArgumentParser)
    assert args.sector == "hoteles"
    assert args.queries == ["a", "b"]
    assert args.max_pages == 2
    assert args.require_city is False


def test_run_batch_job_writes_one_report_per_sector(tmp_path):
    written = run_batch.run_batch_job(sectors=["hoteles", "clínicas"])

    assert [p.name for p in written] == ["hoteles_huancayo.json", "clinicas_huancayo.json"]
    clinicas = json.loads(written[1].read_text(encoding="utf-8"))
    # Deduplication is per run, so the shared place appears in both reports.
    assert [b["place_id"] for b in clinicas["businesses"]] == ["clínicas en Huancayo-1", "shared"]
    assert clinicas["businesses"][0]["score"] == 70


def test_run_batch_job_continues_after_write_failure(monkeypatch):
    calls = []

    def flaky_write(report, output_dir):
        calls.append(report.meta.sector)
        if len(calls) == 1:
            raise OSError("read-only")
        return output_dir

    monkeypatch.setattr(run_batch, "write_report", flaky_write)

    written = run_batch.run_batch_job(sectors=["hoteles", "talleres"])

    assert calls == ["hoteles", "talleres"]
    assert len(written) == 1


def test_run_query_job_rejects_zero_page_cap(monkeypatch, tmp_path):
    monkeypatch.setattr(run_query, "get_settings", lambda: Settings(google_api_key="abc", output_dir=str(tmp_path), max_pages=0))

    with pytest.raises(ConfigError):
        run_query.run_query_job(sector="hoteles")
    assert FakeProvider.instances == []


def test_run_query_main_exits_2_on_zero_page_cap_from_env(monkeypatch, tmp_path):
    monkeypatch.setattr(run_query, "get_settings", lambda: Settings(google_api_key="abc", output_dir=str(tmp_path), max_pages=0))

    with pytest.raises(SystemExit) as excinfo:
        run_query.main(["--sector", "hoteles"])

    assert excinfo.value.code == 2


def test_run_query_main_rejects_zero_max_pages_flag():
    with pytest.raises(SystemExit) as excinfo:
        run_query.main(["--sector", "hoteles", "--max-pages", "0"])
    assert excinfo.value.code == 2


def test_run_query_main_requires_sector_or_preset():
    with pytest.raises(SystemExit) as excinfo:
        run_query.main([])
    assert excinfo.value.code == 2


def test_run_batch_main_exits_2_without_api_key(monkeypatch):
    monkeypatch.setattr(run_batch, "get_settings", lambda: Settings(google_api_key=""))

    with pytest.raises(SystemExit) as excinfo:
        run_batch.main(["--sector", "hoteles"])

    assert excinfo.value.code == 2


def test_run_batch_main_rejects_zero_max_pages_flag():
    with pytest.raises(SystemExit) as excinfo:
        run_batch.main(["--max-pages", "0"])
    assert excinfo.value.code == 2


def test_run_query_job_clothing_preset(tmp_path):
    path = run_query.run_query_job(preset="ropa")

    assert path == tmp_path / "ropa_huancayo.json"
    queries = FakeProvider.instances[0].queries
    assert len(queries) == 17
    assert queries[0] == "tiendas de ropa en Huancayo"
    assert queries[-1] == "confecciones textiles Huancayo"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["meta"]["sector"] == "Venta de Ropa"
    assert data["meta"]["search_query"] == "MULTIPLE (Deep Search)"
    # 17 query-specific places plus the one every query returns.
    assert data["stats"]["total"] == 18


def test_run_query_main_with_preset(tmp_path):
    run_query.main(["--preset", "ropa", "--max-pages", "1"])

    assert (tmp_path / "ropa_huancayo.json").is_file()
