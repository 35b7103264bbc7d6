"""
Unit tests for output writers.
"""

import csv
import json

from gmaps_scraper.models.entry import entry_from_json
from gmaps_scraper.runner.writers import CSV_COLUMNS, CsvWriter, JsonLinesWriter, build_writer


def sample_entry(place_payload):
    entry = entry_from_json(place_payload)
    entry.id = "search-1"
    entry.add_emails(["b@cafe.example", "a@cafe.example"])
    entry.add_review(author_name="Ana", rating=5, text="Great")
    return entry


class TestCsvWriter:
    def test_writes_header_and_rows(self, tmp_path, place_payload):
        target = tmp_path / "out" / "results.csv"
        writer = CsvWriter(str(target))
        writer.write(sample_entry(place_payload))
        writer.close()

        with target.open(encoding="utf-8", newline="") as fh:
            rows = list(csv.DictReader(fh))

        assert list(rows[0].keys()) == CSV_COLUMNS
        assert rows[0]["title"] == "Cafe Central"
        assert rows[0]["categories"] == "Cafe, Bakery"
        assert rows[0]["emails"] == "a@cafe.example, b@cafe.example"
        assert json.loads(rows[0]["reviews"])[0]["author_name"] == "Ana"
        assert writer.count == 1


class TestJsonLinesWriter:
    def test_one_object_per_line(self, tmp_path, place_payload):
        target = tmp_path / "results.jsonl"
        writer = JsonLinesWriter(str(target))
        writer.write(sample_entry(place_payload))
        writer.write({"id": "raw", "title": "Dict result"})
        writer.close()

        lines = target.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert first["id"] == "search-1"
        assert first["emails"] == ["a@cafe.example", "b@cafe.example"]
        assert json.loads(lines[1])["title"] == "Dict result"


class TestBuildWriter:
    def test_picks_writer(self, tmp_path):
        csv_writer = build_writer(str(tmp_path / "a.csv"))
        json_writer = build_writer(str(tmp_path / "a.jsonl"), json_output=True)
        assert isinstance(csv_writer, CsvWriter)
        assert isinstance(json_writer, JsonLinesWriter)
        csv_writer.close()
        json_writer.close()

    def test_stdout(self, capsys):
        writer = build_writer("stdout", json_output=True)
        writer.write({"id": "x"})
        writer.close()
        assert json.loads(capsys.readouterr().out) == {"id": "x"}
