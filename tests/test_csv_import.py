"""Tests for the spreadsheet CSV import engine."""

import pytest

from salesdesk.ingestion import services as ingestion
from salesdesk.ingestion.schemas import CSV_TEMPLATE, CSV_TEMPLATE_COLUMNS, ParsedLead
from salesdesk.ingestion.services import (
    IngestionError,
    decode_csv_bytes,
    import_leads,
    normalize_status,
    parse_csv,
    split_csv_line,
)
from salesdesk.models import Lead

from conftest import NOW, SALESMAN

HEADER = ",".join(CSV_TEMPLATE_COLUMNS)


def row(company="Acme Oy", ceo="Matti", go_skip="", status="prospect", revenue="1M"):
    return f"{company},{revenue},acme.fi,{go_skip},+358401,Reception,{ceo},No,2024-01-01,notes,{status}"


class TestSplitLine:
    def test_quoted_commas_stay_in_field(self):
        cols = split_csv_line('"Acme, Inc", 1,2 ,"x"')
        assert cols == ["Acme, Inc", "1", "2", "x"]

    def test_trailing_empty_field(self):
        assert split_csv_line("a,b,") == ["a", "b", ""]


class TestParseCsv:
    def test_header_and_blank_lines_are_ignored(self):
        text = "\n".join([HEADER, "", row(), "   ", row(company="Beta")])
        parsed = parse_csv(text)
        assert [p.company for p in parsed] == ["Acme Oy", "Beta"]

    def test_short_rows_dropped(self):
        assert parse_csv(HEADER + "\nAcme,1M,site") == []

    def test_skip_rows_and_missing_company_or_ceo(self):
        text = "\n".join([
            HEADER,
            row(company="Skipped", go_skip="SKIP"),
            row(company="", ceo="Someone"),
            row(company="No CEO", ceo=""),
            row(company="Kept"),
        ])
        assert [p.company for p in parse_csv(text)] == ["Kept"]

    def test_ceo_becomes_contact_name(self):
        parsed = parse_csv(HEADER + "\n" + row(ceo="Liisa Virtanen"))[0]
        assert parsed.name == "Liisa Virtanen"
        assert parsed.ceo == "Liisa Virtanen"

    def test_quoted_company_keeps_its_comma(self):
        line = '"Acme, Inc",100k,https://a.com,,+1234,Bob,Jane,Yes,2024-01-01,note,prospect'
        [parsed] = parse_csv(HEADER + "\n" + line)
        assert parsed.company == "Acme, Inc"
        assert parsed.revenue == "100k"
        assert parsed.website == "https://a.com"
        assert parsed.whose_phone == "Bob"
        assert parsed.ceo == "Jane"
        assert parsed.name == "Jane"
        assert parsed.status == "prospect"

    def test_template_parses(self):
        # second example row is marked Skip
        assert [p.company for p in parse_csv(CSV_TEMPLATE)] == ["Example Company"]


class TestNormalizeStatus:
    @pytest.mark.parametrize("raw,expected", [
        ("Prospect", "prospect"),
        ("closed won", "closed-won"),
        ("WON", "closed-won"),
        ("lost", "closed-lost"),
        ("", "prospect"),
        (None, "prospect"),
        ("whatever", "prospect"),
    ])
    def test_mapping(self, raw, expected):
        assert normalize_status(raw) == expected


class TestDecode:
    def test_utf8_bom_stripped(self):
        assert decode_csv_bytes("\ufeffFirm".encode("utf-8")) == "Firm"

    def test_latin1_fallback(self):
        assert decode_csv_bytes("Työ".encode("latin-1")) == "Työ"

    def test_too_large(self, monkeypatch):
        monkeypatch.setattr(ingestion.ingestion_settings, "max_csv_size_mb", 1)
        with pytest.raises(IngestionError):
            decode_csv_bytes(b"x" * (1024 * 1024 + 1))


class TestImportLeads:
    def test_case_and_whitespace_duplicates_in_one_file(self, db):
        parsed = [
            ParsedLead(company="Acme", ceo="Jane", name="Jane"),
            ParsedLead(company="acme ", ceo="Jane", name="Jane"),
        ]
        result = import_leads(db, parsed, "user-anna", now=NOW)
        assert result.imported == 1
        assert result.duplicates == 1
        assert db.query(Lead).count() == 1

    def test_imports_and_counts_duplicates(self, db):
        db.add(Lead(user_id="user-ben", name="Old", company="ACME OY", status="prospect"))
        db.commit()

        parsed = parse_csv("\n".join([
            HEADER,
            row(company="Acme Oy"),
            row(company="Beta", status="qualified"),
            row(company="beta "),
            row(company="Gamma"),
        ]))
        result = import_leads(db, parsed, "user-anna", batch_size=2, now=NOW)

        assert result.total == 4
        assert result.imported == 2
        assert result.duplicates == 2
        assert result.skipped == 0
        assert result.errors == []

        beta = db.query(Lead).filter(Lead.company == "Beta").one()
        assert beta.user_id == "user-anna"
        assert beta.status == "qualified"
        assert beta.call_status == "not_called"
        assert beta.industry == "HENKILÖSTÖVUOKRAUS"
        assert beta.name == "Matti"

    def test_failed_batch_is_reported_and_run_continues(self, db, monkeypatch):
        db.add(Lead(user_id="user-ben", name="Old", company="Acme Oy", status="prospect"))
        db.commit()
        # Simulate a stale duplicate set: the unique index has to catch it.
        monkeypatch.setattr(ingestion, "existing_company_keys", lambda _db: set())

        parsed = parse_csv("\n".join([HEADER, row(company="acme oy"), row(company="Beta")]))
        result = import_leads(db, parsed, "user-anna", batch_size=1, now=NOW)

        assert result.imported == 1
        assert result.skipped == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Batch 1:")
        assert db.query(Lead).count() == 2


class TestImportApi:
    def test_upload(self, client):
        content = "\n".join([HEADER, row(company="Acme Oy"), row(company="Beta")]).encode()
        resp = client.post(
            "/api/imports/leads",
            headers=SALESMAN,
            files={"file": ("leads.csv", content, "text/csv")},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["imported"] == 2
        assert body["duplicates"] == 0

        leads = client.get("/api/leads", headers=SALESMAN).json()
        assert {l["company"] for l in leads} == {"Acme Oy", "Beta"}

    def test_rejects_non_csv(self, client):
        resp = client.post(
            "/api/imports/leads",
            headers=SALESMAN,
            files={"file": ("leads.xlsx", b"whatever", "application/octet-stream")},
        )
        assert resp.status_code == 400

    def test_template_download(self, client):
        resp = client.get("/api/imports/template")
        assert resp.status_code == 200
        assert resp.text.splitlines()[0] == HEADER
