"""Tests for source file fingerprints and name keys."""

from __future__ import annotations

import os

from tablecast.cache.fingerprint import SourceFile, compute_fingerprint, name_key


def test_fingerprint_is_deterministic(make_file):
    assert compute_fingerprint(make_file()) == compute_fingerprint(make_file())


def test_fingerprint_is_base36(make_file):
    fp = compute_fingerprint(make_file())
    assert fp
    assert set(fp) <= set("0123456789abcdefghijklmnopqrstuvwxyz")
    assert int(fp, 36) <= 0x7FFFFFFF


def test_fingerprint_changes_with_content(make_file):
    a = make_file(content=b"unit,name\nA,Asha\n")
    b = make_file(content=b"unit,name\nB,Ravi\n")
    assert compute_fingerprint(a) != compute_fingerprint(b)


def test_fingerprint_changes_with_metadata(make_file):
    base = compute_fingerprint(make_file())
    assert compute_fingerprint(make_file(name="other.xlsx")) != base
    assert compute_fingerprint(make_file(last_modified=1)) != base


def test_fingerprint_empty_content(make_file):
    assert compute_fingerprint(make_file(content=b""))


def test_fingerprint_large_content_is_sampled(make_file):
    content = os.urandom(50_000)
    assert compute_fingerprint(make_file(content=content)) == compute_fingerprint(
        make_file(content=content)
    )


def test_name_key_strips_punctuation_and_case():
    assert name_key("Survey Results (v2).XLSX") == "surveyresultsv2xlsx"
    assert name_key("survey-results_v2.xlsx") == "surveyresultsv2xlsx"


def test_source_file_guesses_mime_type():
    f = SourceFile(name="a.pdf", size=0, last_modified=0, content=b"")
    assert f.mime_type == "application/pdf"
    assert f.suffix == ".pdf"
    unknown = SourceFile(name="blob", size=0, last_modified=0, content=b"")
    assert unknown.mime_type == "application/octet-stream"


def test_source_file_from_path(tmp_path):
    path = tmp_path / "Survey.CSV"
    path.write_bytes(b"a,b\n1,2\n")
    f = SourceFile.from_path(path)
    assert f.name == "Survey.CSV"
    assert f.size == 8
    assert f.content == b"a,b\n1,2\n"
    assert f.suffix == ".csv"
    assert f.last_modified > 0
