from datetime import datetime, timezone

from bewijsje.certificate import (
    CERT_MIN_H, ROW_H, build_certificate, certificate_columns, certificate_height,
    metadata_lines,
)
from bewijsje.summary import normalize_summary


def test_height_grows_with_questions_and_has_a_floor():
    heights = [certificate_height(n) for n in range(40)]
    assert all(h >= CERT_MIN_H for h in heights)
    assert heights == sorted(heights)
    assert certificate_height(30) == 560 + 30 * ROW_H


def test_rendered_height_is_monotonic(identity, now):
    previous = 0
    for n in (0, 1, 5, 6, 12):
        surface = build_certificate({"questions": ["vraag"] * n}, identity=identity,
                                    now=now, device_pixel_ratio=1)
        assert surface.height >= max(previous, CERT_MIN_H)
        assert surface.image.size == (1200, surface.height)
        previous = surface.height


def test_column_widths_fill_the_table():
    widths = certificate_columns(1120)
    assert widths[:4] == [89, 582, 179, 179]
    assert sum(widths) == 1120


def test_end_to_end_rows_and_marks(identity, now, eva_session):
    surface = build_certificate(eva_session, identity=identity, now=now, device_pixel_ratio=1)
    layout = surface.layout
    assert surface.height >= 780
    assert len(layout.rows) == 2
    assert [r.mark for r in layout.rows] == ["ok", "fail"]
    assert layout.rows[1].top == layout.rows[0].bottom


def test_string_rows_have_no_mark(identity, now):
    surface = build_certificate({"questions": ["Hoeveel is 2+2?"]}, identity=identity, now=now)
    assert surface.layout.rows[0].mark is None


def test_wrapped_question_grows_its_row(identity, now):
    long_question = " ".join(["woord"] * 120)
    surface = build_certificate({"questions": [long_question, "kort"]},
                                identity=identity, now=now, device_pixel_ratio=1)
    first, second = surface.layout.rows
    assert first.bottom - first.top > ROW_H
    assert second.bottom - second.top == ROW_H


def test_metadata_lines(identity):
    s = normalize_summary({"name": "Eva", "flags": {"dyscalculie": True}, "mode": "toets",
                           "seconds": 3661, "score": 12, "total": 10, "goals": "a,b"}, identity)
    lines = dict(metadata_lines(s, 0, datetime(2025, 10, 27, 13, 5, tzinfo=timezone.utc)))
    assert lines["Naam"] == "Eva (dyscalculie)"
    assert lines["Klas"] == "—"
    assert lines["Spel-ID"] == "—"
    assert lines["Datum"] == "27/10/2025 14:05"
    assert lines["Modus"] == "toets"
    assert lines["Tijd"] == "1:01:01"
    assert lines["Score"] == "12/10"
    assert lines["Doelen"] == "a, b"
    assert lines["Aanpassingen"] == "dyscalculie"


def test_metadata_score_falls_back_to_row_count(identity, now):
    s = normalize_summary({}, identity)
    assert dict(metadata_lines(s, 4, now))["Score"] == "0/4"
    assert dict(metadata_lines(s, 4, now))["Doelen"] == "—"


def test_malformed_input_still_renders(identity, now):
    surface = build_certificate({"questions": [None, 5, {"q": None}], "goals": 3,
                                 "flags": "yes", "seconds": "?"}, identity=identity, now=now)
    assert len(surface.layout.rows) == 3
    assert surface.to_png().startswith(b"\x89PNG")


def test_high_density_surface(identity, now, eva_session):
    surface = build_certificate(eva_session, identity=identity, now=now, device_pixel_ratio=2)
    assert surface.image.size == (2400, surface.height * 2)
