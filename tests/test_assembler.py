from __future__ import annotations

import pytest

from conftest import make_marker, make_photo
from kmz_photo import assembler
from kmz_photo.assembler import (
    format_coordinate,
    generated_file_name,
    integrate,
    match_by_name,
    match_sequential,
)
from kmz_photo.diagnostics import count_unmatched_photos
from kmz_photo.errors import AssemblyFailure
from kmz_photo.markers import parse_coordinates, parse_document
from kmz_photo.models import Coordinates, MatchPolicy


def _logs(result, status):
    return [entry.message for entry in result.logs if entry.status == status]


def test_match_name_scenario(scenario_markers, scenario_photos):
    result = integrate(scenario_markers, scenario_photos, "match-name")

    assert result.integrated_count == 2
    assert result.total_markers == 2
    assert result.total_photos == 3
    assert [r.file_name for r in result.records] == ["A.jpg", "B.jpg"]
    assert [r.photo.name for r in result.records] == ["A", "B"]
    assert _logs(result, "warning") == ["1 photos did not match any available placemark name"]
    assert result.warnings == []


def test_sequential_scenario(scenario_markers, scenario_photos):
    result = integrate(scenario_markers, scenario_photos, MatchPolicy.SEQUENTIAL)

    assert result.integrated_count == 2
    assert [(r.marker.name, r.photo.name) for r in result.records] == [("?-A", "A"), ("?-B", "B")]
    assert _logs(result, "warning") == [
        "Some photos were not used because there are not enough placemarks"
    ]
    assert result.warnings == ["Photo count (3) is higher than placemark count (2)"]


def test_sequential_pairs_by_position_not_name():
    markers = [make_marker("?-North"), make_marker("?-South"), make_marker("?-East")]
    photos = [make_photo("IMG_2"), make_photo("IMG_1")]
    result = integrate(markers, photos, "sequential")

    assert result.integrated_count == min(len(markers), len(photos))
    assert [(r.marker.name, r.photo.name, r.file_name) for r in result.records] == [
        ("?-North", "IMG_2", "North.jpg"),
        ("?-South", "IMG_1", "South.jpg"),
    ]
    assert _logs(result, "warning") == [
        "Some placemarks did not receive a photo because there are not enough photos"
    ]
    assert result.warnings == ["Photo count (2) is lower than placemark count (3)"]


def test_sequential_equal_counts_have_no_mismatch_diagnostics():
    result = integrate([make_marker("?-A")], [make_photo("zzz")], "sequential")

    assert _logs(result, "warning") == []
    assert result.warnings == []


def test_prefixed_and_plain_photo_names_match_the_same_marker():
    marker = make_marker("?-Tower1")
    plain = match_by_name([marker], [make_photo("Tower1")])
    prefixed = match_by_name([marker], [make_photo("?-Tower1")])

    assert [r.marker for r in plain] == [marker]
    assert [r.marker for r in prefixed] == [marker]
    assert plain[0].file_name == prefixed[0].file_name == "Tower1.jpg"


def test_unmatched_photo_emits_no_record():
    records = match_by_name([make_marker("?-Tower1")], [make_photo("Bridge")])

    assert records == []


def test_marker_bound_twice_is_reported_as_file_name_collision():
    # Both photos resolve to the same placemark; the collision is surfaced,
    # not deduplicated.
    result = integrate(
        [make_marker("?-Tower1")],
        [make_photo("Tower1"), make_photo("?-Tower1")],
        "match-name",
    )

    assert result.integrated_count == 2
    assert [r.file_name for r in result.records] == ["Tower1.jpg", "Tower1.jpg"]
    assert result.warnings == [
        "2 photos share the file name Tower1.jpg; only the last one is packaged"
    ]
    # totalPhotos - successes; duplicates count as successes too.
    assert "did not match" not in " ".join(_logs(result, "warning"))


def test_duplicate_marker_names_bind_to_the_first_marker():
    first = make_marker("?-Twin", marker_id="first")
    second = make_marker("?-Twin", marker_id="second")
    records = match_by_name([first, second], [make_photo("Twin")])

    assert records[0].marker.id == "first"


def test_match_sequential_stops_at_shorter_sequence():
    markers = [make_marker(f"?-{i}") for i in range(5)]
    photos = [make_photo(str(i)) for i in range(3)]

    assert len(match_sequential(markers, photos)) == 3
    assert len(match_sequential(markers[:1], photos)) == 1
    assert match_sequential([], photos) == []


def test_generated_file_name_is_alphanumeric():
    assert generated_file_name("?-Pole #12/B") == "Pole12B.jpg"
    assert generated_file_name("?-Tiang-Ø") == "Tiang.jpg"
    assert generated_file_name("?-") == "photo.jpg"


def test_file_name_is_always_jpg_even_for_png_photos():
    result = integrate([make_marker("?-Gate")], [make_photo("Gate", extension="png")], "match-name")

    assert result.records[0].file_name == "Gate.jpg"


def test_document_round_trips_names_coordinates_and_image_paths(scenario_markers, scenario_photos):
    result = integrate(scenario_markers, scenario_photos, "match-name")
    soup = parse_document(result.document)

    placemarks = soup.find_all("Placemark")
    assert [p.find("name").get_text() for p in placemarks] == ["?-A", "?-B"]
    assert [parse_coordinates(p.find("coordinates").get_text()) for p in placemarks] == [
        Coordinates(10.0, 20.0, 0.0),
        Coordinates(30.0, 40.0, 5.0),
    ]
    assert [p.find("description").get_text() for p in placemarks] == [
        '<img style="max-width:500px;" src="files/A.jpg"/>',
        '<img style="max-width:500px;" src="files/B.jpg"/>',
    ]
    assert all(p.find("styleUrl").get_text() == "#placemark-style" for p in placemarks)


def test_document_structure_and_raw_cdata(scenario_markers, scenario_photos):
    result = integrate(scenario_markers, scenario_photos, "match-name")
    text = result.document.decode("utf-8")

    assert text.startswith("<?xml")
    assert '<kml xmlns="http://www.opengis.net/kml/2.2">' in text
    assert '<![CDATA[<img style="max-width:500px;" src="files/A.jpg"/>]]>' in text
    assert "&lt;img" not in text
    assert "<coordinates>10,20,0</coordinates>" in text
    assert "<coordinates>30,40,5</coordinates>" in text

    soup = parse_document(result.document)
    document = soup.find("Document")
    assert document.find("name", recursive=False).get_text() == "KMZ Photo Integration"
    assert len(soup.find_all("Style")) == 1
    assert soup.find("Style")["id"] == "placemark-style"
    assert soup.find("Folder").find("name").get_text() == "Photos"


def test_marker_without_coordinates_has_no_point():
    result = integrate([make_marker("?-Floating")], [make_photo("Floating")], "match-name")
    soup = parse_document(result.document)

    assert soup.find("Placemark") is not None
    assert soup.find("Point") is None


def test_integrate_is_idempotent(scenario_markers, scenario_photos):
    first = integrate(scenario_markers, scenario_photos, "match-name")
    second = integrate(scenario_markers, scenario_photos, "match-name")

    assert first.document == second.document
    assert first.logs == second.logs
    assert first.warnings == second.warnings


def test_logs_always_report_counts_format_and_policy(scenario_markers, scenario_photos):
    result = integrate(scenario_markers, scenario_photos, "sequential")

    assert _logs(result, "success") == ["Created a new KMZ file with 2 placemarks that have photos"]
    assert _logs(result, "info") == [
        'Total placemarks with the "?-" prefix: 2',
        'Image descriptions use the simple format: <img style="max-width:500px;" src="files/filename.jpg"/>',
        "Integration used the sequential method",
    ]


def test_unknown_policy_is_rejected(scenario_markers, scenario_photos):
    with pytest.raises(ValueError):
        integrate(scenario_markers, scenario_photos, "random")


def test_build_failure_aborts_without_result(monkeypatch, scenario_markers, scenario_photos):
    def explode(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(assembler, "build_placemark", explode)

    with pytest.raises(AssemblyFailure, match="boom"):
        integrate(scenario_markers, scenario_photos, "match-name")


def test_count_unmatched_photos():
    assert count_unmatched_photos(3, 2) == 1
    assert count_unmatched_photos(2, 2) == 0
    assert count_unmatched_photos(1, 3) == 0


def test_coordinates_are_written_as_plain_decimals():
    assert format_coordinate(10.0) == "10"
    assert format_coordinate(106.8) == "106.8"
    assert format_coordinate(0.00005) == "0.00005"
    assert format_coordinate(-0.00001) == "-0.00001"

    marker = make_marker("?-Tiny", (0.00005, -6.2, 0.0))
    result = integrate([marker], [make_photo("Tiny")], "match-name")

    assert "<coordinates>0.00005,-6.2,0</coordinates>" in result.document.decode("utf-8")
