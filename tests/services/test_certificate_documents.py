from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from app.services.certificate_documents import (
    CertificateData,
    build_download_metadata,
    certificate_file_name,
    issued_date_display,
    last_name_first_initial,
    metadata_file_name,
    render_certificate_html,
)

ISSUED = datetime(2025, 1, 2, 15, 30, tzinfo=UTC)


def _data(**overrides) -> CertificateData:
    values = {
        "user_name": "Jane Doe",
        "certificate_number": "CERT-20250102-ABCDEF",
        "issued_at": ISSUED,
        "course_name": "Security Awareness",
        "verification_hash": "ab" * 32,
    }
    values.update(overrides)
    return CertificateData(**values)


def test_issued_date_display() -> None:
    assert issued_date_display(ISSUED) == "January 2, 2025"
    assert issued_date_display(date(2024, 11, 30)) == "November 30, 2024"


def test_render_fills_placeholders() -> None:
    html = render_certificate_html(
        "<p>{{userName}} completed {{courseName}} on {{issuedDate}}</p>"
        "<small>{{certificateNumber}} {{verificationHash}}</small>",
        _data(),
    )
    assert html == (
        "<p>Jane Doe completed Security Awareness on January 2, 2025</p>"
        f"<small>CERT-20250102-ABCDEF {'ab' * 32}</small>"
    )


def test_render_escapes_values() -> None:
    html = render_certificate_html("{{userName}}", _data(user_name="<script>x</script>"))
    assert html == "&lt;script&gt;x&lt;/script&gt;"


def test_render_keeps_unknown_placeholders() -> None:
    assert render_certificate_html("{{orgLogo}} {{userName}}", _data()) == "{{orgLogo}} Jane Doe"


def test_render_defaults_blank_name_and_hash() -> None:
    html = render_certificate_html(
        "[{{userName}}][{{verificationHash}}]", _data(user_name="", verification_hash=None)
    )
    assert html == "[User][]"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("Jane Doe", "Doe_J"),
        ("jane q. o'brien", "obrien_J"),
        ("Cher", "Cher_C"),
        ("", "Trainee"),
        ("   ", "Trainee"),
        ("Jane !!!", "Trainee"),
    ],
)
def test_last_name_first_initial(name: str, expected: str) -> None:
    assert last_name_first_initial(name) == expected


def test_certificate_and_metadata_file_names() -> None:
    pdf = certificate_file_name("Jane Doe", ISSUED)
    assert pdf == "Doe_J_Training_2025-01-02.pdf"
    assert metadata_file_name(pdf) == "Doe_J_Training_2025-01-02.metadata.json"
    assert certificate_file_name("Jane Doe", ISSUED, ext="png") == "Doe_J_Training_2025-01-02.png"


def test_download_metadata_required_keys_only() -> None:
    meta = build_download_metadata(
        name="Jane Doe",
        completion_date=ISSUED,
        certificate_number="CERT-20250102-ABCDEF",
        file_name="Doe_J_Training_2025-01-02.pdf",
    )
    assert meta == {
        "name": "Jane Doe",
        "completionDate": "2025-01-02",
        "certificateNumber": "CERT-20250102-ABCDEF",
        "fileName": "Doe_J_Training_2025-01-02.pdf",
    }


def test_download_metadata_optional_keys_and_pipe_stripping() -> None:
    meta = build_download_metadata(
        name="Jane|Doe",
        completion_date=ISSUED,
        certificate_number="CERT-20250102-ABCDEF",
        file_name="Doe_J_Training_2025-01-02.pdf",
        course_name="Security Awareness",
        verification_hash="ab" * 32,
        role="User",
    )
    assert meta["name"] == "Jane Doe"
    assert meta["courseName"] == "Security Awareness"
    assert meta["verificationHash"] == "ab" * 32
    assert meta["role"] == "User"
