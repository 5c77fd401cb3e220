"""Inputs for the certificate rendering collaborator.

The PDF itself is produced elsewhere; this module fills the HTML
template and builds the download filename and metadata JSON that
accompany it.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass
from datetime import date, datetime

DEFAULT_USER_NAME = "User"
FALLBACK_FILE_NAME_BASE = "Trainee"

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True, slots=True)
class CertificateData:
    user_name: str
    certificate_number: str
    issued_at: datetime
    course_name: str
    verification_hash: str | None = None


def issued_date_display(value: datetime | date) -> str:
    """``January 2, 2025``"""
    return f"{value:%B} {value.day}, {value.year}"


def render_certificate_html(template: str, data: CertificateData) -> str:
    values = {
        "userName": data.user_name or DEFAULT_USER_NAME,
        "certificateNumber": data.certificate_number,
        "issuedDate": issued_date_display(data.issued_at),
        "courseName": data.course_name,
        "verificationHash": data.verification_hash or "",
    }

    def substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in values:
            # Unknown placeholders are left for the renderer.
            return match.group(0)
        return html.escape(values[key])

    return _PLACEHOLDER.sub(substitute, template)


def last_name_first_initial(display_name: str) -> str:
    """``Jane Q. Doe`` -> ``Doe_J``; ``Trainee`` when nothing usable."""
    parts = (display_name or "").split()
    if not parts:
        return FALLBACK_FILE_NAME_BASE
    last = _NON_ALNUM.sub("", parts[-1])
    if not last:
        return FALLBACK_FILE_NAME_BASE
    first = _NON_ALNUM.sub("", parts[0])[:1] or "X"
    return f"{last}_{first.upper()}"


def certificate_file_name(display_name: str, on: datetime | date, ext: str = "pdf") -> str:
    return f"{last_name_first_initial(display_name)}_Training_{on:%Y-%m-%d}.{ext}"


def metadata_file_name(cert_file_name: str) -> str:
    base = re.sub(r"\.(pdf|png|jpe?g)$", "", cert_file_name, flags=re.IGNORECASE)
    return f"{base}.metadata.json"


def build_download_metadata(
    *,
    name: str,
    completion_date: datetime | date,
    certificate_number: str,
    file_name: str,
    course_name: str | None = None,
    verification_hash: str | None = None,
    role: str | None = None,
) -> dict[str, str]:
    # "|" is the vault hash field separator; keep it out of exported names.
    meta = {
        "name": name.replace("|", " "),
        "completionDate": f"{completion_date:%Y-%m-%d}",
        "certificateNumber": certificate_number,
        "fileName": file_name,
    }
    if role:
        meta["role"] = role
    if course_name:
        meta["courseName"] = course_name
    if verification_hash:
        meta["verificationHash"] = verification_hash
    return meta
