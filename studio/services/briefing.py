"""Turn the three quick-project briefing inputs into one stored text."""

from __future__ import annotations

from pathlib import Path

TEXT_EXTENSIONS = {".txt"}
DOCUMENT_EXTENSIONS = {".pdf", ".docx"}
ALLOWED_CONTENT_TYPES = {
    "text/plain",
    "application/pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
DRIVE_PREFIX = "[Link do Drive]: "


def is_supported_upload(filename: str | None, content_type: str | None) -> bool:
    ext = Path(filename or "").suffix.lower()
    return ext in TEXT_EXTENSIONS | DOCUMENT_EXTENSIONS or (content_type or "") in ALLOWED_CONTENT_TYPES


def briefing_from_upload(filename: str, content_type: str | None, data: bytes) -> str:
    """Plain text files are read as UTF-8; PDF/DOCX get a placeholder line."""

    if not is_supported_upload(filename, content_type):
        raise ValueError("briefing file must be TXT, DOCX or PDF")
    ext = Path(filename).suffix.lower()
    if ext in TEXT_EXTENSIONS or (content_type == "text/plain" and ext not in DOCUMENT_EXTENSIONS):
        return data.decode("utf-8", errors="replace")
    kind = content_type or ext.lstrip(".")
    return f"[Arquivo {filename}] - Conteúdo não disponível para visualização ({kind})"


def briefing_from_drive(link: str) -> str:
    link = (link or "").strip()
    if not link:
        raise ValueError("drive link is required")
    if not link.startswith(("http://", "https://")):
        raise ValueError("drive link must be an http(s) URL")
    return f"{DRIVE_PREFIX}{link}"


def build_briefing(
    *,
    text: str | None = None,
    drive_link: str | None = None,
    upload: tuple[str, str | None, bytes] | None = None,
) -> str | None:
    """Pick the first briefing source that was supplied: upload, drive link, text."""

    if upload is not None:
        filename, content_type, data = upload
        return briefing_from_upload(filename, content_type, data)
    if drive_link and drive_link.strip():
        return briefing_from_drive(drive_link)
    if text and text.strip():
        return text.strip()
    return None
