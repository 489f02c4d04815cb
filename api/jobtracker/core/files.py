import mimetypes
import re
from pathlib import PurePosixPath
from urllib.parse import quote, unquote

DEFAULT_DOWNLOAD_NAME = "attachment"
DEFAULT_MIME_TYPE = "application/octet-stream"
KIB = 1024
MIB = 1024 * 1024

DOCUMENT_MIME_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

_FILENAME_EXT_RE = re.compile(r"filename\*\s*=\s*([^;]+)", re.IGNORECASE)
_FILENAME_QUOTED_RE = re.compile(r'filename\s*=\s*"((?:[^"\\]|\\.)*)"', re.IGNORECASE)
_FILENAME_TOKEN_RE = re.compile(r"filename\s*=\s*([^;\s\"]+)", re.IGNORECASE)
_QUOTED_PAIR_RE = re.compile(r"\\(.)")


def filename_from_content_disposition(header: str | None, default: str = DEFAULT_DOWNLOAD_NAME) -> str:
    """Resolve a download name from a Content-Disposition header.

    Servers send the name quoted (``filename="a b.pdf"``) or as a bare token
    (``filename=a.pdf``); both are accepted. An RFC 5987 ``filename*`` value wins
    when it decodes. Anything missing or unparsable falls back to ``default``.
    """
    if not header:
        return default

    for candidate in (_extended_filename(header), _quoted_filename(header), _token_filename(header)):
        name = _safe_basename(candidate)
        if name:
            return name
    return default


def build_content_disposition(file_name: str) -> str:
    fallback = file_name.encode("ascii", "replace").decode("ascii").replace("?", "_")
    escaped = fallback.replace("\\", "\\\\").replace('"', '\\"')
    value = f'attachment; filename="{escaped}"'
    if fallback != file_name:
        value += f"; filename*=UTF-8''{quote(file_name, safe='')}"
    return value


def guess_mime_type(file_name: str) -> str:
    suffix = PurePosixPath(file_name).suffix.lower()
    if suffix in DOCUMENT_MIME_TYPES:
        return DOCUMENT_MIME_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_MIME_TYPE


def format_file_size(size_bytes: int) -> str:
    """Binary units (1 KB = 1024 B) under the short KB and MB labels."""
    if size_bytes < KIB:
        return f"{size_bytes} B"
    if size_bytes < MIB:
        return f"{size_bytes / KIB:.1f} KB"
    return f"{size_bytes / MIB:.1f} MB"


def _extended_filename(header: str) -> str | None:
    match = _FILENAME_EXT_RE.search(header)
    if not match:
        return None
    raw = match.group(1).strip().strip('"')
    charset, sep, rest = raw.partition("'")
    if not sep:
        return None
    _, sep, encoded = rest.partition("'")
    if not sep:
        return None
    try:
        return unquote(encoded, encoding=charset or "utf-8", errors="strict")
    except (LookupError, UnicodeDecodeError):
        return None


def _quoted_filename(header: str) -> str | None:
    match = _FILENAME_QUOTED_RE.search(header)
    if not match:
        return None
    return _QUOTED_PAIR_RE.sub(r"\1", match.group(1))


def _token_filename(header: str) -> str | None:
    match = _FILENAME_TOKEN_RE.search(header)
    if not match:
        return None
    return match.group(1)


def _safe_basename(value: str | None) -> str | None:
    if value is None:
        return None
    name = PurePosixPath(value.replace("\\", "/").strip()).name
    return name or None
