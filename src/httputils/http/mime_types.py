"""
=============================================================================
MIME TYPE DETECTION
=============================================================================

Finds the media type of a message body, from most to least reliable hint:

    ┌────────────────────────────────────────────────────────────────────┐
    │  1. explicit extension     "json"            → application/json   │
    │  2. filename               "/tmp/report.pdf" → application/pdf    │
    │  3. content sniffing       b"\\x89PNG..."      → image/png          │
    └────────────────────────────────────────────────────────────────────┘

Lookups return None when nothing matches; callers decide on a fallback
(DEFAULT_MIME_TYPE is "application/octet-stream", i.e. "unknown binary").

=============================================================================
CONTENT SNIFFING
=============================================================================

Without a name to go on, the first bytes usually give the format away:

    ┌──────────────────────┬───────────────────────────────────────────┐
    │  Leading bytes       │  Type                                     │
    ├──────────────────────┼───────────────────────────────────────────┤
    │  89 50 4E 47         │  image/png                                │
    │  FF D8 FF            │  image/jpeg                               │
    │  47 49 46 38         │  image/gif                                │
    │  25 50 44 46         │  application/pdf   ("%PDF")               │
    │  50 4B 03 04         │  application/zip   ("PK")                 │
    │  1F 8B               │  application/gzip                         │
    ├──────────────────────┼───────────────────────────────────────────┤
    │  no signature        │  UTF-8 text → inspected further           │
    │                      │  anything else → application/octet-stream │
    └──────────────────────┴───────────────────────────────────────────┘

=============================================================================
"""

import json
from pathlib import Path
from typing import Optional, Union


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Maps file extensions (lowercase, without dot) to MIME types.
#
# =============================================================================

MIME_TYPES = {
    # -------------------------------------------------------------------------
    # TEXT TYPES
    # -------------------------------------------------------------------------
    "asc": "text/plain",
    "css": "text/css",
    "csv": "text/csv",
    "etx": "text/x-setext",
    "htm": "text/html",
    "html": "text/html",
    "ics": "text/calendar",
    "ini": "text/plain",
    "js": "text/javascript",
    "mjs": "text/javascript",
    "log": "text/plain",
    "md": "text/markdown",
    "sgm": "text/sgml",
    "sgml": "text/sgml",
    "txt": "text/plain",
    "yaml": "text/yaml",
    "yml": "text/yaml",

    # -------------------------------------------------------------------------
    # STRUCTURED DATA
    # -------------------------------------------------------------------------
    "atom": "application/atom+xml",
    "json": "application/json",
    "map": "application/json",
    "rss": "application/rss+xml",
    "wsdl": "application/wsdl+xml",
    "xml": "application/xml",

    # -------------------------------------------------------------------------
    # SOURCE CODE
    # -------------------------------------------------------------------------
    "php": "application/x-httpd-php",
    "py": "text/x-python",

    # -------------------------------------------------------------------------
    # IMAGE TYPES
    # -------------------------------------------------------------------------
    "avif": "image/avif",
    "bmp": "image/bmp",
    "gif": "image/gif",
    "ico": "image/x-icon",
    "jpe": "image/jpeg",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "pbm": "image/x-portable-bitmap",
    "pgm": "image/x-portable-graymap",
    "png": "image/png",
    "pnm": "image/x-portable-anymap",
    "ppm": "image/x-portable-pixmap",
    "ras": "image/x-cmu-raster",
    "svg": "image/svg+xml",
    "tif": "image/tiff",
    "tiff": "image/tiff",
    "webp": "image/webp",
    "xbm": "image/x-xbitmap",
    "xpm": "image/x-xpixmap",
    "xwd": "image/x-xwindowdump",

    # -------------------------------------------------------------------------
    # FONT TYPES
    # -------------------------------------------------------------------------
    "eot": "application/vnd.ms-fontobject",
    "otf": "font/otf",
    "ttf": "application/x-font-ttf",
    "woff": "application/x-font-woff",
    "woff2": "font/woff2",

    # -------------------------------------------------------------------------
    # AUDIO TYPES
    # -------------------------------------------------------------------------
    "aac": "audio/x-aac",
    "aif": "audio/x-aiff",
    "flac": "audio/flac",
    "m4a": "audio/mp4",
    "mid": "audio/midi",
    "midi": "audio/midi",
    "mp3": "audio/mpeg",
    "mp4a": "audio/mp4",
    "oga": "audio/ogg",
    "ogg": "audio/ogg",
    "wav": "audio/x-wav",
    "wma": "audio/x-ms-wma",

    # -------------------------------------------------------------------------
    # VIDEO TYPES
    # -------------------------------------------------------------------------
    "3gp": "video/3gpp",
    "asf": "video/x-ms-asf",
    "avi": "video/x-msvideo",
    "flv": "video/x-flv",
    "m4v": "video/mp4",
    "mkv": "video/x-matroska",
    "mov": "video/quicktime",
    "mp4": "video/mp4",
    "mp4v": "video/mp4",
    "mpe": "video/mpeg",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    "mpg4": "video/mp4",
    "ogv": "video/ogg",
    "qt": "video/quicktime",
    "webm": "video/webm",
    "wmv": "video/x-ms-wmv",

    # -------------------------------------------------------------------------
    # DOCUMENT TYPES
    # -------------------------------------------------------------------------
    "ai": "application/postscript",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "dvi": "application/x-dvi",
    "eps": "application/postscript",
    "epub": "application/epub+zip",
    "latex": "application/x-latex",
    "pdf": "application/pdf",
    "ppt": "application/vnd.ms-powerpoint",
    "pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "ps": "application/postscript",
    "rtf": "application/rtf",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",

    # -------------------------------------------------------------------------
    # ARCHIVES AND BINARIES
    # -------------------------------------------------------------------------
    "7z": "application/x-7z-compressed",
    "bz2": "application/x-bzip2",
    "cer": "application/pkix-cert",
    "crl": "application/pkix-crl",
    "crt": "application/x-x509-ca-cert",
    "cu": "application/cu-seeme",
    "deb": "application/x-debian-package",
    "gz": "application/gzip",
    "iso": "application/x-iso9660-image",
    "jar": "application/java-archive",
    "ogx": "application/ogg",
    "rar": "application/x-rar-compressed",
    "swf": "application/x-shockwave-flash",
    "tar": "application/x-tar",
    "torrent": "application/x-bittorrent",
    "wasm": "application/wasm",
    "zip": "application/zip",
}

# Default MIME type for unknown content
DEFAULT_MIME_TYPE = "application/octet-stream"

# File signatures ("magic numbers") checked by get_from_content()
MAGIC_NUMBERS = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x1f\x8b", "application/gzip"),
    (b"BZh", "application/x-bzip2"),
    (b"7z\xbc\xaf\x27\x1c", "application/x-7z-compressed"),
    (b"OggS", "audio/ogg"),
    (b"RIFF", "audio/x-wav"),
    (b"\x00asm", "application/wasm"),
)


# =============================================================================
# PUBLIC FUNCTIONS
# =============================================================================

def get_from_extension(extension: str) -> Optional[str]:
    """
    Get the MIME type for a file extension (case-insensitive, no dot).

    Examples:
        >>> get_from_extension("JSON")
        'application/json'
        >>> get_from_extension("whatever") is None
        True
    """
    return MIME_TYPES.get(extension.lower())


def get_from_filename(filename: Union[str, Path]) -> Optional[str]:
    """Get the MIME type from the extension of a file name or path."""
    suffix = Path(filename).suffix

    if not suffix:
        return None

    return get_from_extension(suffix[1:])


def get_from_content(content: Union[str, bytes]) -> Optional[str]:
    """
    Guess the MIME type of a body from its bytes.

    Known file signatures win; otherwise UTF-8 text is classified as
    PHP source, JSON, XML, HTML or plain text and everything else is
    reported as binary.

    Examples:
        >>> get_from_content("foo")
        'text/plain'
        >>> get_from_content(b"")
        'application/x-empty'
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    if not content:
        return "application/x-empty"

    for signature, mime_type in MAGIC_NUMBERS:
        if content.startswith(signature):
            return mime_type

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError:
        return DEFAULT_MIME_TYPE

    stripped = text.lstrip()
    lowered = stripped[:64].lower()

    if lowered.startswith("<?php"):
        return "text/x-php"

    if lowered.startswith("<?xml"):
        return "text/xml"

    if lowered.startswith(("<!doctype html", "<html")):
        return "text/html"

    if stripped[:1] in ("{", "["):
        try:
            json.loads(text)
        except ValueError:
            pass
        else:
            return "application/json"

    return "text/plain"


def is_text_type(mime_type: str) -> bool:
    """
    Check if a MIME type represents text content.

    Text content can (and should) be served with a charset parameter.

    Examples:
        >>> is_text_type("application/json")
        True
        >>> is_text_type("image/png")
        False
    """
    if mime_type.startswith("text/"):
        return True

    return mime_type in {
        "application/json",
        "application/xml",
        "application/atom+xml",
        "application/rss+xml",
        "image/svg+xml",
    }


def get_content_type(path: Union[str, Path], charset: str = "utf-8") -> str:
    """
    Get the full Content-Type header value for a file name.

    Examples:
        >>> get_content_type("page.html")
        'text/html; charset=utf-8'
        >>> get_content_type("unknown.xyz")
        'application/octet-stream'
    """
    mime_type = get_from_filename(path) or DEFAULT_MIME_TYPE

    if is_text_type(mime_type):
        return f"{mime_type}; charset={charset}"

    return mime_type
