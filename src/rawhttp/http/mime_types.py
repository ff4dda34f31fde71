"""
=============================================================================
CONTENT TYPE SNIFFING
=============================================================================

Determines the Content-Type of a file from its CONTENT, not its name.

=============================================================================
WHY SNIFF?
=============================================================================

A file called "report" with no extension, or "logo.dat" that is really a
PNG, still gets a sensible Content-Type. The algorithm follows the WHATWG
MIME Sniffing standard (https://mimesniff.spec.whatwg.org/), the same one
browsers use:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SNIFFING ALGORITHM                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. Look at the first 512 bytes only                               │
    │   2. Try each signature in order, first match wins:                 │
    │        - HTML tags      (leading whitespace skipped)                │
    │        - XML, PDF, PostScript                                       │
    │        - byte order marks                                           │
    │        - images, audio, video, fonts, archives                      │
    │   3. No match and no binary control bytes → text/plain              │
    │   4. Anything else                        → application/octet-stream│
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""


SNIFF_LENGTH = 512

TEXT_PLAIN = "text/plain; charset=utf-8"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Whitespace bytes skipped before HTML/XML signatures
WHITESPACE = b"\t\n\x0c\r "

# A tag name must be followed by one of these to count as a match
# ("<br>" and "<br " match, "<bread" does not).
TAG_TERMINATORS = b" >"


# =============================================================================
# HTML SIGNATURES
# =============================================================================
#
# Matched case-insensitively after skipping leading whitespace.
#
# =============================================================================

HTML_SIGNATURES = [
    b"<!DOCTYPE HTML",
    b"<HTML",
    b"<HEAD",
    b"<SCRIPT",
    b"<IFRAME",
    b"<H1",
    b"<DIV",
    b"<FONT",
    b"<TABLE",
    b"<A",
    b"<STYLE",
    b"<TITLE",
    b"<B",
    b"<BODY",
    b"<BR",
    b"<P",
    b"<!--",
]

HTML_MIME_TYPE = "text/html; charset=utf-8"


# =============================================================================
# MASKED SIGNATURES
# =============================================================================
#
# (mask, pattern, skip_whitespace, mime type)
#
# A byte matches when (data[i] & mask[i]) == pattern[i]. A 0x00 mask byte
# means "any value here" - used for the length fields inside RIFF headers.
#
# =============================================================================

MASKED_SIGNATURES = [
    # -------------------------------------------------------------------------
    # TEXT DOCUMENTS
    # -------------------------------------------------------------------------
    (b"\xff\xff\xff\xff\xff", b"<?xml", True, "text/xml; charset=utf-8"),
    (b"\xff\xff\xff\xff\xff", b"%PDF-", False, "application/pdf"),
    (b"\xff" * 11, b"%!PS-Adobe-", False, "application/postscript"),

    # -------------------------------------------------------------------------
    # BYTE ORDER MARKS
    # -------------------------------------------------------------------------
    (b"\xff\xff\x00\x00", b"\xfe\xff\x00\x00", False, "text/plain; charset=utf-16be"),
    (b"\xff\xff\x00\x00", b"\xff\xfe\x00\x00", False, "text/plain; charset=utf-16le"),
    (b"\xff\xff\xff\x00", b"\xef\xbb\xbf\x00", False, TEXT_PLAIN),

    # -------------------------------------------------------------------------
    # IMAGES
    # -------------------------------------------------------------------------
    (b"\xff\xff\xff\xff", b"\x00\x00\x01\x00", False, "image/x-icon"),
    (b"\xff\xff\xff\xff", b"\x00\x00\x02\x00", False, "image/x-icon"),
    (b"\xff\xff", b"BM", False, "image/bmp"),
    (b"\xff\xff\xff\xff\xff\xff", b"GIF87a", False, "image/gif"),
    (b"\xff\xff\xff\xff\xff\xff", b"GIF89a", False, "image/gif"),
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WEBPVP",
        False,
        "image/webp",
    ),
    (b"\xff" * 8, b"\x89PNG\r\n\x1a\n", False, "image/png"),
    (b"\xff\xff\xff", b"\xff\xd8\xff", False, "image/jpeg"),

    # -------------------------------------------------------------------------
    # AUDIO / VIDEO
    # -------------------------------------------------------------------------
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"FORM\x00\x00\x00\x00AIFF",
        False,
        "audio/aiff",
    ),
    (b"\xff\xff\xff", b"ID3", False, "audio/mpeg"),
    (b"\xff\xff\xff\xff\xff", b"OggS\x00", False, "application/ogg"),
    (b"\xff" * 8, b"MThd\x00\x00\x00\x06", False, "audio/midi"),
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00AVI ",
        False,
        "video/avi",
    ),
    (
        b"\xff\xff\xff\xff\x00\x00\x00\x00\xff\xff\xff\xff",
        b"RIFF\x00\x00\x00\x00WAVE",
        False,
        "audio/wave",
    ),
    (b"\xff\xff\xff\xff", b"\x1a\x45\xdf\xa3", False, "video/webm"),

    # -------------------------------------------------------------------------
    # FONTS
    # -------------------------------------------------------------------------
    (b"\xff\xff\xff\xff", b"\x00\x01\x00\x00", False, "font/ttf"),
    (b"\xff\xff\xff\xff", b"OTTO", False, "font/otf"),
    (b"\xff\xff\xff\xff", b"ttcf", False, "font/collection"),
    (b"\xff\xff\xff\xff", b"wOFF", False, "font/woff"),
    (b"\xff\xff\xff\xff", b"wOF2", False, "font/woff2"),

    # -------------------------------------------------------------------------
    # ARCHIVES
    # -------------------------------------------------------------------------
    (b"\xff\xff\xff", b"\x1f\x8b\x08", False, "application/x-gzip"),
    (b"\xff\xff\xff\xff", b"PK\x03\x04", False, "application/zip"),
    (b"\xff" * 7, b"Rar!\x1a\x07\x00", False, "application/x-rar-compressed"),
    (b"\xff" * 8, b"Rar!\x1a\x07\x01\x00", False, "application/x-rar-compressed"),
    (b"\xff\xff\xff\xff", b"\x00asm", False, "application/wasm"),
]


def _skip_whitespace(data: bytes) -> bytes:
    return data.lstrip(WHITESPACE)


def _match_html(data: bytes) -> bool:
    data = _skip_whitespace(data)
    for signature in HTML_SIGNATURES:
        if len(data) < len(signature) + 1:
            continue
        if data[:len(signature)].upper() != signature:
            continue
        if data[len(signature)] in TAG_TERMINATORS:
            return True
    return False


def _match_masked(data: bytes, mask: bytes, pattern: bytes, skip_ws: bool) -> bool:
    if skip_ws:
        data = _skip_whitespace(data)
    if len(data) < len(pattern):
        return False
    return all((data[i] & mask[i]) == pattern[i] for i in range(len(pattern)))


def _match_mp4(data: bytes) -> bool:
    """
    ISO base media file: a leading "ftyp" box whose brands include "mp4".

        [box size: 4 bytes BE]["ftyp"][major brand][minor version][brands...]
    """
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if len(data) < box_size or box_size % 4 != 0:
        return False
    if data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            continue  # minor version, not a brand
        if data[start:start + 3] == b"mp4":
            return True
    return False


def _is_binary_byte(byte: int) -> bool:
    return (
        byte <= 0x08
        or byte == 0x0B
        or 0x0E <= byte <= 0x1A
        or 0x1C <= byte <= 0x1F
    )


def detect_content_type(data: bytes) -> str:
    """
    Sniff the MIME type of some content.

    Args:
        data: File content. Only the first 512 bytes are examined.

    Returns:
        A Content-Type value. Never empty; unknown binary content is
        "application/octet-stream".

    Example:
        >>> detect_content_type(b"<html><body>hi</body></html>")
        'text/html; charset=utf-8'
        >>> detect_content_type(b"plain old text")
        'text/plain; charset=utf-8'
    """
    data = data[:SNIFF_LENGTH]

    if _match_html(data):
        return HTML_MIME_TYPE

    for mask, pattern, skip_ws, mime_type in MASKED_SIGNATURES:
        if _match_masked(data, mask, pattern, skip_ws):
            return mime_type

    if _match_mp4(data):
        return "video/mp4"

    if any(_is_binary_byte(byte) for byte in data):
        return DEFAULT_MIME_TYPE

    return TEXT_PLAIN

