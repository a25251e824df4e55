# src/vfs/mime.py — v1
"""MIME type inference from file name extensions."""

from __future__ import annotations

DEFAULT_MIME_TYPE = "application/octet-stream"

MIME_TYPES: dict[str, str] = {
    # Text
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "mjs": "text/javascript",
    "cjs": "text/javascript",
    "json": "application/json",
    "xml": "application/xml",
    "txt": "text/plain",
    "md": "text/markdown",
    "csv": "text/csv",
    "ts": "text/typescript",
    # Images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "tif": "image/tiff",
    "avif": "image/avif",
    # Video
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogv": "video/ogg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mkv": "video/x-matroska",
    "m4v": "video/mp4",
    "mpeg": "video/mpeg",
    "mpg": "video/mpeg",
    # Audio
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "oga": "audio/ogg",
    "flac": "audio/flac",
    "aac": "audio/aac",
    "m4a": "audio/mp4",
    "mid": "audio/midi",
    "midi": "audio/midi",
    # Fonts
    "ttf": "font/ttf",
    "otf": "font/otf",
    "woff": "font/woff",
    "woff2": "font/woff2",
    "eot": "application/vnd.ms-fontobject",
    # Archives and documents
    "zip": "application/zip",
    "gz": "application/gzip",
    "tar": "application/x-tar",
    "7z": "application/x-7z-compressed",
    "bz2": "application/x-bzip2",
    "pdf": "application/pdf",
    # Web
    "wasm": "application/wasm",
    "webmanifest": "application/manifest+json",
    "manifest": "text/cache-manifest",
    "map": "application/json",
    "bin": "application/octet-stream",
}


def guess_mime_type(filename: str) -> str:
    """MIME type for a file name or URL path; query and fragment are ignored."""
    if not filename:
        return DEFAULT_MIME_TYPE
    clean = filename.split("?", 1)[0].split("#", 1)[0]
    name = clean.rsplit("/", 1)[-1]
    if "." not in name:
        return DEFAULT_MIME_TYPE
    ext = name.rsplit(".", 1)[-1].lower()
    return MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)


def is_text_mime_type(mime_type: str) -> bool:
    return (
        mime_type.startswith("text/")
        or mime_type in ("application/json", "application/xml", "image/svg+xml")
    )


def get_content_type(mime_type: str) -> str:
    """Content-Type header value, with a utf-8 charset for text types."""
    if is_text_mime_type(mime_type) and "charset=" not in mime_type:
        return f"{mime_type}; charset=utf-8"
    return mime_type
