"""
Static file-extension → content-type table
"""
from pathlib import Path

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Evaluated in order, first match wins. Suffixes are lower-case.
CONTENT_TYPES: tuple[tuple[str, str], ...] = (
    (".html", "text/html"),
    (".htm", "text/html"),
    (".css", "text/css"),
    (".js", "application/javascript"),
    (".mjs", "application/javascript"),
    (".json", "application/json"),
    (".xml", "application/xml"),
    (".txt", "text/plain"),
    (".md", "text/markdown"),
    (".csv", "text/csv"),
    (".svg", "image/svg+xml"),
    (".png", "image/png"),
    (".jpg", "image/jpeg"),
    (".jpeg", "image/jpeg"),
    (".gif", "image/gif"),
    (".webp", "image/webp"),
    (".ico", "image/x-icon"),
    (".pdf", "application/pdf"),
    (".zip", "application/zip"),
    (".tar.gz", "application/gzip"),
    (".gz", "application/gzip"),
    (".tar", "application/x-tar"),
    (".woff2", "font/woff2"),
    (".woff", "font/woff"),
    (".ttf", "font/ttf"),
    (".mp4", "video/mp4"),
    (".mp3", "audio/mpeg"),
    (".wasm", "application/wasm"),
)


def content_type_for(path) -> str:
    """Return the content type for *path* based on its file name suffix."""
    name = Path(path).name.lower()
    for suffix, ctype in CONTENT_TYPES:
        if name.endswith(suffix):
            return ctype
    return DEFAULT_CONTENT_TYPE
