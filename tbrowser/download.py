import re
from pathlib import Path
from urllib.parse import urlparse

from loguru import logger

from tbrowser.errors import DownloadError


def default_download_name(url, as_text=False):
    p = urlparse(url)
    name = Path(p.path).name or p.netloc or "page"
    name = re.sub(r"[^\w.-]+", "_", name).strip("._") or "page"
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return stem + (".txt" if as_text else ".html")


def write_file(path, data):
    path = Path(path).expanduser()
    try:
        path.write_bytes(data)
    except OSError as e:
        msg = f"Cannot write {str(path)!r}: {e}"
        raise DownloadError(msg) from e
    logger.info(f"Wrote {len(data)} bytes to {str(path)!r}")
    return path


def download(doc, path=None):
    """Save the page: rendered text for a .txt path, raw markup otherwise."""
    if path is None:
        path = default_download_name(doc.url)
    as_text = str(path).lower().endswith(".txt")
    body = doc.text() if as_text else doc.raw_html
    return write_file(path, body.encode("utf-8"))
