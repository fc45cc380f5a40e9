import logging
import re
from urllib.parse import urlparse
from datetime import datetime
from pathlib import Path

import requests
from tqdm.auto import tqdm

__all__ = ["WP_DATETIME_FMT", "to_datetime", "is_dir",
           "download_file", "sanitize_filename"]

logger = logging.getLogger(__name__)

WP_DATETIME_FMT = "%Y-%m-%dT%H:%M:%S"

def to_datetime(dt):
    if isinstance(dt, str):
        return datetime.strptime(dt, WP_DATETIME_FMT)
    return dt

def is_dir(path):
    if isinstance(path, str) and path.endswith("/"):
        return True
    return Path(path).is_dir()

_INVALID_NAME_CHARS = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-+")

def sanitize_filename(name):
    name = name.strip().lower().replace(" ", "-")
    name = _INVALID_NAME_CHARS.sub("", name)
    name = _DASH_RUNS.sub("-", name)
    return name.strip("-")

def download_file(url, download_to=None, progress=False, exists_ok=True,
                  overwrite=False, ok_errs=None, chunk_size=8192, max_size=None,
                  session=None, timeout=30):
    name = urlparse(url).path.split("/")[-1]
    if download_to is None:
        download_to = name
    download_path = Path(download_to)
    if is_dir(download_to):
        download_path = download_path / name
    already_exists = download_path.exists()
    if already_exists and not exists_ok:
        raise RuntimeError(f"File already exists at {download_path!s}")
    if already_exists and not overwrite:
        return download_path
    getter = requests if session is None else session
    with getter.get(url, stream=True, timeout=timeout) as r:
        if ok_errs and r.status_code in ok_errs:
            return None
        r.raise_for_status()
        total_size = int(r.headers.get("content-length", 0))
        if max_size is not None and total_size > max_size:
            raise RuntimeError(f"File at {url!r} larger than max size: {total_size} > {max_size}")
        download_path.parent.mkdir(parents=True, exist_ok=True)
        with tqdm(total=total_size, unit="iB", unit_scale=True,
            disable=not progress, desc=f"download {name}", leave=False) as pbar:
            try:
                with download_path.open(mode="wb") as f:
                    for chunk in r.iter_content(chunk_size=chunk_size):
                        if chunk:  # filter out keep-alive new chunks
                            pbar.update(len(chunk))
                            f.write(chunk)
            except BaseException:
                download_path.unlink(missing_ok=True)
                raise
    logger.debug("downloaded %s to %s", url, download_path)
    return download_path
