import logging
import posixpath
import time
from pathlib import Path
from urllib.parse import urlparse, unquote

from .utils import download_file, sanitize_filename

logger = logging.getLogger(__name__)

class ImageDownloader:
    """Downloads images embedded in post content into the site's static tree.

    Called with an image URL; returns the site path to use in the Markdown
    reference (``url_prefix`` + local file name).
    """
    def __init__(self, image_dir="static/images", url_prefix="/images/", *,
                 unique_names=True, progress=False, session=None, max_size=None):
        self.image_dir = Path(image_dir)
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"
        self.unique_names = unique_names
        self.progress = progress
        self.session = session
        self.max_size = max_size
        self._last_stamp = 0

    def local_name(self, image_url):
        basename = unquote(posixpath.basename(urlparse(image_url).path))
        stem, dot, suffix = basename.rpartition(".")
        if not dot:
            stem, suffix = basename, ""
        # keep the extension, Hugo serves by it
        name = sanitize_filename(stem) or "image"
        if suffix:
            name = f"{name}.{sanitize_filename(suffix)}"
        if self.unique_names:
            # strictly increasing, two images in one post can share a basename
            self._last_stamp = max(self._last_stamp + 1, time.time_ns())
            name = f"{self._last_stamp}_{name}"
        return name

    def __call__(self, image_url):
        name = self.local_name(image_url)
        path = download_file(image_url, self.image_dir / name, progress=self.progress,
                             overwrite=self.unique_names, max_size=self.max_size,
                             session=self.session)
        logger.info("Saved image %s", path)
        return self.url_prefix + name

    def __repr__(self):
        return f"<ImageDownloader {str(self.image_dir)!r} -> {self.url_prefix!r}>"
