from .core import WordPressAPI
from .posts import WordPressPost
from .convert import html_to_markdown, MarkdownConverter
from .media import ImageDownloader
from .sync import ContentDirectory, PostSyncer, sync_to_directory

__version__ = "0.1.0"
