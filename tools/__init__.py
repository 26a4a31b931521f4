"""Evidence and input-processing tools for MisIntel."""

from .base import BaseTool, Lookup, LookupStatus

# Evidence sources
from .google_factcheck import GoogleFactCheckTool
from .custom_search import CustomSearchTool
from .safe_browsing import SafeBrowsingTool
from .newsapi_search import NewsAPITool

# Content acquisition
from .url_extractor import URLContentExtractor, html_to_text
from .ocr import ImageTextExtractor
from .speech import SpeechToTextTool

__all__ = [
    # Base
    "BaseTool",
    "Lookup",
    "LookupStatus",

    # Evidence sources
    "GoogleFactCheckTool",
    "CustomSearchTool",
    "SafeBrowsingTool",
    "NewsAPITool",

    # Content acquisition
    "URLContentExtractor",
    "html_to_text",
    "ImageTextExtractor",
    "SpeechToTextTool",
]
