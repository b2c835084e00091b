"""Core domain package for wikirelay.

Core contains filtering, classification, and embed formatting without any
HTTP or MediaWiki-specific code, keeping the business logic portable.
"""

__version__ = "0.1.0"

PROJECT_NAME = "wikirelay"
PROJECT_URL = "https://github.com/wikirelay/wikirelay"
