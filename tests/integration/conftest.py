"""Integration test configuration - set env vars before any constellation imports."""

import os

# Set required environment variables BEFORE any constellation module is imported.
# This prevents pydantic Settings validation from failing.
os.environ.setdefault("NOTION_API_KEY", "test-notion-key")
os.environ.setdefault("NOTION_KEYWORDS_DB_ID", "test-keywords-db")
