"""notion-mirror: one-way backup of a Notion workspace onto local storage.

Top-level package. Subpackages:
    notion_api: HTTP client for the Notion REST API (auth, retries, pagination)
    mirror: crawl, write and reconcile the local mirror
    cli: the `notion-mirror` command
"""

__version__ = "0.1.0"
