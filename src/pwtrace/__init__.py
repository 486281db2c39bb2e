"""pwtrace: Playwright trace archive naming, tagging and HTML reports."""

__version__ = "0.1.0"
