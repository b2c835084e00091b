"""Adapters connecting the core pipeline to MediaWiki, SQLite, and Discord."""
