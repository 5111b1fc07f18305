"""Adapters that connect the core ports to Twitter, S3, SQLite, and SES."""
