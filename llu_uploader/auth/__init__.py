"""LibreLink Up authentication, session and API client."""
