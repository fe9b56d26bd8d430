"""Infrastructure adapters (Telegram, archiving, configuration, logging)."""
