"""Parts for a Telegram group bot: API client, cache, captcha state, under-attack mode and analytics."""

__version__ = "0.1.0"