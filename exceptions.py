"""Exceptions raised by the bot."""


class BotError(Exception):
    pass


class ImageLoadError(BotError):
    """Template image is missing or cannot be decoded."""
    pass


class FrameProcessingError(BotError):
    """An image operation failed while matching a single template."""
    pass


class SettingsError(BotError):
    pass


class WindowNotFoundError(BotError):
    pass
