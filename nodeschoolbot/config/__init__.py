"""Configuration for the bot.

Example:
    >>> from nodeschoolbot.config import BotSettings
    >>> settings = BotSettings.load()
    >>> settings.mention
    '@nodeschoolbot'
"""

from nodeschoolbot.config.settings import BotSettings

__all__ = ["BotSettings"]
