"""
Discord guild moderation bot.
"""

__version__ = "1.0.0"
__description__ = "Discord moderation bot with slash command routing"

from .client import GuildModBot, create_bot, push_commands, run_bot

__all__ = ["GuildModBot", "create_bot", "push_commands", "run_bot", "__version__"]
