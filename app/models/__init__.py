from app.models.bot_key import BotKey, BotKeyAudit
from app.models.submission import Submission

__all__ = ["BotKey", "BotKeyAudit", "Submission"]
