"""Resolution engine, notifications and trigger wiring."""

from autosub.services.notifier import Notifier
from autosub.services.resolver import SubtitleResolver
from autosub.services.triggers import TriggerFrontEnd

__all__ = ["Notifier", "SubtitleResolver", "TriggerFrontEnd"]
