from schedule_hub.core.config import Settings, settings
from schedule_hub.core.logging import configure_logging

__all__ = ["Settings", "settings", "configure_logging"]
