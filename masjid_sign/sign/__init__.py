from .engine import SignEngine, SignState
from .resolver import Resolution, resolve
from .downtime import DowntimeRule, is_downtime

__all__ = ["SignEngine", "SignState", "Resolution", "resolve", "DowntimeRule", "is_downtime"]
