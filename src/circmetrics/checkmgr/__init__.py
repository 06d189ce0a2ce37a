"""Check management: trap resolution, broker selection and metric inventory."""

from .broker import get_broker, get_broker_cn, select_broker
from .manager import CheckManager, ResolutionStatus, Trap, TrapState
from .metrics import MetricInventory
from .secret import INSECURE_FALLBACK_SECRET, SecretResult, generate_secret, make_secret
from .submit import submit_metrics

__all__ = [
    "CheckManager",
    "INSECURE_FALLBACK_SECRET",
    "MetricInventory",
    "ResolutionStatus",
    "SecretResult",
    "Trap",
    "TrapState",
    "generate_secret",
    "get_broker",
    "get_broker_cn",
    "make_secret",
    "select_broker",
    "submit_metrics",
]
