"""Graph workflow for MisIntel."""

from .workflow import (
    AdvancedCheckOrchestrator,
    build_orchestrator,
    create_check_workflow,
    validate_request,
)
from .state import CheckState

__all__ = [
    "AdvancedCheckOrchestrator",
    "build_orchestrator",
    "create_check_workflow",
    "validate_request",
    "CheckState",
]
