"""
Ticket bootstrap.

BootstrapSystem creates the ticket directory for a new task and seeds it
with templates, a context scaffold, an optional worktree and status.yaml.
"""

from .system import BootstrapError, BootstrapSystem
from .templates import DESIGN_TEMPLATES, NOTES_TEMPLATES, TemplateError, TemplateManager

__all__ = [
    "BootstrapError",
    "BootstrapSystem",
    "DESIGN_TEMPLATES",
    "NOTES_TEMPLATES",
    "TemplateError",
    "TemplateManager",
]
