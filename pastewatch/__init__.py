"""
Pastewatch

Watches editor edit streams for bulk insertions (pastes, agent-generated code)
and gives the developer a timed review window before they start modifying it.

Philosophy:
- Sizing is deterministic and configuration-driven
- Review nudges are advisory, never blocking
- The user's own summary of the code is the review artifact

Usage:
    from pastewatch.common import load_config, LLMClient
    from pastewatch.common.schemas import EditEvent, ContentChange
    from pastewatch.monitor import BulkInsertMonitor, MilestoneScheduler, Session
"""

__version__ = "0.1.0"
