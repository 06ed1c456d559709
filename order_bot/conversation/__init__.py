"""
Conversation Package
====================

The ordering state machine and everything it needs to talk to customers:

- **states**: ConversationState transitions as an explicit table
- **parsing**: Command matching, product selection parsing, input classification
- **messages**: Customer-facing text templates
- **engine**: ConversationEngine, which applies the table to inbound messages
"""

from .engine import ConversationEngine
from .states import Action, Command, InputKind, TRANSITIONS

__all__ = ["ConversationEngine", "Action", "Command", "InputKind", "TRANSITIONS"]
