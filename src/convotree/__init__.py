"""convotree - branching chat conversations over an async transport."""

from convotree.builder import ConversationBuilder
from convotree.context import ConversationContext
from convotree.pagination import PaginationOptions, PaginationResult, PaginationState, paginate
from convotree.runner import ConversationOutcome, EnterConversation, TreeConversation, create_tree_conversation
from convotree.selection import make_selection_node
from convotree.steps import CANCEL, ROW_BREAK, ButtonOption, ButtonStep, Deferred, TextStep, resolve_step

__version__ = "0.1.0"

__all__ = [
    "CANCEL",
    "ROW_BREAK",
    "ButtonOption",
    "ButtonStep",
    "ConversationBuilder",
    "ConversationContext",
    "ConversationOutcome",
    "Deferred",
    "EnterConversation",
    "PaginationOptions",
    "PaginationResult",
    "PaginationState",
    "TextStep",
    "TreeConversation",
    "create_tree_conversation",
    "make_selection_node",
    "paginate",
    "resolve_step",
]
