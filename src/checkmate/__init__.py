"""
Checkmate - structured checklists in plain Markdown.

Keeps a live model of a checklist document (todo items, their states,
nesting and ``@tag(value)`` metadata) and edits the text through batched,
undoable transactions.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from checkmate.core.config.models import CheckmateConfig
from checkmate.core.document import Document
from checkmate.core.parser.models import TodoItem, TodoMap

__all__ = ["CheckmateConfig", "Document", "TodoItem", "TodoMap", "__version__"]
