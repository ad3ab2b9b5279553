"""Interactive UI components for picking a transaction category."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="gro" matches "groceries"
        query="trp" matches "transportation"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class CategoryCompleter(Completer):
    """Fuzzy search completer over a ledger's categories."""

    def __init__(self, categories: list[str]):
        """Initialize the completer with available categories."""
        self.categories = categories

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for category in self.categories:
            if not query or fuzzy_match(query, category.lower()):
                yield Completion(
                    text=category,
                    start_position=-len(document.text),
                    display=category,
                )


def select_category_interactive(
    categories: list[str], transaction_label: str
) -> str | None:
    """
    Interactive category selection with fuzzy search.

    Any non-empty text is accepted, so new categories can be typed in.

    Args:
        categories: Known categories of the ledger
        transaction_label: Short description shown above the prompt

    Returns:
        Chosen category, or None to skip
    """
    print(f"\n📝 Category for: {transaction_label}")
    print("   Type to search, press Enter to confirm, Ctrl+C to skip\n")

    session: PromptSession[str] = PromptSession(
        completer=CategoryCompleter(categories)
    )

    try:
        result = session.prompt("Category: ", complete_while_typing=True).strip()
    except (KeyboardInterrupt, EOFError):
        print("\n⏭️  Skipped")
        return None

    if not result:
        return None

    logger.info(f"User selected category: {result}")
    return result
