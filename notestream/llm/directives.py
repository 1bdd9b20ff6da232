"""
Directive Scanner

The notes assistant answers a question by emitting a line such as

    Query:[Plan for Summer]

instead of prose. The scanner finds the first such line in the text
streamed so far. It is a pure function of the text: the compositor calls
it again after every token and gets the same answer for the same input.
"""

import re
from enum import Enum
from typing import Optional, Pattern, Union

from notestream.core.config import settings
from notestream.core.logging import get_logger
from notestream.models.events import DirectiveMatch

logger = get_logger(__name__)


class DirectiveGrammar(str, Enum):
    """Built-in directive grammars"""
    LINE = "line"         # Query: rest of the line
    BRACKET = "bracket"   # Query:[term]


GRAMMAR_PATTERNS = {
    DirectiveGrammar.LINE: r"^Query: (.*)$",
    DirectiveGrammar.BRACKET: r"Query:\s*\[([^\]]+)\]",
}

# A rest-of-line capture is only trustworthy once the line has ended
_OPEN_ENDED = {DirectiveGrammar.LINE}


class DirectiveScanner:
    """
    Finds the first directive line in accumulated assistant text.
    """

    def __init__(
        self,
        pattern: Union[str, Pattern[str]] = GRAMMAR_PATTERNS[DirectiveGrammar.BRACKET],
        complete_lines_only: bool = False
    ):
        """
        Initialize scanner.

        Args:
            pattern: Regex with exactly one capture group holding the term
            complete_lines_only: Ignore the unterminated last line until the
                stream is final (needed for rest-of-line patterns)

        Raises:
            ValueError: If the pattern does not have exactly one group
        """
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        if compiled.groups != 1:
            raise ValueError(
                f"Directive pattern must have exactly one capture group, "
                f"got {compiled.groups}: {compiled.pattern!r}"
            )
        self.pattern = compiled
        self.complete_lines_only = complete_lines_only

    @classmethod
    def for_grammar(cls, grammar: Union[str, DirectiveGrammar]) -> "DirectiveScanner":
        """Build a scanner for a built-in grammar"""
        try:
            grammar = DirectiveGrammar(grammar)
        except ValueError:
            raise ValueError(
                f"Unsupported directive grammar: {grammar}. "
                f"Supported grammars: {[g.value for g in DirectiveGrammar]}"
            ) from None
        return cls(
            pattern=GRAMMAR_PATTERNS[grammar],
            complete_lines_only=grammar in _OPEN_ENDED,
        )

    def scan(self, text: str, final: bool = False) -> Optional[DirectiveMatch]:
        """
        Locate the first directive in text.

        Only the first matching line counts. If its term is blank there
        is no directive, even when a later line would match.

        Args:
            text: All assistant text received so far
            final: True once the stream has ended

        Returns:
            DirectiveMatch or None
        """
        lines = text.split("\n")
        if self.complete_lines_only and not final:
            lines = lines[:-1]

        for line in lines:
            match = self.pattern.search(line.rstrip("\r"))
            if match is None:
                continue
            term = (match.group(1) or "").strip()
            if not term:
                return None
            return DirectiveMatch(term=term)
        return None


def get_scanner() -> DirectiveScanner:
    """Build the scanner described by settings"""
    if settings.DIRECTIVE_PATTERN:
        logger.debug(f"Using custom directive pattern: {settings.DIRECTIVE_PATTERN}")
        return DirectiveScanner(
            pattern=settings.DIRECTIVE_PATTERN,
            complete_lines_only=settings.DIRECTIVE_PATTERN.rstrip().endswith("$"),
        )
    return DirectiveScanner.for_grammar(settings.DIRECTIVE_GRAMMAR)


def scan(text: str, final: bool = False) -> Optional[DirectiveMatch]:
    """Convenience function to scan with the configured grammar"""
    return get_scanner().scan(text, final=final)
