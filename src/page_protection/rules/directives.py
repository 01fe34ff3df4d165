"""Directive scanning in page markup.

Recognises the parser-function syntax used to declare page access::

    {{#allow-groups: sysop | bot}}

Key responsibilities:

* **find** the argument lists of every directive occurrence, in document
  order.
* **render** the page with the directives removed; a directive never
  produces visible output.
* **parse** a page into the rule it declares, threading the accumulated
  rule through :func:`~page_protection.rules.extractor.extract` once per
  occurrence.

Directive names match case-insensitively.  ``{{#allow-groups}}`` and
``{{#allow-groups:}}`` are zero-argument directives.
"""
from __future__ import annotations

import logging
import re

from page_protection.core.config import ProtectionConfig
from page_protection.core.types import ParseResult
from page_protection.rules.extractor import extract_all

logger = logging.getLogger(__name__)


def directive_pattern(name: str) -> re.Pattern[str]:
    """Compile the pattern matching ``{{#name}}`` and ``{{#name: ...}}``.

    Group 1 holds the raw argument text (``None`` without a colon).
    Arguments may not contain braces, so directives do not nest.
    """
    return re.compile(
        r"\{\{\s*#" + re.escape(name) + r"\s*(?::([^{}]*))?\}\}",
        re.IGNORECASE,
    )


def split_arguments(raw: str | None, separator: str = "|") -> list[str]:
    """Split raw directive text into arguments.

    Blank argument text means no arguments at all; otherwise every
    separator-delimited piece is an argument, blank ones included.
    """
    if raw is None or not raw.strip():
        return []
    return raw.split(separator)


class DirectiveScanner:
    """Finds and strips access directives in page markup.

    Parameters
    ----------
    config:
        Supplies the directive name and the argument separator.
    """

    def __init__(self, config: ProtectionConfig | None = None) -> None:
        self._config = config or ProtectionConfig()
        self._pattern = directive_pattern(self._config.directive_name)

    @property
    def pattern(self) -> re.Pattern[str]:
        return self._pattern

    def find(self, text: str) -> list[list[str]]:
        """Return the argument list of every directive in *text*."""
        return [
            split_arguments(match.group(1), self._config.separator)
            for match in self._pattern.finditer(text)
        ]

    def render(self, text: str) -> str:
        """Return *text* with every directive replaced by the empty string."""
        return self._pattern.sub("", text)

    def parse(self, text: str, existing_rule: str | None = None) -> ParseResult:
        """Scan *text* and build the rule it declares.

        Parameters
        ----------
        text:
            Page markup.
        existing_rule:
            Rule accumulated before this text in the same parse pass.  A
            fresh parse of a whole page passes ``None``.
        """
        occurrences = self.find(text)
        rule = extract_all(occurrences, existing_rule, separator=self._config.separator)
        if occurrences:
            logger.debug(
                "Parsed %d %s directive(s), rule=%r",
                len(occurrences),
                self._config.directive_name,
                rule,
            )
        return ParseResult(
            rule=rule,
            rendered=self.render(text),
            directives=len(occurrences),
        )
