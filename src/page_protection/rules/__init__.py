"""Rule extraction.

This subpackage turns inline access directives into the stored rule:

* **extract** -- merges one directive's groups into the accumulated rule.
* **DirectiveScanner** -- finds ``{{#allow-groups: ...}}`` directives in
  page markup, strips them from the rendered output and builds the rule.
* **decode_rule / encode_rule** -- the ``|``-joined storage form.
"""
from __future__ import annotations

from page_protection.rules.directives import DirectiveScanner, directive_pattern
from page_protection.rules.extractor import (
    decode_rule,
    encode_rule,
    extract,
    extract_all,
    normalize_group,
)

__all__ = [
    "DirectiveScanner",
    "directive_pattern",
    "decode_rule",
    "encode_rule",
    "extract",
    "extract_all",
    "normalize_group",
]
