"""Combine the host's builtin index value with extracted PDF text."""

from __future__ import annotations

from .schema import DiscardPolicy, ExtractionResult

SEPARATOR = " ... "


def merge_index_value(
    builtin: str | None,
    result: ExtractionResult | None,
    policy: DiscardPolicy = DiscardPolicy.APPEND,
) -> str:
    """Return the final index value for a file.

    A failed (or missing) extraction counts as no extracted text. With
    ``discardAlways`` any successful extraction replaces the builtin value,
    even an empty one; ``discardIfExtracted`` only replaces it with non-empty
    text; ``append`` joins the non-empty parts with ``" ... "``.
    """
    builtin = builtin or ""
    succeeded = result is not None and result.succeeded
    text = (result.text or "") if succeeded else ""

    if policy == DiscardPolicy.DISCARD_ALWAYS and succeeded:
        return text
    if policy == DiscardPolicy.DISCARD_IF_EXTRACTED and text:
        return text
    if policy != DiscardPolicy.APPEND:
        return builtin
    return SEPARATOR.join(part for part in (builtin, text) if part)
