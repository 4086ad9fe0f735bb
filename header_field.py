"""
Boundary for header-construction callers: takes a field value as ``str``
and hands back its 7-bit encoding from encoded_word.encode().

All of the encoding work is delegated to the pure kernel in encoded_word.py,
whose properties are covered by its lemmas.  What lives here is the part a
caller sees around it: debug logging, an opt-in self-check, and a counter
for how many encoded words a value turns into.
"""

import logging

from encoded_word import (
    encode,
    encode_word_segments,
    iter_encoded_payloads,
    lemma_ascii_identity,
    lemma_encoded_output,
    lemma_encoded_payloads,
    lemma_output_ascii,
    lemma_segment_capacity,
    lemma_split_tokens_partition,
)

logger = logging.getLogger(__name__)


def count_encoded_words(value):
    """Number of encoded words encode(value) produces."""
    return sum(
        len(encode_word_segments(payload))
        for _literal, payload in iter_encoded_payloads(value)
        if payload is not None
    )


def check_encoded(text):
    """
    Run every kernel lemma against one input, including the ones that
    walk the actual output of encode(text).
    Returns True iff all hold; raises AssertionError otherwise.
    """
    lemma_segment_capacity()
    lemma_split_tokens_partition(text)
    lemma_ascii_identity(text)
    lemma_output_ascii(text)
    lemma_encoded_payloads(text)
    lemma_encoded_output(text)
    return True


def encode_header(value, check=False):
    """
    Encode a header field value for an ASCII-only transport.

    With check=True the kernel lemmas are run on value first, which costs
    a second pass over the input.
    """
    if check:
        check_encoded(value)

    encoded = encode(value)
    if not logger.isEnabledFor(logging.DEBUG):
        return encoded

    if encoded is value:
        logger.debug("header value passed through unchanged (%d chars)", len(value))
    else:
        logger.debug(
            "header value encoded: %d chars -> %d chars, %d encoded words",
            len(value), len(encoded), count_encoded_words(value),
        )
    return encoded
