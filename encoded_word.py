"""
Pure kernel: RFC 2047 "Q" encoded-word encoding for header field values.

This module has ZERO knowledge of where the text came from or where it goes.
No I/O, no logging, no global mutable state, no regex.  Every function is
pure and operates on plain ``str`` values.

The main property:

    ∀ s : str,
      decode_rfc2047(encode(s)) = s

where decode_rfc2047 is the inverse of the byte-escape and placeholder rules
together with the reader's rule that whitespace between two adjacent encoded
words is dropped.  Decoding is not implemented here; the property rests on:

  Lemma 1 (token partition):
      "".join(prefix + word for prefix, word in split_tokens(s)) == s

  Lemma 2 (segment capacity):
      prefix + suffix + buffer + data == 75, so a segment opened with
      at < MAX_LEN_ENCODED_DATA can take one more character of any width.

  Lemma 3 (segment length bound):
      every segment from encode_word_segments(w) has length <= 75 and no
      character's escapes straddle two segments.

  Lemma 4 (ASCII identity):
      s.isascii() -> encode(s) is s

  Lemma 5 (ASCII output):
      encode(s).isascii()

  Lemma 6 (payload partition):
      the (literal, payload) pairs rebuild s once the separators between
      adjacent payloads are dropped

  Lemma 7 (output framing):
      encode(s) is exactly those literals interleaved with the encoded
      words of each payload

All lemmas are checked at runtime by construction.
"""


# ═══════════════════════════════════════════════════════════════════════════
# Part 1: Format constants
# ═══════════════════════════════════════════════════════════════════════════

CHARSET = "utf-8"
ENCODED_WORD_PREFIX = "=?" + CHARSET + "?q?"
ENCODED_WORD_SUFFIX = "?="
ENCODED_WORD_SEPARATOR = " "

MAX_LEN_ENCODED_WORD = 75       # RFC 2047, section 2
LEN_ENCODED_WORD_PREFIX = 10    # "=?utf-8?q?"
LEN_ENCODED_WORD_SUFFIX = 2     # "?="
LEN_ENCODED_WORD_BUFFER = 4 * 3  # up to four UTF-8 bytes per char, "=XX" each
MAX_LEN_ENCODED_DATA = (
    MAX_LEN_ENCODED_WORD
    - LEN_ENCODED_WORD_PREFIX
    - LEN_ENCODED_WORD_SUFFIX
    - LEN_ENCODED_WORD_BUFFER
)

SPACE_PLACEHOLDER = "_"
ESCAPE_CHAR = "="

# ASCII whitespace that delimits tokens: space, \t, \n, \x0c, \r.
# \x0b (vertical tab) is not a delimiter.
WHITESPACE = " \t\n\x0c\r"

_ESCAPE_MAP = [ESCAPE_CHAR + "%02X" % b for b in range(256)]


# ═══════════════════════════════════════════════════════════════════════════
# Part 2: Character classifiers
# ═══════════════════════════════════════════════════════════════════════════

def is_ascii_char(c):
    """True iff c is a single code point in 0..127."""
    return ord(c) < 128


def is_ascii_text(s):
    """True iff every code point of s is ASCII.  The empty string is ASCII."""
    return s.isascii()


def is_space(c):
    """True iff c is token-delimiting whitespace: space, \\t, \\n, \\x0c, \\r."""
    return c in WHITESPACE


def is_literal(c):
    """
    True iff c may appear verbatim in an encoded-word body.
    Space is handled separately (it becomes the placeholder).
    """
    return is_ascii_char(c) and c != SPACE_PLACEHOLDER and c != ESCAPE_CHAR


# ═══════════════════════════════════════════════════════════════════════════
# Part 3: Token splitter
# ═══════════════════════════════════════════════════════════════════════════
#
# A token is a maximal run of non-whitespace.  Each token is paired with the
# whitespace run in front of it so that nothing is lost; whitespace after
# the last token comes back as a final pair with an empty word.
# ═══════════════════════════════════════════════════════════════════════════

def _skip_space(text, pos):
    while pos < len(text) and is_space(text[pos]):
        pos += 1
    return pos


def _skip_word(text, pos):
    while pos < len(text) and not is_space(text[pos]):
        pos += 1
    return pos


def split_tokens(text):
    """
    Split text into (prefix, word) pairs.

    prefix is the whitespace between the previous token and this one, word
    is the token itself.  Always advances, so it terminates on every input.
    """
    pairs = []
    pos = 0
    while pos < len(text):
        word_begin = _skip_space(text, pos)
        word_end = _skip_word(text, word_begin)
        pairs.append((text[pos:word_begin], text[word_begin:word_end]))
        pos = word_end
    return pairs


def lemma_split_tokens_partition(text):
    """
    Lemma 1: the pairs re-join to text, prefixes are pure whitespace and
    words are whitespace free.  Only the last word may be empty.
    Returns the pairs.
    """
    pairs = split_tokens(text)
    joined = "".join(prefix + word for prefix, word in pairs)
    assert joined == text, f"partition lost text: {joined!r} != {text!r}"
    for i, (prefix, word) in enumerate(pairs):
        assert all(is_space(c) for c in prefix), (
            f"pair {i}: prefix {prefix!r} contains non-whitespace"
        )
        assert not any(is_space(c) for c in word), (
            f"pair {i}: word {word!r} contains whitespace"
        )
        if i < len(pairs) - 1:
            assert word, f"pair {i}: empty word before end of text"
    return pairs


# ═══════════════════════════════════════════════════════════════════════════
# Part 4: Word encoder
# ═══════════════════════════════════════════════════════════════════════════

def escape_char(c):
    """Escape one character as "=XX" per UTF-8 byte, uppercase hex."""
    return "".join(_ESCAPE_MAP[b] for b in c.encode(CHARSET))


def encode_word_segments(payload):
    """
    Encode payload as one or more encoded words.

    The length check runs before each character, so a segment is closed
    early rather than splitting a character's escapes.  The buffer reserved
    in MAX_LEN_ENCODED_DATA keeps every segment within MAX_LEN_ENCODED_WORD.
    """
    segments = []
    body = []
    at = 0
    for c in payload:
        if at >= MAX_LEN_ENCODED_DATA:
            segments.append(ENCODED_WORD_PREFIX + "".join(body) + ENCODED_WORD_SUFFIX)
            body = []
            at = 0

        if c == " ":
            body.append(SPACE_PLACEHOLDER)
            at += 1
        elif is_literal(c):
            body.append(c)
            at += 1
        else:
            escaped = escape_char(c)
            body.append(escaped)
            at += len(escaped)

    segments.append(ENCODED_WORD_PREFIX + "".join(body) + ENCODED_WORD_SUFFIX)
    return segments


def encode_word(payload):
    """Encode payload, joining multiple encoded words with a single space."""
    return ENCODED_WORD_SEPARATOR.join(encode_word_segments(payload))


def lemma_segment_capacity():
    """Lemma 2: the length constants are consistent with the literals."""
    assert len(ENCODED_WORD_PREFIX) == LEN_ENCODED_WORD_PREFIX, (
        f"prefix {ENCODED_WORD_PREFIX!r} is not {LEN_ENCODED_WORD_PREFIX} long"
    )
    assert len(ENCODED_WORD_SUFFIX) == LEN_ENCODED_WORD_SUFFIX, (
        f"suffix {ENCODED_WORD_SUFFIX!r} is not {LEN_ENCODED_WORD_SUFFIX} long"
    )
    longest = max(len(escape_char(c)) for c in ("\x7f", "\xff", "\uffff", "\U0010ffff"))
    assert longest == LEN_ENCODED_WORD_BUFFER, (
        f"widest escape is {longest}, buffer is {LEN_ENCODED_WORD_BUFFER}"
    )
    total = (LEN_ENCODED_WORD_PREFIX + LEN_ENCODED_WORD_SUFFIX
             + LEN_ENCODED_WORD_BUFFER + MAX_LEN_ENCODED_DATA)
    assert total == MAX_LEN_ENCODED_WORD, (
        f"segment capacity adds up to {total}, not {MAX_LEN_ENCODED_WORD}"
    )
    return MAX_LEN_ENCODED_DATA


def lemma_segment_length_bound(payload):
    """
    Lemma 3: every segment is framed, fits in MAX_LEN_ENCODED_WORD and ends
    on a character boundary.  Returns the segments.
    """
    segments = encode_word_segments(payload)
    for i, seg in enumerate(segments):
        assert len(seg) <= MAX_LEN_ENCODED_WORD, (
            f"segment {i} is {len(seg)} chars: {seg!r}"
        )
        assert seg.startswith(ENCODED_WORD_PREFIX), f"segment {i} unframed: {seg!r}"
        assert seg.endswith(ENCODED_WORD_SUFFIX), f"segment {i} unterminated: {seg!r}"
        body = seg[LEN_ENCODED_WORD_PREFIX:-LEN_ENCODED_WORD_SUFFIX]
        assert _pending_continuations(body) == 0, (
            f"segment {i} ends inside a character: {seg!r}"
        )
    return segments


def _pending_continuations(body):
    """
    Walk the "=XX" escapes of an encoded-word body and return how many
    UTF-8 continuation bytes are still owed at its end.
    """
    pending = 0
    i = 0
    while i < len(body):
        if body[i] != ESCAPE_CHAR:
            assert pending == 0, f"literal {body[i]!r} inside a multi-byte character"
            i += 1
            continue
        b = int(body[i + 1:i + 3], 16)
        if 0x80 <= b <= 0xBF:
            assert pending > 0, f"stray continuation byte {b:#04x}"
            pending -= 1
        else:
            assert pending == 0, f"lead byte {b:#04x} inside a multi-byte character"
            if b >= 0xF0:
                pending = 3
            elif b >= 0xE0:
                pending = 2
            elif b >= 0xC0:
                pending = 1
        i += 3
    return pending


# ═══════════════════════════════════════════════════════════════════════════
# Part 5: Line segmenter
# ═══════════════════════════════════════════════════════════════════════════

def encode(text):
    """
    Encode text so that every non-ASCII token becomes encoded words.

    ASCII tokens and the whitespace around them are copied verbatim.  When
    two encoded tokens are adjacent, the whitespace between them moves into
    the second token's payload and a single space separates the two, since
    a reader drops whitespace between adjacent encoded words.

    Pure ASCII text is returned as-is, without copying.
    """
    if is_ascii_text(text):
        return text

    out = []
    for literal, payload in iter_encoded_payloads(text):
        out.append(literal)
        if payload is not None:
            out.append(encode_word(payload))
    return "".join(out)


def iter_encoded_payloads(text):
    """
    Yield (literal, payload) pairs in output order.

    literal is copied to the output verbatim.  payload is the text encoded
    right after it, or None for an ASCII token.  A non-ASCII token that
    follows another one gets ENCODED_WORD_SEPARATOR as its literal and
    carries its own leading whitespace inside the payload.
    """
    previous_encoded = False
    for prefix, word in split_tokens(text):
        if is_ascii_text(word):
            yield prefix + word, None
            previous_encoded = False
        elif previous_encoded:
            yield ENCODED_WORD_SEPARATOR, prefix + word
        else:
            yield prefix, word
            previous_encoded = True


def lemma_encoded_payloads(text):
    """
    Lemma 6: the payload choice loses nothing.  Dropping the separators
    between adjacent payloads and joining the rest rebuilds text.
    Returns the (literal, payload) pairs.
    """
    pieces = list(iter_encoded_payloads(text))
    rebuilt = []
    previous_payload = False
    for i, (literal, payload) in enumerate(pieces):
        if payload is None:
            rebuilt.append(literal)
            previous_payload = False
            continue
        if previous_payload:
            assert literal == ENCODED_WORD_SEPARATOR, (
                f"piece {i}: adjacent encoded words joined by {literal!r}"
            )
        else:
            assert all(is_space(c) for c in literal), (
                f"piece {i}: literal {literal!r} before a payload is not whitespace"
            )
            rebuilt.append(literal)
        rebuilt.append(payload)
        previous_payload = True
    joined = "".join(rebuilt)
    assert joined == text, f"payloads rebuild {joined!r}, not {text!r}"
    return pieces


def lemma_encoded_output(text):
    """
    Lemma 7: encode(text) is exactly the literals interleaved with the
    encoded words of each payload, and each of those words satisfies
    Lemma 3.  Returns every encoded word in output order.
    """
    encoded = encode(text)
    words = []
    pos = 0
    for literal, payload in iter_encoded_payloads(text):
        assert encoded.startswith(literal, pos), (
            f"expected literal {literal!r} at {pos} in {encoded!r}"
        )
        pos += len(literal)
        if payload is None:
            continue
        segments = lemma_segment_length_bound(payload)
        joined = ENCODED_WORD_SEPARATOR.join(segments)
        assert encoded.startswith(joined, pos), (
            f"expected {joined!r} at {pos} in {encoded!r}"
        )
        pos += len(joined)
        words.extend(segments)
    assert pos == len(encoded), f"unaccounted output {encoded[pos:]!r}"
    return words


def lemma_ascii_identity(text):
    """Lemma 4: ASCII text comes back as the very same object."""
    if is_ascii_text(text):
        assert encode(text) is text, f"ASCII text was rewritten: {text!r}"
    return text


def lemma_output_ascii(text):
    """Lemma 5: the encoding is 7-bit clean.  Returns the encoding."""
    encoded = encode(text)
    assert is_ascii_text(encoded), f"non-ASCII output for {text!r}: {encoded!r}"
    return encoded
