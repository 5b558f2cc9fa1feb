r"""
Arbor lexical scanner and escape resolution.

Two independent layers live here:

- scan(string): splits a raw prompt line into tokens.
  • whitespace outside quotes separates tokens;
  • '...' and "..." group whitespace into one token (a quote of the other style
    inside an active quote is literal);
  • a backslash protects the next character from segmentation, and both
    characters are kept verbatim (they are resolved later by unescape);
  • entering or leaving a quote flushes the pending token;
  • a closing quote must be followed by whitespace or the end of the input,
    anything else is a MalformedQuoteError;
  • an empty token (e.g. "") is dropped;
  • an unterminated quote is flushed at the end of the input and reported with
    an UnterminatedQuoteWarning.

- unescape(token): rewrites exactly \' \" \- and \\ to the bare character and
  leaves any other backslash pair untouched. escape(token) is its inverse for
  those four characters.

Example
    >>> scan(r"deploy 'my target' --note \-x")
    ['deploy', 'my target', '--note', '\\-x']
    >>> unescape(r"\-x")
    '-x'
"""
import logging

from .faults import FaultCode, MalformedQuoteError, UnterminatedQuoteWarning, trigger, getdoc

logger = logging.getLogger(__name__)

QUOTES = frozenset("'\"")
ESCAPABLE = frozenset("'\"-\\")


def scan(string, /, **options):
    """
    split a raw string into tokens honoring quotes and backslash escapes.

    parameters
    - string: str
      the raw prompt line (e.g. from input()).
    - **options:
      runtime options forwarded to trigger() (shell, fancy, colorful, prog).

    returns
    - list[str]: the tokens, still carrying their raw backslash pairs.

    faults
    - MalformedQuoteError when a closing quote is immediately followed by a
      non-whitespace character.
    - UnterminatedQuoteWarning when the input ends inside a quote (the pending
      text is still returned as the final token).
    """
    if not isinstance(string, str):
        raise TypeError("scan() argument must be a string")

    tokens = []
    buffer = []
    quote = None
    closed = False

    def flush():
        if buffer:
            tokens.append("".join(buffer))
            buffer.clear()

    characters = iter(enumerate(string, 1))
    for column, char in characters:
        if closed:
            closed = False
            if not char.isspace():
                return trigger(MalformedQuoteError(
                    "quoted token must be followed by a space, found %r at column %d" % (char, column),
                    title="malformed quote",
                    code=FaultCode.MALFORMED_QUOTE,
                    input=string,
                    index=column,
                    hint="add a space after the closing quote or move %r inside the quotes" % char,
                    docs=getdoc(FaultCode.MALFORMED_QUOTE),
                ), **options)

        if char == "\\":
            buffer.append(char)
            # the escaped character is taken verbatim, whatever it is
            for _, char in characters:
                buffer.append(char)
                break
            continue

        if char in QUOTES:
            if quote is None:
                flush()
                quote = char
                continue
            if char == quote:
                flush()
                quote = None
                closed = True
                continue

        if char.isspace() and quote is None:
            flush()
            continue

        buffer.append(char)

    if quote is not None:
        trigger(UnterminatedQuoteWarning(
            "quote %s opened but never closed" % quote,
            title="unterminated quote",
            code=FaultCode.UNTERMINATED_QUOTE,
            input=string,
            hint="close the quote with %s; the remaining text was taken as one token" % quote,
            docs=getdoc(FaultCode.UNTERMINATED_QUOTE),
        ), **options)

    flush()
    logger.debug("scanned %r into %d token(s)", string, len(tokens))
    return tokens


def unescape(token, /):
    r"""
    resolve \' \" \- and \\ into their bare character.

    the token is read in backslash pairs from left to right, so r"\\-" becomes
    r"\-" (an escaped backslash followed by a plain dash). any other pair, such
    as r"\n", is kept as-is including the backslash.
    """
    if not isinstance(token, str):
        raise TypeError("unescape() argument must be a string")
    if "\\" not in token:
        return token

    result = []
    index = 0
    while index < len(token):
        char = token[index]
        if char == "\\" and index + 1 < len(token):
            following = token[index + 1]
            result.append(following if following in ESCAPABLE else char + following)
            index += 2
            continue
        result.append(char)
        index += 1
    return "".join(result)


def escape(token, /):
    """
    prefix every quote, dash and backslash with a backslash (inverse of unescape).
    """
    if not isinstance(token, str):
        raise TypeError("escape() argument must be a string")
    return "".join("\\" + char if char in ESCAPABLE else char for char in token)


__all__ = (
    "scan",
    "unescape",
    "escape",
)
