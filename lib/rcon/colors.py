"""Legacy color code handling for remote console output.

Game servers embed colors as a ``§`` sentinel followed by one code
character. Codes are turned into ANSI escapes for the terminal or removed
entirely.
"""

SENTINEL = "§"

RESET = "\033[0m"

COLOR_CODES: dict[str, str] = {
    "0": "\033[30m",  # black
    "1": "\033[34m",  # dark blue
    "2": "\033[32m",  # dark green
    "3": "\033[36m",  # dark aqua
    "4": "\033[31m",  # dark red
    "5": "\033[35m",  # dark purple
    "6": "\033[33m",  # gold
    "7": "\033[37m",  # gray
    "8": "\033[90m",  # dark gray
    "9": "\033[94m",  # blue
    "a": "\033[92m",  # green
    "b": "\033[96m",  # aqua
    "c": "\033[91m",  # red
    "d": "\033[95m",  # light purple
    "e": "\033[93m",  # yellow
    "f": "\033[97m",  # white
    "r": RESET,
}


def normalize(text: str, strip: bool = False) -> str:
    """Apply or remove embedded color codes.

    Parameters
    ----------
    text : str
        Remote output possibly containing ``§`` color codes
    strip : bool, optional
        Remove codes instead of translating them, by default False

    Returns
    -------
    str
        Plain text when stripping, otherwise text with ANSI escapes that
        always ends with a reset

    Notes
    -----
    In strip mode a sentinel is always dropped. The character after it is
    dropped too only when it is a known code, so ``"§zx"`` becomes ``"zx"``.
    Outside strip mode unknown codes and a trailing sentinel are kept as
    literal text.
    """
    result: list[str] = []
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        if char != SENTINEL:
            result.append(char)
            i += 1
            continue

        code = text[i + 1] if i + 1 < length else None
        if code is not None and code in COLOR_CODES:
            if not strip:
                result.append(COLOR_CODES[code])
            i += 2
            continue

        if not strip:
            result.append(char)
        i += 1

    if not strip:
        result.append(RESET)

    return "".join(result)
