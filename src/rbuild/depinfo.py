"""Parser for rustc dep-info (make rule) output.

rustc writes a rule of the form

    out/liblib.rlib: src/lib.rs src/util.rs

followed, in newer releases, by one empty rule per dependency. Only the
first rule is read, so only the first output's dependencies are returned.
"""

import re
from typing import List

from .errors import DepInfoParseError

# A rule colon is followed by whitespace or the end of the line; a Windows
# drive letter colon ("C:\") is not.
_RULE_COLON = re.compile(r":(?=\s|$)")
_UNESCAPED_SPACE = re.compile(r"(?<!\\)\s+")


def parse_dep_info(text: str) -> List[str]:
    """Return the dependency list of the first rule in text.

    Raises:
        DepInfoParseError: If there is no rule line, it lacks a colon, or it
            names no dependencies
    """
    line = next((candidate for candidate in text.splitlines() if candidate.strip()), None)
    if line is None:
        raise DepInfoParseError("dep-info output is empty")

    match = _RULE_COLON.search(line)
    if match is None:
        raise DepInfoParseError(f"dep-info line has no 'output: deps' separator: {line!r}")

    deps = line[match.end() :].strip()
    if not deps:
        raise DepInfoParseError(f"dep-info line lists no dependencies: {line!r}")

    return [token.replace("\\ ", " ") for token in _UNESCAPED_SPACE.split(deps) if token]
