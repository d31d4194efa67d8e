#!/usr/bin/env python3
"""
Regex Tools - Pattern testing, replacement, extraction and splitting

Flags use the familiar letter form: g (all matches), i, m, s, plus u and d
which are accepted and ignored. The engine is Python's re module.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import invalid_params, require_non_empty_text

_FLAG_BITS = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": 0,
    "d": 0,
}

_REPLACEMENT_TOKEN = re.compile(r"\$(\$|&|`|'|\d{1,2}|<[^>]*>)")


class RegexInput(ToolInput):
    text: str = Field(description="The text to test against the pattern")
    pattern: str = Field(description="The regex pattern")
    flags: str = Field(default="g", description="Regex flags (e.g., 'g', 'i', 'gi')")


class RegexReplaceInput(RegexInput):
    replacement: str = Field(description="The replacement string")


class RegexSplitInput(RegexInput):
    flags: str = Field(default="", description="Regex flags (e.g., 'i')")


def compile_pattern(pattern: str, flags: str) -> Tuple[re.Pattern, bool]:
    """
    Compile a pattern with letter flags.

    Returns:
        Tuple of (compiled pattern, whether the global flag was given)

    Raises:
        McpError: InvalidParams for unknown or repeated flags and for
            patterns that do not compile
    """
    bits = 0
    is_global = False
    seen = set()
    for flag in flags:
        if flag in seen:
            raise invalid_params(f"Invalid regex pattern: duplicate flag '{flag}'")
        seen.add(flag)
        if flag == "g":
            is_global = True
        elif flag in _FLAG_BITS:
            bits |= _FLAG_BITS[flag]
        else:
            raise invalid_params(f"Invalid regex pattern: invalid flag '{flag}'")

    try:
        return re.compile(pattern, bits), is_global
    except re.error as e:
        raise invalid_params(f"Invalid regex pattern: {e}")


def expand_replacement(match: "re.Match", replacement: str) -> str:
    """Expand $$, $&, $`, $', $n, $nn and $<name> for one match"""
    group_count = match.re.groups

    def numbered(index: int) -> Optional[str]:
        if 1 <= index <= group_count:
            return match.group(index) or ""
        return None

    def substitute(token: "re.Match") -> str:
        value = token.group(1)
        if value == "$":
            return "$"
        if value == "&":
            return match.group(0)
        if value == "`":
            return match.string[:match.start()]
        if value == "'":
            return match.string[match.end():]
        if value.startswith("<"):
            if not match.re.groupindex:
                return token.group(0)
            name = value[1:-1]
            if name in match.re.groupindex:
                return match.group(name) or ""
            return ""

        two_digit = numbered(int(value)) if len(value) == 2 else None
        if two_digit is not None:
            return two_digit
        one_digit = numbered(int(value[0]))
        if one_digit is not None:
            return one_digit + value[1:]
        return token.group(0)

    return _REPLACEMENT_TOKEN.sub(substitute, replacement)


def _match_record(match: "re.Match") -> Dict[str, Any]:
    return {"full_match": match.group(0), "groups": list(match.groups())}


def regex_test(args: RegexInput) -> Dict[str, Any]:
    """
    All full matches with the global flag; otherwise the first match
    followed by its capture groups.
    """
    require_non_empty_text(args.text, "Text")
    require_non_empty_text(args.pattern, "Pattern")
    compiled, is_global = compile_pattern(args.pattern, args.flags)

    matches: List[Optional[str]]
    if is_global:
        matches = [m.group(0) for m in compiled.finditer(args.text)]
    else:
        first = compiled.search(args.text)
        matches = [first.group(0), *first.groups()] if first else []

    return {
        "matches": matches,
        "match_count": len(matches),
        "is_match": len(matches) > 0,
    }


def regex_replace(args: RegexReplaceInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    require_non_empty_text(args.pattern, "Pattern")
    compiled, is_global = compile_pattern(args.pattern, args.flags)

    result = compiled.sub(
        lambda m: expand_replacement(m, args.replacement),
        args.text,
        count=0 if is_global else 1,
    )
    return {"result": result}


def regex_extract(args: RegexInput) -> Dict[str, Any]:
    """One record per match with the global flag, at most one without"""
    require_non_empty_text(args.text, "Text")
    require_non_empty_text(args.pattern, "Pattern")
    compiled, is_global = compile_pattern(args.pattern, args.flags)

    if is_global:
        matches = [_match_record(m) for m in compiled.finditer(args.text)]
    else:
        first = compiled.search(args.text)
        matches = [_match_record(first)] if first else []

    return {"matches": matches, "match_count": len(matches)}


def split_pattern(compiled: re.Pattern, text: str) -> List[Optional[str]]:
    """
    Split around every match, capture groups included.

    An empty match where the previous piece ended, or at the very end of the
    text, does not split, so "(?:)" on "abc" yields ["a", "b", "c"].
    """
    parts: List[Optional[str]] = []
    last = 0
    for match in compiled.finditer(text):
        if match.start() >= len(text) or match.end() == last:
            continue
        parts.append(text[last:match.start()])
        parts.extend(match.groups())
        last = match.end()
    parts.append(text[last:])
    return parts


def regex_split(args: RegexSplitInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    require_non_empty_text(args.pattern, "Pattern")
    compiled, _ = compile_pattern(args.pattern, args.flags)

    parts = split_pattern(compiled, args.text)
    return {"parts": parts, "part_count": len(parts)}


def register_regex_tools(catalog: ToolCatalog) -> None:
    """Register the regex tools"""
    catalog.add("regex_test", "Test a regex pattern against text", RegexInput, regex_test)
    catalog.add("regex_replace", "Replace text using a regex pattern", RegexReplaceInput, regex_replace)
    catalog.add("regex_extract", "Extract matches using a regex pattern", RegexInput, regex_extract)
    catalog.add("regex_split", "Split text using a regex pattern", RegexSplitInput, regex_split)
