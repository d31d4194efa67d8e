#!/usr/bin/env python3
"""
String Tools - Trim, substring, replace, split and join
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import invalid_params, require_non_empty_text


class TrimInput(ToolInput):
    text: str = Field(description="The text to trim")
    trim_type: Literal["both", "start", "end"] = Field(default="both", description="Type of trimming to perform")


class SubstringInput(ToolInput):
    text: str = Field(description="The text to extract a substring from")
    start: int = Field(default=0, ge=0, description="Starting index (inclusive)")
    end: Optional[int] = Field(default=None, description="Ending index (exclusive, optional)")


class ReplaceInput(ToolInput):
    text: str = Field(description="The text to perform replacements on")
    search: str = Field(description="The string to search for")
    replace: str = Field(description="The string to replace with")
    replace_all: bool = Field(default=True, description="Whether to replace all occurrences")


class SplitInput(ToolInput):
    text: str = Field(description="The text to split")
    delimiter: str = Field(default=" ", description="The delimiter to split by")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of splits (optional)")


class JoinInput(ToolInput):
    parts: List[str] = Field(description="The array of strings to join")
    delimiter: str = Field(default="", description="The delimiter to join with")


def string_trim(args: TrimInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")

    if args.trim_type == "start":
        trimmed = args.text.lstrip()
    elif args.trim_type == "end":
        trimmed = args.text.rstrip()
    else:
        trimmed = args.text.strip()

    return {"result": trimmed}


def string_substring(args: SubstringInput) -> Dict[str, Any]:
    """Bounds-checked slice; end defaults to the end of the text"""
    require_non_empty_text(args.text, "Text")
    length = len(args.text)

    if args.start < 0 or args.start >= length:
        raise invalid_params(f"Start index must be between 0 and {length - 1}")

    if args.end is not None and (args.end < args.start or args.end > length):
        raise invalid_params(f"End index must be between {args.start} and {length}")

    return {"result": args.text[args.start:args.end]}


def string_replace(args: ReplaceInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    require_non_empty_text(args.search, "Search string")

    if args.replace_all:
        result = args.replace.join(args.text.split(args.search))
    else:
        result = args.text.replace(args.search, args.replace, 1)

    return {"result": result}


def string_split(args: SplitInput) -> Dict[str, Any]:
    """
    Split on a literal delimiter.

    An empty delimiter splits into single characters. limit caps the number
    of returned pieces; the remainder of the text is dropped.
    """
    require_non_empty_text(args.text, "Text")

    if args.delimiter == "":
        parts = list(args.text)
    else:
        parts = args.text.split(args.delimiter)

    if args.limit is not None:
        parts = parts[:args.limit]

    return {"result": parts}


def string_join(args: JoinInput) -> Dict[str, Any]:
    if not args.parts:
        raise invalid_params("Parts array is required and cannot be empty")
    return {"result": args.delimiter.join(args.parts)}


def register_string_tools(catalog: ToolCatalog) -> None:
    """Register the string manipulation tools"""
    catalog.add("string_trim", "Trim whitespace from text", TrimInput, string_trim)
    catalog.add("string_substring", "Extract a substring", SubstringInput, string_substring)
    catalog.add("string_replace", "Replace text", ReplaceInput, string_replace)
    catalog.add("string_split", "Split text into an array", SplitInput, string_split)
    catalog.add("string_join", "Join an array into text", JoinInput, string_join)
