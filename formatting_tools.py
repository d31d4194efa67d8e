#!/usr/bin/env python3
"""
Formatting Tools - Pretty-printing for JSON, XML, HTML and SQL
"""

import json
import logging
import math
import re
from typing import Any, Dict

from bs4 import BeautifulSoup
from bs4.builder import HTMLParserTreeBuilder, HTMLTreeBuilder
from bs4.dammit import EntitySubstitution
from bs4.element import NavigableString, PreformattedString, Tag
from bs4.formatter import HTMLFormatter
from lxml import etree
from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import invalid_params, require_non_empty_text, utf8_bytes

logger = logging.getLogger(__name__)

# Elements that flow with the surrounding text instead of starting a new line
HTML_INLINE_TAGS = frozenset((
    "a", "abbr", "acronym", "b", "bdi", "bdo", "big", "br", "button", "cite", "code", "data",
    "del", "dfn", "em", "i", "img", "input", "ins", "kbd", "label", "mark", "q", "s", "samp",
    "select", "small", "span", "strike", "strong", "sub", "sup", "time", "tt", "u", "var", "wbr",
))

SQL_CLAUSE_KEYWORDS = (
    "SELECT|FROM|WHERE|GROUP BY|ORDER BY|HAVING|JOIN|LEFT JOIN|RIGHT JOIN|"
    "INNER JOIN|OUTER JOIN|UNION|INSERT INTO|UPDATE|DELETE FROM"
)

_SQL_RULES = [
    (re.compile(r"\s+"), " "),
    (re.compile(r"\s*,\s*"), ", "),
    (re.compile(r"\(\s*"), "("),
    (re.compile(r"\s*\)"), ")"),
    (re.compile(r"\s*=\s*"), " = "),
    (re.compile(r"\s*>\s*"), " > "),
    (re.compile(r"\s*<\s*"), " < "),
    (re.compile(r"\s*;\s*"), ";\n"),
]
_SQL_CLAUSE = re.compile(rf"\s+({SQL_CLAUSE_KEYWORDS})\s+", re.IGNORECASE)

_XML_DECLARATION = re.compile(r"^\s*(<\?xml[^>]*\?>)")
_EXTRA_BLANK_LINES = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")
_WHITESPACE_RUN = re.compile(r"\s+")


class FormattingInput(ToolInput):
    text: str = Field(description="The text to format")
    indent_size: int = Field(default=2, ge=1, le=8, description="Number of spaces for indentation (1-8)")


def _parse_number(token: str):
    """Decode a JSON number the way a JavaScript runtime would print it back"""
    value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {token}")
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def format_json(args: FormattingInput) -> Dict[str, Any]:
    """
    Re-indent a JSON document.

    Integral numbers lose their exponent or fraction (1e5 and 100000.0 both
    print as 100000); numbers outside the double range are rejected.
    """
    require_non_empty_text(args.text, "Text")
    try:
        parsed = json.loads(args.text, parse_float=_parse_number, parse_constant=_reject_constant)
        result = json.dumps(parsed, indent=args.indent_size, ensure_ascii=False, allow_nan=False)
    except ValueError:
        raise invalid_params("Invalid JSON string")
    return {"result": result}


def format_xml(args: FormattingInput) -> Dict[str, Any]:
    """Re-indent an XML document, keeping its declaration"""
    require_non_empty_text(args.text, "Text")

    source = utf8_bytes(args.text.strip(), "Text")
    parser = etree.XMLParser(remove_blank_text=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(source, parser)
    except etree.XMLSyntaxError as e:
        logger.debug(f"XML parse failure: {e}")
        raise invalid_params("Error formatting XML")

    etree.indent(root, space=" " * args.indent_size)
    body = etree.tostring(root.getroottree(), encoding="unicode")

    declaration = _XML_DECLARATION.match(args.text)
    if declaration:
        body = f"{declaration.group(1)}\n{body}"
    return {"result": body.strip()}


def _is_inline_content(tag: Tag) -> bool:
    """True when every child is text or an inline element holding only inline content"""
    for child in tag.contents:
        if isinstance(child, Tag):
            if child.name not in HTML_INLINE_TAGS or not _is_inline_content(child):
                return False
        elif isinstance(child, PreformattedString):
            return False
    return True


def _keep_inline(tag: Tag) -> None:
    """Print the tag on one line with its inline content, whitespace runs collapsed"""
    tag.preserve_whitespace_tags = set(tag.preserve_whitespace_tags or ()) | {tag.name}
    for string in list(tag.find_all(string=True)):
        string.replace_with(_WHITESPACE_RUN.sub(" ", string))

    first, last = tag.contents[0], tag.contents[-1]
    if isinstance(first, NavigableString):
        first.replace_with(first.lstrip())
    if isinstance(last, NavigableString):
        # first and last may be the same node, already replaced above
        last = tag.contents[-1]
        last.replace_with(last.rstrip())


def format_html(args: FormattingInput) -> Dict[str, Any]:
    """
    Re-indent HTML markup without wrapping long lines.

    Block elements go on their own lines. Inline elements (a, em, strong,
    span, code and the like) stay in the text they belong to, and a block
    element holding only inline content prints on a single line.
    """
    require_non_empty_text(args.text, "Text")

    builder = HTMLParserTreeBuilder(
        preserve_whitespace_tags=set(HTMLTreeBuilder.DEFAULT_PRESERVE_WHITESPACE_TAGS) | set(HTML_INLINE_TAGS)
    )
    preformatted = HTMLTreeBuilder.DEFAULT_PRESERVE_WHITESPACE_TAGS
    try:
        soup = BeautifulSoup(args.text, builder=builder)
        for tag in soup.find_all(True):
            if tag.name in HTML_INLINE_TAGS or tag.name in preformatted or tag.find_parent(preformatted):
                continue
            if tag.contents and _is_inline_content(tag):
                _keep_inline(tag)

        formatter = HTMLFormatter(entity_substitution=EntitySubstitution.substitute_xml, indent=args.indent_size)
        pretty = soup.prettify(formatter=formatter)
    except Exception as e:
        logger.debug(f"HTML formatting failure: {e}")
        raise invalid_params("Error formatting HTML")

    pretty = _EXTRA_BLANK_LINES.sub("\n\n", pretty)
    return {"result": pretty.strip()}


def format_sql(args: FormattingInput) -> Dict[str, Any]:
    """
    Heuristic SQL layout.

    Not a parser: nested subqueries and keywords inside string literals are
    laid out like top-level clauses.
    """
    require_non_empty_text(args.text, "Text")

    formatted = args.text
    for pattern, replacement in _SQL_RULES:
        formatted = pattern.sub(replacement, formatted)

    indent = " " * args.indent_size
    formatted = _SQL_CLAUSE.sub(lambda m: f"\n{indent}{m.group(0).strip()} ", formatted)
    return {"result": formatted.strip()}


def register_formatting_tools(catalog: ToolCatalog) -> None:
    """Register the JSON, XML, SQL and HTML formatters"""
    catalog.add("format_json", "Format and beautify JSON", FormattingInput, format_json)
    catalog.add("format_xml", "Format and beautify XML", FormattingInput, format_xml)
    catalog.add("format_sql", "Format and beautify SQL", FormattingInput, format_sql)
    catalog.add("format_html", "Format and beautify HTML", FormattingInput, format_html)
