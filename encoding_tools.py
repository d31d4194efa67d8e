#!/usr/bin/env python3
"""
Encoding Tools - Base64, URL and HTML entity encoding/decoding
"""

import base64
import binascii
import html
import re
from typing import Any, Dict
from urllib.parse import quote, unquote

from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import invalid_params, require_non_empty_text, utf8_bytes

# encodeURIComponent leaves these unescaped besides letters, digits and "-_.~"
_URL_SAFE_CHARACTERS = "!*'()"
_BAD_PERCENT_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class EncodingInput(ToolInput):
    text: str = Field(description="The text to encode or decode")


def encode_base64(args: EncodingInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {"result": base64.b64encode(utf8_bytes(args.text, "Text")).decode("ascii")}


def decode_base64(args: EncodingInput) -> Dict[str, Any]:
    """Decode standard or URL-safe Base64, tolerating missing padding and whitespace"""
    require_non_empty_text(args.text, "Text")

    cleaned = "".join(args.text.split()).replace("-", "+").replace("_", "/")
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        raw = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError):
        raise invalid_params("Invalid Base64 string")

    return {"result": raw.decode("utf-8", errors="replace")}


def encode_url(args: EncodingInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {"result": quote(utf8_bytes(args.text, "Text"), safe=_URL_SAFE_CHARACTERS)}


def decode_url(args: EncodingInput) -> Dict[str, Any]:
    """Strict percent-decoding: malformed escapes and invalid UTF-8 are rejected"""
    require_non_empty_text(args.text, "Text")

    if _BAD_PERCENT_ESCAPE.search(args.text):
        raise invalid_params("Invalid URL encoded string")
    try:
        decoded = unquote(args.text, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        raise invalid_params("Invalid URL encoded string")

    return {"result": decoded}


def encode_html(args: EncodingInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {"result": html.escape(args.text, quote=True).replace("&#x27;", "&apos;")}


def decode_html(args: EncodingInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    return {"result": html.unescape(args.text)}


def register_encoding_tools(catalog: ToolCatalog) -> None:
    """Register Base64, URL and HTML entity tools"""
    catalog.add("encode_base64", "Encode text to Base64", EncodingInput, encode_base64)
    catalog.add("decode_base64", "Decode Base64 to text", EncodingInput, decode_base64)
    catalog.add("encode_url", "Encode text for URLs", EncodingInput, encode_url)
    catalog.add("decode_url", "Decode URL-encoded text", EncodingInput, decode_url)
    catalog.add("encode_html", "Encode HTML entities", EncodingInput, encode_html)
    catalog.add("decode_html", "Decode HTML entities", EncodingInput, decode_html)
