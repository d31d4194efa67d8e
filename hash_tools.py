#!/usr/bin/env python3
"""
Hash Tools - MD5, SHA-1, SHA-256, SHA-512 digests and HMAC
"""

import hashlib
import hmac
from typing import Any, Dict, Literal

from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import require_non_empty_text, utf8_bytes

HMAC_ALGORITHMS = {
    "MD5": hashlib.md5,
    "SHA256": hashlib.sha256,
    "SHA512": hashlib.sha512,
}


class HashInput(ToolInput):
    text: str = Field(description="The text to hash")


class HmacInput(HashInput):
    key: str = Field(description="The secret key for HMAC")
    algorithm: Literal["SHA256", "SHA512", "MD5"] = Field(
        default="SHA256", description="The hashing algorithm to use"
    )


def _digest_handler(algorithm: str):
    def handler(args: HashInput) -> Dict[str, Any]:
        require_non_empty_text(args.text, "Text")
        return {"hash": hashlib.new(algorithm, utf8_bytes(args.text, "Text")).hexdigest()}
    handler.__name__ = f"generate_{algorithm}"
    return handler


def generate_hmac(args: HmacInput) -> Dict[str, Any]:
    require_non_empty_text(args.text, "Text")
    require_non_empty_text(args.key, "Key")

    digest = hmac.new(
        utf8_bytes(args.key, "Key"),
        utf8_bytes(args.text, "Text"),
        HMAC_ALGORITHMS[args.algorithm],
    ).hexdigest()
    return {"hash": digest}


def register_hash_tools(catalog: ToolCatalog) -> None:
    """Register the digest and HMAC tools"""
    catalog.add("generate_md5", "Generate MD5 hash", HashInput, _digest_handler("md5"))
    catalog.add("generate_sha1", "Generate SHA-1 hash", HashInput, _digest_handler("sha1"))
    catalog.add("generate_sha256", "Generate SHA-256 hash", HashInput, _digest_handler("sha256"))
    catalog.add("generate_sha512", "Generate SHA-512 hash", HashInput, _digest_handler("sha512"))
    catalog.add("generate_hmac", "Generate HMAC hash", HmacInput, generate_hmac)
