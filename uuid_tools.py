#!/usr/bin/env python3
"""
UUID Tools - Generate and validate UUIDs
"""

import re
import uuid
from typing import Any, Dict, Literal, Optional

from pydantic import Field

from toolkit_registry import ToolCatalog, ToolInput
from toolkit_validation import invalid_params, require_non_empty_text

NIL_UUID = "00000000-0000-0000-0000-000000000000"
MAX_UUID = "ffffffff-ffff-ffff-ffff-ffffffffffff"

UUID_PATTERN = re.compile(
    r"^(?:[0-9a-f]{8}-[0-9a-f]{4}-[1-8][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}"
    rf"|{NIL_UUID}|{MAX_UUID})$",
    re.IGNORECASE,
)


class GenerateUuidInput(ToolInput):
    version: Literal["v1", "v4", "v5", "nil"] = Field(default="v4", description="UUID version to generate")
    namespace: Optional[str] = Field(default=None, description="Namespace for v5 UUID (required for v5)")
    name: Optional[str] = Field(default=None, description="Name for v5 UUID (required for v5)")
    uppercase: bool = Field(default=False, description="Whether to return the UUID in uppercase")


class ValidateUuidInput(ToolInput):
    uuid: str = Field(description="The UUID to validate")


def is_valid_uuid(value: str) -> bool:
    """Check the canonical 8-4-4-4-12 textual form"""
    return bool(UUID_PATTERN.match(value))


def generate_uuid(args: GenerateUuidInput) -> Dict[str, Any]:
    if args.version == "v1":
        value = str(uuid.uuid1())
    elif args.version == "v5":
        if not args.namespace or not args.name:
            raise invalid_params("Both namespace and name are required for v5 UUID")
        if not is_valid_uuid(args.namespace):
            raise invalid_params("Namespace must be a valid UUID")
        value = str(uuid.uuid5(uuid.UUID(args.namespace), args.name))
    elif args.version == "nil":
        value = NIL_UUID
    else:
        value = str(uuid.uuid4())

    return {"uuid": value.upper() if args.uppercase else value}


def validate_uuid(args: ValidateUuidInput) -> Dict[str, Any]:
    require_non_empty_text(args.uuid, "UUID")
    return {"is_valid": is_valid_uuid(args.uuid)}


def register_uuid_tools(catalog: ToolCatalog) -> None:
    """Register UUID generation and validation"""
    catalog.add("generate_uuid", "Generate a UUID", GenerateUuidInput, generate_uuid)
    catalog.add("validate_uuid", "Validate a UUID", ValidateUuidInput, validate_uuid)
