"""Encoding layer -- fixed-width, versioned byte layouts per circuit."""

from cipherplan.encoding.codec import (
    decode_input,
    decode_plan,
    encode_input,
    encode_plan,
    peek_header,
)
from cipherplan.encoding.schema import INPUT_LAYOUTS, PLAN_LAYOUTS, SCHEMA_VERSION, Layout
from cipherplan.encoding.validation import validate_input, validate_plan

__all__ = [
    "INPUT_LAYOUTS",
    "Layout",
    "PLAN_LAYOUTS",
    "SCHEMA_VERSION",
    "decode_input",
    "decode_plan",
    "encode_input",
    "encode_plan",
    "peek_header",
    "validate_input",
    "validate_plan",
]
