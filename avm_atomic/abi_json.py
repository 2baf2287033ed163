"""Textual ABI values.

Bridges JSON text and ARC-4 ABI values so method arguments can be supplied
as strings. Byte encoding itself is done by algosdk.abi.

JSON forms:
- uintN, ufixedNxM, byte: integer (ufixed as its raw integer value)
- bool: true or false
- address: base32 address string
- string: JSON string
- byte[] and byte[N]: base64 string (a list of byte values is also accepted)
- other arrays and tuples: JSON list
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Union

from algosdk import abi, encoding

from .errors import DecodeError
from .utils import is_valid_address

ABITypeLike = Union[abi.ABIType, str]


def resolve_type(abi_type: ABITypeLike) -> abi.ABIType:
    """Parse a type string such as "(uint64,byte[])" or return the type as is.

    Raises:
        DecodeError: If the type string is invalid.
    """
    if isinstance(abi_type, abi.ABIType):
        return abi_type
    try:
        return abi.ABIType.from_string(abi_type)
    except Exception as e:
        raise DecodeError(f"invalid ABI type {abi_type!r}: {e}") from e


def _is_byte_array(abi_type: abi.ABIType) -> bool:
    return isinstance(abi_type, (abi.ArrayStaticType, abi.ArrayDynamicType)) and isinstance(
        abi_type.child_type, abi.ByteType
    )


def _integer_bits(abi_type: abi.ABIType) -> int | None:
    if isinstance(abi_type, (abi.UintType, abi.UfixedType)):
        return abi_type.bit_size
    if isinstance(abi_type, abi.ByteType):
        return 8
    return None


def _from_json_value(abi_type: abi.ABIType, value: Any) -> Any:
    bits = _integer_bits(abi_type)
    if bits is not None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(f"expected an integer for {abi_type}, got {value!r}")
        if not 0 <= value < 2**bits:
            raise DecodeError(f"value {value} out of range for {abi_type}")
        return value

    if isinstance(abi_type, abi.BoolType):
        if not isinstance(value, bool):
            raise DecodeError(f"expected true or false for bool, got {value!r}")
        return value

    if isinstance(abi_type, abi.AddressType):
        if not isinstance(value, str) or not is_valid_address(value):
            raise DecodeError(f"expected an address string, got {value!r}")
        return value

    if isinstance(abi_type, abi.StringType):
        if not isinstance(value, str):
            raise DecodeError(f"expected a string, got {value!r}")
        return value

    if isinstance(abi_type, (abi.ArrayStaticType, abi.ArrayDynamicType)):
        if _is_byte_array(abi_type) and isinstance(value, str):
            try:
                elements: Any = base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise DecodeError(f"invalid base64 for {abi_type}: {e}") from e
        elif isinstance(value, list):
            elements = [_from_json_value(abi_type.child_type, v) for v in value]
        else:
            raise DecodeError(f"expected a list for {abi_type}, got {value!r}")

        if isinstance(abi_type, abi.ArrayStaticType) and len(elements) != abi_type.static_length:
            raise DecodeError(
                f"expected {abi_type.static_length} elements for {abi_type}, got {len(elements)}"
            )
        return elements

    if isinstance(abi_type, abi.TupleType):
        if not isinstance(value, list) or len(value) != len(abi_type.child_types):
            raise DecodeError(
                f"expected a list of {len(abi_type.child_types)} elements for {abi_type}"
            )
        return [_from_json_value(t, v) for t, v in zip(abi_type.child_types, value)]

    raise DecodeError(f"unsupported ABI type: {abi_type}")


def _to_json_value(abi_type: abi.ABIType, value: Any) -> Any:
    if _integer_bits(abi_type) is not None:
        return int(value)
    if isinstance(abi_type, abi.BoolType):
        return bool(value)
    if isinstance(abi_type, abi.AddressType):
        if isinstance(value, (bytes, bytearray)):
            return encoding.encode_address(bytes(value))
        return value
    if isinstance(abi_type, abi.StringType):
        return str(value)
    if _is_byte_array(abi_type):
        return base64.b64encode(bytes(value)).decode("utf-8")
    if isinstance(abi_type, (abi.ArrayStaticType, abi.ArrayDynamicType)):
        return [_to_json_value(abi_type.child_type, v) for v in value]
    if isinstance(abi_type, abi.TupleType):
        return [_to_json_value(t, v) for t, v in zip(abi_type.child_types, value)]
    raise DecodeError(f"unsupported ABI type: {abi_type}")


def from_text(abi_type: ABITypeLike, text: str) -> Any:
    """Parse JSON text into a value accepted by abi_type.encode.

    Args:
        abi_type: ABI type or type string.
        text: JSON text, e.g. "123", "\\"hello\\"", "[1,true]".

    Returns:
        Python value for the type.

    Raises:
        DecodeError: If the text is malformed or does not fit the type.
    """
    resolved = resolve_type(abi_type)
    try:
        value = json.loads(text)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"invalid JSON for {resolved}: {e}") from e
    return _from_json_value(resolved, value)


def to_text(abi_type: ABITypeLike, value: Any) -> str:
    """Render a value of abi_type as compact JSON text."""
    resolved = resolve_type(abi_type)
    return json.dumps(_to_json_value(resolved, value), separators=(",", ":"))


def encode_text(abi_type: ABITypeLike, text: str) -> bytes:
    """Parse JSON text and ABI-encode the value.

    Raises:
        DecodeError: If the text does not fit the type.
    """
    resolved = resolve_type(abi_type)
    value = from_text(resolved, text)
    try:
        return resolved.encode(value)
    except Exception as e:
        raise DecodeError(f"cannot encode {text!r} as {resolved}: {e}") from e


def decode_text(abi_type: ABITypeLike, data: bytes) -> str:
    """ABI-decode bytes and render the value as JSON text.

    Raises:
        DecodeError: If the bytes are not a valid encoding of the type.
    """
    resolved = resolve_type(abi_type)
    try:
        value = resolved.decode(bytes(data))
    except Exception as e:
        raise DecodeError(f"cannot decode {resolved} value: {e}") from e
    return to_text(resolved, value)
