# keystore_core/storage/models.py
from __future__ import annotations
import binascii
import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Union

from keystore_core.errors import KeyRecordDecodeError
from keystore_core.utils import b64d, b64e


class InsertResult(enum.Enum):
    """Outcome of a conditional insert that did not fail."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


def validate_id(id: Any) -> str:
    if not isinstance(id, str) or not id:
        raise ValueError("id must be a non-empty string")
    return id


KeyMaterial = Union[str, bytes]


def encode_material(material: KeyMaterial) -> Dict[str, str]:
    """Tag material with its type: {"S": text} or {"B": base64}."""
    if isinstance(material, str):
        return {"S": material}
    return {"B": b64e(material)}


def decode_material(attr: Any) -> KeyMaterial:
    if not isinstance(attr, dict) or len(attr) != 1:
        raise ValueError(f"expected a single-tag attribute, got {attr!r}")
    (tag, value), = attr.items()
    if not isinstance(value, str):
        raise ValueError(f"attribute {tag!r} value must be a string")
    if tag == "S":
        return value
    if tag == "B":
        return b64d(value)
    raise ValueError(f"unknown attribute tag {tag!r}")


@dataclass(frozen=True)
class KeyRecord:
    """
    Storage-level representation of one identifier's encrypted data keys.

    ``keys`` maps key name to encrypted key material. The material is opaque
    at this layer, either text (e.g. base64 ciphertext) or raw bytes, and is
    returned as the type it was stored with. The mapping is copied and frozen
    on construction, so a record can be handed to the cache and to callers
    without defensive copies.
    """
    id: str
    keys: Mapping[str, KeyMaterial]

    def __post_init__(self):
        validate_id(self.id)
        if not isinstance(self.keys, Mapping) or not self.keys:
            raise ValueError("keys must be a non-empty mapping")
        frozen: Dict[str, KeyMaterial] = {}
        for name, material in self.keys.items():
            if not isinstance(name, str) or not name:
                raise ValueError(f"key name must be a non-empty string (id={self.id})")
            if isinstance(material, str):
                frozen[name] = material
            elif isinstance(material, (bytes, bytearray, memoryview)):
                frozen[name] = bytes(material)
            else:
                raise ValueError(f"key material for {name!r} must be str or bytes (id={self.id})")
        object.__setattr__(self, "keys", MappingProxyType(frozen))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "keys": {name: encode_material(v) for name, v in self.keys.items()}}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeyRecord":
        """Inverse of to_dict. Malformed input raises KeyRecordDecodeError."""
        try:
            keys = {name: decode_material(v) for name, v in data["keys"].items()}
            return cls(id=data["id"], keys=keys)
        except (KeyError, TypeError, AttributeError, ValueError, binascii.Error) as e:
            raise KeyRecordDecodeError(f"malformed key record: {e}") from e
