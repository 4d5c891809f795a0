"""
Binary Serialization
====================

Canonical byte encoding of scalars, group elements and the framing
primitives (tags, varints, length-prefixed lists) that every proof payload
is built from.

Encoding rules:
---------------
- u8 tag:      one byte
- varint:      unsigned LEB128, at most 10 bytes
- u64:         8 bytes big-endian
- bytes:       varint length || data
- scalar (ZR): fixed width big-endian, width = byte length of the group order;
               values >= order are rejected
- element:     varint length || group.serialize(elem); length 0 is the identity
               (charm cannot serialize the point at infinity)
- list:        varint count || items

Decoding fails closed: any truncation, trailing byte, out-of-range scalar,
wrong element type or undecodable element raises ``InvalidData``.
"""

import base64
from typing import List

from charm.toolbox.pairinggroup import PairingGroup, ZR, G1, G2, GT

from .errors import InvalidData

_MAX_VARINT_BYTES = 10


def scalar_size(group: PairingGroup) -> int:
    return (int(group.order()).bit_length() + 7) // 8


def _type_prefix(kind) -> bytes:
    # group.serialize output starts with "<type>:" (1 = G1, 2 = G2, 3 = GT)
    return f"{int(kind)}:".encode()


def element_to_bytes(group: PairingGroup, elem, kind=G1) -> bytes:
    """Canonical bytes of one group element, identity encoded as ``b""``."""
    if elem == group.init(kind, 1):
        return b""
    return group.serialize(elem)


class ByteWriter:
    """Append-only encoder."""

    def __init__(self, group: PairingGroup):
        self.group = group
        self._buf = bytearray()

    def write_u8(self, value: int):
        if not 0 <= value < 256:
            raise ValueError(f"u8 out of range: {value}")
        self._buf.append(value)

    def write_varint(self, value: int):
        if value < 0:
            raise ValueError(f"varint must be non-negative: {value}")
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                self._buf.append(byte | 0x80)
            else:
                self._buf.append(byte)
                return

    def write_u64(self, value: int):
        self._buf += int(value).to_bytes(8, 'big')

    def write_bytes(self, data: bytes):
        self.write_varint(len(data))
        self._buf += data

    def write_scalar(self, x: ZR):
        self._buf += int(x).to_bytes(scalar_size(self.group), 'big')

    def write_element(self, elem, kind=G1):
        self.write_bytes(element_to_bytes(self.group, elem, kind))

    def write_scalars(self, xs: List[ZR]):
        self.write_varint(len(xs))
        for x in xs:
            self.write_scalar(x)

    def write_elements(self, elems: List, kind=G1):
        self.write_varint(len(elems))
        for e in elems:
            self.write_element(e, kind)

    def getvalue(self) -> bytes:
        return bytes(self._buf)


class ByteReader:
    """Strict decoder over an immutable byte string."""

    def __init__(self, group: PairingGroup, data: bytes):
        self.group = group
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def _take(self, n: int) -> bytes:
        if n < 0 or n > self.remaining:
            raise InvalidData(f"Truncated input: need {n} bytes, have {self.remaining}")
        out = self._data[self._pos:self._pos + n]
        self._pos += n
        return out

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_varint(self) -> int:
        value = 0
        for i in range(_MAX_VARINT_BYTES):
            byte = self.read_u8()
            value |= (byte & 0x7F) << (7 * i)
            if not byte & 0x80:
                return value
        raise InvalidData("Varint longer than 10 bytes")

    def read_u64(self) -> int:
        return int.from_bytes(self._take(8), 'big')

    def read_bytes(self) -> bytes:
        return self._take(self.read_varint())

    def read_scalar(self) -> ZR:
        v = int.from_bytes(self._take(scalar_size(self.group)), 'big')
        if v >= int(self.group.order()):
            raise InvalidData("Scalar not reduced modulo the group order")
        return self.group.init(ZR, v)

    def read_element(self, kind=G1):
        data = self.read_bytes()
        if not data:
            return self.group.init(kind, 1)
        if not data.startswith(_type_prefix(kind)):
            raise InvalidData(f"Expected an element of type {kind}")
        try:
            elem = self.group.deserialize(data)
        except Exception as e:
            raise InvalidData(f"Undecodable group element: {e}") from e
        if elem is None or elem is False:
            raise InvalidData("Undecodable group element")
        return elem

    def read_count(self) -> int:
        count = self.read_varint()
        # every item takes at least one byte
        if count > self.remaining:
            raise InvalidData(f"List of {count} items cannot fit in {self.remaining} bytes")
        return count

    def read_scalars(self) -> List[ZR]:
        return [self.read_scalar() for _ in range(self.read_count())]

    def read_elements(self, kind=G1) -> List:
        return [self.read_element(kind) for _ in range(self.read_count())]

    def finish(self):
        if self.remaining:
            raise InvalidData(f"{self.remaining} trailing bytes after the encoded value")


def to_base64(data: bytes) -> str:
    """Bytes to base64 string, for JSON transport."""
    return base64.b64encode(data).decode('utf-8')


def from_base64(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (ValueError, TypeError) as e:
        raise InvalidData(f"Invalid base64: {e}") from e
