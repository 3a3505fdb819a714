"""
Storage codec for molecule buffers.

Three storage forms are supported:

    bare       [RDKit pickle: N bytes]
    prefixed   [fingerprint: 8 bytes, little-endian u64][RDKit pickle: N bytes]
    struct     (payload bytes, fingerprint u64) kept as two separate fields

Buffers are immutable. Every operation builds a new buffer; converting
between forms always goes through a full deserialize and re-fingerprint so
the fingerprint can never drift from the payload it sits next to.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from rdkit import Chem

from . import chem
from .errors import MalformedBufferError
from .fingerprints import DEFAULT_FINGERPRINTER, FINGERPRINT_BYTES, DalkeFingerprinter

BytesLike = Union[bytes, bytearray, memoryview]


class PayloadKind(Enum):
    BARE = 'bare'
    PREFIXED = 'prefixed'


@dataclass(frozen=True)
class MolBuffer:
    """
    A serialized molecule tagged with its layout.

    Attributes:
        kind: PayloadKind.BARE or PayloadKind.PREFIXED
        data: The complete buffer, header included for prefixed buffers
    """
    kind: PayloadKind
    data: bytes

    def __post_init__(self):
        if not isinstance(self.kind, PayloadKind):
            raise ValueError(f"kind must be a PayloadKind, got {self.kind!r}")
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise TypeError(f"data must be bytes-like, got {type(self.data).__name__}")
        object.__setattr__(self, 'data', bytes(self.data))

    @classmethod
    def bare(cls, data: BytesLike) -> 'MolBuffer':
        return cls(PayloadKind.BARE, data)

    @classmethod
    def prefixed(cls, data: BytesLike) -> 'MolBuffer':
        return cls(PayloadKind.PREFIXED, data)

    @property
    def has_prefix(self) -> bool:
        return self.kind is PayloadKind.PREFIXED

    @property
    def fingerprint(self) -> Optional[int]:
        """
        The embedded fingerprint, None for bare buffers.

        Raises:
            MalformedBufferError: if a prefixed buffer is shorter than 8 bytes
        """
        if not self.has_prefix:
            return None
        fp = decode_fingerprint(self.data)
        if fp is None:
            raise MalformedBufferError(len(self.data), FINGERPRINT_BYTES)
        return fp

    @property
    def payload(self) -> bytes:
        return decode_payload(self.data, self.has_prefix)

    def to_mol(self) -> Chem.Mol:
        if self.has_prefix and len(self.data) < FINGERPRINT_BYTES:
            raise MalformedBufferError(len(self.data), FINGERPRINT_BYTES)
        return chem.deserialize(self.payload)

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"MolBuffer(kind={self.kind.value}, size={len(self.data)})"


@dataclass(frozen=True)
class MolStruct:
    """A bare payload and its fingerprint, stored side by side."""
    payload: bytes
    fingerprint: int

    def __post_init__(self):
        fp = int(self.fingerprint)
        if not 0 <= fp < 1 << 64:
            raise ValueError(f"fingerprint must fit in 64 unsigned bits, got {fp}")
        object.__setattr__(self, 'payload', bytes(self.payload))
        object.__setattr__(self, 'fingerprint', fp)

    def to_mol(self) -> Chem.Mol:
        return chem.deserialize(self.payload)

    def to_bare(self) -> MolBuffer:
        return MolBuffer.bare(self.payload)


MolValue = Union[MolBuffer, MolStruct]


def encode_bare(mol: Chem.Mol) -> MolBuffer:
    """Serialize a molecule with no header."""
    return MolBuffer.bare(chem.serialize(mol))


def encode_prefixed(mol: Chem.Mol,
                    fingerprinter: Optional[DalkeFingerprinter] = None) -> MolBuffer:
    """Serialize a molecule behind its 8-byte little-endian fingerprint."""
    fingerprinter = fingerprinter or DEFAULT_FINGERPRINTER
    payload = chem.serialize(mol)
    fp = fingerprinter.generate(mol)
    return MolBuffer.prefixed(fp.to_bytes(FINGERPRINT_BYTES, 'little') + payload)


def encode_struct(mol: Chem.Mol,
                  fingerprinter: Optional[DalkeFingerprinter] = None) -> MolStruct:
    fingerprinter = fingerprinter or DEFAULT_FINGERPRINTER
    return MolStruct(chem.serialize(mol), fingerprinter.generate(mol))


def decode_fingerprint(buffer: Union[BytesLike, MolBuffer]) -> Optional[int]:
    """
    Read the fingerprint from the first 8 bytes of a prefixed buffer.

    Returns None when the buffer is too short to hold one. Only the leading
    8 bytes are ever read.
    """
    if isinstance(buffer, MolBuffer):
        if not buffer.has_prefix:
            raise ValueError("A bare buffer carries no fingerprint")
        buffer = buffer.data
    if len(buffer) < FINGERPRINT_BYTES:
        return None
    return int.from_bytes(bytes(buffer[:FINGERPRINT_BYTES]), 'little')


def decode_payload(buffer: Union[BytesLike, MolBuffer],
                   has_prefix: Optional[bool] = None) -> bytes:
    """
    Return the molecule payload of a buffer.

    For a MolBuffer, has_prefix defaults to its kind. A prefixed buffer of
    8 bytes or less yields an empty payload.
    """
    if isinstance(buffer, MolBuffer):
        if has_prefix is None:
            has_prefix = buffer.has_prefix
        buffer = buffer.data
    elif has_prefix is None:
        raise ValueError("has_prefix is required for raw byte buffers")
    if not has_prefix:
        return bytes(buffer)
    if len(buffer) <= FINGERPRINT_BYTES:
        return b''
    return bytes(buffer[FINGERPRINT_BYTES:])


def convert(buffer: MolBuffer,
            fingerprinter: Optional[DalkeFingerprinter] = None) -> MolBuffer:
    """
    Bare -> prefixed, or prefixed -> bare.

    The payload is always deserialized and re-encoded; the fingerprint is
    regenerated rather than copied.
    """
    mol = buffer.to_mol()
    if buffer.has_prefix:
        return encode_bare(mol)
    return encode_prefixed(mol, fingerprinter)


def to_struct(buffer: MolBuffer,
              fingerprinter: Optional[DalkeFingerprinter] = None) -> MolStruct:
    return encode_struct(buffer.to_mol(), fingerprinter)


def from_struct(value: MolStruct, kind: PayloadKind = PayloadKind.PREFIXED,
                fingerprinter: Optional[DalkeFingerprinter] = None) -> MolBuffer:
    mol = value.to_mol()
    if kind is PayloadKind.BARE:
        return encode_bare(mol)
    return encode_prefixed(mol, fingerprinter)
