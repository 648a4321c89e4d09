"""
BN254 scalar field helpers
Plain-int arithmetic for witness generation plus a galois field class for vectorised work
"""

import galois

BN254_SCALAR_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617
FIELD_BITS = 254
FIELD_BYTES = 32
MULTIPLICATIVE_GENERATOR = 5

# verify=False skips factoring p - 1 to confirm the generator
GF = galois.GF(BN254_SCALAR_PRIME,
               primitive_element=MULTIPLICATIVE_GENERATOR, verify=False)


def to_field(value: int) -> int:
    """Reduce an integer (possibly negative) to its canonical representative"""
    return value % BN254_SCALAR_PRIME


def field_inverse(value: int) -> int:
    """Multiplicative inverse, with 0 mapped to 0 for hint computation"""
    value %= BN254_SCALAR_PRIME
    if value == 0:
        return 0
    return pow(value, -1, BN254_SCALAR_PRIME)


def is_canonical(value: int) -> bool:
    return 0 <= value < BN254_SCALAR_PRIME


def to_signed(value: int) -> int:
    """Interpret a field element as a signed integer centred on zero"""
    value %= BN254_SCALAR_PRIME
    if value > BN254_SCALAR_PRIME // 2:
        return value - BN254_SCALAR_PRIME
    return value


def to_bytes_le(value: int, length: int = FIELD_BYTES) -> bytes:
    return to_field(value).to_bytes(length, 'little')


def from_bytes_le(data: bytes) -> int:
    return int.from_bytes(data, 'little')

