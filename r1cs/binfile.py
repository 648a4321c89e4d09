"""
iden3 binary formats
Writers for .r1cs (constraint system) and .wtns (witness) files so a synthesized
circuit can be handed to snarkjs; readers are kept minimal for inspection
"""

import logging
import struct
from pathlib import Path
from typing import Dict, List

from .constraint_system import ConstraintSystem, LinearCombination
from .field import BN254_SCALAR_PRIME, FIELD_BYTES, from_bytes_le, to_bytes_le

logger = logging.getLogger(__name__)

R1CS_MAGIC = b"r1cs"
R1CS_VERSION = 1
WTNS_MAGIC = b"wtns"
WTNS_VERSION = 2

SECTION_HEADER = 1
SECTION_CONSTRAINTS = 2
SECTION_WIRE_TO_LABEL = 3
SECTION_WITNESS = 2


def _section(section_type: int, content: bytes) -> bytes:
    return struct.pack("<IQ", section_type, len(content)) + content


def _encode_lc(lc: LinearCombination, position: Dict[int, int]) -> bytes:
    terms = sorted((position[wire], coeff) for wire, coeff in lc.terms.items())
    out = [struct.pack("<I", len(terms))]
    for wire, coeff in terms:
        out.append(struct.pack("<I", wire))
        out.append(to_bytes_le(coeff))
    return b"".join(out)


def encode_r1cs(cs: ConstraintSystem) -> bytes:
    order = cs.wire_order()
    position = {wire: i for i, wire in enumerate(order)}
    n_wires = len(order)
    n_public = cs.num_public

    header = struct.pack("<I", FIELD_BYTES) + to_bytes_le(BN254_SCALAR_PRIME)
    header += struct.pack(
        "<IIIIQI",
        n_wires,
        0,                          # public outputs
        n_public,                   # public inputs
        n_wires - 1 - n_public,     # private inputs
        n_wires,                    # labels
        cs.num_constraints
    )

    constraints = b"".join(
        _encode_lc(c.a, position) + _encode_lc(c.b, position) + _encode_lc(c.c, position)
        for c in cs.constraints
    )
    labels = b"".join(struct.pack("<Q", wire) for wire in order)

    return (R1CS_MAGIC + struct.pack("<II", R1CS_VERSION, 3)
            + _section(SECTION_HEADER, header)
            + _section(SECTION_CONSTRAINTS, constraints)
            + _section(SECTION_WIRE_TO_LABEL, labels))


def encode_wtns(cs: ConstraintSystem) -> bytes:
    order = cs.wire_order()
    header = struct.pack("<I", FIELD_BYTES) + to_bytes_le(BN254_SCALAR_PRIME) + \
        struct.pack("<I", len(order))
    values = b"".join(to_bytes_le(cs.values[wire]) for wire in order)
    return (WTNS_MAGIC + struct.pack("<II", WTNS_VERSION, 2)
            + _section(SECTION_HEADER, header)
            + _section(SECTION_WITNESS, values))


def write_r1cs(cs: ConstraintSystem, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_r1cs(cs))
    logger.info(f"Wrote {cs.num_constraints} constraints to {path}")
    return path


def write_wtns(cs: ConstraintSystem, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_wtns(cs))
    logger.info(f"Wrote {cs.num_wires} witness values to {path}")
    return path


def _read_sections(data: bytes, magic: bytes) -> Dict[int, bytes]:
    if data[:4] != magic:
        raise ValueError(f"Not a {magic.decode()} file")
    _, n_sections = struct.unpack_from("<II", data, 4)
    sections = {}
    offset = 12
    for _ in range(n_sections):
        section_type, size = struct.unpack_from("<IQ", data, offset)
        offset += 12
        sections[section_type] = data[offset:offset + size]
        offset += size
    return sections


def read_r1cs_header(path: Path) -> Dict[str, int]:
    """Parse the header section of an .r1cs file"""
    header = _read_sections(Path(path).read_bytes(), R1CS_MAGIC)[SECTION_HEADER]
    field_size, = struct.unpack_from("<I", header, 0)
    prime = from_bytes_le(header[4:4 + field_size])
    n_wires, n_outputs, n_public, n_private, n_labels, n_constraints = struct.unpack_from(
        "<IIIIQI", header, 4 + field_size)
    return {
        'field_size': field_size,
        'prime': prime,
        'n_wires': n_wires,
        'n_public_outputs': n_outputs,
        'n_public_inputs': n_public,
        'n_private_inputs': n_private,
        'n_labels': n_labels,
        'n_constraints': n_constraints
    }


def read_wtns(path: Path) -> List[int]:
    """Parse witness values from a .wtns file, in wire order"""
    sections = _read_sections(Path(path).read_bytes(), WTNS_MAGIC)
    field_size, = struct.unpack_from("<I", sections[SECTION_HEADER], 0)
    data = sections[SECTION_WITNESS]
    return [from_bytes_le(data[i:i + field_size]) for i in range(0, len(data), field_size)]
