"""
Transaction parameters and asset ids
The parameter hash binds metadata the circuit does not interpret (recipients,
relayer, fees, deadline) to the proof as a single public input.
"""

import struct
from dataclasses import dataclass, field
from typing import List

from cryptography.hazmat.primitives import hashes

from gadgets.constants import PARAMS_HASH_MASK
from gadgets.poseidon import poseidon_hash
from r1cs.field import BN254_SCALAR_PRIME, to_field, to_signed

KEY_BYTES = 32


def sha256(data: bytes) -> bytes:
    digest = hashes.Hash(hashes.SHA256())
    digest.update(data)
    return digest.finalize()


def asset_id_from_mint(mint: bytes) -> int:
    """Poseidon of the little-endian 128-bit limbs of a 32-byte mint address"""
    if len(mint) != KEY_BYTES:
        raise ValueError(f"Mint must be {KEY_BYTES} bytes, got {len(mint)}")
    low = int.from_bytes(mint[:16], 'little')
    high = int.from_bytes(mint[16:], 'little')
    return poseidon_hash([low, high])


def public_amount_to_field(amount: int) -> int:
    """Deposits stay positive; withdrawals become p - |amount|"""
    if abs(amount) >= BN254_SCALAR_PRIME // 2:
        raise ValueError(f"Public amount {amount} out of range")
    return to_field(amount)


def field_to_signed(value: int) -> int:
    return to_signed(value)


@dataclass
class TransactParams:
    """External metadata hashed into the transaction's params_hash public input"""
    asset_ids: List[int]
    mints: List[bytes]
    ext_amounts: List[int]
    fees: List[int]
    recipients: List[bytes]
    relayer_fees: List[int]
    relayer: bytes = bytes(KEY_BYTES)
    slot_expiry: int = 0
    encrypted_output_hashes: List[bytes] = field(default_factory=list)

    def __post_init__(self):
        lines = len(self.asset_ids)
        for name in ('mints', 'ext_amounts', 'fees', 'recipients', 'relayer_fees'):
            if len(getattr(self, name)) != lines:
                raise ValueError(f"{name} has {len(getattr(self, name))} entries, expected {lines}")
        for key in self.mints + self.recipients + [self.relayer] + self.encrypted_output_hashes:
            if len(key) != KEY_BYTES:
                raise ValueError(f"Expected {KEY_BYTES}-byte keys and hashes, got {len(key)}")

    @classmethod
    def empty(cls, n_public_lines: int, n_outputs: int) -> "TransactParams":
        return cls(
            asset_ids=[0] * n_public_lines,
            mints=[bytes(KEY_BYTES)] * n_public_lines,
            ext_amounts=[0] * n_public_lines,
            fees=[0] * n_public_lines,
            recipients=[bytes(KEY_BYTES)] * n_public_lines,
            relayer_fees=[0] * n_public_lines,
            encrypted_output_hashes=[bytes(KEY_BYTES)] * n_outputs
        )

    def pack(self) -> bytes:
        """Little-endian packed layout; asset ids as big-endian field bytes"""
        parts = [asset_id.to_bytes(KEY_BYTES, 'big') for asset_id in self.asset_ids]
        parts += self.mints
        parts += [struct.pack("<q", amount) for amount in self.ext_amounts]
        parts += [struct.pack("<Q", fee) for fee in self.fees]
        parts += self.recipients
        parts += [struct.pack("<Q", fee) for fee in self.relayer_fees]
        parts.append(self.relayer)
        parts.append(struct.pack("<Q", self.slot_expiry))
        parts += self.encrypted_output_hashes
        return b"".join(parts)

    def params_hash(self) -> int:
        """SHA-256 of the packed params, top three bits cleared to fit the field"""
        return int.from_bytes(sha256(self.pack()), 'big') & PARAMS_HASH_MASK
