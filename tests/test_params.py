"""
Transaction parameter hashing and asset ids
"""

from dataclasses import replace

import pytest

from circuits import TransactParams, asset_id_from_mint, field_to_signed, public_amount_to_field
from gadgets.constants import PARAMS_HASH_BITS
from r1cs import BN254_SCALAR_PRIME as P


@pytest.fixture
def params():
    return TransactParams(
        asset_ids=[7],
        mints=[bytes(range(32))],
        ext_amounts=[-40],
        fees=[1],
        recipients=[bytes([9] * 32)],
        relayer_fees=[2],
        relayer=bytes([3] * 32),
        slot_expiry=1000,
        encrypted_output_hashes=[bytes([4] * 32), bytes([5] * 32)]
    )


class TestParamsHash:

    def test_fits_field(self, params):
        assert 0 <= params.params_hash() < 2 ** PARAMS_HASH_BITS < P

    def test_deterministic(self, params):
        assert params.params_hash() == replace(params).params_hash()

    @pytest.mark.parametrize("change", [
        {'ext_amounts': [40]},
        {'fees': [0]},
        {'recipients': [bytes(32)]},
        {'relayer': bytes(32)},
        {'slot_expiry': 1001},
        {'encrypted_output_hashes': [bytes([5] * 32), bytes([4] * 32)]},
    ])
    def test_sensitive_to_every_field(self, params, change):
        assert replace(params, **change).params_hash() != params.params_hash()

    def test_packed_length(self, params):
        # asset id, mint, amount, fee, recipient, relayer fee, relayer, expiry, two output hashes
        assert len(params.pack()) == 32 + 32 + 8 + 8 + 32 + 8 + 32 + 8 + 2 * 32

    def test_line_lengths_must_agree(self):
        with pytest.raises(ValueError):
            TransactParams(asset_ids=[1, 2], mints=[bytes(32)], ext_amounts=[0], fees=[0],
                           recipients=[bytes(32)], relayer_fees=[0])

    def test_key_length_checked(self, params):
        with pytest.raises(ValueError):
            replace(params, relayer=bytes(31))

    def test_empty(self):
        empty = TransactParams.empty(2, 3)
        assert empty.ext_amounts == [0, 0]
        assert len(empty.encrypted_output_hashes) == 3
        assert empty.params_hash() == TransactParams.empty(2, 3).params_hash()


class TestAssetIds:

    def test_deterministic_and_distinct(self):
        assert asset_id_from_mint(bytes(32)) == asset_id_from_mint(bytes(32))
        assert asset_id_from_mint(bytes(32)) != asset_id_from_mint(bytes([1] + [0] * 31))
        assert 0 <= asset_id_from_mint(bytes([0xff] * 32)) < P

    @pytest.mark.parametrize("length", [0, 31, 33])
    def test_mint_length(self, length):
        with pytest.raises(ValueError):
            asset_id_from_mint(bytes(length))


class TestPublicAmounts:

    @pytest.mark.parametrize("amount", [0, 1, 40, -1, -40, 2 ** 63])
    def test_signed_round_trip(self, amount):
        assert field_to_signed(public_amount_to_field(amount)) == amount

    def test_withdrawal_wraps(self):
        assert public_amount_to_field(-40) == P - 40

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            public_amount_to_field(P // 2)
