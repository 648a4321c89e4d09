"""
Protocol constants
Fixed at circuit-generation time; changing any of them changes the verifying key
"""

# Note format
NOTE_VERSION = 1
NOTE_COMMITMENT_DOMAIN = int.from_bytes(b"shielded-pool/note-commitment", 'big')

# Fixed-point reward accounting
REWARD_SCALE = 10 ** 18

# Bit widths
AMOUNT_BITS = 64
ACCUMULATOR_BITS = 128
REMAINDER_BITS = (REWARD_SCALE - 1).bit_length()
# amount * accumulator delta < 2^192, so floor(. / 10^18) < 2^134
REWARD_BITS = AMOUNT_BITS + ACCUMULATOR_BITS - REMAINDER_BITS + 2
PARAMS_HASH_BITS = 253
PARAMS_HASH_MASK = (1 << PARAMS_HASH_BITS) - 1

# Trees
COMMITMENT_TREE_DEPTH = 26
NULLIFIER_TREE_DEPTH = 26
MAX_NULLIFIER_BATCH_SIZE = 64

# Transaction shape defaults
N_REWARD_LINES = 8
N_PUBLIC_LINES = 2
N_ROSTER_SLOTS = 4
