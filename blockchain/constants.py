# Largest payload a single network message may carry. No transaction field
# can legitimately be larger than this, so it bounds every length we read.
MAX_MESSAGE_PAYLOAD = 32 * (1 << 20)  # 32 MiB


# Smallest possible input = prev_hash (32B) + prev_index (4B) + script length (1B) + sequence (4B) = 41B
MIN_TX_IN_PAYLOAD = 41
MAX_TX_IN_PER_MESSAGE = MAX_MESSAGE_PAYLOAD // MIN_TX_IN_PAYLOAD + 1

# Smallest possible output = value (8B) + script length (1B) = 9B
MIN_TX_OUT_PAYLOAD = 9
MAX_TX_OUT_PER_MESSAGE = MAX_MESSAGE_PAYLOAD // MIN_TX_OUT_PAYLOAD + 1

MAX_SCRIPT_SIZE = MAX_MESSAGE_PAYLOAD

# Witness stacks are bounded by the block weight limit
MAX_WITNESS_ITEMS_PER_INPUT = 4_000_000
MAX_WITNESS_ITEM_SIZE = 4_000_000


# Segwit serialization: version | 0x00 marker | 0x01 flag | inputs | outputs | witnesses | locktime
WITNESS_MARKER = 0x00
WITNESS_FLAG = 0x01

WITNESS_SCALE_FACTOR = 4
