"""Helpers to assemble mempool.dat bytes for the tests."""

from io import BytesIO

from blockchain.transaction import Transaction, TransactionInput, TransactionOutput
from utils.helper import int_to_bytes

## Imported from "Programming Bitcoin" by Jimmy Song

LEGACY_TX_HEX = (
    "0100000001813f79011acb80925dfe69b3def355fe914bd1d96a3f5f71bf8303c6a989c7d1000000006b483045022100ed81ff192e75a3fd2304004dcadb746fa5e24c5031ccfcf21320b0277457c98f02207a986d955c6e0cb35d446a89d3f56100f4d7f67801c31967743a9c8e10615bed01210349fc4e631e3624a545de3f89f5d8684c7b8138bd94bdd531d2e213bf016b278afeffffff02a135ef01000000001976a914bc3b654dca7e56b04dca18f2566cdaf02e8d9ada88ac99c39800000000001976a9141c4bc762dd5423e332166702cb75f40df79fea1288ac19430600"
)
LEGACY_TXID = "452c629d67e41baec3ac6f04fe744b4b9617f8f859c63b3002f8684e7a4fee03"

MULTI_INPUT_TX_HEX = (
    "010000000456919960ac691763688d3d3bcea9ad6ecaf875df5339e148a1fc61c6ed7a069e010000006a47304402204585bcdef85e6b1c6af5c2669d4830ff86e42dd205c0e089bc2a821657e951c002201024a10366077f87d6bce1f7100ad8cfa8a064b39d4e8fe4ea13a7b71aa8180f012102f0da57e85eec2934a82a585ea337ce2f4998b50ae699dd79f5880e253dafafb7feffffffeb8f51f4038dc17e6313cf831d4f02281c2a468bde0fafd37f1bf882729e7fd3000000006a47304402207899531a52d59a6de200179928ca900254a36b8dff8bb75f5f5d71b1cdc26125022008b422690b8461cb52c3cc30330b23d574351872b7c361e9aae3649071c1a7160121035d5c93d9ac96881f19ba1f686f15f009ded7c62efe85a872e6a19b43c15a2937feffffff567bf40595119d1bb8a3037c356efd56170b64cbcc160fb028fa10704b45d775000000006a47304402204c7c7818424c7f7911da6cddc59655a70af1cb5eaf17c69dadbfc74ffa0b662f02207599e08bc8023693ad4e9527dc42c34210f7a7d1d1ddfc8492b654a11e7620a0012102158b46fbdff65d0172b7989aec8850aa0dae49abfb84c81ae6e5b251a58ace5cfeffffffd63a5e6c16e620f86f375925b21cabaf736c779f88fd04dcad51d26690f7f345010000006a47304402200633ea0d3314bea0d95b3cd8dadb2ef79ea8331ffe1e61f762c0f6daea0fabde022029f23b3e9c30f080446150b23852028751635dcee2be669c2a1686a4b5edf304012103ffd6f4a67e94aba353a00882e563ff2722eb4cff0ad6006e86ee20dfe7520d55feffffff0251430f00000000001976a914ab0c0b2e98b1ab6dbf67d4750b0a56244948a87988ac005a6202000000001976a9143c82d7df364eb6c75be8c80df2b3eda8db57397088ac46430600"
)
MULTI_INPUT_TXID = "ee51510d7bbabe28052038d1deb10c03ec74f06a79e21913c6fcf48d56217c87"


def legacy_tx() -> bytes:
    return bytes.fromhex(LEGACY_TX_HEX)


def multi_input_tx() -> bytes:
    return bytes.fromhex(MULTI_INPUT_TX_HEX)


def segwit_tx() -> bytes:
    """A P2WPKH spend: empty script_sig, two witness items"""
    tx = Transaction(
        version=2,
        inputs=[
            TransactionInput(
                prev_hash=bytes(range(32)),
                prev_index=1,
                script_sig=b"",
                sequence=0xfffffffd,
                witness=[b"\x30" * 71, b"\x02" * 33],
            )
        ],
        outputs=[TransactionOutput(50_000, b"\x00\x14" + b"\xab" * 20)],
        locktime=0,
    )
    return tx.serialize()


def encode_entry(raw_tx: bytes, timestamp: int, fee_delta: int) -> bytes:
    return raw_tx + int_to_bytes(timestamp, 8, signed=True) + int_to_bytes(fee_delta, 8, signed=True)


def build_mempool_dat(
    entries: list[tuple[bytes, int, int]],
    version: int = 1,
    tx_count: int | None = None,
    trailing: bytes = b"",
) -> bytes:
    """`tx_count` defaults to len(entries); pass it to make the header lie."""
    if tx_count is None:
        tx_count = len(entries)

    result: bytes = int_to_bytes(version, 8, signed=True)
    result += int_to_bytes(tx_count, 8, signed=True)
    result += b"".join(encode_entry(*entry) for entry in entries)
    result += trailing
    return result


class RecordingStream:
    """
    BytesIO wrapper that remembers every read as (offset, bytes returned).
    Used to check the reader never touches bytes it was told to ignore.
    """
    def __init__(self, data: bytes):
        self._stream = BytesIO(data)
        self.reads: list[tuple[int, int]] = []

    def read(self, n: int = -1) -> bytes:
        offset = self._stream.tell()
        data = self._stream.read(n)
        self.reads.append((offset, len(data)))
        return data

    def tell(self) -> int:
        return self._stream.tell()

    def reads_from(self, offset: int) -> list[tuple[int, int]]:
        """Reads that started at or after `offset`"""
        return [r for r in self.reads if r[0] >= offset]
