import os
import tempfile

from io import BytesIO
from unittest import TestCase, mock

from blockchain.transaction import Transaction
from mempool.errors import (
    EntryDecodeError,
    HeaderDecodeError,
    InvalidHeader,
    OpenError,
    TransactionDecodeError,
    TruncatedInput,
)
from mempool.reader import read_le_int64, read_mempool, read_mempool_from_path
from mempool.types import FileHeader
from unittests.builders import (
    LEGACY_TXID,
    MULTI_INPUT_TXID,
    RecordingStream,
    build_mempool_dat,
    encode_entry,
    legacy_tx,
    multi_input_tx,
    segwit_tx,
)
from utils.helper import int_to_bytes


def two_entries() -> list[tuple[bytes, int, int]]:
    return [
        (legacy_tx(), 1515261281, 1000),
        (multi_input_tx(), 1515261290, -1001),
    ]


class ReadLEInt64Test(TestCase):

    def test_values(self):
        self.assertEqual(read_le_int64(BytesIO(bytes.fromhex("0100000000000000"))), 1)
        self.assertEqual(read_le_int64(BytesIO(b"\xff" * 8)), -1)
        self.assertEqual(read_le_int64(BytesIO(bytes.fromhex("ffffffffffffff7f"))), 2**63 - 1)
        self.assertEqual(read_le_int64(BytesIO(bytes.fromhex("0000000000000080"))), -2**63)

    def test_advances_by_eight(self):
        stream = BytesIO(bytes(8) + b"rest")
        read_le_int64(stream)
        self.assertEqual(stream.tell(), 8)

    def test_short_read(self):
        for available in range(8):
            with self.subTest(available=available):
                with self.assertRaises(TruncatedInput) as ctx:
                    read_le_int64(BytesIO(bytes(available)))
                self.assertEqual(ctx.exception.received, available)
                self.assertEqual(ctx.exception.clean_eof, available == 0)


class ReadMempoolTest(TestCase):

    def test_example_file(self):
        data = build_mempool_dat(two_entries())
        self.assertEqual(data[:16], bytes.fromhex("0100000000000000" "0200000000000000"))

        mempool = read_mempool(BytesIO(data))
        self.assertEqual(mempool.header, FileHeader(version=1, tx_count=2))
        self.assertEqual(len(mempool.entries), 2)
        self.assertIsNone(mempool.map_deltas)
        self.assertFalse(mempool.has_deltas)

    def test_entry_fields(self):
        mempool = read_mempool(BytesIO(build_mempool_dat(two_entries())))

        first, second = mempool.entries
        self.assertEqual(first.txid, LEGACY_TXID)
        self.assertEqual(first.timestamp, 1515261281)
        self.assertEqual(first.fee_delta, 1000)
        self.assertEqual(first.first_seen.year, 2018)

        self.assertEqual(second.txid, MULTI_INPUT_TXID)
        self.assertEqual(second.fee_delta, -1001)
        self.assertEqual(len(second.transaction.inputs), 4)

    def test_order_preserved(self):
        entries = [
            (multi_input_tx(), 30, 0),
            (legacy_tx(), 10, 0),
            (segwit_tx(), 20, 0),
            (legacy_tx(), 5, 7),
        ]
        mempool = read_mempool(BytesIO(build_mempool_dat(entries)))

        self.assertEqual([e.timestamp for e in mempool], [30, 10, 20, 5])
        self.assertEqual(
            [e.transaction for e in mempool],
            [Transaction.parse(raw) for raw, _, _ in entries],
        )
        # duplicates are kept, lookup returns the first in file order
        self.assertEqual(mempool.get_entry(LEGACY_TXID).timestamp, 10)
        self.assertEqual(mempool.txids().count(LEGACY_TXID), 2)
        self.assertIsNone(mempool.get_entry("00" * 32))

    def test_deterministic(self):
        data = build_mempool_dat(two_entries(), trailing=b"\x01\x02")
        self.assertEqual(read_mempool(BytesIO(data), True), read_mempool(BytesIO(data), True))

    def test_round_trip(self):
        trailing = bytes.fromhex("01") + bytes(40)
        data = build_mempool_dat(two_entries() + [(segwit_tx(), 0, 0)], version=2, trailing=trailing)
        mempool = read_mempool(BytesIO(data), read_deltas=True)

        rebuilt = build_mempool_dat(
            [(e.transaction.serialize(), e.timestamp, e.fee_delta) for e in mempool],
            version=mempool.header.version,
            trailing=mempool.map_deltas,
        )
        self.assertEqual(rebuilt, data)

    def test_zero_entries(self):
        mempool = read_mempool(BytesIO(build_mempool_dat([])))
        self.assertEqual(mempool.header.tx_count, 0)
        self.assertEqual(mempool.entries, ())
        self.assertEqual(len(mempool), 0)

    def test_unknown_version_is_accepted(self):
        data = build_mempool_dat(two_entries(), version=99)
        with self.assertLogs("mempool.reader", level="WARNING"):
            mempool = read_mempool(BytesIO(data))
        self.assertEqual(mempool.header.version, 99)
        self.assertEqual(len(mempool), 2)


class MapDeltasTest(TestCase):

    def test_captured(self):
        trailing = b"\x01" + os.urandom(40)
        mempool = read_mempool(BytesIO(build_mempool_dat(two_entries(), trailing=trailing)), read_deltas=True)
        self.assertEqual(mempool.map_deltas, trailing)
        self.assertTrue(mempool.has_deltas)

    def test_requested_but_empty(self):
        data = build_mempool_dat(two_entries())
        requested = read_mempool(BytesIO(data), read_deltas=True)
        not_requested = read_mempool(BytesIO(data), read_deltas=False)

        self.assertEqual(requested.map_deltas, b"")
        self.assertTrue(requested.has_deltas)
        self.assertIsNone(not_requested.map_deltas)
        self.assertFalse(not_requested.has_deltas)
        self.assertNotEqual(requested, not_requested)

    def test_no_reads_past_last_entry(self):
        entries = two_entries()
        body = build_mempool_dat(entries)
        stream = RecordingStream(body + b"\xff" * 64)

        mempool = read_mempool(stream, read_deltas=False)

        self.assertEqual(len(mempool), 2)
        self.assertEqual(stream.tell(), len(body))
        self.assertEqual(stream.reads_from(len(body)), [])
        for offset, n in stream.reads:
            self.assertLessEqual(offset + n, len(body))

    def test_trailing_garbage_ignored(self):
        data = build_mempool_dat(two_entries(), trailing=b"\x00\x01\x02")
        self.assertEqual(len(read_mempool(BytesIO(data))), 2)


class DecodeErrorTest(TestCase):

    def test_negative_tx_count(self):
        stream = RecordingStream(build_mempool_dat(two_entries(), tx_count=-1))
        with mock.patch.object(Transaction, "parse") as parse:
            with self.assertRaises(InvalidHeader) as ctx:
                read_mempool(stream)

        parse.assert_not_called()
        self.assertEqual(ctx.exception.field, "tx_count")
        self.assertEqual(ctx.exception.value, -1)
        self.assertEqual(stream.reads_from(16), [])

    def test_empty_file(self):
        with self.assertRaises(HeaderDecodeError) as ctx:
            read_mempool(BytesIO(b""))
        self.assertEqual(ctx.exception.field, "version")
        self.assertIsInstance(ctx.exception.cause, TruncatedInput)
        self.assertTrue(ctx.exception.cause.clean_eof)

    def test_truncated_header(self):
        data = build_mempool_dat([])
        for cut in range(9, 16):
            with self.subTest(cut=cut):
                with self.assertRaises(HeaderDecodeError) as ctx:
                    read_mempool(BytesIO(data[:cut]))
                self.assertEqual(ctx.exception.field, "tx_count")
                self.assertEqual(ctx.exception.cause.received, cut - 8)
                self.assertIs(ctx.exception.__cause__, ctx.exception.cause)

    def test_fewer_entries_than_declared(self):
        data = build_mempool_dat(two_entries(), tx_count=3)
        with self.assertRaises(EntryDecodeError) as ctx:
            read_mempool(BytesIO(data), read_deltas=True)

        self.assertEqual(ctx.exception.index, 2)
        self.assertEqual(ctx.exception.field, "transaction")
        self.assertTrue(ctx.exception.cause.clean_eof)

    def test_truncated_fixed_width_fields(self):
        data = build_mempool_dat(two_entries())
        for cut in range(1, 8):
            with self.subTest(field="fee_delta", cut=cut):
                with self.assertRaises(EntryDecodeError) as ctx:
                    read_mempool(BytesIO(data[:-cut]))
                self.assertEqual(ctx.exception.index, 1)
                self.assertEqual(ctx.exception.field, "fee_delta")
                self.assertIsInstance(ctx.exception.cause, TruncatedInput)
                self.assertEqual(ctx.exception.cause.received, 8 - cut)

            with self.subTest(field="timestamp", cut=cut):
                with self.assertRaises(EntryDecodeError) as ctx:
                    read_mempool(BytesIO(data[:-(8 + cut)]))
                self.assertEqual(ctx.exception.index, 1)
                self.assertEqual(ctx.exception.field, "timestamp")

    def test_truncated_transaction(self):
        first = encode_entry(legacy_tx(), 0, 0)
        data = build_mempool_dat(two_entries())
        cut = 16 + len(first) + 50  # inside the second transaction

        with self.assertRaises(EntryDecodeError) as ctx:
            read_mempool(BytesIO(data[:cut]))
        self.assertEqual(ctx.exception.index, 1)
        self.assertEqual(ctx.exception.field, "transaction")
        self.assertIsInstance(ctx.exception.cause, TruncatedInput)

    def test_malformed_transaction(self):
        bad_tx = int_to_bytes(2) + b"\x00\x05" + bytes(60)
        data = build_mempool_dat([(legacy_tx(), 0, 0)]) + bad_tx + bytes(16)
        data = int_to_bytes(1, 8) + int_to_bytes(2, 8) + data[16:]

        with self.assertRaises(EntryDecodeError) as ctx:
            read_mempool(BytesIO(data))
        self.assertEqual(ctx.exception.index, 1)
        self.assertIsInstance(ctx.exception.cause, TransactionDecodeError)


class ReadFromPathTest(TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "mempool.dat")

    def tearDown(self):
        self.tmp.cleanup()

    def write(self, data: bytes):
        with open(self.path, "wb") as f:
            f.write(data)

    def test_read(self):
        self.write(build_mempool_dat(two_entries(), trailing=b"\x00"))

        mempool = read_mempool_from_path(self.path)
        self.assertEqual(mempool.txids(), [LEGACY_TXID, MULTI_INPUT_TXID])
        self.assertIsNone(mempool.map_deltas)

        mempool = read_mempool_from_path(self.path, read_deltas=True)
        self.assertEqual(mempool.map_deltas, b"\x00")

    def test_missing_file(self):
        missing = os.path.join(self.tmp.name, "nope.dat")
        with self.assertRaises(OpenError) as ctx:
            read_mempool_from_path(missing)
        self.assertEqual(ctx.exception.path, missing)
        self.assertIsInstance(ctx.exception.cause, FileNotFoundError)

    def test_file_closed_on_error(self):
        self.write(build_mempool_dat(two_entries(), tx_count=5))

        opened = []
        real_open = open

        def tracking_open(*args, **kwargs):
            f = real_open(*args, **kwargs)
            opened.append(f)
            return f

        with mock.patch("builtins.open", tracking_open):
            with self.assertRaises(EntryDecodeError):
                read_mempool_from_path(self.path)

        self.assertEqual(len(opened), 1)
        self.assertTrue(opened[0].closed)
