"""Tests for BoundaryScanner."""

import io

import pytest

from mboxindex.services.scanner.base import FormatValidationError, UsageError
from mboxindex.services.scanner.boundary_scanner import (
    BoundaryScanner,
    iter_file_chunks,
    scan_chunks,
)


def chunked(data: bytes, chunk_size: int) -> list[bytes]:
    """Split data into chunks of chunk_size bytes."""
    return [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]


def scan(data: bytes, chunk_size: int = 0, strict: bool = False) -> list[int]:
    """Collect all boundaries of data, fed whole or in fixed-size chunks."""
    chunks = chunked(data, chunk_size) if chunk_size else [data]
    return list(scan_chunks(chunks, strict=strict))


MSG1 = b"From msg1@example.com\nBody 1\n"
MSG2 = b"From msg2@example.com\nBody 2\n"
MSG3 = b"From msg3@example.com\nBody 3\n"

REALISTIC = (
    b"From alice@example.com Mon Jan  1 12:34:56 2024\n"
    b"From: alice@example.com\n"
    b"To: bob@example.com\n"
    b"Subject: Hello\n"
    b"\n"
    b"Hi Bob,\n"
    b"This message is From Alice\n"
    b">From the archives\n"
    b"\n"
    b"From carol@example.com Tue Jan  2 08:15:30 2024\n"
    b"From: carol@example.com\n"
    b"Subject: Re: Hello\n"
    b"\n"
    b"I got your message!\n"
)


class TestBasicScanning:
    """Test boundary detection on whole inputs."""

    def test_single_message(self):
        """Test a single message starting with From."""
        assert scan(b"From sender@example.com Mon Jan 1 00:00:00 2024\nSubject: Test\n\nBody") == [0]

    def test_three_messages_offsets(self):
        """Test offsets are the cumulative message lengths."""
        boundaries = scan(MSG1 + MSG2 + MSG3)

        assert boundaries == [0, len(MSG1), len(MSG1) + len(MSG2)]

    def test_two_message_example(self):
        """Test the second boundary equals the first message's length."""
        first = b"From a@x Mon Jan 1\nSubj: 1\n\nBody 1\n"
        data = first + b"From b@x Mon Jan 2\nSubj: 2\n"

        assert scan(data) == [0, len(first)]
        assert len(first) == 35

    def test_empty_input(self):
        """Test empty input yields no boundaries and finishes cleanly."""
        scanner = BoundaryScanner()

        assert scanner.feed(b"") == []
        assert scanner.finish() == []

    def test_no_from_lines(self):
        """Test text without From lines yields nothing."""
        assert scan(b"This is not a valid mbox file\nNo From lines here") == []

    def test_binary_body(self):
        """Test binary payloads do not disturb detection."""
        data = (
            b"From sender@example.com Mon Jan 1 00:00:00 2024\n"
            b"Subject: Binary\n\n"
            + bytes([0x00, 0xFF, 0xAA, 0x55])
            + b"\nFrom sender2@example.com Mon Jan 2 00:00:00 2024\n"
        )

        assert len(scan(data)) == 2

    def test_adjacent_from_lines(self):
        """Test back-to-back From lines are all reported."""
        data = b"From a\nFrom b\nFrom c\n"

        assert scan(data) == [0, 7, 14]

    def test_accepts_bytearray_and_memoryview(self):
        """Test bytes-like chunks are accepted."""
        scanner = BoundaryScanner()

        assert scanner.feed(bytearray(b"From a\n")) == [0]
        assert scanner.feed(memoryview(b"From b\n")) == [7]


class TestBodyExclusions:
    """Test From occurrences that are not boundaries."""

    def test_from_mid_line(self):
        """Test From in the middle of a line is ignored."""
        data = (
            b"From sender@example.com Mon Jan 1 00:00:00 2024\n"
            b"Subject: Test\n\n"
            b"This is a message From someone\n"
        )

        assert scan(data) == [0]

    def test_escaped_from_line(self):
        """Test a quoted >From line is ignored."""
        data = (
            b"From sender@example.com Mon Jan 1 00:00:00 2024\n"
            b"Subject: Test\n\n"
            b">From someone else\n"
        )

        assert scan(data) == [0]

    def test_from_without_space(self):
        """Test 'From:' header lines are not boundaries."""
        assert scan(b"From a\nFrom: b@example.com\n") == [0]

    def test_lowercase_from(self):
        """Test matching is case-sensitive."""
        assert scan(b"From a\nfrom b\n") == [0]

    def test_realistic_mailbox(self):
        """Test a realistic mailbox with quoted and inline From."""
        second = REALISTIC.index(b"From carol")

        assert scan(REALISTIC) == [0, second]


class TestStreamStart:
    """Test the offset-zero decision."""

    def test_leading_text_non_strict(self):
        """Test leading non-mbox text is skipped in non-strict mode."""
        assert scan(b"Not an mbox\nFrom someone\n") == [12]

    def test_leading_text_strict(self):
        """Test leading non-mbox text fails in strict mode."""
        with pytest.raises(FormatValidationError):
            scan(b"Not an mbox\nFrom someone\n", strict=True)

    def test_strict_accepts_valid_start(self):
        """Test strict mode passes a proper mbox."""
        assert scan(MSG1 + MSG2, strict=True) == [0, len(MSG1)]

    def test_strict_raises_before_any_boundary(self):
        """Test nothing is emitted before the strict failure."""
        scanner = BoundaryScanner(strict=True)

        with pytest.raises(FormatValidationError):
            scanner.feed(b"X\nFrom a\n")

    def test_strict_empty_input_is_valid(self):
        """Test an empty stream is not a strict-mode error."""
        assert scan(b"", strict=True) == []

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 4])
    def test_deferred_decision_small_chunks(self, chunk_size):
        """Test the decision waits until five bytes are known."""
        assert scan(MSG1 + MSG2, chunk_size=chunk_size, strict=True) == [0, len(MSG1)]

    @pytest.mark.parametrize("chunk_size", [1, 2, 3])
    def test_strict_failure_small_chunks(self, chunk_size):
        """Test strict failure is detected with tiny chunks."""
        with pytest.raises(FormatValidationError):
            scan(b"Frxm a\nFrom b\n", chunk_size=chunk_size, strict=True)

    def test_early_mismatch_resolves_immediately(self):
        """Test a non-prefix first byte is rejected without waiting."""
        scanner = BoundaryScanner(strict=True)

        with pytest.raises(FormatValidationError):
            scanner.feed(b"X")

    def test_prefix_then_newline(self):
        """Test a From prefix followed by a boundary is handled in non-strict mode."""
        scanner = BoundaryScanner()

        assert scanner.feed(b"Fr") == []
        assert scanner.feed(b"\nFrom a\n") == [3]

    def test_truncated_from_strict(self):
        """Test a stream ending inside 'From ' fails at finish in strict mode."""
        scanner = BoundaryScanner(strict=True)
        scanner.feed(b"Fro")

        with pytest.raises(FormatValidationError):
            scanner.finish()

    def test_truncated_from_non_strict(self):
        """Test a stream ending inside 'From ' yields nothing in non-strict mode."""
        assert scan(b"Fro", chunk_size=1) == []


class TestChunking:
    """Test that chunking never changes the result."""

    SPLIT_INPUT = b"Some content\nFrom sender@example.com\n"

    @pytest.mark.parametrize(
        "split_at",
        [
            12,  # at the newline
            13,  # after the newline
            15,  # inside "From"
            17,  # between "From" and the space
            18,  # after the space
        ],
    )
    def test_split_delimiter(self, split_at):
        """Test a delimiter split in two pieces is still found."""
        scanner = BoundaryScanner()
        boundaries = scanner.feed(self.SPLIT_INPUT[:split_at])
        boundaries += scanner.feed(self.SPLIT_INPUT[split_at:])
        boundaries += scanner.finish()

        assert boundaries == [13]

    @pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 6, 7, 10, 20, 100, 1000])
    def test_chunk_size_invariance(self, chunk_size):
        """Test every chunk size gives the unchunked result."""
        data = REALISTIC + MSG1 + b"Not From here\n>From there\n" + MSG2 + MSG3

        assert scan(data, chunk_size=chunk_size) == scan(data)

    def test_irregular_chunks(self):
        """Test irregular chunk sizes, including empty chunks."""
        data = MSG1 + MSG2 + MSG3
        sizes = [0, 1, 0, 4, 2, 9, 0, 3, 17, 1, 1, 50]
        chunks = []
        position = 0
        for size in sizes:
            chunks.append(data[position : position + size])
            position += size
        chunks.append(data[position:])

        assert list(scan_chunks(chunks)) == scan(data)

    def test_many_messages(self):
        """Test a hundred messages are all found."""
        data = b"".join(
            b"From sender%d@example.com Mon Jan 1 00:00:00 2024\n"
            b"Subject: Message %d\n\nThis is message body %d\n" % (i, i, i)
            for i in range(100)
        )

        assert len(scan(data, chunk_size=64)) == 100

    def test_long_line_carry_stays_small(self):
        """Test a 1MB line keeps the carry at five bytes."""
        scanner = BoundaryScanner()
        scanner.feed(b"From a\n")
        scanner.feed(b"A" * 1_000_000)

        assert len(scanner._carry) == 5
        assert scanner.feed(b"\nFrom b\n") == [1_000_007 + 1]


class TestLifecycle:
    """Test feed/finish/reset contract."""

    def test_feed_after_finish(self):
        """Test feeding a finished scanner is a usage error."""
        scanner = BoundaryScanner()
        scanner.feed(MSG1)
        scanner.finish()

        with pytest.raises(UsageError):
            scanner.feed(MSG2)

    def test_feed_after_strict_failure(self):
        """Test a failed scanner refuses more input."""
        scanner = BoundaryScanner(strict=True)
        with pytest.raises(FormatValidationError):
            scanner.feed(b"garbage")

        with pytest.raises(UsageError):
            scanner.feed(MSG1)

    def test_reset_restarts_offsets(self):
        """Test reset allows scanning a new stream from offset zero."""
        scanner = BoundaryScanner()
        scanner.feed(MSG1 + MSG2)
        scanner.finish()

        scanner.reset()

        assert scanner.bytes_consumed == 0
        assert scanner.finished is False
        assert scanner.feed(MSG3) == [0]

    def test_reset_keeps_strict(self):
        """Test reset does not change strict mode."""
        scanner = BoundaryScanner(strict=True)
        with pytest.raises(FormatValidationError):
            scanner.feed(b"garbage")

        scanner.reset()

        assert scanner.strict is True
        assert scanner.feed(MSG1) == [0]

    def test_bytes_consumed(self):
        """Test bytes_consumed counts chunk bytes, not carry."""
        scanner = BoundaryScanner()
        scanner.feed(b"Fro")
        scanner.feed(b"m a\n")

        assert scanner.bytes_consumed == 7

    def test_scan_chunks_is_lazy(self):
        """Test offsets are yielded before the input is exhausted."""

        def chunks():
            yield MSG1
            raise AssertionError("second chunk should not be requested")

        assert next(scan_chunks(chunks())) == 0


class TestIterFileChunks:
    """Test the sequential file reader."""

    def test_reads_in_chunks(self):
        """Test a file is read in chunk_size pieces."""
        handle = io.BytesIO(b"abcdefghij")

        assert list(iter_file_chunks(handle, 4)) == [b"abcd", b"efgh", b"ij"]

    def test_empty_file(self):
        """Test an empty file yields no chunks."""
        assert list(iter_file_chunks(io.BytesIO(b""), 4)) == []

    def test_invalid_chunk_size(self):
        """Test a non-positive chunk size is rejected."""
        with pytest.raises(ValueError):
            list(iter_file_chunks(io.BytesIO(b"x"), 0))
