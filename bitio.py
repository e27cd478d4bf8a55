import logging
from typing import BinaryIO, Optional

logger = logging.getLogger(__name__)


class BitWriter:
    """
    Packs single bits into bytes in the order they arrive.
    Each bit is shifted into the accumulator from the right; a byte goes out
    once 8 bits have been collected
    """

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.acc = 0
        self.acc_bits = 0
        self.bits_written = 0
        self.bytes_written = 0

    def write_bit(self, bit: int) -> None:
        self.acc = (self.acc << 1) | (bit & 1)
        self.acc_bits += 1
        self.bits_written += 1
        if self.acc_bits == 8:
            self._emit()

    def write_code(self, code: str) -> None:
        for ch in code:
            self.write_bit(1 if ch == '1' else 0)

    def flush(self) -> int:
        """
        Pad a partial trailing byte with zero bits on the low side and write it.
        Returns the number of pad bits added
        """
        pad_bits = 0
        if self.acc_bits != 0:
            pad_bits = 8 - self.acc_bits
            self.acc = self.acc << pad_bits
            self._emit()
        logger.debug("Flushed %d bits in %d bytes (%d pad bits)", self.bits_written, self.bytes_written, pad_bits)
        return pad_bits

    def _emit(self) -> None:
        self.stream.write(bytes([self.acc & 0xFF]))
        self.bytes_written += 1
        self.acc = 0
        self.acc_bits = 0


class BitReader:
    """Hands out the bits of a byte stream one at a time, most significant bit first."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.acc = 0
        self.acc_bits = 0
        self.bytes_read = 0
        self.eof = False

    def read_bit(self) -> Optional[int]:
        # None signals the end of the stream
        if self.acc_bits == 0:
            byte = self.stream.read(1)
            if not byte:
                self.eof = True
                return None
            self.acc = byte[0]
            self.acc_bits = 8
            self.bytes_read += 1
        bit = (self.acc >> 7) & 1
        self.acc = (self.acc << 1) & 0xFF
        self.acc_bits -= 1
        return bit
