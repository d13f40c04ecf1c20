"""Printer protocol over the serial port: command packets, status polling and tile streaming."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntFlag
from typing import Callable

PRN_MAGIC = 0x3388
CMD_INIT = 0x01
CMD_PRINT = 0x02
CMD_DATA = 0x04
CMD_BREAK = 0x08
CMD_STATUS = 0x0F

STATUS_MASK_ERRORS = 0xF0
STATUS_MASK_ANY = 0xFF
ALIVE = 0x81
TILES_PER_PACKET = 40
TILE_SIZE = 16

_PRINT_TILE_HEADER = bytes((0x88, 0x33, 0x04, 0x00, 0x80, 0x02))


class PrinterStatus(IntFlag):
    """Status byte reported by the printer."""

    OK = 0x00
    SUM = 0x01
    BUSY = 0x02
    FULL = 0x04
    UNTRAN = 0x08
    ER0 = 0x10
    ER1 = 0x20
    ER2 = 0x40
    LOWBAT = 0x80


def build_packet(command: int, payload: bytes = b"") -> bytes:
    """A complete packet: magic, command, no compression, length, data, checksum, two trailing bytes."""
    payload = bytes(payload)
    length = len(payload)
    if length > 0xFFFF:
        raise ValueError("payload too long")
    body = bytes((command & 0xFF, 0x00, length & 0xFF, length >> 8)) + payload
    crc = sum(body) & 0xFFFF
    return PRN_MAGIC.to_bytes(2, "little") + body + crc.to_bytes(2, "little") + b"\x00\x00"


PKT_INIT = build_packet(CMD_INIT)
PKT_STATUS = build_packet(CMD_STATUS)
PKT_EOF = build_packet(CMD_DATA)
PKT_CANCEL = build_packet(CMD_BREAK)


def _no_wait() -> None:
    pass


@dataclass
class Printer:
    """Talks to a printer through ``transfer``, which exchanges one byte for one byte.

    ``wait_frame`` is called between status polls.
    """

    transfer: Callable[[int], int]
    wait_frame: Callable[[], None] = _no_wait
    status: int = 0
    tile_count: int = 0
    _crc: int = 0

    def _send_byte(self, value: int) -> int:
        self.status = ((self.status << 8) | (self.transfer(value & 0xFF) & 0xFF)) & 0xFFFF
        return self.status & 0xFF

    def send_command(self, packet: bytes) -> int:
        """Send a packet; the printer's status, or the error mask if it did not answer."""
        for value in packet:
            self._send_byte(value)
        if (self.status >> 8) == ALIVE:
            return self.status & 0xFF
        return STATUS_MASK_ERRORS

    def print_tile(self, tile: bytes) -> bool:
        """Stream one 16-byte tile; True once a full packet of 40 tiles has been sent."""
        tile = bytes(tile)
        if len(tile) != TILE_SIZE:
            raise ValueError(f"a tile is {TILE_SIZE} bytes, got {len(tile)}")
        if self.tile_count == 0:
            for value in _PRINT_TILE_HEADER:
                self.transfer(value)
            self._crc = sum(_PRINT_TILE_HEADER[2:])
        for value in tile:
            self._crc = (self._crc + value) & 0xFFFF
            self.transfer(value)
        self.tile_count += 1
        if self.tile_count == TILES_PER_PACKET:
            for value in (self._crc & 0xFF, self._crc >> 8, 0x00, 0x00):
                self.transfer(value)
            self._crc = 0
            self.tile_count = 0
            return True
        return False

    def wait(self, timeout: int, mask: int, value: int) -> int:
        """Poll until status & mask equals value; stops early on an error status.

        Returns the last status, or the error mask if the polls ran out.
        """
        while True:
            error = self.send_command(PKT_STATUS)
            if (error & mask) == value:
                return error
            if timeout == 0:
                return STATUS_MASK_ERRORS
            timeout -= 1
            if error & STATUS_MASK_ERRORS:
                return error
            self.wait_frame()

    def detect(self, delay: int) -> int:
        """Initialise the printer and wait up to delay polls for it to report OK."""
        self.tile_count = 0
        self.send_command(PKT_INIT)
        return self.wait(delay, STATUS_MASK_ANY, PrinterStatus.OK)