"""Link cable packet exchange: a length byte followed by that many data bytes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Optional

LINK_MODE_NONE = 0
LINK_MAX_PACKET_LENGTH = 16


class SioStatus(IntEnum):
    """State of the serial port."""

    IDLE = 0
    SENDING = 1
    RECEIVING = 2
    ERROR = 3


@dataclass
class LinkPort:
    """Packet layer over a byte-at-a-time serial port.

    ``transmit`` starts sending one byte; whoever drives the port sets
    ``byte_sent`` once that byte has gone out. Every transmitted byte is also
    recorded in ``wire``.
    """

    transmit: Optional[Callable[[int], None]] = None
    operation_mode: int = LINK_MODE_NONE
    status: SioStatus = SioStatus.IDLE
    byte_sent: bool = False
    next_mode: SioStatus = SioStatus.IDLE
    listening: bool = False
    received: bool = False
    received_packet: bytes = b""
    packet_sent: bool = False
    buffer: bytearray = field(default_factory=lambda: bytearray(LINK_MAX_PACKET_LENGTH))
    wire: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.init()

    def init(self) -> None:
        """Drop any packet being sent or received."""
        self.operation_mode = LINK_MODE_NONE
        self._rx_len = 0
        self._rx_pos = 0
        self.received = False
        self._tx = b""
        self._tx_pos = 0
        self.packet_sent = False

    def _listen(self) -> None:
        self.listening = True

    def _send_byte(self, value: int) -> None:
        self.status = SioStatus.SENDING
        self.wire.append(value & 0xFF)
        if self.transmit is not None:
            self.transmit(value & 0xFF)

    def on_receive(self, data: int) -> None:
        """Handle one byte that arrived on the port."""
        data &= 0xFF
        self.listening = False
        if self._rx_len:
            self._rx_len -= 1
            self.buffer[self._rx_pos] = data
            self._rx_pos += 1
            if self._rx_len == 0:
                self.received_packet = bytes(self.buffer[:self._rx_pos])
                self._rx_pos = 0
                self.received = True
            else:
                self._listen()
        else:
            if data > LINK_MAX_PACKET_LENGTH:
                raise ValueError(f"packet length {data} exceeds {LINK_MAX_PACKET_LENGTH}")
            self._rx_len = data
            self._rx_pos = 0
            self._listen()

    def send(self, packet: bytes) -> None:
        """Start sending a packet: its length byte goes out now, the data on later updates."""
        packet = bytes(packet)
        if not 0 < len(packet) <= LINK_MAX_PACKET_LENGTH:
            raise ValueError(f"packet must be 1..{LINK_MAX_PACKET_LENGTH} bytes, got {len(packet)}")
        self._tx = packet
        self._tx_pos = 0
        self.packet_sent = False
        self.byte_sent = False
        self._send_byte(len(packet))

    def update(self) -> bool:
        """Send the next byte once the previous one is out; False after a port error."""
        if self.status == SioStatus.ERROR:
            self.operation_mode = LINK_MODE_NONE
            self._rx_len = 0
            self._rx_pos = 0
            self._tx = b""
            self._tx_pos = 0
            self.status = SioStatus.IDLE
            return False
        if self.byte_sent:
            remaining = len(self._tx) - self._tx_pos
            if remaining:
                self.byte_sent = False
                if remaining == 1:
                    self.next_mode = SioStatus.RECEIVING
                value = self._tx[self._tx_pos]
                self._tx_pos += 1
                self._send_byte(value)
            else:
                self.packet_sent = True
        return True