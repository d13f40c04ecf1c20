"""Save slots packed into battery-backed RAM banks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

SRAM_BANK_SIZE = 0x2000
SRAM_BANKS_TO_SAVE = 4
SIGNATURE_SIZE = 4


@dataclass
class SaveStore:
    """Fixed-size save blobs, each a signature followed by the payload.

    Slots are laid out one after another in a bank; a slot that would not fit
    moves to the start of the next bank.
    """

    payload_size: int
    signature: bytes = b"GBVM"
    bank_count: int = SRAM_BANKS_TO_SAVE
    bank_size: int = SRAM_BANK_SIZE
    banks: list[bytearray] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.signature) != SIGNATURE_SIZE:
            raise ValueError(f"signature must be {SIGNATURE_SIZE} bytes")
        if self.payload_size < 0 or self.blob_size > self.bank_size:
            raise ValueError("save blob does not fit in a bank")
        if not self.banks:
            self.banks = [bytearray(self.bank_size) for _ in range(self.bank_count)]

    @property
    def blob_size(self) -> int:
        return SIGNATURE_SIZE + self.payload_size

    def slot_address(self, slot: int) -> Optional[tuple[int, int]]:
        """(bank, offset) of a slot, or None when it lies beyond the last bank."""
        offset, bank = 0, 0
        for _ in range(slot):
            offset += self.blob_size
            if offset + self.blob_size > self.bank_size:
                bank += 1
                if bank >= self.bank_count:
                    return None
                offset = 0
        return bank, offset

    def _locate(self, slot: int) -> tuple[bytearray, int]:
        address = self.slot_address(slot)
        if address is None:
            raise IndexError(f"save slot {slot} is out of range")
        bank, offset = address
        return self.banks[bank], offset

    def _signed(self, slot: int) -> Optional[tuple[bytearray, int]]:
        if self.slot_address(slot) is None:
            return None
        data, offset = self._locate(slot)
        if data[offset:offset + SIGNATURE_SIZE] != self.signature:
            return None
        return data, offset

    def save(self, slot: int, payload: bytes) -> None:
        """Write a payload into a slot."""
        if len(payload) != self.payload_size:
            raise ValueError(f"payload must be {self.payload_size} bytes, got {len(payload)}")
        data, offset = self._locate(slot)
        data[offset:offset + self.blob_size] = self.signature + bytes(payload)

    def load(self, slot: int) -> Optional[bytes]:
        """The payload stored in a slot, or None if it holds no save."""
        found = self._signed(slot)
        if found is None:
            return None
        data, offset = found
        start = offset + SIGNATURE_SIZE
        return bytes(data[start:start + self.payload_size])

    def clear(self, slot: int) -> None:
        """Invalidate the save in a slot."""
        data, offset = self._locate(slot)
        data[offset:offset + SIGNATURE_SIZE] = bytes(SIGNATURE_SIZE)

    def peek(self, slot: int, index: int, count: int) -> Optional[list[int]]:
        """Read count 16-bit little-endian words of a saved payload from word index.

        Returns None if the slot holds no save.
        """
        found = self._signed(slot)
        if found is None:
            return None
        data, offset = found
        start = offset + SIGNATURE_SIZE + index * 2
        end = start + count * 2
        if index < 0 or count < 0 or end > len(data):
            raise IndexError("peek reaches beyond the save bank")
        raw = data[start:end]
        return [int.from_bytes(raw[i:i + 2], "little") for i in range(0, len(raw), 2)]