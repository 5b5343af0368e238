"""
Records produced by transaction execution and the fixed-capacity arrays that
carry them into the kernel circuits.

Arrays handed to a circuit always have a fixed length. The first `length`
slots hold real entries, the rest are padding (empty records).
"""

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from keum import grumpkin


# !Important! Must match the scalar field of the proving system (BN254 with
# Barretenberg), which is the base field of Grumpkin.
Field = grumpkin.Fq


class ContractAddress(bytes):
    LENGTH = 32

    def __new__(cls, data: bytes = bytes(32)):
        assert len(data) == cls.LENGTH, f"address is {len(data)} bytes"
        return super().__new__(cls, data)

    @classmethod
    def zero(cls) -> "ContractAddress":
        return cls(bytes(cls.LENGTH))

    @classmethod
    def from_int(cls, value: int) -> "ContractAddress":
        return cls(int.to_bytes(value, length=cls.LENGTH, byteorder="big"))

    def is_zero(self) -> bool:
        return not any(self)


@dataclass(frozen=True)
class NoteHash:
    contract_address: ContractAddress
    value: Field
    counter: int
    # counter of the nullifier consuming this note in the same context, 0 if none
    nullifier_counter: int = 0

    def __post_init__(self):
        assert isinstance(
            self.contract_address, ContractAddress
        ), f"contract_address is {type(self.contract_address)}"
        assert isinstance(self.value, Field), f"value is {type(self.value)}"
        assert self.counter >= 0
        assert self.nullifier_counter >= 0
        # counter 0 is the padding counter
        assert (
            self.counter > 0 or self.nullifier_counter == 0
        ), "transient note hash with counter 0"

    @staticmethod
    def empty() -> "NoteHash":
        return NoteHash(ContractAddress.zero(), Field.zero(), 0, 0)

    def is_empty(self) -> bool:
        return (
            self.contract_address.is_zero()
            and self.value == Field.zero()
            and self.counter == 0
            and self.nullifier_counter == 0
        )

    @property
    def is_transient(self) -> bool:
        return self.nullifier_counter != 0


@dataclass(frozen=True)
class Nullifier:
    contract_address: ContractAddress
    nullified_note_hash: Field
    counter: int

    def __post_init__(self):
        assert isinstance(
            self.contract_address, ContractAddress
        ), f"contract_address is {type(self.contract_address)}"
        assert isinstance(
            self.nullified_note_hash, Field
        ), f"nullified_note_hash is {type(self.nullified_note_hash)}"
        assert self.counter >= 0

    @staticmethod
    def empty() -> "Nullifier":
        return Nullifier(ContractAddress.zero(), Field.zero(), 0)

    def is_empty(self) -> bool:
        return (
            self.contract_address.is_zero()
            and self.nullified_note_hash == Field.zero()
            and self.counter == 0
        )


@dataclass(frozen=True)
class NoteLog:
    note_hash_counter: int

    def __post_init__(self):
        assert self.note_hash_counter >= 0

    @staticmethod
    def empty() -> "NoteLog":
        return NoteLog(0)

    def is_empty(self) -> bool:
        return self.note_hash_counter == 0


T = TypeVar("T", NoteHash, Nullifier, NoteLog)


def count_accumulated_items(slots: Sequence[T]) -> int:
    """
    Number of leading non-empty records in a padded array.

    Raises ValueError if a real record appears after padding.
    """
    count = 0
    for i, item in enumerate(slots):
        if item.is_empty():
            continue
        if count != i:
            raise ValueError("Non-empty items must be placed before empty items")
        count += 1
    return count


@dataclass(frozen=True)
class BoundedArray(Generic[T]):
    """
    A fixed-capacity array whose first `length` slots are real entries.

    `items` holds only the real entries, the padding is materialized by
    `padded()` when the full array is needed.
    """

    items: tuple[T, ...]
    capacity: int
    padding: T

    def __post_init__(self):
        # allow lists in, keep tuples in
        object.__setattr__(self, "items", tuple(self.items))
        assert self.capacity >= 0
        assert (
            len(self.items) <= self.capacity
        ), f"{len(self.items)} items exceed capacity {self.capacity}"

    @classmethod
    def from_padded(cls, slots: Sequence[T], padding: T) -> "BoundedArray[T]":
        length = count_accumulated_items(slots)
        return cls(tuple(slots[:length]), len(slots), padding)

    @property
    def length(self) -> int:
        return len(self.items)

    def padded(self) -> tuple[T, ...]:
        return self.items + (self.padding,) * (self.capacity - self.length)
