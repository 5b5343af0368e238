"""
Hints for squashing transient data.

A note hash is transient when it is nullified in the same context that created
it. The reset circuit removes both the note hash and its nullifier (and the logs
attached to the note hash), but it cannot search for the matching entries
itself. Instead it is handed index hints and only checks that they are
consistent.

Every hint array uses the capacity of the array it points into as the "no link"
sentinel.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass

from hints.common import BoundedArray, NoteHash, NoteLog, Nullifier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransientDataHints:
    # index into the nullifiers array for every note hash slot
    nullifier_indexes_for_note_hashes: tuple[int, ...]
    # index into the note hashes array for every nullifier slot
    note_hash_indexes_for_nullifiers: tuple[int, ...]
    # index into the note hashes array for every log slot
    note_hash_indexes_for_logs: tuple[int, ...]

    def __iter__(self):
        yield self.nullifier_indexes_for_note_hashes
        yield self.note_hash_indexes_for_nullifiers
        yield self.note_hash_indexes_for_logs


def build_transient_data_hints(
    note_hashes: BoundedArray[NoteHash],
    nullifiers: BoundedArray[Nullifier],
    note_logs: BoundedArray[NoteLog],
) -> TransientDataHints:
    """
    Pairs every transient note hash with the nullifier that consumes it, and
    attaches the logs of that note hash to it.

    Only the active note hashes are linked. The nullifier and log lookups are
    built over every slot, padding included. Padding carries counter 0, which a
    transient note hash never references.

    Raises a TransientDataHintError if the pairing is inconsistent, no partial
    hints are returned.
    """
    num_note_hashes = note_hashes.capacity
    num_nullifiers = nullifiers.capacity

    _check_unique_nullifier_counters(nullifiers)

    nullifier_index_map: dict[int, int] = {
        n.counter: i for i, n in enumerate(nullifiers.padded())
    }

    log_note_hash_map: dict[int, list[int]] = defaultdict(list)
    for i, log in enumerate(note_logs.padded()):
        log_note_hash_map[log.note_hash_counter].append(i)

    nullifier_indexes_for_note_hashes = [num_nullifiers] * num_note_hashes
    note_hash_indexes_for_nullifiers = [num_note_hashes] * num_nullifiers
    note_hash_indexes_for_logs = [num_note_hashes] * note_logs.capacity

    all_nullifiers = nullifiers.padded()
    for i, note_hash in enumerate(note_hashes.items):
        if not note_hash.is_transient:
            continue

        nullifier_index = nullifier_index_map.get(note_hash.nullifier_counter)
        if nullifier_index is None:
            raise UnknownNullifierCounter(i, note_hash.nullifier_counter)

        nullifier = all_nullifiers[nullifier_index]
        if nullifier.nullified_note_hash != note_hash.value:
            raise NoteHashValueMismatch(i, nullifier_index)
        if nullifier.contract_address != note_hash.contract_address:
            raise ContractAddressMismatch(i, nullifier_index)

        for log_index in log_note_hash_map.get(note_hash.counter, []):
            note_hash_indexes_for_logs[log_index] = i

        nullifier_indexes_for_note_hashes[i] = nullifier_index
        note_hash_indexes_for_nullifiers[nullifier_index] = i

    logger.debug(
        "linked %d transient note hashes out of %d",
        sum(1 for n in nullifier_indexes_for_note_hashes if n != num_nullifiers),
        note_hashes.length,
    )

    return TransientDataHints(
        tuple(nullifier_indexes_for_note_hashes),
        tuple(note_hash_indexes_for_nullifiers),
        tuple(note_hash_indexes_for_logs),
    )


def _check_unique_nullifier_counters(nullifiers: BoundedArray[Nullifier]):
    seen: dict[int, int] = {}
    for i, n in enumerate(nullifiers.items):
        if n.counter in seen:
            raise DuplicateNullifierCounter(seen[n.counter], i, n.counter)
        seen[n.counter] = i


class TransientDataHintError(Exception):
    pass


class UnknownNullifierCounter(TransientDataHintError):
    def __init__(self, note_hash_index: int, nullifier_counter: int):
        super().__init__(note_hash_index, nullifier_counter)
        self.note_hash_index = note_hash_index
        self.nullifier_counter = nullifier_counter

    def __str__(self):
        return "Unknown nullifier counter."


class NoteHashValueMismatch(TransientDataHintError):
    def __init__(self, note_hash_index: int, nullifier_index: int):
        super().__init__(note_hash_index, nullifier_index)
        self.note_hash_index = note_hash_index
        self.nullifier_index = nullifier_index

    def __str__(self):
        return "Hinted note hash does not match."


class ContractAddressMismatch(TransientDataHintError):
    def __init__(self, note_hash_index: int, nullifier_index: int):
        super().__init__(note_hash_index, nullifier_index)
        self.note_hash_index = note_hash_index
        self.nullifier_index = nullifier_index

    def __str__(self):
        return "Contract address of hinted note hash does not match."


class DuplicateNullifierCounter(TransientDataHintError):
    def __init__(self, first_index: int, second_index: int, counter: int):
        super().__init__(first_index, second_index, counter)
        self.first_index = first_index
        self.second_index = second_index
        self.counter = counter

    def __str__(self):
        return f"Nullifier counter {self.counter} is used more than once."
