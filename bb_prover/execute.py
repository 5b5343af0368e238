"""
Shells out to the `bb` binary (Barretenberg) to write circuit keys.

Keys are written to `<working_directory>/<key>/<circuit_name>/<key>`. Next to
the key we store the sha256 of the bytecode it was generated from, so an
unchanged circuit is not processed twice. Generation of a given key is
serialized through a lock file in its output directory.
"""

import hashlib
import logging
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal, Optional, Union

import portalocker
import sh

from bb_prover.artifacts import CircuitArtifact

logger = logging.getLogger(__name__)

BYTECODE_FILENAME = "bytecode"
BYTECODE_HASH_FILENAME = "bytecode-hash"
LOCK_FILENAME = ".lock"

Key = Literal["pk", "vk"]


class BBResultStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    ALREADY_PRESENT = "already_present"


@dataclass
class BBSuccess:
    status: BBResultStatus
    duration_ms: float
    key_path: Optional[Path] = None


@dataclass
class BBFailure:
    reason: str
    status: BBResultStatus = BBResultStatus.FAILURE


BBResult = Union[BBSuccess, BBFailure]


def execute_bb(bb_path: str, command: str, args: list[str]) -> BBResult:
    """
    Runs `bb <command> <args>`, forwarding its output to the log.
    """
    if not os.access(bb_path, os.X_OK):
        return BBFailure(f"Failed to find bb binary at {bb_path}")

    bb = sh.Command(bb_path)
    start = time.monotonic()
    logger.debug("executing %s %s %s", bb_path, command, " ".join(args))
    try:
        bb(command, *args, "-v", _out=_log_line, _err=_log_line, _return_cmd=True)
    except sh.ErrorReturnCode as e:
        return BBFailure(f"Failed to execute BB with exit code {e.exit_code}")
    return BBSuccess(BBResultStatus.SUCCESS, (time.monotonic() - start) * 1000)


def generate_key_for_noir_circuit(
    bb_path: str,
    working_directory: Path,
    circuit_name: str,
    artifact: CircuitArtifact,
    key: Key,
    force: bool = False,
) -> BBResult:
    assert key in ("pk", "vk"), f"unknown key type {key}"

    output_dir = Path(working_directory) / key / circuit_name
    output_dir.mkdir(parents=True, exist_ok=True)
    bytecode_path = output_dir / BYTECODE_FILENAME
    bytecode_hash_path = output_dir / BYTECODE_HASH_FILENAME
    key_path = output_dir / key
    bytecode_hash = hashlib.sha256(artifact.bytecode).hexdigest()

    with portalocker.TemporaryFileLock(str(output_dir / LOCK_FILENAME)):
        if not force and _read_hash(bytecode_hash_path) == bytecode_hash:
            logger.info("%s for %s is up to date", key, circuit_name)
            return BBSuccess(BBResultStatus.ALREADY_PRESENT, 0, key_path)

        try:
            with open(bytecode_path, "wb") as f:
                f.write(artifact.bytecode)
            result = execute_bb(
                bb_path,
                f"write_{key}",
                ["-o", str(key_path), "-b", str(bytecode_path)],
            )
        finally:
            bytecode_path.unlink(missing_ok=True)

        if result.status is not BBResultStatus.SUCCESS:
            return result

        with open(bytecode_hash_path, "w") as f:
            f.write(bytecode_hash)

    logger.info(
        "generated %s for %s in %.0fms", key, circuit_name, result.duration_ms
    )
    return BBSuccess(BBResultStatus.SUCCESS, result.duration_ms, key_path)


def _read_hash(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    with open(path, "r") as f:
        return f.read().strip()


def _log_line(line: str):
    logger.info(line.rstrip())
