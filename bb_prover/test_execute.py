import hashlib
import tempfile
from pathlib import Path
from unittest import TestCase

from bb_prover.artifacts import CircuitArtifact
from bb_prover.execute import (
    BYTECODE_FILENAME,
    BYTECODE_HASH_FILENAME,
    BBResultStatus,
    execute_bb,
    generate_key_for_noir_circuit,
)
from bb_prover.test_utils import FAILING_BB, FAKE_BB, bb_calls, write_executable


class TestExecute(TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.bin_dir = self.tmp / "bin"
        self.bin_dir.mkdir()
        self.working_dir = self.tmp / "work"
        self.working_dir.mkdir()
        self.artifact = CircuitArtifact("BaseParityArtifact", b"\x01\x02\x03")

    def tearDown(self):
        self._tmp.cleanup()

    def test_execute_bb_missing_binary(self):
        result = execute_bb(str(self.bin_dir / "bb"), "write_pk", [])
        self.assertEqual(result.status, BBResultStatus.FAILURE)
        self.assertIn("Failed to find bb binary", result.reason)

    def test_execute_bb_exit_code(self):
        bb = write_executable(self.bin_dir / "bb", FAILING_BB)
        with self.assertLogs("bb_prover.execute", level="INFO") as logs:
            result = execute_bb(str(bb), "write_vk", [])
        self.assertEqual(result.status, BBResultStatus.FAILURE)
        self.assertEqual(result.reason, "Failed to execute BB with exit code 3")
        self.assertTrue(any("something went wrong" in line for line in logs.output))

    def test_generate_key(self):
        bb = write_executable(self.bin_dir / "bb", FAKE_BB)

        result = generate_key_for_noir_circuit(
            str(bb), self.working_dir, "BaseParityArtifact", self.artifact, "pk"
        )

        output_dir = self.working_dir / "pk" / "BaseParityArtifact"
        self.assertEqual(result.status, BBResultStatus.SUCCESS)
        self.assertEqual(result.key_path, output_dir / "pk")
        with open(result.key_path, "rb") as f:
            self.assertEqual(f.read(), self.artifact.bytecode)
        with open(output_dir / BYTECODE_HASH_FILENAME, "r") as f:
            self.assertEqual(
                f.read(), hashlib.sha256(self.artifact.bytecode).hexdigest()
            )
        # the bytecode is only kept while bb runs
        self.assertFalse((output_dir / BYTECODE_FILENAME).exists())

        self.assertEqual(
            bb_calls(bb),
            [
                f"write_pk -o {output_dir / 'pk'} -b {output_dir / BYTECODE_FILENAME} -v"
            ],
        )

    def test_generate_key_already_present(self):
        bb = write_executable(self.bin_dir / "bb", FAKE_BB)

        generate_key_for_noir_circuit(
            str(bb), self.working_dir, "BaseParityArtifact", self.artifact, "vk"
        )
        result = generate_key_for_noir_circuit(
            str(bb), self.working_dir, "BaseParityArtifact", self.artifact, "vk"
        )

        self.assertEqual(result.status, BBResultStatus.ALREADY_PRESENT)
        self.assertEqual(len(bb_calls(bb)), 1)

        # forcing or changing the bytecode runs bb again
        generate_key_for_noir_circuit(
            str(bb),
            self.working_dir,
            "BaseParityArtifact",
            self.artifact,
            "vk",
            force=True,
        )
        self.assertEqual(len(bb_calls(bb)), 2)

        changed = CircuitArtifact("BaseParityArtifact", b"\x04")
        result = generate_key_for_noir_circuit(
            str(bb), self.working_dir, "BaseParityArtifact", changed, "vk"
        )
        self.assertEqual(result.status, BBResultStatus.SUCCESS)
        self.assertEqual(len(bb_calls(bb)), 3)

    def test_generate_key_failure(self):
        bb = write_executable(self.bin_dir / "bb", FAILING_BB)

        result = generate_key_for_noir_circuit(
            str(bb), self.working_dir, "BaseParityArtifact", self.artifact, "pk"
        )

        output_dir = self.working_dir / "pk" / "BaseParityArtifact"
        self.assertEqual(result.status, BBResultStatus.FAILURE)
        self.assertFalse((output_dir / BYTECODE_HASH_FILENAME).exists())
        self.assertFalse((output_dir / BYTECODE_FILENAME).exists())

    def test_generate_key_missing_binary(self):
        result = generate_key_for_noir_circuit(
            str(self.bin_dir / "bb"),
            self.working_dir,
            "BaseParityArtifact",
            self.artifact,
            "vk",
        )

        output_dir = self.working_dir / "vk" / "BaseParityArtifact"
        self.assertEqual(result.status, BBResultStatus.FAILURE)
        self.assertFalse((output_dir / BYTECODE_FILENAME).exists())

    def test_generate_unknown_key(self):
        with self.assertRaises(AssertionError):
            generate_key_for_noir_circuit(
                "bb", self.working_dir, "BaseParityArtifact", self.artifact, "sk"
            )
