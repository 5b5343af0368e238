import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from bb_prover.artifacts import CircuitRegistry
from bb_prover.config import Config
from bb_prover.execute import BBResultStatus, generate_key_for_noir_circuit

logger = logging.getLogger(__name__)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bb-cli",
        description="CLI for interacting with Barretenberg.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--config", type=str, help="Configuration file path")
    parser.add_argument(
        "--artifacts-dir", type=str, help="Directory of compiled protocol circuits"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser(
        "protocol-circuits", help="Lists the available protocol circuit artifacts"
    )

    for key, description in (
        ("pk", "Generates the proving key for the specified circuit"),
        ("vk", "Generates the verification key for the specified circuit"),
    ):
        cmd = commands.add_parser(f"write-{key}", help=description)
        cmd.set_defaults(key=key)
        cmd.add_argument(
            "-w",
            "--working-directory",
            type=str,
            help="A directory to use for storing input/output files",
        )
        cmd.add_argument("-b", "--bb-path", type=str, help="The path to the BB binary")
        cmd.add_argument(
            "-c", "--circuit", type=str, required=True, help="The name of a protocol circuit"
        )
        cmd.add_argument(
            "--force",
            action="store_true",
            help="Regenerate the key even if it is up to date",
        )
    return parser


def main(argv: Optional[list[str]] = None, env=os.environ) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)

    config = Config.load(args.config) if args.config else Config()
    config = config.with_env(env)
    if args.artifacts_dir:
        config = replace(config, artifacts_dir=Path(args.artifacts_dir))

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    registry = CircuitRegistry(config.artifacts_dir)

    if args.command == "protocol-circuits":
        print("\n".join(registry.names()))
        return 0

    working_directory = args.working_directory or config.working_directory
    bb_path = args.bb_path or config.bb_path
    if not working_directory:
        parser.error("the following arguments are required: -w/--working-directory")
    if not bb_path:
        parser.error("the following arguments are required: -b/--bb-path")

    if args.circuit not in registry.names():
        logger.error("Failed to find circuit %s", args.circuit)
        return 1

    artifact = registry.get(args.circuit)
    if artifact is None:
        logger.error("No artifact for %s in %s", args.circuit, registry.artifacts_dir)
        return 1

    if not (os.path.isdir(working_directory) and os.access(working_directory, os.W_OK)):
        logger.error("Working directory does not exist")
        return 1

    result = generate_key_for_noir_circuit(
        str(bb_path),
        Path(working_directory),
        args.circuit,
        artifact,
        args.key,
        force=args.force,
    )
    if result.status is BBResultStatus.FAILURE:
        logger.error(
            "Failed to generate %s for %s: %s", args.key, args.circuit, result.reason
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
