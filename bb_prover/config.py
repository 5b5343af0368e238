from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

import dacite
import yaml

from bb_prover.artifacts import ARTIFACTS_DIR

# Environment variables providing defaults for the command line options
BB_WORKING_DIRECTORY = "BB_WORKING_DIRECTORY"
BB_BINARY_PATH = "BB_BINARY_PATH"


@dataclass
class Config:
    # Directory where keys and intermediate bytecode files are written.
    working_directory: Optional[Path] = None
    # Path to the `bb` binary.
    bb_path: Optional[Path] = None
    # Directory holding the compiled protocol circuits.
    artifacts_dir: Path = ARTIFACTS_DIR
    log_level: str = "INFO"

    @classmethod
    def load(cls, yaml_path: str) -> Config:
        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f) or {}
        config = dacite.from_dict(
            data_class=Config,
            data=data,
            config=dacite.Config(type_hooks={Path: Path}),
        )
        config.validate()
        return config

    def with_env(self, env=os.environ) -> Config:
        """
        Environment variables take precedence over the config file.
        """
        config = self
        if working_directory := env.get(BB_WORKING_DIRECTORY):
            config = replace(config, working_directory=Path(working_directory))
        if bb_path := env.get(BB_BINARY_PATH):
            config = replace(config, bb_path=Path(bb_path))
        return config

    def validate(self):
        assert (
            self.log_level.upper() in logging.getLevelNamesMapping()
        ), f"unknown log level {self.log_level}"
