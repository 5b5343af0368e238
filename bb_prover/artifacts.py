"""
Registry of the protocol circuits keys can be generated for.

The set of circuit names is fixed. Each name maps to a compiled noir circuit
`<artifacts_dir>/<snake_case_name>.json`, a json object whose `bytecode` field
holds the base64 encoded ACIR bytecode.
"""

import base64
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ARTIFACTS_DIR = Path(__file__).resolve().parent / "artifacts"

PROTOCOL_CIRCUITS = (
    "PrivateKernelInitArtifact",
    "PrivateKernelInnerArtifact",
    "PrivateKernelResetArtifact",
    "PrivateKernelTailArtifact",
    "PrivateKernelTailToPublicArtifact",
    "PublicKernelSetupArtifact",
    "PublicKernelAppLogicArtifact",
    "PublicKernelTeardownArtifact",
    "PublicKernelTailArtifact",
    "BaseParityArtifact",
    "RootParityArtifact",
    "BaseRollupArtifact",
    "MergeRollupArtifact",
    "RootRollupArtifact",
)


@dataclass(frozen=True)
class CircuitArtifact:
    name: str
    bytecode: bytes

    @staticmethod
    def load(name: str, path: Path) -> "CircuitArtifact":
        with open(path, "r") as f:
            compiled = json.load(f)
        return CircuitArtifact(name, base64.b64decode(compiled["bytecode"]))


def artifact_file_name(name: str) -> str:
    """
    E.g. "BaseParityArtifact" -> "base_parity.json"
    """
    stem = name.removesuffix("Artifact")
    return re.sub(r"(?<!^)(?=[A-Z])", "_", stem).lower() + ".json"


class CircuitRegistry:
    def __init__(self, artifacts_dir: Path = ARTIFACTS_DIR):
        self.artifacts_dir = Path(artifacts_dir)
        self._paths: dict[str, Path] = {
            name: self.artifacts_dir / artifact_file_name(name)
            for name in PROTOCOL_CIRCUITS
        }

    def names(self) -> list[str]:
        return list(self._paths)

    def get(self, name: str) -> Optional[CircuitArtifact]:
        path = self._paths.get(name)
        if path is None or not path.is_file():
            return None
        return CircuitArtifact.load(name, path)
