"""External encoder used to regenerate missing MLT artifacts.

tilediff never encodes tiles itself. When the MLT blob or its metadata is
missing, the loader asks an Encoder to produce them from the MVT source and
then looks them up again.
"""

import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

from ..core.errors import EncoderError
from ..core.logging import get_logger
from ..core.models import EncoderConfig

logger = get_logger(__name__)


class Encoder(ABC):
    """Produces the derived artifacts (MLT blob + metadata) for a tile.

    Postcondition of generate(): both artifacts resolve on the next lookup.
    """

    @abstractmethod
    def generate(self, tile: str) -> None:
        """Generate MLT artifacts for a tile.

        Raises:
            EncoderError: If generation fails
        """
        pass


class JarEncoder(Encoder):
    """Runs the Java encoder CLI, building the jar first when needed.

    Equivalent shell steps:
        (cd ../java && ./gradlew cli)
        java -jar ../java/build/libs/encode.jar -mvt <fixture>.mvt \\
            -metadata -decode -mlt <expected>.mlt
    """

    def __init__(self, config: EncoderConfig, fixtures_dir: Path, expected_dir: Path):
        self.config = config
        self.fixtures_dir = Path(fixtures_dir)
        self.expected_dir = Path(expected_dir)

    @property
    def jar_path(self) -> Path:
        return self.config.project_dir / self.config.jar

    def ensure_built(self) -> None:
        """Build the encoder jar if it does not exist yet."""
        if self.jar_path.exists():
            return
        logger.info(f"{self.jar_path.name} does not exist, building encoder project")
        self._run(self.config.build_command, cwd=self.config.project_dir, tile=None)

    def command_for(self, tile: str) -> list[str]:
        return [
            self.config.java,
            "-jar",
            str(self.jar_path),
            "-mvt",
            str(self.fixtures_dir / f"{tile}.mvt"),
            "-metadata",
            "-decode",
            "-mlt",
            str(self.expected_dir / f"{tile}.mlt"),
        ]

    def generate(self, tile: str) -> None:
        self.ensure_built()
        (self.expected_dir / tile).parent.mkdir(parents=True, exist_ok=True)
        command = self.command_for(tile)
        logger.info(f"Generating MLT tile and metadata for {tile}")
        logger.debug(" ".join(command))
        self._run(command, cwd=None, tile=tile)

    def _run(self, command: Sequence[str], cwd: Optional[Path], tile: Optional[str]):
        label = tile or "encoder build"
        logger.debug(f"Running {' '.join(command)} (cwd={cwd})")
        try:
            result = subprocess.run(
                list(command), cwd=cwd, capture_output=True, text=True, check=False
            )
        except OSError as e:
            raise EncoderError(f"Cannot run encoder for {label}: {e}", label) from e

        if result.returncode != 0:
            raise EncoderError(
                f"Encoder exited with status {result.returncode} for {label}: "
                f"{result.stderr.strip() or result.stdout.strip()}",
                label,
            )
