"""Remote fetch: one object from the rclone remote into a staging path.

rclone decides the local file name (the basename of the reference inside
the target directory), so the fetcher copies into a private incoming
directory, checks the file, then renames it to the caller's destination.
"""

import logging
import os
from pathlib import Path, PurePosixPath

from .commands import rclone_copy_cmd
from .config import MIN_FETCH_BYTES
from .errors import FetchError, FetchFailure
from .models import ArtifactKind, Stage, StagedArtifact
from .runner import Runner, run_command

log = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG"
JPEG_SIGNATURE = b"\xff\xd8\xff"
IMAGE_SIGNATURES = (PNG_SIGNATURE, JPEG_SIGNATURE)


def has_image_signature(path: str | Path) -> bool:
    """True if the file starts with a PNG or JPEG magic number."""
    with open(path, "rb") as f:
        head = f.read(8)
    return head.startswith(IMAGE_SIGNATURES)


class RemoteFetcher:
    def __init__(
        self,
        remote: str,
        rclone_config: str | Path | None = None,
        runner: Runner = run_command,
        min_bytes: int = MIN_FETCH_BYTES,
        validate_images: bool = True,
        timeout: float | None = None,
    ):
        self.remote = remote
        self.rclone_config = rclone_config
        self.runner = runner
        self.min_bytes = min_bytes
        self.validate_images = validate_images
        self.timeout = timeout

    def fetch(
        self,
        remote_ref: str,
        local_dest: str | Path,
        kind: ArtifactKind,
        incoming_dir: str | Path | None = None,
    ) -> StagedArtifact:
        """Copy remote_ref to local_dest and verify it.

        Args:
            remote_ref: Path of the object inside the remote.
            local_dest: Where the verified file should end up.
            kind: VIDEO or IMAGE. Only images get a signature check.
            incoming_dir: Directory rclone writes into. Defaults to
                local_dest's folder + "/incoming".

        Raises:
            FetchError: TRANSFER_FAILED, NOT_FOUND, CORRUPT or INVALID_FORMAT.
        """
        local_dest = Path(local_dest)
        incoming = Path(incoming_dir) if incoming_dir else local_dest.parent / "incoming"
        incoming.mkdir(parents=True, exist_ok=True)
        landed = incoming / PurePosixPath(remote_ref).name

        # A leftover from an earlier attempt would pass every check below.
        local_dest.unlink(missing_ok=True)
        landed.unlink(missing_ok=True)

        log.info("Fetching %s:%s", self.remote, remote_ref)
        cmd = rclone_copy_cmd(self.remote, remote_ref, incoming, self.rclone_config)
        result = self.runner(cmd, timeout=self.timeout)
        if not result.ok:
            raise FetchError(
                FetchFailure.TRANSFER_FAILED, remote_ref,
                f"rclone exited with {result.returncode}: {result.tail()}",
            )

        if not landed.is_file():
            raise FetchError(
                FetchFailure.NOT_FOUND, remote_ref,
                f"transfer reported success but {landed.name} was not created",
            )

        size = landed.stat().st_size
        if size < max(self.min_bytes, 1):
            landed.unlink(missing_ok=True)
            raise FetchError(
                FetchFailure.CORRUPT, remote_ref,
                f"file is {size} bytes (minimum {self.min_bytes})",
            )

        if kind is ArtifactKind.IMAGE and self.validate_images:
            if not has_image_signature(landed):
                landed.unlink(missing_ok=True)
                raise FetchError(
                    FetchFailure.INVALID_FORMAT, remote_ref,
                    "not a PNG or JPEG file",
                )

        local_dest.parent.mkdir(parents=True, exist_ok=True)
        os.replace(landed, local_dest)
        log.info("Fetched %s -> %s (%d bytes)", remote_ref, local_dest, size)
        return StagedArtifact(local_dest, kind, Stage.RAW)
