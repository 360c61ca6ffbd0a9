"""Artifact installer -- copies binaries, plugins and trust material from
the buildpack's dependency cache into this layer's output tree.

Two operations:

- ``install_binary``: a single executable.  Skipped when the destination
  already exists, so repeated builds against the same deps directory do no
  extra I/O.
- ``install_tree``: every regular file under a source directory, mirrored
  at the same relative paths.  Membership is not known in advance, so the
  whole set is copied on every run.

Copies preserve permission bits.  Any filesystem error is raised as
``InstallFailedError`` carrying the offending path; nothing is retried or
rolled back.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from spirepack.supply.errors import InstallFailedError
from spirepack.supply.models.context import InstallationTarget

if TYPE_CHECKING:
    from spirepack.supply.layout import BuildLayout


class ArtifactInstaller:
    """Installs artifacts for one ``BuildLayout``."""

    def __init__(self, layout: BuildLayout) -> None:
        self._layout = layout

    def install_binary(self, name: str) -> bool:
        """Install ``binaries/{name}`` into ``bin/{name}``.

        Returns ``True`` if the file was copied, ``False`` if it was already
        present and left untouched.
        """
        target = InstallationTarget(
            source=self._layout.source_binary_path(name),
            destination=self._layout.binary_path(name),
        )
        try:
            exists = target.destination.exists()
        except OSError as e:
            raise InstallFailedError(target.destination, e.strerror or str(e)) from e
        if exists:
            logger.info("{} already installed at {}", name, target.destination)
            return False

        _copy(target)
        logger.info("Installed {} to {}", name, target.destination)
        return True

    def install_tree(self, source_dir: Path, dest_dir: Path) -> list[Path]:
        """Copy every regular file under ``source_dir`` into ``dest_dir``.

        Returns the destination paths in the order they were written.
        """
        if not source_dir.is_dir():
            raise InstallFailedError(source_dir, "source directory does not exist")

        installed: list[Path] = []
        for target in _enumerate_tree(source_dir, dest_dir):
            _copy(target)
            installed.append(target.destination)

        logger.info("Installed {} file(s) from {} to {}", len(installed), source_dir, dest_dir)
        return installed

    def install_certificates(self) -> list[Path]:
        return self.install_tree(self._layout.source_certificates_dir, self._layout.certificates_dir)

    def install_plugins(self) -> list[Path]:
        return self.install_tree(self._layout.source_plugins_dir, self._layout.plugins_dir)


# -- Helpers -------------------------------------------------------------------


def _enumerate_tree(source_dir: Path, dest_dir: Path) -> list[InstallationTarget]:
    """Regular files under ``source_dir`` (sorted), mapped into ``dest_dir``."""
    try:
        files = sorted(p for p in source_dir.rglob("*") if p.is_file())
    except OSError as e:
        raise InstallFailedError(Path(e.filename or source_dir), e.strerror or str(e)) from e
    return [InstallationTarget(source=f, destination=dest_dir / f.relative_to(source_dir)) for f in files]


def _copy(target: InstallationTarget) -> None:
    """Byte-for-byte copy keeping mode bits.  Creates parent directories."""
    try:
        target.destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(target.source, target.destination)
    except OSError as e:
        offending = Path(e.filename) if e.filename else target.source
        raise InstallFailedError(offending, e.strerror or str(e)) from e
