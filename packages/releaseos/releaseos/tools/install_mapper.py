"""InstallMapperTool — place files, symlinks and directories under an install root."""

from __future__ import annotations

import grp
import logging
import os
import pwd
import shutil
import tempfile
from pathlib import Path

from pydantic import BaseModel

from buildos.core.errors import FilesystemError, MissingInputError
from buildos.runtime.workspace import Workspace
from buildos.tools.base import BaseTool, SideEffect
from releaseos.domain.schemas import (
    AppliedEntry,
    InstallEntry,
    InstallKind,
    InstallMapInput,
    InstallMapOutput,
)

logger = logging.getLogger(__name__)


def _apply_owner(path: Path, owner: str, *, follow_symlinks: bool = True) -> None:
    """Change ownership from a "user[:group]" string; names or numeric ids."""
    user, _, group = owner.partition(":")
    uid = -1
    gid = -1
    if user:
        uid = int(user) if user.isdigit() else pwd.getpwnam(user).pw_uid
    if group:
        gid = int(group) if group.isdigit() else grp.getgrnam(group).gr_gid
    os.chown(path, uid, gid, follow_symlinks=follow_symlinks)


class InstallMapperTool(BaseTool):
    """Apply an ordered install mapping under a destination root.

    Missing parent directories are created on demand. Files are written to
    a temporary name in the destination directory and moved into place, so
    an interrupted copy never leaves a truncated destination. Applying the
    same mapping twice yields the same tree.
    """

    @property
    def name(self) -> str:
        return "install_mapper"

    @property
    def version(self) -> str:
        return "1.0.0"

    @property
    def input_schema(self) -> type[BaseModel]:
        return InstallMapInput

    @property
    def output_schema(self) -> type[BaseModel]:
        return InstallMapOutput

    @property
    def side_effect(self) -> SideEffect:
        return SideEffect.WRITE

    def execute(self, input_data: BaseModel) -> BaseModel:
        data = self.coerce_input(input_data)
        assert isinstance(data, InstallMapInput)

        source_root = Path(data.source_root)
        destination = Workspace.at(data.destdir or "/")
        applied: list[AppliedEntry] = []

        # Fail before touching the destination if any file source is missing.
        for entry in data.entries:
            if entry.kind == InstallKind.FILE and not (source_root / entry.source).is_file():
                raise MissingInputError(
                    f"Install source '{entry.source}' not found under {source_root}"
                )

        for entry in data.entries:
            target = destination.resolve_path(entry.dest, follow_symlinks=False)
            try:
                if entry.kind == InstallKind.DIRECTORY:
                    self._make_directory(target, entry)
                elif entry.kind == InstallKind.SYMLINK:
                    self._make_symlink(target, entry)
                else:
                    self._install_file(source_root / entry.source, target, entry)
            except (OSError, LookupError) as exc:
                raise FilesystemError(
                    f"Cannot install {entry.kind.value} '{entry.dest}' at {target}: {exc}"
                ) from exc
            logger.debug("installed %s %s", entry.kind.value, target)
            applied.append(AppliedEntry(dest=str(target), kind=entry.kind, mode=entry.mode))

        return InstallMapOutput(applied=applied)

    def _make_directory(self, target: Path, entry: InstallEntry) -> None:
        target.mkdir(parents=True, exist_ok=True)
        if entry.mode is not None:
            os.chmod(target, entry.mode)
        if entry.owner:
            _apply_owner(target, entry.owner)

    def _make_symlink(self, target: Path, entry: InstallEntry) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink() and os.readlink(target) == entry.source:
            return
        if target.is_dir() and not target.is_symlink():
            raise IsADirectoryError(f"refusing to replace directory {target} with a symlink")
        staging = target.with_name(f".{target.name}.{os.getpid()}.tmp")
        if staging.is_symlink() or staging.exists():
            staging.unlink()
        os.symlink(entry.source, staging)
        if entry.owner:
            _apply_owner(staging, entry.owner, follow_symlinks=False)
        os.replace(staging, target)

    def _install_file(self, source: Path, target: Path, entry: InstallEntry) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as out, open(source, "rb") as src:
                shutil.copyfileobj(src, out)
            os.chmod(tmp, entry.mode if entry.mode is not None else 0o755)
            if entry.owner:
                _apply_owner(tmp, entry.owner)
            os.replace(tmp, target)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
