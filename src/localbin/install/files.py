"""
File Operations for the localbin install pipeline

This module provides the ephemeral install workspace, format-specific
archive extraction, and atomic placement of executables.
"""

import os
import shutil
import subprocess
import tarfile
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List

from rich.markup import escape

from localbin.constants import DPKG_DEB_COMMAND, EXECUTABLE_PERMISSIONS
from localbin.exceptions import ExtractionError, MissingDependencyError
from localbin.log_utils import logger

from .interfaces import ArchiveFormat, Pathish

EXTRACT_DIR_NAME = "extracted"
DOWNLOAD_FILE_NAME = "asset"

# Tar compression probes, in order; the last one lets tarfile auto-detect.
TAR_READ_MODES = ("r:gz", "r:xz", "r:*")


@contextmanager
def install_workspace(tool_name: str) -> Iterator[Path]:
    """
    Provide an ephemeral directory for one tool's install attempt.

    The directory and everything in it is removed when the block exits,
    whether it exits normally or by an exception.

    Parameters:
        tool_name (str): Used in the directory prefix to ease debugging.

    Yields:
        Path: The workspace directory.
    """
    with tempfile.TemporaryDirectory(prefix=f"localbin-{tool_name}-") as tmp:
        logger.debug(f"Created workspace {tmp}")
        try:
            yield Path(tmp)
        finally:
            logger.debug(f"Removing workspace {tmp}")


def _is_safe_archive_member(member_name: str) -> bool:
    """
    Determine whether an archive member name is safe to extract.

    Returns:
        `True` if the member name contains no absolute paths, parent-directory references, or null bytes, `False` otherwise.
    """
    if not member_name or member_name.startswith(("/", "\\")):
        return False
    if "\x00" in member_name:
        return False
    normalized = os.path.normpath(member_name)
    if os.path.isabs(normalized):
        return False
    if normalized == ".." or normalized.startswith(f"..{os.sep}"):
        return False
    if os.altsep and normalized.startswith(f"..{os.altsep}"):
        return False
    return True


def safe_extract_path(extract_dir: Pathish, file_path: str) -> Path:
    """
    Resolve an archive member path inside `extract_dir`.

    Raises:
        ValueError: If the resolved path would escape `extract_dir`.
    """
    base = os.path.realpath(extract_dir)
    target = os.path.realpath(os.path.join(base, file_path))
    if os.path.commonpath([base, target]) != base:
        raise ValueError(f"{file_path} resolves outside {extract_dir}")
    return Path(target)


def _tar_extract_options() -> dict:
    """
    Keyword arguments for `TarFile.extractall`.

    The "data" filter exists on 3.12 and the 3.10.12/3.11.4 backports. Older
    interpreters reject the keyword, so they rely on the member name check
    in `_extract_tar` alone.
    """
    if hasattr(tarfile, "data_filter"):
        return {"filter": "data"}
    return {}


def _unsafe_tar_members(members: List[tarfile.TarInfo]) -> List[str]:
    """
    Names of members that would land, or link, outside the extract directory.
    """
    unsafe = []
    for member in members:
        link_target = None
        if member.issym():
            link_target = os.path.join(os.path.dirname(member.name), member.linkname)
        elif member.islnk():
            link_target = member.linkname
        if not _is_safe_archive_member(member.name) or (
            link_target is not None and not _is_safe_archive_member(link_target)
        ):
            unsafe.append(member.name)
    return unsafe


def _extract_tar(archive_path: Path, extract_dir: Path) -> None:
    last_error: Exception = ExtractionError("no tar read mode attempted")
    for mode in TAR_READ_MODES:
        try:
            with tarfile.open(archive_path, mode) as tar:
                members = tar.getmembers()
                unsafe = _unsafe_tar_members(members)
                if unsafe:
                    raise ExtractionError(
                        "Refusing to extract unsafe archive members",
                        archive_path=str(archive_path),
                        details=", ".join(unsafe[:5]),
                    )
                logger.debug(f"+ tar ({mode}) {archive_path} -> {extract_dir}")
                tar.extractall(extract_dir, members=members, **_tar_extract_options())
                return
        except (tarfile.ReadError, tarfile.CompressionError) as e:
            logger.debug(f"tar mode {mode} failed for {archive_path}: {e}")
            last_error = e
        except (tarfile.TarError, EOFError, OSError) as e:
            raise ExtractionError(
                "Error extracting tar archive",
                archive_path=str(archive_path),
                details=str(e),
            ) from e
    raise ExtractionError(
        "Unreadable tar archive", archive_path=str(archive_path), details=str(last_error)
    )


def _extract_zip(archive_path: Path, extract_dir: Path) -> None:
    """
    Extract a ZIP archive, restoring Unix permission bits recorded in it.

    `zipfile` drops member modes on extraction, and release zips rely on
    them to mark the executable.
    """
    try:
        with zipfile.ZipFile(archive_path, "r") as zip_ref:
            for file_info in zip_ref.infolist():
                name = file_info.filename
                if not _is_safe_archive_member(name):
                    raise ExtractionError(
                        "Refusing to extract unsafe archive member",
                        archive_path=str(archive_path),
                        details=name,
                    )
                target = safe_extract_path(extract_dir, name)
                if file_info.is_dir():
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with zip_ref.open(file_info) as source, open(target, "wb") as dest:
                    shutil.copyfileobj(source, dest)
                mode = (file_info.external_attr >> 16) & 0o777
                if mode:
                    os.chmod(target, mode)
            logger.debug(f"+ unzip {archive_path} -> {extract_dir}")
    except (zipfile.BadZipFile, ValueError, OSError) as e:
        raise ExtractionError(
            "Error extracting zip archive",
            archive_path=str(archive_path),
            details=str(e),
        ) from e


def _extract_deb(archive_path: Path, extract_dir: Path) -> None:
    dpkg_deb = shutil.which(DPKG_DEB_COMMAND)
    if dpkg_deb is None:
        raise MissingDependencyError(DPKG_DEB_COMMAND, archive_path=str(archive_path))
    cmd = [dpkg_deb, "-R", str(archive_path), str(extract_dir)]
    logger.debug(f"+ {' '.join(cmd)}")
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
    except subprocess.CalledProcessError as e:
        raise ExtractionError(
            "dpkg-deb failed to extract package",
            archive_path=str(archive_path),
            details=(e.stderr or "").strip() or f"exit status {e.returncode}",
        ) from e
    except OSError as e:
        raise ExtractionError(
            "Could not run dpkg-deb", archive_path=str(archive_path), details=str(e)
        ) from e


def extract_archive(
    archive_path: Pathish, archive_format: ArchiveFormat, workspace: Pathish
) -> Path:
    """
    Extract a downloaded archive into a fresh directory inside the workspace.

    Parameters:
        archive_path (Pathish): The downloaded file.
        archive_format (ArchiveFormat): TAR, ZIP or DEB.
        workspace (Pathish): The install attempt's workspace directory.

    Returns:
        Path: Directory containing the archive's contents.

    Raises:
        ExtractionError: If the archive is unreadable or unsafe.
        MissingDependencyError: If a required system tool is not installed.
    """
    archive_path = Path(archive_path)
    extract_dir = Path(workspace) / EXTRACT_DIR_NAME
    extract_dir.mkdir()
    logger.debug(f">>> Extracting {archive_format.value} {archive_path} to {extract_dir}")

    if archive_format is ArchiveFormat.TAR:
        _extract_tar(archive_path, extract_dir)
    elif archive_format is ArchiveFormat.ZIP:
        _extract_zip(archive_path, extract_dir)
    elif archive_format is ArchiveFormat.DEB:
        _extract_deb(archive_path, extract_dir)
    else:
        raise ExtractionError(
            f"Not an archive format: {archive_format.value}",
            archive_path=str(archive_path),
        )
    return extract_dir


def install_executable(source: Pathish, bin_dir: Pathish, name: str) -> Path:
    """
    Copy `source` to `bin_dir/name` with mode 0755, atomically.

    The content is written to a temporary file in `bin_dir`, given its
    permissions, then moved over the destination with `os.replace`, so the
    destination is never observed half-written.

    Returns:
        Path: The installed executable.
    """
    bin_dir = Path(bin_dir)
    bin_dir.mkdir(parents=True, exist_ok=True)
    destination = bin_dir / name

    temp_fd, temp_path = tempfile.mkstemp(dir=bin_dir, prefix=f".{name}.", suffix=".tmp")
    try:
        with os.fdopen(temp_fd, "wb") as target, open(source, "rb") as src:
            shutil.copyfileobj(src, target)
        os.chmod(temp_path, EXECUTABLE_PERMISSIONS)
        os.replace(temp_path, destination)
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError as e:
                logger.warning(
                    f"Error removing temporary file {escape(temp_path)}: {escape(str(e))}"
                )
    logger.debug(
        f"+ install -m 0755 {escape(str(source))} {escape(str(destination))}"
    )
    return destination

