"""
capabilities.py
- Platform-specific file operations consumed by the rebalancer:
    - copy_preserving_metadata: copy a file keeping owner, mode, ACLs, xattrs
      and symlinks, never crossing a mount point
    - fingerprint: comparable value of attribute flags, core metadata and an
      MD5 content digest
- One implementation is chosen per platform at startup via select_capabilities().
"""

import grp
import hashlib
import os
import pwd
import stat
import subprocess
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass

from loguru import logger

from inplace_rebalance.core.constants import HASH_CHUNK_SIZE
from inplace_rebalance.core.errors import CopyError, RebalanceError, UnsupportedPlatformError


@dataclass(frozen=True)
class Fingerprint:
    attribute_flags: str
    mode: str
    owner: str
    group: str
    size: int
    digest: str

    def __str__(self):
        return f"{self.attribute_flags} {self.mode} {self.owner} {self.group} {self.size} {self.digest}"


def _owner_name(uid):
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


def _group_name(gid):
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return str(gid)


def md5_digest(path):
    h = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


class PlatformCapabilities(ABC):
    """Copy and fingerprint operations for one operating system family."""

    name = "abstract"

    @abstractmethod
    def copy_command(self, src, dest):
        """Return the argv that copies src to dest with full metadata."""

    @abstractmethod
    def attribute_flags(self, path, st):
        """Return the filesystem attribute flags of path as a string."""

    def copy_preserving_metadata(self, src, dest):
        """
        Copy src to dest using the platform's cp.

        Raises:
            CopyError: cp could not be started or exited non-zero.
        """
        cmd = self.copy_command(src, dest)
        logger.debug(f"[copy] Running: {' '.join(cmd)}")
        try:
            subprocess.run(cmd, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise CopyError(f"Copy of {src} to {dest} failed (exit {e.returncode}): {stderr}", path=src) from e
        except OSError as e:
            raise CopyError(f"Could not run {cmd[0]} to copy {src}: {e}", path=src) from e

    def fingerprint(self, path):
        """
        Fingerprint a file for copy verification.

        Args:
            path (str): File to inspect.

        Returns:
            Fingerprint
        """
        try:
            st = os.lstat(path)
            return Fingerprint(
                attribute_flags=self.attribute_flags(path, st),
                mode=stat.filemode(st.st_mode),
                owner=_owner_name(st.st_uid),
                group=_group_name(st.st_gid),
                size=st.st_size,
                digest=md5_digest(path),
            )
        except OSError as e:
            raise RebalanceError(f"Failed to fingerprint {path}: {e}", path=path) from e


class LinuxCapabilities(PlatformCapabilities):
    name = "linux"

    def copy_command(self, src, dest):
        # -a archive, -d keep symlinks, -x one file system, -p preserve ownership/mode/timestamps
        return ["cp", "-adxp", src, dest]

    def attribute_flags(self, path, st):
        try:
            result = subprocess.run(["lsattr", "-d", path], capture_output=True, text=True, check=True)
        except (OSError, subprocess.CalledProcessError) as e:
            # tmpfs and friends have no attribute flags; both sides then compare as ""
            logger.debug(f"[verify] lsattr unavailable for {path}: {e}")
            return ""
        fields = result.stdout.split()
        return fields[0] if fields else ""


class BsdCapabilities(PlatformCapabilities):
    """macOS and FreeBSD."""

    name = "bsd"

    def copy_command(self, src, dest):
        # -a archive (-RpP), -x do not cross mount points, -p preserve attributes
        return ["cp", "-axp", src, dest]

    def attribute_flags(self, path, st):
        return format(getattr(st, "st_flags", 0), "o")


def select_capabilities(platform=None):
    """
    Pick the capabilities implementation for an OS.

    Args:
        platform (str): A sys.platform value; defaults to the running OS.

    Raises:
        UnsupportedPlatformError: No implementation for this platform.
    """
    platform = (platform or sys.platform).lower()

    if platform.startswith("linux"):
        return LinuxCapabilities()
    if platform.startswith("darwin") or platform.startswith("freebsd"):
        return BsdCapabilities()

    raise UnsupportedPlatformError(platform)
