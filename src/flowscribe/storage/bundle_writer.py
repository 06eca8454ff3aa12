"""
Bundle Writer - All-or-nothing writes of generated files.

Files are first staged as temp files beside their targets, then swapped in
with ``os.replace``. If any swap fails, every target already replaced in
the same write is restored from its backup (or removed if it was new).
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Mapping, Optional, Tuple, Union

from flowscribe.exceptions import ArtifactReadError, ArtifactWriteError

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"


def atomic_write_text(path: Union[str, Path], content: str) -> None:
    """
    Write one text file atomically.
    
    Raises:
        ArtifactWriteError: if the file cannot be written
    """
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
        os.replace(tmp, target)
    except OSError as e:
        raise ArtifactWriteError(f"Failed to write {target}: {e}", path=str(target)) from e


class BundleWriter:
    """
    Writes a set of files under one root directory.
    
    Example:
        >>> writer = BundleWriter("./generated")
        >>> written = writer.write_all({"pages/base_page.py": source})
    """
    
    def __init__(self, root: Union[str, Path]):
        self._root = Path(root)
    
    @property
    def root(self) -> Path:
        return self._root
    
    def path_of(self, relative: str) -> Path:
        return self._root / relative
    
    def read(self, relative: str) -> Optional[str]:
        """
        Current content of a file, or None if it does not exist.

        Raises:
            ArtifactReadError: if the file exists but is unreadable or not UTF-8
        """
        path = self.path_of(relative)
        if not path.is_file():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ArtifactReadError(f"Failed to read {relative}: {e}", path=relative) from e
    
    def write_all(self, files: Mapping[str, str]) -> List[str]:
        """
        Write every changed file, or none of them.
        
        Args:
            files: Relative path to content
            
        Returns:
            Relative paths that were actually written
            
        Raises:
            ArtifactWriteError: if any file fails; earlier files are rolled back
        """
        changed = [(rel, content) for rel, content in files.items() if self.read(rel) != content]
        if not changed:
            return []
        
        staged = self._stage(changed)
        replaced: List[Tuple[Path, Optional[Path]]] = []
        try:
            for rel, tmp in staged:
                target = self.path_of(rel)
                backup = None
                if target.exists():
                    backup = target.with_name(target.name + BACKUP_SUFFIX)
                    shutil.copy2(target, backup)
                try:
                    os.replace(tmp, target)
                except OSError as e:
                    if backup is not None:
                        backup.unlink(missing_ok=True)
                    raise ArtifactWriteError(f"Failed to write {rel}: {e}", path=rel) from e
                replaced.append((target, backup))
        except (ArtifactWriteError, OSError) as e:
            self._rollback(replaced)
            self._discard(staged)
            if isinstance(e, ArtifactWriteError):
                raise
            raise ArtifactWriteError(f"Failed to back up files: {e}", path=str(self._root)) from e
        
        for _, backup in replaced:
            if backup is not None:
                backup.unlink(missing_ok=True)
        written = [rel for rel, _ in changed]
        logger.info(f"Wrote {len(written)} files under {self._root}")
        return written
    
    def _stage(self, changed: List[Tuple[str, str]]) -> List[Tuple[str, str]]:
        staged: List[Tuple[str, str]] = []
        try:
            for rel, content in changed:
                target = self.path_of(rel)
                target.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
                    handle.write(content)
                staged.append((rel, tmp))
        except OSError as e:
            self._discard(staged)
            raise ArtifactWriteError(f"Failed to stage {rel}: {e}", path=rel) from e
        return staged
    
    def _rollback(self, replaced: List[Tuple[Path, Optional[Path]]]) -> None:
        for target, backup in reversed(replaced):
            try:
                if backup is not None:
                    os.replace(backup, target)
                else:
                    target.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Rollback of {target} failed: {e}")
        if replaced:
            logger.warning(f"Rolled back {len(replaced)} files")
    
    def _discard(self, staged: List[Tuple[str, str]]) -> None:
        for _, tmp in staged:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
