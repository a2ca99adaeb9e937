"""
Workspace root detection utility.

Finds the mapping workspace root by searching upward for a .fhirconnect/
directory. Navigation scans are bounded by this root.
"""

from pathlib import Path

MARKER_DIR = ".fhirconnect"


def find_workspace_root(start: Path = None) -> Path:
    """
    Find workspace root by searching upward for .fhirconnect/ directory.

    Args:
        start: Starting directory or file (default: cwd)

    Returns:
        Path to workspace root (directory containing .fhirconnect/)

    Note:
        If .fhirconnect/ is not found, returns cwd when the start lies inside
        it (so sibling folders of a project are scanned too), otherwise the
        starting directory.
    """
    origin = (start or Path.cwd()).resolve()
    if origin.is_file():
        origin = origin.parent

    current = origin
    while current != current.parent:
        if (current / MARKER_DIR).is_dir():
            return current
        current = current.parent

    cwd = Path.cwd().resolve()
    if origin == cwd or cwd in origin.parents:
        return cwd
    return origin
