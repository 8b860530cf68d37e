"""
Upload path validation.

Every filesystem path derived from an upload goes through ``sanitize_path``
before it is opened.
"""

import logging

from ingest_gateway.exceptions import UnsafePathError

logger = logging.getLogger(__name__)

TRAVERSAL_SEGMENT = "../"


def sanitize_path(path: str) -> str:
    """Reject parent-directory traversal and strip stray ``..`` tokens.

    Args:
        path: Path of the file about to be read

    Returns:
        The path with every literal ``..`` removed

    Raises:
        UnsafePathError: If the path contains a ``../`` segment
    """
    if TRAVERSAL_SEGMENT in path:
        logger.warning(f"Rejected upload path with traversal segment: {path!r}")
        raise UnsafePathError()

    # e.g. "upload..yml" -> "uploadyml"
    return path.replace("..", "")
