"""Workspace folder names.

The assistant stores each project's transcripts in a folder named after the
project path with every "/" flattened to "-" (so "/home/u/app" becomes
"-home-u-app"). The mapping is lossy: a "-" that was part of a directory
name cannot be told apart from a separator, so decoding is best-effort and
only meant for display and substring filtering.
"""

SEPARATOR = "/"
DELIMITER = "-"


def decode_workspace_name(name: str) -> str:
    """Turn an encoded folder name back into a path-like string.

    A leading delimiter becomes the root separator, the rest map to
    separators as usual.
    """
    return name.replace(DELIMITER, SEPARATOR)


def encode_workspace_path(path: str) -> str:
    """Flatten a path into the folder-name form used on disk."""
    return path.replace(SEPARATOR, DELIMITER)
