"""Output path resolution."""

from pathlib import PurePath
from typing import Optional, Union

PathLike = Union[str, PurePath]

SLUG_PLACEHOLDER = "{SLUG}"
DEFAULT_SUFFIX = ".renc.mp4"


def split_name(input_path: PathLike):
    """Return ``(stem, ext)`` of the input's file name; ``ext`` keeps its dot."""
    name = PurePath(str(input_path))
    return name.stem, name.suffix


def resolve_output_path(input_path: PathLike, template: Optional[str] = None) -> str:
    """
    Derive the output path for an input.

    Pure text manipulation: the filesystem is not consulted and any string
    is accepted.

    Args:
        input_path: Source file path
        template: Optional output template; ``{SLUG}`` expands to the input's
            file name (stem plus extension)

    Returns:
        Output path, relative to the working directory unless the template
        is absolute
    """
    stem, ext = split_name(input_path)
    if template is None:
        return f"{stem}{DEFAULT_SUFFIX}"
    return template.replace(SLUG_PLACEHOLDER, stem + ext)
