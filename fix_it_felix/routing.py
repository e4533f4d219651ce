"""Route changed files to the fixers that handle them."""

import logging
from pathlib import PurePosixPath

from fix_it_felix.config import DEFAULT_PATHS, FixerConfig
from fix_it_felix.fixers import get_fixer_class, path_matches
from fix_it_felix.utils import get_logger


def fixer_extensions(fixer_name: str, fixer_config: FixerConfig) -> list[str] | None:
    """Return the extensions a built-in fixer handles.

    Args:
        fixer_name: Fixer name
        fixer_config: Per-fixer settings

    Returns:
        Extension list, or None for fixers that are not built in

    """
    fixer_class = get_fixer_class(fixer_name)
    if fixer_class is None:
        return None
    if fixer_config.extensions is not None:
        return list(fixer_config.extensions)
    return list(fixer_class.default_extensions)


def matches_any_path(file: str, configured_paths: list[str]) -> bool:
    """Return True if the file matches at least one configured glob."""
    return any(path_matches(file, pattern) for pattern in configured_paths)


def route_files(
    files: list[str],
    fixer_name: str,
    fixer_config: FixerConfig,
    configured_paths: list[str],
    logger: logging.Logger | None = None,
) -> list[str]:
    """Narrow a change set to the files one fixer should process.

    A file is kept when its extension (case-insensitive) is handled by the
    fixer and, unless the configured paths are just ``["."]``, it matches one
    of the configured path globs. Custom fixers filter through their own
    command, so they receive the change set unchanged.

    Args:
        files: Changed files
        fixer_name: Fixer name
        fixer_config: Per-fixer settings
        configured_paths: Path globs this fixer is scoped to
        logger: Logger for per-file debug output

    Returns:
        Files routed to the fixer, in change-set order

    """
    logger = logger or get_logger()
    extensions = fixer_extensions(fixer_name, fixer_config)
    if extensions is None:
        return list(files)

    allowed = {ext.lower() for ext in extensions}
    unrestricted = list(configured_paths) == DEFAULT_PATHS

    logger.debug("Filtering %s files for %s", len(files), fixer_name)
    logger.debug("Extensions: %s", ", ".join(extensions))
    logger.debug("Configured paths: %s", ", ".join(configured_paths))

    routed = []
    for file in files:
        ext = PurePosixPath(file).suffix.lower()
        if ext not in allowed:
            logger.debug("Excluded %s: extension %s not handled", file, ext or "(none)")
            continue

        if unrestricted or matches_any_path(file, configured_paths):
            routed.append(file)
        else:
            logger.debug("Excluded %s: no path match", file)

    logger.debug("Routed %s files to %s", len(routed), fixer_name)
    return routed
