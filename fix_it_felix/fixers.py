"""Fixer descriptors and the fixer factory.

A fixer knows which tool to invoke, which file extensions it handles, and how
to turn configured paths into command-line targets. Running the command and
classifying its outcome is the job of ``runner.FixerRunner``.
"""

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import ClassVar, Protocol

from wcmatch import glob

from fix_it_felix.config import DEFAULT_PATHS, FixerConfig
from fix_it_felix.utils import run_command

NODE_BIN_DIR = Path("node_modules/.bin")
NO_MATCH_SENTINEL = "non-existent-file-to-ensure-no-processing"
GLOB_CHARACTERS = ("*", "?", "[")
GLOBSTAR_SUFFIX = "/**"
# `**` spans zero or more directories and `{a,b}` alternatives expand
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE


class FixerConfigurationError(ValueError):
    """Raised when a fixer cannot build a command from its configuration."""


class IgnoreSource(Protocol):
    """Anything that can supply ignore globs (normally ``ConfigManager``)."""

    def get_ignore_patterns(self) -> list[str]:
        """Return glob patterns for paths that must not be processed."""
        ...


def path_matches(path: str, pattern: str) -> bool:
    """Return True if a repository-relative path matches a glob pattern."""
    return glob.globmatch(path, pattern, flags=GLOB_FLAGS)


def is_ignored(path: str, patterns: list[str]) -> bool:
    """Check a path against ignore globs.

    A path matches when the glob matches the path itself or the path with a
    trailing slash, or when the path matches or lies under the pattern with its
    trailing ``/**`` removed.

    Args:
        path: Configured path (file, directory, or glob)
        patterns: Ignore globs

    Returns:
        True if the path should be skipped

    """
    clean_path = path.rstrip("/") or path
    for pattern in patterns:
        if path_matches(clean_path, pattern) or path_matches(f"{clean_path}/", pattern):
            return True
        if pattern.endswith(GLOBSTAR_SUFFIX):
            base = pattern.removesuffix(GLOBSTAR_SUFFIX)
            if clean_path.startswith(f"{base}/") or path_matches(clean_path, base):
                return True
    return False


def extension_glob(extensions: list[str]) -> str:
    """Build a ``*.ext`` or ``*.{a,b}`` glob for a list of extensions."""
    names = [ext.removeprefix(".") for ext in extensions]
    if len(names) == 1:
        return f"*.{names[0]}"
    return "*.{" + ",".join(names) + "}"


class BaseFixer(ABC):
    """Base class for all fixers."""

    tool: ClassVar[str] = ""
    default_extensions: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        name: str,
        config: FixerConfig | None = None,
        paths: list[str] | None = None,
    ) -> None:
        """Initialize the fixer.

        Args:
            name: Fixer name as configured
            config: Per-fixer settings
            paths: Files or directories to process

        """
        self.name = name
        self.config = config or FixerConfig()
        self.paths = list(paths) if paths else list(DEFAULT_PATHS)

    def has_custom_command(self) -> bool:
        """Return True when a command override is configured."""
        return self.config.has_custom_command()

    def get_custom_command(self) -> list[str]:
        """Return the configured command, with paths appended when appropriate.

        Paths are appended unless ``appendPaths`` is explicitly ``false`` or the
        paths are just the default ``["."]``.

        Returns:
            Command argv, or an empty list when no override is configured

        """
        if not self.config.command:
            return []

        command = list(self.config.command)
        if self.config.append_paths is not False and self.paths != DEFAULT_PATHS:
            command.extend(self.paths)
        return command

    def get_extensions(self) -> list[str]:
        """Return handled extensions (config override or built-in default)."""
        if self.config.extensions is not None:
            return list(self.config.extensions)
        return list(self.default_extensions)

    def get_env(self) -> dict[str, str]:
        """Return extra environment variables for the fixer process."""
        return dict(self.config.env or {})

    def is_available(self) -> bool:
        """Look for the tool locally, then through npx.

        Returns:
            True if the tool can be invoked; any check failure means False

        """
        try:
            if (NODE_BIN_DIR / self.tool).exists():
                return True
            returncode, _, _ = run_command(["npx", self.tool, "--version"])
        except OSError:
            return False
        return returncode == 0

    def get_command(self) -> list[str]:
        """Return the argv to run for this fixer."""
        if self.has_custom_command():
            return self.get_custom_command()
        return self.build_command()

    @abstractmethod
    def build_command(self) -> list[str]:
        """Build the tool's own command when no override is configured."""


class PathAwareFixer(BaseFixer):
    """Fixer that expands configured paths into tool-level glob patterns.

    ``.`` becomes a recursive glob over every handled extension, files and
    globs pass through unchanged, and anything else is treated as a directory.
    Paths matching the ignore globs are dropped before expansion.
    """

    config_flag: ClassVar[str] = "--config"
    fix_flag: ClassVar[str] = "--fix"
    unmatched_pattern_flags: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        name: str,
        config: FixerConfig | None = None,
        paths: list[str] | None = None,
        ignore_source: IgnoreSource | None = None,
    ) -> None:
        """Initialize the fixer.

        Args:
            name: Fixer name as configured
            config: Per-fixer settings
            paths: Files or directories to process
            ignore_source: Provider of ignore globs

        """
        super().__init__(name, config, paths)
        self.ignore_source = ignore_source

    def filter_ignored_paths(self) -> list[str]:
        """Return configured paths that are not ignored."""
        if self.ignore_source is None:
            return list(self.paths)
        patterns = self.ignore_source.get_ignore_patterns()
        return [path for path in self.paths if not is_ignored(path, patterns)]

    def path_to_pattern(self, path: str) -> str:
        """Convert a configured path into a tool target.

        Args:
            path: File, directory, glob, or ``.``

        Returns:
            Target pattern

        """
        clean_path = path.rstrip("/") or path
        pattern = extension_glob(self.get_extensions())
        if clean_path == ".":
            return f"**/{pattern}"
        if any(char in clean_path for char in GLOB_CHARACTERS):
            return clean_path
        # A dot in the last component marks an explicit file
        if "." in PurePosixPath(clean_path).name:
            return clean_path
        return f"{clean_path}/**/{pattern}"

    def build_command(self) -> list[str]:
        """Build ``npx <tool> [--config f] <fix> <patterns...>``."""
        cmd = ["npx", self.tool]

        if self.config.config_file:
            cmd.extend([self.config_flag, self.config.config_file])

        cmd.append(self.fix_flag)

        paths = self.filter_ignored_paths()
        if not paths:
            # Still run, but against a target that cannot match anything
            cmd.extend(self.unmatched_pattern_flags)
            cmd.append(NO_MATCH_SENTINEL)
            return cmd

        cmd.extend(self.path_to_pattern(path) for path in paths)
        return cmd


class PrettierFixer(PathAwareFixer):
    """Prettier formatter."""

    tool = "prettier"
    fix_flag = "--write"
    unmatched_pattern_flags = ("--no-error-on-unmatched-pattern",)
    default_extensions = (
        ".js",
        ".jsx",
        ".ts",
        ".tsx",
        ".vue",
        ".json",
        ".md",
        ".yml",
        ".yaml",
        ".css",
        ".scss",
        ".less",
        ".html",
    )


class MarkdownLintFixer(PathAwareFixer):
    """markdownlint-cli2 markdown linter."""

    tool = "markdownlint-cli2"
    default_extensions = (".md", ".markdown")


class ESLintFixer(BaseFixer):
    """ESLint JavaScript/TypeScript linter."""

    tool = "eslint"
    default_extensions = (".js", ".jsx", ".ts", ".tsx", ".vue")

    def build_command(self) -> list[str]:
        """Build ``npx eslint [-c f] [--ext exts] --fix <paths...>``."""
        cmd = ["npx", "eslint"]

        if self.config.config_file:
            cmd.extend(["-c", self.config.config_file])

        if self.config.extensions:
            cmd.extend(["--ext", ",".join(self.config.extensions)])

        cmd.append("--fix")
        cmd.extend(self.paths)
        return cmd


class OxlintFixer(BaseFixer):
    """oxlint JavaScript/TypeScript linter."""

    tool = "oxlint"
    default_extensions = (
        ".js",
        ".mjs",
        ".cjs",
        ".jsx",
        ".ts",
        ".mts",
        ".cts",
        ".tsx",
        ".vue",
        ".astro",
        ".svelte",
    )

    # Config key -> oxlint flag for rule severity lists
    RULE_FLAGS: ClassVar[dict[str, str]] = {"allow": "-A", "warn": "-W", "deny": "-D"}
    PLUGIN_FLAGS: ClassVar[dict[str, str]] = {
        "importPlugin": "--import-plugin",
        "reactPlugin": "--react-plugin",
    }

    def build_command(self) -> list[str]:
        """Build ``npx oxlint [--config f] --fix <rule flags> <paths...>``."""
        cmd = ["npx", "oxlint"]

        if self.config.config_file:
            cmd.extend(["--config", self.config.config_file])

        cmd.append("--fix")

        for key, flag in self.RULE_FLAGS.items():
            rules = self.config.option(key)
            if isinstance(rules, list):
                for rule in rules:
                    cmd.extend([flag, str(rule)])

        for key, flag in self.PLUGIN_FLAGS.items():
            if self.config.option(key):
                cmd.append(flag)

        tsconfig = self.config.option("tsconfig")
        if tsconfig:
            cmd.extend(["--tsconfig", str(tsconfig)])

        cmd.extend(self.paths)
        return cmd


class CustomFixer(BaseFixer):
    """Fixer driven entirely by a user-supplied command."""

    def is_available(self) -> bool:
        """Custom commands are assumed available; failures surface when run."""
        return True

    def build_command(self) -> list[str]:
        """Raise, since a custom fixer has no command of its own."""
        message = f"Custom fixer {self.name} requires a command to be configured"
        raise FixerConfigurationError(message)


BUILTIN_FIXERS: dict[str, type[BaseFixer]] = {
    "eslint": ESLintFixer,
    "prettier": PrettierFixer,
    "markdownlint": MarkdownLintFixer,
    "oxlint": OxlintFixer,
}

AVAILABLE_FIXERS = tuple(BUILTIN_FIXERS)


def is_builtin_fixer(name: str) -> bool:
    """Return True if ``name`` is a built-in fixer (case-insensitive)."""
    return name.lower() in BUILTIN_FIXERS


def get_fixer_class(name: str) -> type[BaseFixer] | None:
    """Return the built-in fixer class for ``name``, if any."""
    return BUILTIN_FIXERS.get(name.lower())


def create_fixer(
    name: str,
    config: FixerConfig | None = None,
    paths: list[str] | None = None,
    ignore_source: IgnoreSource | None = None,
) -> BaseFixer | None:
    """Create a fixer by name.

    Args:
        name: Fixer name (built-ins match case-insensitively)
        config: Per-fixer settings
        paths: Files or directories to process
        ignore_source: Provider of ignore globs for path-aware fixers

    Returns:
        Fixer instance, or None for an unknown name without a custom command

    """
    config = config or FixerConfig()
    fixer_class = get_fixer_class(name)

    if fixer_class is None:
        if config.has_custom_command():
            return CustomFixer(name, config, paths)
        return None

    canonical_name = name.lower()
    if issubclass(fixer_class, PathAwareFixer):
        return fixer_class(canonical_name, config, paths, ignore_source)
    return fixer_class(canonical_name, config, paths)
