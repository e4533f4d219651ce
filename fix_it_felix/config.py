"""Configuration management for fix-it-felix.

Effective settings are merged from four layers:

- the repository config file (``.felixrc.json`` by default)
- inline per-fixer entries inside that file's ``fixers`` array
- action inputs (``INPUT_*`` environment variables or CLI options)
- built-in defaults

Fixer lists and per-fixer settings prefer the config file over action inputs.
Global paths prefer the action input over the config file.
"""

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

import pydantic as pyd
from pydantic_settings import BaseSettings, SettingsConfigDict

from fix_it_felix.utils import get_logger, run_command, split_csv

DEFAULT_PATHS = ["."]
DEFAULT_IGNORE_PATTERNS = ["node_modules/**", "dist/**", "build/**", ".git/**"]
DEFAULT_COMMIT_MESSAGE = "🤖 Fix-it Felix: Auto-fixed code quality issues"
DEFAULT_CONFIG_PATH = ".felixrc.json"
UNNAMED_FIXER = "unnamed-fixer"

# Top-level config keys that are never legacy fixer blocks
RESERVED_CONFIG_KEYS = frozenset({"fixers", "paths", "ignore"})


class Settings(BaseSettings):
    """Action inputs for fix-it-felix.

    Values are read from the ``INPUT_*`` environment variables GitHub Actions
    exports for each action input.
    """

    fixers: str = pyd.Field(
        default="eslint,prettier",
        alias="INPUT_FIXERS",
        description="Comma-separated list of fixers to run",
    )

    paths: str = pyd.Field(
        default="",
        alias="INPUT_PATHS",
        description="Comma-separated list of paths to fix",
    )

    commit_message: str = pyd.Field(
        default=DEFAULT_COMMIT_MESSAGE,
        alias="INPUT_COMMIT_MESSAGE",
        description="Commit message for automated fixes",
    )

    config_path: str = pyd.Field(
        default=DEFAULT_CONFIG_PATH,
        alias="INPUT_CONFIG_PATH",
        description="Path to the repository config file",
    )

    dry_run: bool = pyd.Field(
        default=False,
        alias="INPUT_DRY_RUN",
        description="Report fixes as a PR comment instead of committing",
    )

    skip_label: str = pyd.Field(
        default="skip-felix",
        alias="INPUT_SKIP_LABEL",
        description="PR label that disables the bot",
    )

    allowed_bots: str = pyd.Field(
        default="",
        alias="INPUT_ALLOWED_BOTS",
        description="Comma-separated bot names whose commits may trigger fixes",
    )

    personal_access_token: str | None = pyd.Field(
        default=None,
        alias="INPUT_PERSONAL_ACCESS_TOKEN",
        description="Token used to push commits that trigger workflows",
    )

    github_token: str | None = pyd.Field(
        default=None,
        alias="GITHUB_TOKEN",
        description="Fallback token for API calls",
    )

    debug: bool = pyd.Field(
        default=False,
        alias="INPUT_DEBUG",
        description="Enable verbose debug logging",
    )

    skip_draft_prs: bool = pyd.Field(
        default=False,
        alias="INPUT_SKIP_DRAFT_PRS",
        description="Skip draft pull requests",
    )

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
    )

    @pyd.field_validator("dry_run", "debug", "skip_draft_prs", mode="before")
    @classmethod
    def _blank_flag_is_false(cls, value: object) -> object:
        """Treat an empty action input as an unset flag."""
        if isinstance(value, str) and not value.strip():
            return False
        return value

    @property
    def token(self) -> str:
        """Return the credential for API calls (PAT first, then GITHUB_TOKEN)."""
        return self.personal_access_token or self.github_token or ""


@dataclass(frozen=True)
class CliOptions:
    """CLI override options for Settings.

    Groups all CLI-provided overrides into a single object to avoid
    function parameter count violations (PLR0913) in internal logic.
    """

    fixers: str | None = None
    paths: str | None = None
    commit_message: str | None = None
    config_path: str | None = None
    skip_label: str | None = None
    allowed_bots: str | None = None
    dry_run: bool = False
    debug: bool = False
    skip_draft_prs: bool = False


def get_settings(options: CliOptions | None = None) -> Settings:
    """Create Settings instance from command line args and environment.

    Args:
        options: CLI override options grouped into a dataclass

    Returns:
        Settings instance

    """
    settings = Settings()

    if options is not None:
        _apply_cli_options(settings, options)

    return settings


def _apply_cli_options(settings: Settings, options: CliOptions) -> None:
    """Apply CLI options to Settings instance.

    Args:
        settings: Settings instance to modify
        options: CLI options to apply

    """
    for field_name in (
        "fixers",
        "paths",
        "commit_message",
        "config_path",
        "skip_label",
        "allowed_bots",
    ):
        value = getattr(options, field_name)
        if value is not None:
            setattr(settings, field_name, value)

    if options.dry_run:
        settings.dry_run = True
    if options.debug:
        settings.debug = True
    if options.skip_draft_prs:
        settings.skip_draft_prs = True


class FixerConfig(pyd.BaseModel):
    """Per-fixer settings from either a legacy block or an inline entry.

    Unknown keys are kept as extras so tool-specific options (oxlint's
    ``allow``/``warn``/``deny`` lists, for example) survive validation.
    """

    model_config = pyd.ConfigDict(
        extra="allow",
        populate_by_name=True,
        frozen=True,
        coerce_numbers_to_str=True,
    )

    config_file: str | None = pyd.Field(default=None, alias="configFile")
    extensions: list[str] | None = None
    paths: list[str] | None = None
    command: list[str] | None = None
    append_paths: bool | None = pyd.Field(default=None, alias="appendPaths")
    env: dict[str, str] | None = None

    def has_custom_command(self) -> bool:
        """Return True when a non-empty command override is configured."""
        return bool(self.command)

    def option(self, key: str, default: object = None) -> object:
        """Return a tool-specific extra option.

        Args:
            key: Option name as written in the config file
            default: Value returned when the option is absent

        Returns:
            Option value or default

        """
        return (self.model_extra or {}).get(key, default)


@dataclass(frozen=True)
class FixerSpec:
    """A configured fixer with its resolved settings and target paths."""

    name: str
    config: FixerConfig
    paths: tuple[str, ...]


@dataclass(frozen=True)
class EffectiveConfig:
    """Merged configuration for a single run."""

    fixers: tuple[FixerSpec, ...]
    global_paths: tuple[str, ...]
    ignore_patterns: tuple[str, ...]


class ConfigManager:
    """Resolves effective configuration from file, inputs, and defaults."""

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger | None = None,
        document: dict | None = None,
        project_root: Path | None = None,
    ) -> None:
        """Initialize the config manager.

        Args:
            settings: Action inputs
            logger: Logger instance for output
            document: Already-parsed config document (skips reading the file)
            project_root: Directory a relative config path is resolved against

        """
        self.settings = settings
        self.logger = logger or get_logger()
        self.project_root = project_root or Path.cwd()
        self.config: dict = document if document is not None else self._load_config()

    def _load_config(self) -> dict:
        """Load the repository config file, degrading to an empty document."""
        config_path = Path(self.settings.config_path)
        if not config_path.is_absolute():
            config_path = self.project_root / config_path

        if not config_path.is_file():
            self.logger.info("No config file found at %s, using defaults", config_path)
            return {}

        try:
            document = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            self.logger.warning("Failed to load config file %s: %s", config_path, e)
            return {}

        if not isinstance(document, dict):
            self.logger.warning("Config file %s is not a JSON object, using defaults", config_path)
            return {}

        self.logger.info("Loaded configuration from %s", config_path)
        return document

    def _config_list(self, key: str) -> list | None:
        """Return a top-level list from the config document, if it is one."""
        value = self.config.get(key)
        return value if isinstance(value, list) else None

    def get_fixers(self) -> list[str]:
        """Return fixer names in run order.

        Returns:
            Fixer names from the config file, or from the action input

        """
        entries = self._config_list("fixers")
        if entries:
            return [_entry_name(entry) for entry in entries]

        return split_csv(self.settings.fixers)

    def get_paths(self) -> list[str]:
        """Return global paths (action input > config file > ``["."]``)."""
        input_paths = split_csv(self.settings.paths)
        if input_paths:
            return input_paths

        config_paths = self._config_list("paths")
        if config_paths:
            return [str(path) for path in config_paths]

        return list(DEFAULT_PATHS)

    def get_fixer_paths(self, fixer_name: str) -> list[str]:
        """Return a fixer's own paths, falling back to the global paths.

        Args:
            fixer_name: Fixer name

        Returns:
            Paths the fixer should be scoped to

        """
        fixer_paths = self.get_fixer_config(fixer_name).paths
        if fixer_paths:
            return list(fixer_paths)
        return self.get_paths()

    def get_fixer_config(self, fixer_name: str) -> FixerConfig:
        """Return settings for a fixer (inline entry > legacy block > empty).

        Args:
            fixer_name: Fixer name (matched case-insensitively)

        Returns:
            Validated fixer settings

        """
        raw = self._find_inline_entry(fixer_name)
        if raw is None:
            raw = self._find_legacy_block(fixer_name)
        if raw is None:
            return FixerConfig()

        try:
            return FixerConfig.model_validate(raw)
        except pyd.ValidationError as e:
            self.logger.warning(
                "Invalid configuration for fixer %s, using defaults: %s",
                fixer_name,
                e,
            )
            return FixerConfig()

    def _find_inline_entry(self, fixer_name: str) -> dict | None:
        """Find an inline ``{"name": ...}`` entry in the fixers array."""
        wanted = fixer_name.lower()
        for entry in self._config_list("fixers") or []:
            if isinstance(entry, dict) and _entry_name(entry).lower() == wanted:
                return {key: value for key, value in entry.items() if key != "name"}
        return None

    def _find_legacy_block(self, fixer_name: str) -> dict | None:
        """Find a legacy top-level block keyed by fixer name."""
        wanted = fixer_name.lower()
        for key, value in self.config.items():
            if key in RESERVED_CONFIG_KEYS or not isinstance(value, dict):
                continue
            if key.lower() == wanted:
                return value
        return None

    def get_ignore_patterns(self) -> list[str]:
        """Return ignore globs from the config file, or the default set."""
        patterns = self._config_list("ignore")
        if patterns is None:
            return list(DEFAULT_IGNORE_PATTERNS)
        return [str(pattern) for pattern in patterns]

    def get_allowed_bots(self) -> list[str]:
        """Return allowed bot names with their original case."""
        return split_csv(self.settings.allowed_bots)

    def resolve(self) -> EffectiveConfig:
        """Build the immutable effective configuration for this run."""
        fixers = tuple(
            FixerSpec(
                name=name,
                config=self.get_fixer_config(name),
                paths=tuple(self.get_fixer_paths(name)),
            )
            for name in self.get_fixers()
        )
        return EffectiveConfig(
            fixers=fixers,
            global_paths=tuple(self.get_paths()),
            ignore_patterns=tuple(self.get_ignore_patterns()),
        )


def _entry_name(entry: object) -> str:
    """Normalize a ``fixers`` array entry to a fixer name."""
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        name = entry.get("name")
        if isinstance(name, str) and name:
            return name
    return UNNAMED_FIXER


def find_project_root() -> Path:
    """Find project root directory.

    Returns:
        Git top-level directory, or the current directory outside a repository

    """
    git_path = shutil.which("git")
    if git_path:
        returncode, stdout, _ = run_command(
            [git_path, "rev-parse", "--show-toplevel"],
            check=False,
        )
        if returncode == 0 and stdout.strip():
            return Path(stdout.strip())

    return Path.cwd()
