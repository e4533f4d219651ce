"""Constants and message generators for user-facing messages."""


def custom_command_failure_hints(command: str) -> list[str]:
    """Return troubleshooting lines for a failing custom command.

    Args:
        command: The command line that failed

    Returns:
        Lines to log, one hint per line

    """
    return [
        f"Custom command failed: {command}",
        "Common fixes:",
        "  - Ensure dependencies are installed (add an 'npm ci' step before Felix)",
        f"  - Verify the command works locally: {command}",
        "  - Check that npm scripts exist in package.json",
        "  - Consider using built-in commands instead of custom ones",
    ]


def fixer_unavailable_error(name: str) -> str:
    """Return the error recorded for a fixer whose tool cannot be found."""
    return f"{name} is not available"


def fixer_exit_code_error(name: str, exit_code: int) -> str:
    """Return the error recorded for a fixer that exited non-zero."""
    return f"{name} exited with code {exit_code}"


def token_kind(token: str) -> str:
    """Describe a GitHub token by its prefix, without revealing it.

    Args:
        token: Token value

    Returns:
        Human-readable token kind

    """
    if token.startswith("ghs_"):
        return "GitHub Actions token"
    if token.startswith("ghp_"):
        return "Classic Personal Access Token"
    if token.startswith("github_pat_"):
        return "Fine-grained Personal Access Token"
    return "Unknown format"
