"""fix-it-felix: automated lint and format fixes for pull requests."""
