"""
Utility functions for the devtrack CLI tool.

This module provides config file loading, error reporting, the interactive
picker, clipboard and browser helpers and time formatting.
"""

import json
import logging
import shutil
import subprocess
import sys
import webbrowser
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar, Union, cast

import yaml

from devtrack_client.protocols import (
    EXIT_API_ERROR,
    EXIT_AUTH_ERROR,
    EXIT_ERROR,
    CLIError,
    NotFoundInSelection,
    Selectable,
)
from devtrack_sdk import AuthenticationError, ClientError, HttpStatusError

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Selectable)

TEAMCITY_DATE_FORMAT = "%Y%m%dT%H%M%S%z"


def load_config_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from a YAML or JSON file.

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary containing the configuration

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file cannot be parsed
    """
    path = Path(file_path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(path, "r") as f:
            if path.suffix.lower() == ".json":
                return cast(Dict[str, Any], json.load(f))
            # YAML is a superset of JSON, so anything else goes through it
            return cast(Dict[str, Any], yaml.safe_load(f))
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to parse configuration file {file_path}: {e}")


def handle_cli_error(error: Exception) -> int:
    """
    Print an error and return the matching exit code.

    Args:
        error: The exception that occurred

    Returns:
        Appropriate exit code
    """
    if isinstance(error, AuthenticationError):
        print(f"Authentication error: {error}", file=sys.stderr)
        return EXIT_AUTH_ERROR
    elif isinstance(error, HttpStatusError):
        print(f"API error: {error}", file=sys.stderr)
        print(f"Status code: {error.status_code}", file=sys.stderr)
        return EXIT_API_ERROR
    elif isinstance(error, ClientError):
        print(f"API error: {error}", file=sys.stderr)
        return EXIT_API_ERROR
    elif isinstance(error, CLIError):
        print(f"Error: {error}", file=sys.stderr)
        return error.exit_code
    else:
        print(f"Unexpected error: {error}", file=sys.stderr)
        return EXIT_ERROR


# Picker


def fuzzy_match(query: str, text: str) -> bool:
    """True if the characters of ``query`` appear in ``text`` in order (case-insensitive)."""
    remaining = iter(text.lower())
    return all(char in remaining for char in query.lower())


def filter_candidates(items: Iterable[S], query: Optional[str]) -> List[S]:
    """
    Narrow ``items`` down by ``query``.

    An exact match on the display text wins outright; otherwise every item
    whose display text fuzzy-matches the query is kept.
    """
    candidates = list(items)
    if not query:
        return candidates

    exact = [item for item in candidates if item.display_text() == query]
    if exact:
        return exact[:1]
    return [item for item in candidates if fuzzy_match(query, item.display_text())]


def select_one(
    items: Iterable[S],
    query: Optional[str] = None,
    prompt: str = "Select",
    input_func: Callable[[str], str] = input,
) -> S:
    """
    Let the user choose one item from a numbered menu.

    When ``query`` narrows the list down to a single item it is returned
    without prompting. Typing ``?N`` shows the details of item N.

    Raises:
        NotFoundInSelection: If nothing matches or the user picks nothing
    """
    candidates = filter_candidates(items, query)
    if not candidates:
        suffix = f" matching '{query}'" if query else ""
        raise NotFoundInSelection(f"Nothing to select{suffix}")
    if query and len(candidates) == 1:
        logger.debug(f"Auto-selected {candidates[0].display_text()}")
        return candidates[0]

    for number, item in enumerate(candidates, start=1):
        print(f"{number:>3}) {item.display_text()}", file=sys.stderr)

    while True:
        try:
            answer = input_func(f"{prompt} [1-{len(candidates)}, ?N for details]: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("", file=sys.stderr)
            raise NotFoundInSelection("Selection cancelled")

        if not answer:
            raise NotFoundInSelection("Nothing selected")

        show_details = answer.startswith("?")
        choice = answer[1:] if show_details else answer
        if choice.isdigit() and 1 <= int(choice) <= len(candidates):
            item = candidates[int(choice) - 1]
            if not show_details:
                return item
            print(item.preview_text(), file=sys.stderr)
        else:
            print(f"Invalid choice: {answer}", file=sys.stderr)


# Desktop integration


def copy_to_clipboard(text: str) -> bool:
    """
    Copy ``text`` to the clipboard.

    Failures are logged and reported through the return value only.
    """
    for command in (["xclip", "-selection", "clipboard"], ["wl-copy"], ["pbcopy"]):
        if shutil.which(command[0]) is None:
            continue
        try:
            subprocess.run(command, input=text, text=True, check=True, timeout=5)
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Clipboard copy with {command[0]} failed: {e}")
    logger.debug("No clipboard tool available")
    return False


def open_in_browser(url: str) -> bool:
    """Open ``url`` in the default browser; failures are only logged."""
    try:
        return webbrowser.open(url)
    except webbrowser.Error as e:
        logger.debug(f"Could not open browser: {e}")
        return False


# Formatting


def parse_teamcity_date(value: Optional[str]) -> Optional[datetime]:
    """Parse TeamCity's ``20240131T174512+0100`` timestamps."""
    if not value:
        return None
    try:
        return datetime.strptime(value, TEAMCITY_DATE_FORMAT)
    except ValueError:
        logger.debug(f"Unparseable date: {value}")
        return None


def format_relative_time(moment: datetime, now: Optional[datetime] = None) -> str:
    """
    Describe how long ago ``moment`` was.

    Anything four hours old or older is shown as a local timestamp instead.
    """
    now = now or datetime.now(timezone.utc)
    seconds = int((now - moment).total_seconds())
    minutes = seconds // 60
    hours = minutes // 60

    if hours >= 4:
        return moment.astimezone().strftime("%a, %d %b %H:%M")
    if hours >= 2:
        return f"{hours} hours ago"
    if hours == 1:
        return "1 hour ago"
    if minutes >= 2:
        return f"{minutes} minutes ago"
    if minutes == 1:
        return "1 minute ago"
    if seconds >= 10:
        return f"{seconds} seconds ago"
    return "a few moments ago"


def truncate_string(text: str, max_length: int = 50, suffix: str = "...") -> str:
    """
    Truncate a string to a maximum length.

    Args:
        text: String to truncate
        max_length: Maximum length (including suffix)
        suffix: Suffix to add when truncating

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    return text[: max_length - len(suffix)] + suffix
