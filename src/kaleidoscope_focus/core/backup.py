"""
Backup and restore workflows.

Both are long scripted sequences of ordinary Focus requests:

- backup: ask the keyboard which commands hold settings (`backup`), then
  read each of them
- restore: send every captured value back, in the captured order

Firmware without a `backup` command is handled by falling back to a
versioned list of known settings commands shipped with the package.
"""

import json
import logging
from importlib import resources
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .snapshot import Snapshot

logger = logging.getLogger(__name__)

FALLBACK_COMMANDS_RESOURCE = "backup_commands.json"

# progress_cb(command, index, total), index is 1-based
CommandProgress = Callable[[str, int, int], None]


def load_fallback_commands(path: Optional[Union[str, Path]] = None) -> List[str]:
    """
    Load the list of commands to back up when the firmware cannot list them.

    Args:
        path: JSON file to read instead of the bundled list. The file holds
            an object with a "commands" list (and usually a "version").

    Returns:
        Command names, in file order

    Raises:
        ValueError: If the file is not valid JSON or has no command list
        OSError: If the file cannot be read
    """
    if path is None:
        text = resources.files("kaleidoscope_focus.data").joinpath(
            FALLBACK_COMMANDS_RESOURCE
        ).read_text(encoding="utf-8")
        source = FALLBACK_COMMANDS_RESOURCE
    else:
        text = Path(path).read_text(encoding="utf-8")
        source = str(path)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid fallback command list {source}: {e}")

    commands = data.get("commands") if isinstance(data, dict) else None
    if not isinstance(commands, list) or not all(isinstance(c, str) and c for c in commands):
        raise ValueError(f"Invalid fallback command list {source}: 'commands' must list command names")

    logger.debug(f"Loaded {len(commands)} fallback commands from {source} (version {data.get('version', '?')})")
    return commands


def backup(
    session,
    fallback_commands: Optional[Sequence[str]] = None,
    progress_cb: Optional[CommandProgress] = None,
) -> Snapshot:
    """
    Capture the keyboard configuration.

    Args:
        session: Open FocusSession
        fallback_commands: Commands to read if the firmware does not support
            `backup` (defaults to the bundled list)
        progress_cb: Optional callback(command, index, total), called before
            each command is read

    Returns:
        Snapshot holding every command with a non-empty value

    Raises:
        FocusTransportError: If communication fails
    """
    reply = session.flush().command("backup")

    commands = reply.split("\n") if reply else []
    if not commands:
        logger.info("Firmware does not list its settings, using the fallback command list")
        commands = list(fallback_commands) if fallback_commands is not None else load_fallback_commands()

    snapshot = Snapshot()
    total = len(commands)
    for index, command in enumerate(commands, 1):
        if progress_cb:
            progress_cb(command, index, total)

        value = session.command(command)
        if value:
            snapshot.add(command, value)
        else:
            logger.debug(f"Skipping {command}: empty reply")

    logger.info(f"Backed up {len(snapshot.restore)} of {total} commands")
    return snapshot


def restore(
    session,
    snapshot: Snapshot,
    progress_cb: Optional[CommandProgress] = None,
) -> None:
    """
    Replay a snapshot onto the keyboard.

    Commands are sent in `snapshot.restore` order. A command without a
    captured value is skipped. There is no rollback: a failure part way
    leaves the keyboard with a mix of old and restored settings.

    Args:
        session: Open FocusSession
        snapshot: Snapshot to replay
        progress_cb: Optional callback(command, index, total)

    Raises:
        FocusTransportError: If communication fails
    """
    total = len(snapshot.restore)
    restored = 0
    for index, command in enumerate(snapshot.restore, 1):
        if progress_cb:
            progress_cb(command, index, total)

        value = snapshot.commands.get(command)
        if value is None:
            logger.debug(f"Skipping {command}: no captured value")
            continue

        # Every request gets its reply read, even though it is unused.
        session.request(command, [value])
        restored += 1

    logger.info(f"Restored {restored} of {total} commands")
