#!/usr/bin/env python3
"""Run the `how` picker on the terminal and print the chosen line.

The picker gets the controlling terminal as its stdin, so it can draw its UI
even when our own stdin/stdout are pipes (e.g. inside `$(...)` from a zsh
widget). Exactly one line of its stdout is echoed back untouched, followed by
a newline, and the picker's exit status becomes ours.

Usage:
    how-select [ARGS...]          # ARGS are passed to `how` verbatim
    LBUFFER+="$(how-select)"      # from a zsh widget
"""

import os
import subprocess
import sys
from contextlib import contextmanager
from dataclasses import dataclass, fields, replace
from typing import Dict, Iterator, List, Optional, Sequence

# Configuration
DEBUG = False                              # Enable debug logging
DEBUG_LOG_FILE = "/tmp/how_select_debug.log"  # stderr belongs to the picker
HOW_COMMAND = "how"                        # External lookup command
TTY_PATH = "/dev/tty"                      # Terminal the picker reads from

# Shell-style exit statuses
STATUS_FAILURE = 1
STATUS_NOT_EXECUTABLE = 126
STATUS_NOT_FOUND = 127
STATUS_SIGNAL_BASE = 128

# Command aliases, honoured only while `options.aliases` is on
ALIASES: Dict[str, List[str]] = {}


@dataclass
class ShellOptions:
    """Ambient options, named after the zsh options they stand in for."""
    pipefail: bool = False  # Report the picker's failure, not the reader's success
    aliases: bool = True    # Expand ALIASES when resolving the command


@dataclass
class Selection:
    """What the picker chose."""
    line: str    # Captured line without its terminator, "" if none
    status: int  # Exit status of the picker


options = ShellOptions()


def debug_print(msg: str):
    """Append a debug message to DEBUG_LOG_FILE if DEBUG is enabled."""
    if DEBUG:
        with open(DEBUG_LOG_FILE, 'a') as f:
            print(f"[DEBUG] {msg}", file=f, flush=True)


@contextmanager
def localoptions(**overrides) -> Iterator[ShellOptions]:
    """Override ambient options for the duration of a block.

    Like `setopt localoptions` in a zsh function: whatever happens inside the
    block, the previous values are back in place when it exits.
    """
    known = {f.name for f in fields(options)}
    unknown = set(overrides) - known
    if unknown:
        raise TypeError(f"unknown shell option(s): {', '.join(sorted(unknown))}")

    saved = replace(options)
    for name, value in overrides.items():
        setattr(options, name, value)
    try:
        yield options
    finally:
        for name in known:
            setattr(options, name, getattr(saved, name))


def resolve_command(name: str) -> List[str]:
    """Turn a command name into an argv prefix, expanding aliases if enabled."""
    if options.aliases and name in ALIASES:
        debug_print(f"Alias {name} -> {ALIASES[name]}")
        return list(ALIASES[name])
    return [name]


def _exit_status(returncode: int) -> int:
    # Popen reports death by signal N as -N, the shell as 128+N
    if returncode < 0:
        return STATUS_SIGNAL_BASE - returncode
    return returncode


def how_select(args: Sequence[str] = (),
               command: Optional[str] = None,
               tty: Optional[str] = None) -> Selection:
    """Run the picker attached to the terminal and capture one line.

    Args:
        args: Passed to the command untouched.
        command: Command to run, HOW_COMMAND by default.
        tty: Device bound to the command's stdin, TTY_PATH by default.
    """
    command = command or HOW_COMMAND
    tty = tty or TTY_PATH

    with localoptions(pipefail=True, aliases=False):
        argv = resolve_command(command) + list(args)
        debug_print(f"Running: {argv} < {tty}")

        try:
            tty_in = open(tty, 'rb')
        except OSError as e:
            debug_print(f"ERROR: cannot open {tty}: {e}")
            return Selection(line="", status=STATUS_FAILURE)

        with tty_in:
            try:
                # Bytes, so no decoding errors and no universal newlines
                proc = subprocess.Popen(argv, stdin=tty_in, stdout=subprocess.PIPE)
            except FileNotFoundError as e:
                debug_print(f"ERROR: command not found: {e}")
                return Selection(line="", status=STATUS_NOT_FOUND)
            except OSError as e:
                debug_print(f"ERROR: cannot execute: {e}")
                return Selection(line="", status=STATUS_NOT_EXECUTABLE)

            with proc:
                line = proc.stdout.readline()
                # Anything past the first line is dropped, but still read so
                # the picker never dies on a closed pipe.
                for extra in proc.stdout:
                    debug_print(f"Discarding extra output: {extra!r}")

        if line.endswith(b'\n'):
            line = line[:-1]
        # Undecodable bytes become surrogates that os.fsencode turns back
        line = os.fsdecode(line)

        picker_status = _exit_status(proc.returncode)
        # The reader loop itself cannot fail
        reader_status = 0
        if options.pipefail and picker_status != 0:
            status = picker_status
        else:
            status = reader_status

        debug_print(f"Selected {line!r}, picker exited {picker_status}, status {status}")
        return Selection(line=line, status=status)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for `how-select`. Every argument goes to the picker."""
    if argv is None:
        argv = sys.argv[1:]

    selection = how_select(argv)
    # Written as bytes so the picker's output reaches the shell unchanged
    sys.stdout.flush()
    sys.stdout.buffer.write(os.fsencode(selection.line) + b'\n')
    sys.stdout.buffer.flush()
    return selection.status


if __name__ == "__main__":
    sys.exit(main())
