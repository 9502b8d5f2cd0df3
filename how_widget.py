#!/usr/bin/env python3
"""Keybinding widget that inserts the `how` selection into the command line.

The widget runs the selector, appends the chosen line to the text left of the
cursor and redraws the prompt. The editing line is passed in as an
`EditBuffer`, so the same widget drives any host:

    - zsh: `eval "$(how-init)"` defines a ZLE widget bound to Ctrl-_
    - prompt_toolkit: `HowKeybinding().register(key_bindings)`
    - anything else: wrap its line state in an `EditBuffer`
"""

import argparse
import shlex
import sys
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

from prompt_toolkit.application import run_in_terminal
from prompt_toolkit.document import Document
from prompt_toolkit.key_binding import KeyBindings

from how_select import Selection, debug_print, how_select

# Configuration
KEYBINDING = "^_"              # zsh bindkey notation (Ctrl-_)
PROMPT_TOOLKIT_KEY = "c-_"     # Same key, prompt_toolkit notation
SELECT_COMMAND = "how-select"  # Selector executable the zsh widget calls

ZSH_WIDGET = """\
how-widget() {{
  LBUFFER="${{LBUFFER}}$({selector})"
  local ret=$?
  zle reset-prompt
  return $ret
}}

zle -N how-widget
bindkey {keybinding} how-widget
"""


class EditBuffer(ABC):
    """The host's editing line, split at the cursor."""

    @property
    @abstractmethod
    def lbuffer(self) -> str:
        """Text left of the cursor. Settable."""

    @property
    @abstractmethod
    def rbuffer(self) -> str:
        """Text right of the cursor."""

    @abstractmethod
    def reset_prompt(self) -> None:
        """Redraw the prompt and the line."""


class LineBuffer(EditBuffer):
    """In-memory editing line."""

    def __init__(self, lbuffer: str = "", rbuffer: str = ""):
        self._lbuffer = lbuffer
        self._rbuffer = rbuffer
        self.redraws = 0

    @property
    def lbuffer(self) -> str:
        return self._lbuffer

    @lbuffer.setter
    def lbuffer(self, value: str):
        self._lbuffer = value

    @property
    def rbuffer(self) -> str:
        return self._rbuffer

    @property
    def text(self) -> str:
        return self._lbuffer + self._rbuffer

    def reset_prompt(self) -> None:
        self.redraws += 1


class PromptToolkitBuffer(EditBuffer):
    """EditBuffer over a prompt_toolkit Buffer."""

    def __init__(self, buffer, app=None):
        self._buffer = buffer
        self._app = app

    @property
    def lbuffer(self) -> str:
        return self._buffer.document.text_before_cursor

    @lbuffer.setter
    def lbuffer(self, value: str):
        after = self._buffer.document.text_after_cursor
        self._buffer.document = Document(value + after, cursor_position=len(value))

    @property
    def rbuffer(self) -> str:
        return self._buffer.document.text_after_cursor

    def reset_prompt(self) -> None:
        if self._app is not None:
            self._app.invalidate()


def how_widget(buffer: EditBuffer,
               select: Optional[Callable[[], Selection]] = None) -> int:
    """Append the selector's line to the left buffer and redraw.

    The selection is spliced in even when the picker failed (it is usually
    empty then). Returns the selector's status.
    """
    select = select or how_select
    selection = select()
    debug_print(f"Widget: inserting {selection.line!r} after {buffer.lbuffer!r}")

    buffer.lbuffer = buffer.lbuffer + selection.line
    buffer.reset_prompt()
    return selection.status


class HowKeybinding:
    """prompt_toolkit keybinding handler for the widget.

    Example:
        >>> kb = KeyBindings()
        >>> HowKeybinding().register(kb)
        >>> session = PromptSession(key_bindings=kb)
    """

    def __init__(self, key: str = PROMPT_TOOLKIT_KEY,
                 select: Optional[Callable[[], Selection]] = None):
        self._key = key
        self._select = select
        self.last_status: Optional[int] = None

    @property
    def trigger_key(self) -> str:
        return self._key

    @property
    def description(self) -> str:
        return "Insert a command picked with `how`"

    def handle(self, event: Any) -> None:
        buffer = PromptToolkitBuffer(event.current_buffer, event.app)

        def run_widget():
            self.last_status = how_widget(buffer, self._select)

        # The picker owns the terminal until it exits
        run_in_terminal(run_widget)

    def register(self, key_bindings: KeyBindings) -> KeyBindings:
        key_bindings.add(self.trigger_key)(self.handle)
        return key_bindings


def control_sequence(keybinding: str) -> str:
    """Translate caret notation (^X, ^_, ^?) to the character the key sends."""
    if len(keybinding) == 2 and keybinding[0] == '^':
        char = keybinding[1].upper()
        if char == '?':
            return '\x7f'
        code = ord(char)
        if 0x40 <= code <= 0x5f:
            return chr(code - 0x40)
    raise ValueError(f"not a control key in caret notation: {keybinding!r}")


def zsh_integration(keybinding: str = KEYBINDING,
                    selector: str = SELECT_COMMAND) -> str:
    """zsh snippet defining the `how-widget` ZLE widget and its binding."""
    return ZSH_WIDGET.format(keybinding=shlex.quote(keybinding),
                             selector=shlex.quote(selector))


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for `how-init`: print the zsh integration."""
    parser = argparse.ArgumentParser(
        prog="how-init",
        description="Print the zsh widget for `how`. Use: eval \"$(how-init)\"")
    parser.add_argument("--key", default=KEYBINDING,
                        help=f"bindkey sequence (default: {KEYBINDING})")
    parser.add_argument("--selector", default=SELECT_COMMAND,
                        help=f"selector command (default: {SELECT_COMMAND})")
    args = parser.parse_args(argv)

    sys.stdout.write(zsh_integration(args.key, args.selector))
    return 0


if __name__ == "__main__":
    sys.exit(main())
