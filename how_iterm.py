#!/usr/bin/env python3
"""Fire the `how` widget from an iTerm2 hotkey.

Assign this script to a hotkey in iTerm2. It types the widget's key sequence
into the focused session, so the shell's own `how-widget` runs and the picker
gets the session's terminal. Sessions whose foreground job is not a shell
with the widget installed are left alone.
"""

import iterm2

from how_widget import KEYBINDING, control_sequence

DEBUG = False
SHELL_JOBS = ("zsh",)  # Foreground jobs that have the widget bound


def debug_print(msg: str):
    if DEBUG:
        import sys
        print(f"[DEBUG] {msg}", file=sys.stderr, flush=True)


async def trigger_widget(session, keybinding: str = KEYBINDING) -> bool:
    """Send the widget keybinding to the session if a shell is in front."""
    try:
        job = await session.async_get_variable("jobName")
    except Exception as e:
        debug_print(f"Error getting jobName: {e}")
        return False

    debug_print(f"jobName = {job}")
    # Login shells show up as "-zsh"
    if not job or job.lower().lstrip('-') not in SHELL_JOBS:
        debug_print("Foreground job is not a shell, not sending")
        return False

    # Sent as USER INPUT, so the shell's line editor sees the keystroke
    await session.async_send_text(control_sequence(keybinding))
    return True


async def main(connection):
    app = await iterm2.async_get_app(connection)

    window = app.current_terminal_window
    if not window:
        return

    session = window.current_tab.current_session
    if not session:
        return

    await trigger_widget(session)


if __name__ == "__main__":
    iterm2.run_until_complete(main)
