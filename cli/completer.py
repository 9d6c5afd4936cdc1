"""Custom completer for the drive CLI with entity id completion."""

from typing import Iterable, Optional

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, ID_COMMANDS
from drive.session import DriveSession


class DriveCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Entity id completion for the first argument of id-taking commands,
      drawn from the logged-in account's cached entities
    """

    def __init__(self, session: Optional[DriveSession] = None):
        self.session = session

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command not in ID_COMMANDS:
            return

        argument_index = len(tokens) if is_typing_new_token else len(tokens) - 1
        if argument_index != 1:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        yield from self._complete_ids(current_word)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_ids(self, partial: str) -> Iterable[Completion]:
        if self.session is None or self.session.current_account is None:
            return

        for entity in sorted(self.session.files.list_all(), key=lambda e: e.name.lower()):
            if entity.id.startswith(partial):
                yield Completion(
                    entity.id,
                    start_position=-len(partial),
                    display_meta=entity.name + ("/" if entity.is_folder else ""),
                )
