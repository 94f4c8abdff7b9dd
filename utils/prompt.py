# =============================================================================
# utils/prompt.py - Interactive operator prompts
# =============================================================================

from typing import Callable, Dict, Optional

from core.models import AttributeValue, Decision, DirectoryUser, ProposedChange


DECISION_KEYS = {
    'y': Decision.YES,
    'yes': Decision.YES,
    'n': Decision.NO,
    'no': Decision.NO,
    'a': Decision.ALL,
    'all': Decision.ALL,
    'q': Decision.QUIT,
    'quit': Decision.QUIT,
}


class ConsolePrompter:
    """Shows proposed changes on the terminal and reads the operator's decision"""

    def __init__(self, input_func: Optional[Callable[[str], str]] = None,
                 output_func: Optional[Callable[[str], None]] = None):
        self.input_func = input_func or (lambda message: input(message))
        self.output_func = output_func or print

    def show_change(self, index: int, user: DirectoryUser, change: ProposedChange) -> None:
        """Print current and proposed values side by side"""
        self.output_func("")
        self.output_func(f"[{index}] {change.identifier} ({user.dn})")
        for attribute, proposed in change.proposed.items():
            current = change.current.get(attribute, "")
            self.output_func(f"  {attribute}:")
            self.output_func(f"    current : {self._format(current)}")
            self.output_func(f"    proposed: {self._format(proposed)}")

    def ask(self, identifier: str) -> Decision:
        """Ask until a valid answer is given"""
        question = f"Apply change for {identifier}? [y]es / [n]o / [a]ll / [q]uit: "
        while True:
            try:
                answer = self.input_func(question).strip().lower()
            except (EOFError, KeyboardInterrupt):
                # closed stdin or Ctrl-C ends the run at this row
                self.output_func("")
                return Decision.QUIT
            decision = DECISION_KEYS.get(answer)
            if decision is not None:
                return decision
            self.output_func("Please answer y, n, a or q.")

    @staticmethod
    def _format(value: AttributeValue) -> str:
        if isinstance(value, list):
            return ', '.join(value) if value else '(none)'
        return value or '(empty)'


def format_changes(change: ProposedChange) -> Dict[str, str]:
    """Flatten a change into attribute -> 'current -> proposed' strings for logging"""
    return {
        attribute: f"{ConsolePrompter._format(change.current.get(attribute, ''))} -> "
                   f"{ConsolePrompter._format(proposed)}"
        for attribute, proposed in change.proposed.items()
    }
