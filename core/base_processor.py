# =============================================================================
# core/base_processor.py - Abstract confirm-and-apply update processor
# =============================================================================

from abc import ABC, abstractmethod
from typing import List, Dict, Optional, Tuple
import logging

from core.ad_client import ActiveDirectoryClient
from core.models import (
    Decision, DirectoryUser, PromptMode, ProposedChange, RowOutcome, RunSummary
)
from utils.csv_utils import CSVHandler
from utils.prompt import ConsolePrompter, format_changes


class BaseUpdateProcessor(ABC):
    """
    Abstract base class for CSV driven directory updates.

    Each row is looked up, diffed against the directory, confirmed by the
    operator and applied. The operator may answer yes, no, all (apply this
    and every remaining row without asking) or quit. With auto_accept the
    run starts as if "all" had been answered on the first row.
    """

    # Column holding the account identifier
    IDENTIFIER_COLUMN = ''
    # Columns read as target values, and the subset that must not be blank
    TARGET_COLUMNS: List[str] = []
    REQUIRED_TARGETS: List[str] = []

    def __init__(self, ad_client: ActiveDirectoryClient,
                 prompter: Optional[ConsolePrompter] = None,
                 auto_accept: bool = False):
        self.ad_client = ad_client
        self.prompter = prompter or ConsolePrompter()
        self.auto_accept = auto_accept
        self.logger = logging.getLogger(self.__class__.__name__)

    @classmethod
    def required_columns(cls) -> List[str]:
        return [cls.IDENTIFIER_COLUMN] + list(cls.REQUIRED_TARGETS)

    @classmethod
    def load_records(cls, input_csv: str) -> List[Dict[str, str]]:
        """Read the input CSV, raising InputError when a required column is missing"""
        records, headers = CSVHandler.read_csv(input_csv)
        CSVHandler.require_columns(headers, cls.required_columns(), input_csv)
        return records

    @abstractmethod
    def lookup(self, identifier: str) -> Optional[DirectoryUser]:
        """Fetch the directory entry for an identifier, None when absent"""
        pass

    @abstractmethod
    def compute_change(self, user: DirectoryUser, targets: Dict[str, str]) -> ProposedChange:
        """Compute the proposed attribute values from current state and row targets"""
        pass

    @abstractmethod
    def is_unchanged(self, user: DirectoryUser, change: ProposedChange) -> bool:
        """True when the proposed values already match the directory"""
        pass

    def get_identifier(self, row: Dict[str, str]) -> str:
        return (row.get(self.IDENTIFIER_COLUMN) or '').strip()

    def get_target_values(self, row: Dict[str, str]) -> Dict[str, str]:
        """Trimmed target values of a row"""
        return {column: (row.get(column) or '').strip() for column in self.TARGET_COLUMNS}

    def validate_targets(self, targets: Dict[str, str]) -> Optional[str]:
        """Return a reason to skip the row, or None when the targets are usable"""
        missing = [column for column in self.REQUIRED_TARGETS if not targets.get(column)]
        if missing:
            return f"missing required value(s): {', '.join(missing)}"
        return None

    def apply_change(self, user: DirectoryUser, change: ProposedChange) -> None:
        """Write the proposed attributes to the directory"""
        self.ad_client.replace_attributes(user.dn, change.proposed)

    def run(self, records: List[Dict[str, str]]) -> RunSummary:
        """Main workflow: process every loaded row, then report the summary"""
        self.logger.info(f"Starting {self.__class__.__name__} update workflow for {len(records)} records")

        summary = self.process_records(records)
        self.log_summary(summary)
        return summary

    def process_records(self, records: List[Dict[str, str]]) -> RunSummary:
        """Process rows in order until the input is exhausted or the operator quits"""
        summary = RunSummary(total_records=len(records))
        mode = PromptMode.BATCH if self.auto_accept else PromptMode.PROMPTING

        for index, row in enumerate(records, start=1):
            outcome, mode = self.process_row(index, row, mode)
            summary.record(outcome)
            if outcome == RowOutcome.ABORTED:
                self.logger.warning(f"Aborted by operator at row {index}; "
                                    f"{len(records) - index} row(s) not visited")
                break

        return summary

    def process_row(self, index: int, row: Dict[str, str],
                    mode: PromptMode) -> Tuple[RowOutcome, PromptMode]:
        """Process a single row, returning its outcome and the mode for the next row"""
        identifier = self.get_identifier(row)
        if not identifier:
            self.logger.warning(f"Row {index}: skipped, empty {self.IDENTIFIER_COLUMN}")
            return RowOutcome.SKIPPED, mode

        targets = self.get_target_values(row)
        reason = self.validate_targets(targets)
        if reason:
            self.logger.warning(f"Row {index} ({identifier}): skipped, {reason}")
            return RowOutcome.SKIPPED, mode

        try:
            user = self.lookup(identifier)
        except Exception as e:
            self.logger.error(f"Row {index} ({identifier}): lookup failed: {e}")
            return RowOutcome.FAILED, mode

        if user is None:
            self.logger.error(f"Row {index} ({identifier}): not found in directory")
            return RowOutcome.FAILED, mode

        change = self.compute_change(user, targets)
        if self.is_unchanged(user, change):
            self.logger.info(f"Row {index} ({identifier}): no change required")
            return RowOutcome.SKIPPED, mode

        if mode == PromptMode.PROMPTING:
            self.prompter.show_change(index, user, change)
            decision = self.prompter.ask(identifier)

            if decision == Decision.QUIT:
                return RowOutcome.ABORTED, mode
            if decision == Decision.NO:
                self.logger.info(f"Row {index} ({identifier}): skipped by operator")
                return RowOutcome.SKIPPED, mode
            if decision == Decision.ALL:
                self.logger.info("Applying this and all remaining rows without confirmation")
                mode = PromptMode.BATCH

        try:
            self.apply_change(user, change)
        except Exception as e:
            self.logger.error(f"Row {index} ({identifier}): update failed: {e}")
            return RowOutcome.FAILED, mode

        self.logger.info(f"Row {index} ({identifier}): updated {format_changes(change)}")
        return RowOutcome.APPLIED, mode

    def log_summary(self, summary: RunSummary) -> None:
        """Log run statistics"""
        self.logger.info("=" * 60)
        self.logger.info(f"Update summary ({summary.processed}/{summary.total_records} rows processed)")
        self.logger.info(f"  Applied: {summary.applied}")
        self.logger.info(f"  Failed:  {summary.failed}")
        self.logger.info(f"  Skipped: {summary.skipped}")
        if summary.aborted:
            self.logger.info("  Run aborted by operator")
        self.logger.info("=" * 60)
