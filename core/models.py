# =============================================================================
# core/models.py - Unified data models
# =============================================================================

from dataclasses import dataclass, field
from typing import Dict, Any, List, Union
from enum import Enum


class Decision(Enum):
    """Operator decision for a proposed change"""
    YES = "yes"
    NO = "no"
    ALL = "all"
    QUIT = "quit"


class PromptMode(Enum):
    """Confirmation mode of an update run"""
    PROMPTING = "prompting"
    BATCH = "batch"


class RowOutcome(Enum):
    """Result of processing one input row"""
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"
    ABORTED = "aborted"


AttributeValue = Union[str, List[str]]


@dataclass
class DirectoryUser:
    """Directory entry fetched for a single row"""
    dn: str
    samaccountname: str = ""
    user_principal_name: str = ""
    mail: str = ""
    display_name: str = ""
    proxy_addresses: List[str] = field(default_factory=list)


@dataclass
class ProposedChange:
    """Computed new attribute values for one directory entry"""
    identifier: str
    current: Dict[str, AttributeValue] = field(default_factory=dict)
    proposed: Dict[str, AttributeValue] = field(default_factory=dict)


@dataclass
class RunSummary:
    """Counters accumulated over an update run"""
    total_records: int = 0
    applied: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False

    @property
    def processed(self) -> int:
        return self.applied + self.failed + self.skipped

    def record(self, outcome: RowOutcome) -> None:
        if outcome == RowOutcome.APPLIED:
            self.applied += 1
        elif outcome == RowOutcome.FAILED:
            self.failed += 1
        elif outcome == RowOutcome.SKIPPED:
            self.skipped += 1
        elif outcome == RowOutcome.ABORTED:
            self.aborted = True


@dataclass
class InboxRule:
    """Inbox rule of a mailbox with derived risk flags"""
    mailbox: str
    rule_id: str
    name: str
    enabled: bool = True
    sequence: int = 0
    conditions: str = ""
    actions: str = ""
    forwards: bool = False
    redirects: bool = False
    deletes: bool = False
    moves_to_folder: bool = False
    recipients: List[str] = field(default_factory=list)
    external_recipients: List[str] = field(default_factory=list)

    @property
    def is_suspicious(self) -> bool:
        """Forwarding/redirecting outside the tenant, or deleting mail"""
        return bool(self.external_recipients) or self.deletes

    def to_dict(self) -> Dict[str, Any]:
        return {
            'mailbox': self.mailbox,
            'rule_name': self.name,
            'enabled': self.enabled,
            'sequence': self.sequence,
            'conditions': self.conditions,
            'actions': self.actions,
            'forwards': self.forwards,
            'redirects': self.redirects,
            'deletes': self.deletes,
            'moves_to_folder': self.moves_to_folder,
            'recipients': '; '.join(self.recipients),
            'external_recipients': '; '.join(self.external_recipients),
            'suspicious': self.is_suspicious,
            'rule_id': self.rule_id,
        }


@dataclass
class InspectionStats:
    """Statistics for an inbox rule inspection"""
    mailboxes_requested: int = 0
    mailboxes_inspected: int = 0
    mailboxes_failed: int = 0
    rules_found: int = 0
    suspicious_rules: int = 0
