# =============================================================================
# processors/inbox_rules.py - Inbox rule inspection
# =============================================================================

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from core.graph_client import GraphClient
from core.models import InboxRule, InspectionStats
from utils.csv_utils import CSVHandler


REPORT_COLUMNS = [
    'mailbox', 'rule_name', 'enabled', 'sequence', 'conditions', 'actions',
    'forwards', 'redirects', 'deletes', 'moves_to_folder', 'recipients',
    'external_recipients', 'suspicious', 'rule_id'
]

FORWARD_ACTIONS = ['forwardTo', 'forwardAsAttachmentTo']
REDIRECT_ACTIONS = ['redirectTo']
DELETE_ACTIONS = ['delete', 'permanentDelete']


def summarize_settings(settings: Optional[Dict[str, Any]]) -> str:
    """Render a Graph conditions/actions object as 'key=value; ...' for set values only"""
    parts = []
    for key, value in (settings or {}).items():
        if value in (None, False, [], {}, ''):
            continue
        if isinstance(value, list):
            value = ', '.join(_recipient_address(item) if isinstance(item, dict) else str(item)
                              for item in value)
        parts.append(f"{key}={value}")
    return '; '.join(parts)


def _recipient_address(recipient: Dict[str, Any]) -> str:
    return (recipient.get('emailAddress') or {}).get('address', '') or ''


class InboxRuleInspector:
    """
    Read-only report of mailbox inbox rules.

    Flags rules that forward or redirect mail to recipients outside the
    internal domains, and rules that delete mail.
    """

    MAILBOX_COLUMN = 'UserPrincipalName'

    def __init__(self, graph_client: GraphClient, internal_domains: Optional[Iterable[str]] = None,
                 suspicious_only: bool = False):
        self.graph_client = graph_client
        self.internal_domains = {domain.strip().lower().lstrip('@') for domain in internal_domains or []}
        self.suspicious_only = suspicious_only
        self.logger = logging.getLogger(self.__class__.__name__)

    def read_mailboxes(self, input_csv: str) -> List[str]:
        """Mailbox UPNs from a CSV with a UserPrincipalName column"""
        records, headers = CSVHandler.read_csv(input_csv)
        CSVHandler.require_columns(headers, [self.MAILBOX_COLUMN], input_csv)

        mailboxes = []
        for row in records:
            upn = (row.get(self.MAILBOX_COLUMN) or '').strip()
            if not upn:
                self.logger.warning("Skipping row with empty UserPrincipalName")
                continue
            if upn.lower() not in (m.lower() for m in mailboxes):
                mailboxes.append(upn)
        return mailboxes

    def inspect(self, mailboxes: List[str]) -> Tuple[List[InboxRule], InspectionStats]:
        """Collect rules of every mailbox; a failing mailbox does not stop the run"""
        stats = InspectionStats(mailboxes_requested=len(mailboxes))
        report: List[InboxRule] = []

        for mailbox in mailboxes:
            try:
                rules = self.inspect_mailbox(mailbox)
            except Exception as e:
                self.logger.error(f"Could not read inbox rules for {mailbox}: {e}")
                stats.mailboxes_failed += 1
                continue

            stats.mailboxes_inspected += 1
            stats.rules_found += len(rules)
            for rule in rules:
                if rule.is_suspicious:
                    stats.suspicious_rules += 1
                    self.logger.warning(
                        f"{mailbox}: suspicious rule '{rule.name}' ({rule.actions})"
                    )
            if self.suspicious_only:
                rules = [rule for rule in rules if rule.is_suspicious]
            report.extend(rules)

        self.log_statistics(stats)
        return report, stats

    def inspect_mailbox(self, mailbox: str) -> List[InboxRule]:
        raw_rules = self.graph_client.list_inbox_rules(mailbox)
        self.logger.info(f"{mailbox}: {len(raw_rules)} inbox rule(s)")
        rules = [self.parse_rule(mailbox, raw) for raw in raw_rules]
        return sorted(rules, key=lambda rule: rule.sequence)

    def parse_rule(self, mailbox: str, raw: Dict[str, Any]) -> InboxRule:
        """Build an InboxRule from a Graph messageRule resource"""
        actions = raw.get('actions') or {}

        forward_recipients = self._recipients(actions, FORWARD_ACTIONS)
        redirect_recipients = self._recipients(actions, REDIRECT_ACTIONS)
        recipients = forward_recipients + redirect_recipients

        internal = self.internal_domains or {mailbox.rsplit('@', 1)[-1].lower()}
        external = [address for address in recipients
                    if address.rsplit('@', 1)[-1].lower() not in internal]

        return InboxRule(
            mailbox=mailbox,
            rule_id=raw.get('id', ''),
            name=raw.get('displayName', ''),
            enabled=bool(raw.get('isEnabled', True)),
            sequence=int(raw.get('sequence') or 0),
            conditions=summarize_settings(raw.get('conditions')),
            actions=summarize_settings(actions),
            forwards=bool(forward_recipients),
            redirects=bool(redirect_recipients),
            deletes=any(actions.get(key) for key in DELETE_ACTIONS),
            moves_to_folder=bool(actions.get('moveToFolder')),
            recipients=recipients,
            external_recipients=external,
        )

    def export(self, rules: List[InboxRule], output_path: str) -> None:
        """Write the report as .xlsx (Excel) or CSV, chosen by file extension"""
        rows = [rule.to_dict() for rule in rules]

        if Path(output_path).suffix.lower() == '.xlsx':
            report = pd.DataFrame(rows, columns=REPORT_COLUMNS)
            with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
                report.to_excel(writer, sheet_name='Inbox_Rules', index=False)
                suspicious = report[report['suspicious']]
                suspicious.to_excel(writer, sheet_name='Suspicious_Rules', index=False)
            self.logger.info(f"Exported {len(rows)} rules to {output_path}")
        else:
            CSVHandler.write_csv(rows, output_path, REPORT_COLUMNS)

    def log_statistics(self, stats: InspectionStats) -> None:
        self.logger.info(f"Mailboxes inspected: {stats.mailboxes_inspected}/{stats.mailboxes_requested}")
        self.logger.info(f"Mailboxes failed: {stats.mailboxes_failed}")
        self.logger.info(f"Rules found: {stats.rules_found} ({stats.suspicious_rules} suspicious)")

    @staticmethod
    def _recipients(actions: Dict[str, Any], keys: List[str]) -> List[str]:
        addresses = []
        for key in keys:
            for recipient in actions.get(key) or []:
                address = _recipient_address(recipient)
                if address:
                    addresses.append(address)
        return addresses
