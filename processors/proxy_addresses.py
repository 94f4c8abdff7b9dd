# =============================================================================
# processors/proxy_addresses.py - Proxy address update processors
# =============================================================================

from typing import Dict, Iterable, List, Optional

from core.base_processor import BaseUpdateProcessor
from core.models import DirectoryUser, ProposedChange


SMTP_PREFIX = 'smtp:'


def strip_smtp_prefix(address: str) -> str:
    """Remove a leading SMTP:/smtp: tag from an address"""
    address = address.strip()
    if address.lower().startswith(SMTP_PREFIX):
        return address[len(SMTP_PREFIX):].strip()
    return address


def build_proxy_addresses(primary: str, secondary: str, current: Iterable[str]) -> List[str]:
    """
    Proposed proxyAddresses for a mailbox.

    The new primary (SMTP:) and secondary (smtp:) addresses come first,
    followed by every existing non-SMTP entry (X500, SIP, ...). Existing
    SMTP entries are dropped. Duplicates are removed case-insensitively,
    keeping the first occurrence.
    """
    candidates = [f"SMTP:{primary}", f"smtp:{secondary}"]
    candidates += [address for address in current if not address.lower().startswith(SMTP_PREFIX)]

    result = []
    seen = set()
    for address in candidates:
        key = address.lower()
        if key not in seen:
            seen.add(key)
            result.append(address)
    return result


def proxy_sets_equal(left: Iterable[str], right: Iterable[str]) -> bool:
    """Order- and case-insensitive comparison of two address lists"""
    return {address.lower() for address in left} == {address.lower() for address in right}


def primary_address(addresses: Iterable[str]) -> str:
    """Address tagged with the uppercase SMTP: prefix, empty when there is none"""
    for address in addresses:
        if address.startswith("SMTP:"):
            return address[len(SMTP_PREFIX):]
    return ""


class ProxyAddressProcessor(BaseUpdateProcessor):
    """Sets primary and secondary SMTP proxy addresses of accounts looked up by sAMAccountName"""

    # Column mappings
    IDENTIFIER_COLUMN = 'SamAccountName'
    PRIMARY_COLUMN = 'PrimarySMTP'
    SECONDARY_COLUMN = 'SecondarySMTP'

    TARGET_COLUMNS = [PRIMARY_COLUMN, SECONDARY_COLUMN]
    REQUIRED_TARGETS = [PRIMARY_COLUMN, SECONDARY_COLUMN]

    def lookup(self, identifier: str) -> Optional[DirectoryUser]:
        return self.ad_client.query_user_by_samaccountname(identifier)

    def get_target_values(self, row: Dict[str, str]) -> Dict[str, str]:
        targets = super().get_target_values(row)
        return {column: strip_smtp_prefix(value) for column, value in targets.items()}

    def validate_targets(self, targets: Dict[str, str]) -> Optional[str]:
        reason = super().validate_targets(targets)
        if reason:
            return reason
        invalid = [targets[column] for column in self.REQUIRED_TARGETS if '@' not in targets[column]]
        if invalid:
            return f"invalid address(es): {', '.join(invalid)}"
        return None

    def compute_change(self, user: DirectoryUser, targets: Dict[str, str]) -> ProposedChange:
        primary = targets[self.PRIMARY_COLUMN]
        proposed_addresses = build_proxy_addresses(
            primary, targets[self.SECONDARY_COLUMN], user.proxy_addresses
        )

        change = ProposedChange(
            identifier=self.describe(user),
            current={'proxyAddresses': list(user.proxy_addresses)},
            proposed={'proxyAddresses': proposed_addresses}
        )
        # mail follows the primary address, written after proxyAddresses
        if user.mail.lower() != primary.lower():
            change.current['mail'] = user.mail
            change.proposed['mail'] = primary
        return change

    def is_unchanged(self, user: DirectoryUser, change: ProposedChange) -> bool:
        proposed = change.proposed['proxyAddresses']
        if not proxy_sets_equal(user.proxy_addresses, proposed):
            return False

        # Same addresses with the SMTP: tag on another entry still counts as no change
        current_primary = primary_address(user.proxy_addresses)
        if current_primary.lower() != primary_address(proposed).lower():
            self.logger.warning(
                f"{change.identifier}: primary address differs ({current_primary or 'none'} -> "
                f"{primary_address(proposed)}) but the address set is unchanged; not updated"
            )
        return True

    def describe(self, user: DirectoryUser) -> str:
        return user.samaccountname or user.dn


class ProxyAddressByUPNProcessor(ProxyAddressProcessor):
    """Same update, with accounts looked up by userPrincipalName"""

    IDENTIFIER_COLUMN = 'UserPrincipalName'

    def lookup(self, identifier: str) -> Optional[DirectoryUser]:
        return self.ad_client.query_user_by_upn(identifier)

    def describe(self, user: DirectoryUser) -> str:
        return user.user_principal_name or user.dn
