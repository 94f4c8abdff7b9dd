# =============================================================================
# processors/upn_update.py - User principal name update processor
# =============================================================================

from typing import Dict, Optional

from core.base_processor import BaseUpdateProcessor
from core.models import DirectoryUser, ProposedChange


class UPNUpdateProcessor(BaseUpdateProcessor):
    """Changes userPrincipalName of accounts looked up by sAMAccountName"""

    # Column mappings
    IDENTIFIER_COLUMN = 'SamAccountName'
    CURRENT_UPN_COLUMN = 'CurrentUPN'
    NEW_UPN_COLUMN = 'NewUPN'

    TARGET_COLUMNS = [CURRENT_UPN_COLUMN, NEW_UPN_COLUMN]
    REQUIRED_TARGETS = [NEW_UPN_COLUMN]

    def lookup(self, identifier: str) -> Optional[DirectoryUser]:
        return self.ad_client.query_user_by_samaccountname(identifier)

    def validate_targets(self, targets: Dict[str, str]) -> Optional[str]:
        reason = super().validate_targets(targets)
        if reason:
            return reason
        if '@' not in targets[self.NEW_UPN_COLUMN]:
            return f"'{targets[self.NEW_UPN_COLUMN]}' is not a valid UPN"
        return None

    def compute_change(self, user: DirectoryUser, targets: Dict[str, str]) -> ProposedChange:
        expected = targets.get(self.CURRENT_UPN_COLUMN)
        if expected and expected.lower() != user.user_principal_name.lower():
            self.logger.warning(
                f"{user.samaccountname}: CSV lists current UPN {expected} "
                f"but directory has {user.user_principal_name}"
            )

        return ProposedChange(
            identifier=user.samaccountname or user.dn,
            current={'userPrincipalName': user.user_principal_name},
            proposed={'userPrincipalName': targets[self.NEW_UPN_COLUMN]}
        )

    def is_unchanged(self, user: DirectoryUser, change: ProposedChange) -> bool:
        return user.user_principal_name == change.proposed['userPrincipalName']
