# =============================================================================
# core/ad_client.py - Active Directory client
# =============================================================================

import logging
from typing import Dict, List, Optional

from ldap3 import Server, Connection, ALL, MODIFY_REPLACE
from ldap3.utils.conv import escape_filter_chars

from core.exceptions import ApplyError
from core.models import AttributeValue, DirectoryUser


USER_ATTRIBUTES = [
    'sAMAccountName', 'userPrincipalName', 'mail', 'displayName', 'proxyAddresses'
]


class ActiveDirectoryClient:
    """Active Directory client for user lookup and attribute updates"""

    def __init__(self, server_url: str, username: str, password: str, base_dn: str,
                 use_ssl: bool = False):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.base_dn = base_dn
        self.use_ssl = use_ssl
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        if not self.connect():
            raise ConnectionError(f"Could not connect to Active Directory at {self.server_url}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    def connect(self) -> bool:
        """Establish connection to Active Directory"""
        try:
            server = Server(self.server_url, use_ssl=self.use_ssl, get_info=ALL)
            self.connection = Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True
            )
            self.logger.info("Successfully connected to Active Directory")
            return True
        except Exception as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            return False

    def disconnect(self) -> None:
        """Close Active Directory connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    def query_user_by_samaccountname(self, samaccountname: str) -> Optional[DirectoryUser]:
        """Query user by sAMAccountName"""
        return self._query_user(f"(sAMAccountName={escape_filter_chars(samaccountname)})",
                                samaccountname)

    def query_user_by_upn(self, upn: str) -> Optional[DirectoryUser]:
        """Query user by userPrincipalName"""
        return self._query_user(f"(userPrincipalName={escape_filter_chars(upn)})", upn)

    def replace_attributes(self, dn: str, attributes: Dict[str, AttributeValue]) -> None:
        """
        Replace attribute values on an entry, one modify operation per attribute.

        Attributes are written in the given order. A rejected write raises
        ApplyError; attributes written before it stay written.
        """
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        for attribute, value in attributes.items():
            values = value if isinstance(value, list) else [value]
            ok = self.connection.modify(dn, {attribute: [(MODIFY_REPLACE, values)]})
            if not ok:
                result = self.connection.result or {}
                message = result.get('message') or result.get('description') or 'unknown error'
                self.logger.error(f"Modify of {attribute} on {dn} rejected: {message}")
                raise ApplyError(dn, attribute, message)
            self.logger.debug(f"Replaced {attribute} on {dn}")

    def _query_user(self, search_filter: str, identifier: str) -> Optional[DirectoryUser]:
        """Internal method to perform AD query"""
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        self.connection.search(
            search_base=self.base_dn,
            search_filter=f"(&(objectClass=user){search_filter})",
            attributes=USER_ATTRIBUTES
        )

        if not self.connection.entries:
            self.logger.debug(f"User {identifier} not found in AD")
            return None

        if len(self.connection.entries) > 1:
            self.logger.warning(f"Multiple users found for {identifier}, using first match")

        entry = self.connection.entries[0]
        values = entry.entry_attributes_as_dict
        user = DirectoryUser(
            dn=entry.entry_dn,
            samaccountname=self._first(values.get('sAMAccountName')),
            user_principal_name=self._first(values.get('userPrincipalName')),
            mail=self._first(values.get('mail')),
            display_name=self._first(values.get('displayName')),
            proxy_addresses=[str(v) for v in values.get('proxyAddresses') or []]
        )
        self.logger.debug(f"Found user {identifier} in AD")
        return user

    @staticmethod
    def _first(values: Optional[List]) -> str:
        return str(values[0]) if values else ""
