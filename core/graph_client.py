# =============================================================================
# core/graph_client.py - Microsoft Graph client for mailbox data
# =============================================================================

import logging
import time
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

import msal
import requests

from core.exceptions import GraphAPIError


GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
AUTHORITY_TEMPLATE = "https://login.microsoftonline.com/{tenant}"
REQUEST_TIMEOUT = 60
MAX_THROTTLE_RETRIES = 3
DEFAULT_RETRY_AFTER = 5


class GraphClient:
    """
    Microsoft Graph client using the client credentials flow.

    Requires application permission MailboxSettings.Read (inbox rules) and
    User.Read.All on the app registration.
    """

    def __init__(self, tenant_id: str, client_id: str, client_secret: str,
                 session: Optional[requests.Session] = None):
        self.tenant_id = tenant_id
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session or requests.Session()
        self._app: Optional[msal.ConfidentialClientApplication] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.session.close()

    def _get_token(self) -> str:
        """Acquire an app-only token; msal caches it until expiry"""
        if self._app is None:
            self._app = msal.ConfidentialClientApplication(
                self.client_id,
                authority=AUTHORITY_TEMPLATE.format(tenant=self.tenant_id),
                client_credential=self.client_secret,
            )

        result = self._app.acquire_token_for_client(scopes=[GRAPH_SCOPE])
        if 'access_token' not in result:
            error = result.get('error_description') or result.get('error') or 'unknown error'
            raise GraphAPIError(401, f"Token request failed: {error}", AUTHORITY_TEMPLATE.format(tenant=self.tenant_id))
        return result['access_token']

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET a Graph endpoint (relative path or absolute nextLink)"""
        url = endpoint if endpoint.startswith('http') else f"{GRAPH_BASE_URL}/{endpoint.lstrip('/')}"

        for attempt in range(MAX_THROTTLE_RETRIES + 1):
            headers = {
                'Authorization': f"Bearer {self._get_token()}",
                'Accept': 'application/json',
            }
            response = self.session.get(url, headers=headers, params=params, timeout=REQUEST_TIMEOUT)

            if response.status_code == 429 and attempt < MAX_THROTTLE_RETRIES:
                retry_after = self._retry_after(response)
                self.logger.warning(f"Throttled by Graph, waiting {retry_after}s")
                time.sleep(retry_after)
                continue

            if not response.ok:
                raise GraphAPIError(response.status_code, self._error_message(response), url)

            return response.json()

        raise GraphAPIError(429, "Throttling retries exhausted", url)

    def get_paged(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Iterator[Dict[str, Any]]:
        """Yield every item of a collection, following @odata.nextLink"""
        page = self.get(endpoint, params=params)
        while True:
            for item in page.get('value', []):
                yield item
            next_link = page.get('@odata.nextLink')
            if not next_link:
                break
            page = self.get(next_link)

    def get_user(self, user_principal_name: str) -> Dict[str, Any]:
        """Fetch basic properties of a user"""
        return self.get(
            f"users/{quote(user_principal_name)}",
            params={'$select': 'id,userPrincipalName,mail,displayName'}
        )

    def list_inbox_rules(self, user_principal_name: str) -> List[Dict[str, Any]]:
        """List inbox message rules of a mailbox"""
        rules = list(self.get_paged(f"users/{quote(user_principal_name)}/mailFolders/inbox/messageRules"))
        self.logger.debug(f"Retrieved {len(rules)} inbox rules for {user_principal_name}")
        return rules

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            return response.json().get('error', {}).get('message', response.text)
        except ValueError:
            return response.text

    @staticmethod
    def _retry_after(response: requests.Response) -> int:
        """Seconds to wait from a Retry-After header; HTTP-date values fall back to the default"""
        try:
            return int(response.headers.get('Retry-After', DEFAULT_RETRY_AFTER))
        except (TypeError, ValueError):
            return DEFAULT_RETRY_AFTER
