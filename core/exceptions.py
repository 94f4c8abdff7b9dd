# =============================================================================
# core/exceptions.py - Error types
# =============================================================================


class TenantAdminError(Exception):
    """Base error for tenant administration commands"""


class InputError(TenantAdminError):
    """Input file missing or lacking a required column. Fatal for the run."""


class ApplyError(TenantAdminError):
    """Remote write rejected"""

    def __init__(self, target: str, attribute: str, message: str):
        self.target = target
        self.attribute = attribute
        super().__init__(f"Failed to update {attribute} on {target}: {message}")


class GraphAPIError(TenantAdminError):
    """Microsoft Graph returned a non-success response"""

    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Graph API Error {status_code} for {url}: {message}")
