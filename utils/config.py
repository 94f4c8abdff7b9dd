# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import load_dotenv


class Config:
    """Configuration management"""

    def __init__(self):
        load_dotenv()

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def base_dn(self) -> Optional[str]:
        return os.getenv("BASE_DN")

    @property
    def ad_use_ssl(self) -> bool:
        return os.getenv("AD_USE_SSL", "false").strip().lower() in ("1", "true", "yes")

    @property
    def tenant_id(self) -> Optional[str]:
        return os.getenv("AZURE_TENANT_ID")

    @property
    def graph_client_id(self) -> Optional[str]:
        return os.getenv("GRAPH_CLIENT_ID")

    @property
    def graph_client_secret(self) -> Optional[str]:
        return os.getenv("GRAPH_CLIENT_SECRET")

    def validate_ad_config(self) -> bool:
        """Validate that all required AD configuration is present"""
        return not self.get_missing_ad_vars()

    def get_missing_ad_vars(self) -> List[str]:
        """Get list of missing AD configuration variables"""
        vars_and_names = [
            (self.ad_server, "AD_SERVER"),
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD"),
            (self.base_dn, "BASE_DN")
        ]
        return [name for var, name in vars_and_names if not var]

    def validate_graph_config(self) -> bool:
        """Validate that Microsoft Graph app credentials are present"""
        return not self.get_missing_graph_vars()

    def get_missing_graph_vars(self) -> List[str]:
        """Get list of missing Microsoft Graph configuration variables"""
        vars_and_names = [
            (self.tenant_id, "AZURE_TENANT_ID"),
            (self.graph_client_id, "GRAPH_CLIENT_ID"),
            (self.graph_client_secret, "GRAPH_CLIENT_SECRET")
        ]
        return [name for var, name in vars_and_names if not var]
