"""
Supabase Auth Service - Resolves access tokens to users.
Uses the Supabase Auth REST API instead of a direct database connection.
"""
import httpx
from typing import Optional, Dict, Any
from command_center.config import Settings
import structlog

logger = structlog.get_logger()


class SupabaseAuthService:
    """Supabase Authentication Service using REST API"""

    def __init__(self, settings: Settings):
        self.url = settings.SUPABASE_URL
        self.anon_key = settings.SUPABASE_ANON_KEY
        self.auth_url = f"{self.url}/auth/v1"

    @property
    def configured(self) -> bool:
        return bool(self.url and self.anon_key)

    async def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        """
        Get user info from Supabase Auth using access token.
        Returns None when the token is rejected.
        """
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{self.auth_url}/user",
                headers={
                    "apikey": self.anon_key,
                    "Authorization": f"Bearer {access_token}",
                    "Content-Type": "application/json"
                },
                timeout=10.0
            )

            if response.status_code != 200:
                logger.error("Failed to get user", status=response.status_code)
                return None

            return response.json()
