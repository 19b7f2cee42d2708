import logging
import os
from typing import Dict, Optional

import aiohttp

logger = logging.getLogger('gateway.auth.identity')


class IdentityVerifier():
    def __init__(self, async_requests_client: Optional[aiohttp.ClientSession] = None):
        """
        Initialize the verifier with an optional aiohttp ClientSession.

        Args:
            async_requests_client (aiohttp.ClientSession): Session used for calls to the
                upstream verifier. One is created lazily when omitted.
        """
        self.async_requests_client = async_requests_client

    async def get_client(self) -> aiohttp.ClientSession:
        if not self.async_requests_client:
            self.async_requests_client = aiohttp.ClientSession()
        return self.async_requests_client

    async def close(self) -> None:
        if self.async_requests_client and not self.async_requests_client.closed:
            await self.async_requests_client.close()

    async def verify(self, assertion: str) -> Optional[str]:
        """
        Check an identity assertion upstream.

        Returns the verified email address, or None when the assertion is rejected.
        """
        raise NotImplementedError


class RemoteIdentityVerifier(IdentityVerifier):
    """Verifies an assertion by presenting it as a bearer token to a user-info endpoint."""

    def __init__(self, userinfo_url: Optional[str] = None, *args, **kwargs):
        super().__init__(*args, **kwargs)

        self.userinfo_url = userinfo_url or os.getenv('IDENTITY_VERIFIER_URL')
        if not self.userinfo_url:
            raise ValueError('IDENTITY_VERIFIER_URL not set in environment variables')

    def construct_headers(self, assertion: str) -> Dict[str, str]:
        return {
            'Authorization': f'Bearer {assertion}',
            'Accept': 'application/json',
        }

    async def verify(self, assertion: str) -> Optional[str]:
        if not assertion:
            return None

        client = await self.get_client()
        async with client.get(self.userinfo_url, headers=self.construct_headers(assertion)) as response:
            if response.status != 200:
                logger.warning(f'Identity assertion rejected upstream with status {response.status}')
                return None
            response_data = await response.json()

        email = response_data.get('email')
        if not email or response_data.get('email_verified') is False:
            logger.warning('Upstream verifier returned no verified email')
            return None
        logger.debug('Identity assertion verified upstream')
        return email
