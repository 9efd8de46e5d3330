"""Client for the health analysis API."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from .voice_session import VoiceSessionOrchestrator

logger = logging.getLogger(__name__)


class HealthApiError(Exception):
    """Raised when a transcript could not be analyzed."""


def validate_transcript(transcript: str) -> bool:
    return bool(transcript and transcript.strip())


class HealthApiClient:
    """Posts voice transcripts to the backend for analysis and storage."""

    def __init__(self, base_url: str, token: Optional[str] = None, timeout_seconds: float = 30.0):
        """Initialize health API client.

        Args:
            base_url: Backend root, e.g. 'http://localhost:5000'
            token: Bearer token for the logged-in user
            timeout_seconds: Total request timeout
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        logger.info(f"HealthApiClient initialized for {self.base_url}")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def send_transcript(self, transcript: str) -> Dict[str, Any]:
        """Send a transcript to ``POST /api/health``.

        Returns:
            Decoded JSON response from the backend

        Raises:
            HealthApiError: If the user is not authenticated or the server
                cannot be reached
        """
        if not self.token:
            raise HealthApiError("Please log in to use VoiceVitals")

        url = f"{self.base_url}/api/health"
        logger.debug(f"Sending transcript ({len(transcript)} chars) to {url}")
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.post(url, headers=self._headers(), json={"transcript": transcript}) as response:
                    if response.status == 401:
                        raise HealthApiError("Please log in to use VoiceVitals")
                    if response.status >= 400:
                        logger.error(f"Backend returned HTTP {response.status}")
                        raise HealthApiError("Failed to connect to the analysis server")
                    data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"API Error: {e}")
            raise HealthApiError("Failed to connect to the analysis server") from e

        logger.info(f"Backend response: success={data.get('success') if isinstance(data, dict) else None}")
        return data


async def submit_session_transcript(orchestrator: VoiceSessionOrchestrator,
                                    client: HealthApiClient) -> Optional[Dict[str, Any]]:
    """Send the session's transcript for analysis and store the outcome on the session.

    Returns:
        The backend response, or None if the transcript was empty or the
        request failed (the error message is then on the session)
    """
    transcript = orchestrator.transcript
    if not validate_transcript(transcript):
        logger.warning("Transcript is empty, nothing to submit")
        return None

    orchestrator.set_processing(True)
    orchestrator.set_error("")
    try:
        data = await client.send_transcript(transcript)
        orchestrator.set_response(data)
        return data
    except HealthApiError as e:
        logger.error(f"Error sending to backend: {e}")
        orchestrator.set_error(str(e))
        return None
    finally:
        orchestrator.set_processing(False)
