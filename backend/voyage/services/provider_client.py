"""
Voyage Backend - Travel Provider Client
========================================

What:  Outbound HTTP client for the transport providers (AIRFRANCE, SNCF, ...)
       the travel service aggregates.
How:   httpx.AsyncClient calls wrapped in tenacity retries, behind one circuit
       breaker per provider.
Who:   TravelService (search fan-out and booking verification).

Provider contract:
    GET {base}/search?from_city&to_city&departure&arrival&nb_adults&nb_children
        → 200 JSON array of offers
    GET {base}/offers/{travel_id}
        → 200 one offer, 404 when the offer no longer exists

Resilience Strategy:
    1. Transport errors and 5xx answers are retried with exponential backoff
       and jitter (RETRY_* settings)
    2. When the retries are exhausted the provider's breaker records a
       failure; CB_FAILURE_THRESHOLD failures in a row open it
    3. While open, calls fail immediately with CircuitBreakerOpenError
    4. After CB_RECOVERY_TIMEOUT seconds one test call is let through
"""

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError as SchemaError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from voyage.config import settings
from voyage.exceptions import CircuitBreakerOpenError, UpstreamServiceError
from voyage.schemas.travel import TravelFind

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker Implementation
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker guarding one provider.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow the next request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; the state lives in the single uvicorn worker process.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        name: Optional[str] = None,
    ):
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Checks whether a call may go out.

        Raises:
            CircuitBreakerOpenError if the circuit is OPEN and the recovery
            timeout has not elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.monotonic() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker %s transitioning to HALF_OPEN after %.1fs",
                    self.name,
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = max(1, int(self.recovery_timeout - elapsed))
            raise CircuitBreakerOpenError(recovery_time=remaining, provider=self.name)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker %s transitioning to CLOSED (provider recovered)", self.name)
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.monotonic()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker %s returning to OPEN (test request failed)", self.name)
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker %s OPENING after %d consecutive failures",
                self.name,
                self.failure_count,
            )
            self.state = self.OPEN


class ProviderStatusError(Exception):
    """A provider answered with a 5xx status (retryable)."""

    def __init__(self, status_code: int):
        super().__init__(f"Provider answered HTTP {status_code}")
        self.status_code = status_code


# ══════════════════════════════════════════════════════════════════════════
# Provider Client
# ══════════════════════════════════════════════════════════════════════════

class ProviderClient:
    """
    Talks to the configured providers by name.

    Args:
        providers: {NAME: base_url}; defaults to TRAVEL_PROVIDERS
        transport: httpx transport override (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        providers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.providers = providers if providers is not None else settings.travel_providers_map
        self.transport = transport
        self._breakers: Dict[str, CircuitBreaker] = {}

        logger.info(
            "ProviderClient initialized with providers=%s, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            sorted(self.providers) or "none",
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    @property
    def names(self) -> List[str]:
        return sorted(self.providers)

    def breaker_for(self, name: str) -> CircuitBreaker:
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(
                failure_threshold=settings.cb_failure_threshold,
                recovery_timeout=settings.cb_recovery_timeout,
                name=name,
            )
        return self._breakers[name]

    def base_url(self, name: str) -> str:
        key = name.strip().upper()
        if key not in self.providers:
            raise UpstreamServiceError(key, message=f"Provider '{name}' is not configured")
        return self.providers[key]

    # ── Public API ────────────────────────────────────────────────────────

    async def search(self, name: str, params: Dict[str, Any]) -> List[TravelFind]:
        """
        Runs a search at one provider.

        Items that do not match the offer schema are logged and dropped.

        Raises:
            UpstreamServiceError: unreachable after retries or unusable answer
            CircuitBreakerOpenError: the provider's breaker is open
        """
        name = name.strip().upper()
        response = await self._guarded_get(name, "/search", params=params)
        payload = self._json(name, response)
        if not isinstance(payload, list):
            raise UpstreamServiceError(name, message=f"Provider '{name}' returned a malformed search result")

        offers = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            item.setdefault("service", name)
            try:
                offers.append(TravelFind.model_validate(item))
            except SchemaError as e:
                logger.warning("Dropping malformed offer from %s: %s", name, e.errors()[:1])
        logger.info("Provider %s returned %d offers", name, len(offers))
        return offers

    async def get_offer(self, name: str, travel_id: str) -> Optional[TravelFind]:
        """
        Fetches the current state of one offer.

        Returns:
            The offer, or None when the provider answers 404.
        """
        name = name.strip().upper()
        # The id is a single path segment: "/", "?" and "%" are escaped
        path = f"/offers/{quote(travel_id, safe='')}"
        response = await self._guarded_get(name, path, allow_not_found=True)
        if response.status_code == 404:
            return None

        payload = self._json(name, response)
        if not isinstance(payload, dict):
            raise UpstreamServiceError(name, message=f"Provider '{name}' returned a malformed offer")
        payload.setdefault("service", name)
        try:
            return TravelFind.model_validate(payload)
        except SchemaError:
            raise UpstreamServiceError(name, message=f"Provider '{name}' returned a malformed offer")

    # ── Internals ─────────────────────────────────────────────────────────

    async def _guarded_get(
        self,
        name: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        allow_not_found: bool = False,
    ) -> httpx.Response:
        """One provider call behind the breaker; maps failures to UpstreamServiceError."""
        name = name.strip().upper()
        url = self.base_url(name) + path
        breaker = self.breaker_for(name)
        breaker.can_execute()

        start_time = time.monotonic()
        try:
            response = await self._get_with_retry(url, params)
        except (httpx.HTTPError, ProviderStatusError) as e:
            breaker.record_failure()
            logger.error("Provider %s failed on %s after retries: %s", name, path, str(e))
            raise UpstreamServiceError(name, context={"path": path})

        duration_ms = (time.monotonic() - start_time) * 1000
        if response.is_success or (allow_not_found and response.status_code == 404):
            breaker.record_success()
            logger.debug("Provider %s %s → %d in %.0fms", name, path, response.status_code, duration_ms)
            return response

        # 4xx: the provider is up but refused the request; not worth a retry
        breaker.record_failure()
        logger.error("Provider %s rejected %s with HTTP %d", name, path, response.status_code)
        raise UpstreamServiceError(
            name,
            message=f"Provider '{name}' rejected the request (HTTP {response.status_code})",
            context={"path": path, "status": response.status_code},
        )

    @retry(
        retry=retry_if_exception_type((httpx.TransportError, ProviderStatusError)),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            multiplier=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_with_retry(self, url: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        async with httpx.AsyncClient(
            timeout=settings.provider_timeout, transport=self.transport
        ) as client:
            response = await client.get(url, params=params)
        if response.status_code >= 500:
            raise ProviderStatusError(response.status_code)
        return response

    @staticmethod
    def _json(name: str, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            raise UpstreamServiceError(name, message=f"Provider '{name}' returned invalid JSON")


# ── Singleton Instance ────────────────────────────────────────────────────
# Holds the breakers, which must outlive individual requests
provider_client = ProviderClient()
