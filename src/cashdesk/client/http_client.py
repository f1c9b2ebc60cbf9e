"""
HTTP transport layer for the gym back-office API
Handles all HTTP communication with retry logic, circuit breaker
pattern, and connection pooling
"""

import time
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Optional,
    TypeVar,
    Union,
)

import requests
from requests.adapters import HTTPAdapter

from cashdesk.config.cashdesk_config import CashdeskConfig
from cashdesk.exceptions import CashdeskError, NetworkError, NetworkErrorCode


T = TypeVar("T")

logger = logging.getLogger(__name__)


class HttpMethod(str, Enum):
    """HTTP method types supported"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"


class CircuitState(str, Enum):
    """Circuit breaker states"""
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


@dataclass
class CircuitBreakerConfig:
    """Circuit breaker configuration"""
    failure_threshold: int = 5
    recovery_timeout: int = 30000  # milliseconds
    success_threshold: int = 3


@dataclass
class HttpRequestOptions:
    """Request options for HTTP client"""
    headers: Optional[Dict[str, str]] = None
    params: Optional[Dict[str, Union[str, int, bool]]] = None
    timeout: Optional[int] = None  # milliseconds
    skip_retry: bool = False
    raw: bool = False  # return response bytes instead of decoded JSON
    metadata: Optional[Dict[str, Any]] = None


@dataclass
class HttpResponse(Generic[T]):
    """HTTP response wrapper"""
    data: T
    status: int
    headers: Dict[str, str]
    duration: int  # milliseconds
    request_id: str


@dataclass
class HttpAuditEntry:
    """Audit log entry for HTTP requests"""
    timestamp: str
    request_id: str
    method: str
    url: str
    headers: Dict[str, str]
    body: Optional[Any] = None
    response: Optional[Dict[str, Any]] = None
    duration: int = 0
    success: bool = False
    error: Optional[str] = None
    retry_attempt: Optional[int] = None


# Sensitive fields that should be redacted in logs
SENSITIVE_FIELDS = [
    "authorization",
    "cookie",
    "password",
    "token",
    "secret",
]

# Statuses worth retrying; client errors are final
RETRYABLE_STATUSES = [408, 429, 500, 502, 503, 504]


class HttpClient:
    """
    HTTP Client for the gym back-office REST API

    Features:
    - Automatic retry with exponential backoff
    - Circuit breaker pattern for resilience
    - Request ID generation for traceability
    - Audit logging with secrets redacted
    - Connection keep-alive via session pooling

    Example:
        >>> config = CashdeskConfig(auth_token="...")
        >>> client = HttpClient(config)
        >>> response = client.get("/cash-closures/today")
        >>> print(response.data)
    """

    def __init__(
        self,
        config: CashdeskConfig,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """
        Create a new HTTP client instance

        Args:
            config: Resolved cashdesk configuration
            circuit_breaker_config: Optional circuit breaker configuration
            session: Pre-built session (tests inject one)
        """
        self.config = config
        self.circuit_config = circuit_breaker_config or CircuitBreakerConfig()

        self._circuit_state = CircuitState.CLOSED
        self._circuit_failure_count = 0
        self._circuit_success_count = 0
        self._circuit_open_time = 0.0

        self._audit_log_callback: Optional[Callable[[HttpAuditEntry], None]] = None

        self._session = session or self._create_session()
        if config.auth_token:
            self.set_auth_token(config.auth_token)

    def _create_session(self) -> requests.Session:
        """Create requests session with connection pooling"""
        session = requests.Session()

        session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

        # Retries are handled in _execute_with_retry
        adapter = HTTPAdapter(
            pool_connections=10,
            pool_maxsize=10,
            max_retries=0,
        )

        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def set_auth_token(self, token: Optional[str]) -> None:
        """Set or clear the bearer token sent with every request"""
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"
        else:
            self._session.headers.pop("Authorization", None)

    def _generate_request_id(self) -> str:
        """Generate unique request ID for traceability"""
        timestamp = hex(int(time.time() * 1000))[2:]
        unique_id = uuid.uuid4().hex[:8]
        return f"cashdesk-{timestamp}-{unique_id}"

    def _redact_sensitive_data(self, obj: Any) -> Any:
        """Redact sensitive data from object for logging"""
        if isinstance(obj, list):
            return [self._redact_sensitive_data(item) for item in obj]

        if isinstance(obj, dict):
            redacted = {}
            for key, value in obj.items():
                lower_key = str(key).lower()
                if any(name in lower_key for name in SENSITIVE_FIELDS):
                    redacted[key] = "[REDACTED]"
                elif isinstance(value, (dict, list)):
                    redacted[key] = self._redact_sensitive_data(value)
                else:
                    redacted[key] = value
            return redacted

        return obj

    def _check_circuit_breaker(self) -> None:
        """Check circuit breaker state and raise if open"""
        if self._circuit_state == CircuitState.OPEN:
            time_since_open = (time.time() * 1000) - self._circuit_open_time

            if time_since_open >= self.circuit_config.recovery_timeout:
                self._circuit_state = CircuitState.HALF_OPEN
                self._circuit_success_count = 0
                logger.info("Circuit breaker transitioning to HALF_OPEN state")
            else:
                retry_after = int(
                    (self.circuit_config.recovery_timeout - time_since_open) / 1000
                )
                raise NetworkError.circuit_breaker_open(retry_after)

    def _record_circuit_success(self) -> None:
        """Record circuit breaker success"""
        if self._circuit_state == CircuitState.HALF_OPEN:
            self._circuit_success_count += 1

            if self._circuit_success_count >= self.circuit_config.success_threshold:
                self._circuit_state = CircuitState.CLOSED
                self._circuit_failure_count = 0
                self._circuit_success_count = 0
                logger.info("Circuit breaker CLOSED after successful recovery")
        elif self._circuit_state == CircuitState.CLOSED:
            self._circuit_failure_count = 0

    def _record_circuit_failure(self) -> None:
        """Record circuit breaker failure"""
        if self._circuit_state == CircuitState.HALF_OPEN:
            self._circuit_state = CircuitState.OPEN
            self._circuit_open_time = time.time() * 1000
            logger.warning("Circuit breaker REOPENED after failure in half-open state")
        elif self._circuit_state == CircuitState.CLOSED:
            self._circuit_failure_count += 1

            if self._circuit_failure_count >= self.circuit_config.failure_threshold:
                self._circuit_state = CircuitState.OPEN
                self._circuit_open_time = time.time() * 1000
                logger.warning(
                    f"Circuit breaker OPENED after {self._circuit_failure_count} failures"
                )

    def _calculate_retry_delay(self, attempt: int) -> float:
        """
        Calculate retry delay with exponential backoff

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        # baseDelay * 2^attempt, capped at 16 seconds
        delay_ms = self.config.retry_delay * (2 ** attempt)
        delay_ms = min(delay_ms, 16000)
        return delay_ms / 1000.0

    def _is_retryable_error(
        self, error: Exception, response: Optional[requests.Response] = None
    ) -> bool:
        """Determine if error is retryable"""
        if isinstance(error, NetworkError):
            return error.retryable

        if isinstance(error, requests.exceptions.HTTPError):
            return response is not None and response.status_code in RETRYABLE_STATUSES

        if isinstance(error, requests.exceptions.SSLError):
            return False

        if isinstance(error, requests.exceptions.RequestException):
            return True

        return False

    def _normalize_error(
        self, error: Exception, response: Optional[requests.Response] = None
    ) -> CashdeskError:
        """Normalize error from various sources into CashdeskError"""
        if isinstance(error, requests.exceptions.Timeout):
            return NetworkError.timeout()

        if isinstance(error, requests.exceptions.SSLError):
            return NetworkError(
                f"SSL error: {error}",
                network_code=NetworkErrorCode.SSL_ERROR.value,
                retryable=False,
            )

        if isinstance(error, requests.exceptions.ConnectionError):
            return NetworkError.connection_refused(f"Connection error: {error}")

        if isinstance(error, requests.exceptions.HTTPError) and response is not None:
            try:
                data = response.json()
            except ValueError:
                data = None

            message = str(error)
            code = None
            if isinstance(data, dict):
                detail = data.get("detail")
                if isinstance(detail, list) and detail:
                    # FastAPI validation errors: [{"loc": [...], "msg": "..."}]
                    detail = "; ".join(
                        str(item.get("msg", item)) if isinstance(item, dict) else str(item)
                        for item in detail
                    )
                message = detail or data.get("message") or message
                code = data.get("code")

            return CashdeskError(
                str(message),
                code=code or f"HTTP_{response.status_code}",
                status_code=response.status_code,
                cause=error,
                details=data if isinstance(data, dict) else None,
            )

        if isinstance(error, CashdeskError):
            return error

        return CashdeskError(f"Request error: {error}", cause=error)

    def _create_audit_entry(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Any],
        request_id: str,
        start_time: float,
        response: Optional[requests.Response] = None,
        error: Optional[Exception] = None,
        retry_attempt: Optional[int] = None,
    ) -> HttpAuditEntry:
        """Create audit log entry"""
        duration = int((time.time() - start_time) * 1000)

        response_data = None
        if response is not None:
            content_type = response.headers.get("Content-Type", "")
            if "application/pdf" in content_type:
                response_body: Any = f"<{len(response.content)} bytes>"
            else:
                try:
                    response_body = response.json()
                except ValueError:
                    response_body = response.text[:500] if response.text else None

            response_data = {
                "statusCode": response.status_code,
                "body": self._redact_sensitive_data(response_body),
            }

        return HttpAuditEntry(
            timestamp=datetime.utcnow().isoformat() + "Z",
            request_id=request_id,
            method=method,
            url=url,
            headers=self._redact_sensitive_data(dict(headers)),
            body=self._redact_sensitive_data(body),
            response=response_data,
            duration=duration,
            success=error is None,
            error=str(error) if error else None,
            retry_attempt=retry_attempt,
        )

    def _log_audit(self, entry: HttpAuditEntry) -> None:
        """Log audit entry"""
        if self.config.enable_audit_log and self._audit_log_callback:
            self._audit_log_callback(entry)

    def set_audit_log_callback(
        self, callback: Callable[[HttpAuditEntry], None]
    ) -> None:
        """Set audit log callback"""
        self._audit_log_callback = callback

    def _decode_body(self, response: requests.Response, raw: bool) -> Any:
        if raw:
            return response.content
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _execute_with_retry(
        self,
        method: HttpMethod,
        url: str,
        data: Optional[Any] = None,
        options: Optional[HttpRequestOptions] = None,
    ) -> HttpResponse[Any]:
        """Execute HTTP request with retry logic"""
        options = options or HttpRequestOptions()

        self._check_circuit_breaker()

        max_attempts = 1 if options.skip_retry else self.config.retry_attempts + 1
        last_error: Optional[Exception] = None

        full_url = f"{self.config.get_resolved_base_url()}{url}"
        timeout_seconds = (options.timeout or self.config.timeout) / 1000.0

        for attempt in range(max_attempts):
            start_time = time.time()
            request_id = self._generate_request_id()

            headers = dict(self._session.headers)
            headers["X-Request-ID"] = request_id
            if options.raw:
                headers["Accept"] = "application/pdf, application/octet-stream"
            if options.headers:
                headers.update(options.headers)

            response: Optional[requests.Response] = None

            try:
                request = requests.Request(
                    method=method.value,
                    url=full_url,
                    headers=headers,
                    params=options.params,
                    json=data,
                )
                prepared = self._session.prepare_request(request)

                response = self._session.send(prepared, timeout=timeout_seconds)
                response.raise_for_status()

                self._record_circuit_success()

                self._log_audit(self._create_audit_entry(
                    method=method.value,
                    url=full_url,
                    headers=headers,
                    body=data,
                    request_id=request_id,
                    start_time=start_time,
                    response=response,
                    retry_attempt=attempt if attempt > 0 else None,
                ))

                return HttpResponse(
                    data=self._decode_body(response, options.raw),
                    status=response.status_code,
                    headers=dict(response.headers),
                    duration=int((time.time() - start_time) * 1000),
                    request_id=request_id,
                )

            except Exception as e:
                last_error = e

                # 4xx answers mean the server is up
                if not (
                    isinstance(e, requests.exceptions.HTTPError)
                    and response is not None
                    and response.status_code < 500
                ):
                    self._record_circuit_failure()

                self._log_audit(self._create_audit_entry(
                    method=method.value,
                    url=full_url,
                    headers=headers,
                    body=data,
                    request_id=request_id,
                    start_time=start_time,
                    response=response,
                    error=e,
                    retry_attempt=attempt,
                ))

                if attempt < max_attempts - 1 and self._is_retryable_error(e, response):
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{max_attempts}), "
                        f"retrying in {delay:.2f}s: {e}"
                    )
                    time.sleep(delay)
                    continue

                normalized = self._normalize_error(e, response)
                if normalized is e:
                    raise
                raise normalized from e

        if last_error:
            raise self._normalize_error(last_error)
        raise CashdeskError("Unknown error occurred")

    def get(
        self,
        url: str,
        options: Optional[HttpRequestOptions] = None,
    ) -> HttpResponse[Any]:
        """
        Perform GET request

        Args:
            url: Request URL (relative to base URL)
            options: Optional request options

        Returns:
            HTTP response wrapper
        """
        return self._execute_with_retry(HttpMethod.GET, url, None, options)

    def post(
        self,
        url: str,
        data: Optional[Any] = None,
        options: Optional[HttpRequestOptions] = None,
    ) -> HttpResponse[Any]:
        """Perform POST request"""
        return self._execute_with_retry(HttpMethod.POST, url, data, options)

    def put(
        self,
        url: str,
        data: Optional[Any] = None,
        options: Optional[HttpRequestOptions] = None,
    ) -> HttpResponse[Any]:
        """Perform PUT request"""
        return self._execute_with_retry(HttpMethod.PUT, url, data, options)

    @property
    def circuit_state(self) -> CircuitState:
        """Get current circuit breaker state"""
        return self._circuit_state

    def reset_circuit_breaker(self) -> None:
        """Reset circuit breaker to closed state"""
        self._circuit_state = CircuitState.CLOSED
        self._circuit_failure_count = 0
        self._circuit_success_count = 0
        self._circuit_open_time = 0.0
        logger.info("Circuit breaker manually reset to CLOSED state")

    @property
    def base_url(self) -> str:
        """Get base URL"""
        return self.config.get_resolved_base_url()

    def close(self) -> None:
        """Close the HTTP session"""
        self._session.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
