from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from quizhub.core.exceptions.handler import ErrorResponseBuilder, ServiceErrorCode
from quizhub.core.logger.logger import get_logger
from quizhub.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

# Endpoints whose 401/403 responses count towards IP blocking
AUTH_FAILURE_ENDPOINTS = frozenset({
    "/auth/verify-otp",
    "/admin/auth/login",
    "/admin/auth/login-with-tfa",
})


def _now() -> datetime:
    return datetime.now(timezone.utc)


class EnhancedRateLimiter:
    """Per-IP, per-endpoint sliding window limiter with temporary IP blocking."""

    def __init__(self):
        # endpoint -> IP -> timestamps
        self.endpoint_requests: Dict[str, Dict[str, List[datetime]]] = {}
        self.blocked_ips: Dict[str, datetime] = {}  # IP -> unblock time
        self.failed_attempts: Dict[str, Tuple[int, datetime]] = {}  # IP -> (count, first attempt)

        # Requests per minute
        self.endpoint_limits = {
            "/auth/signup": settings.RATE_LIMIT_AUTH_SIGNUP,
            "/auth/signin/email": settings.RATE_LIMIT_AUTH_SIGNUP,
            "/auth/verify-otp": settings.RATE_LIMIT_AUTH_VERIFY,
            "/auth/refresh-token": settings.RATE_LIMIT_AUTH_REFRESH,
            "/admin/auth/login": settings.RATE_LIMIT_ADMIN_LOGIN,
            "/admin/auth/login-with-tfa": settings.RATE_LIMIT_ADMIN_LOGIN,
            "/admin/auth/refresh": settings.RATE_LIMIT_AUTH_REFRESH,
            "default": settings.RATE_LIMIT_DEFAULT,
        }

    def is_blocked(self, ip: str) -> Optional[datetime]:
        unblock_at = self.blocked_ips.get(ip)
        if unblock_at is None:
            return None
        if _now() < unblock_at:
            return unblock_at
        del self.blocked_ips[ip]
        return None

    def is_rate_limited(self, ip: str, endpoint: str) -> Tuple[bool, int, int, datetime]:
        """
        Check if IP is rate limited for specific endpoint.
        Returns: (is_limited, current_count, limit, reset_time)
        """
        now = _now()
        limit = self.endpoint_limits.get(endpoint, self.endpoint_limits["default"])

        per_ip = self.endpoint_requests.setdefault(endpoint, {})
        window = [ts for ts in per_ip.get(ip, []) if now - ts < timedelta(minutes=1)]
        per_ip[ip] = window

        reset_time = window[0] + timedelta(minutes=1) if window else now + timedelta(minutes=1)
        return len(window) >= limit, len(window), limit, reset_time

    def add_request(self, ip: str, endpoint: str) -> None:
        self.endpoint_requests.setdefault(endpoint, {}).setdefault(ip, []).append(_now())

    def record_failed_attempt(self, ip: str) -> None:
        """Record failed authentication attempt and block IP if suspicious."""
        now = _now()
        count, first_attempt = self.failed_attempts.get(ip, (0, now))
        if now - first_attempt >= timedelta(minutes=5):
            count, first_attempt = 0, now

        count += 1
        if count >= settings.SUSPICIOUS_IP_THRESHOLD:
            self.block_ip(ip)
            self.failed_attempts.pop(ip, None)
        else:
            self.failed_attempts[ip] = (count, first_attempt)

    def block_ip(self, ip: str) -> None:
        self.blocked_ips[ip] = _now() + timedelta(minutes=settings.IP_BLOCK_DURATION)
        logger.warning(
            "IP blocked due to suspicious activity",
            extra={"ip": ip, "block_minutes": settings.IP_BLOCK_DURATION}
        )


class EnhancedRateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware with endpoint-specific limits and standard error bodies."""

    def __init__(self, app, rate_limiter: Optional[EnhancedRateLimiter] = None):
        super().__init__(app)
        self.rate_limiter = rate_limiter or EnhancedRateLimiter()

    def _get_client_ip(self, request: Request) -> str:
        """Get client IP, handling proxies."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        return request.client.host if request.client else "unknown"

    def _error_response(self, status_code: int, code: str, message: str, retry_after: int) -> Response:
        body = ErrorResponseBuilder.build_error_response(
            error_code=code,
            message=message,
            details={"retry_after": retry_after}
        )
        response = JSONResponse(status_code=status_code, content=body)
        response.headers["Retry-After"] = str(retry_after)
        return response

    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.RATE_LIMIT_ENABLED or request.method == "OPTIONS":
            return await call_next(request)

        ip = self._get_client_ip(request)
        endpoint = request.url.path
        if endpoint in ("/health", "/api/v1/health", "/docs", "/redoc", "/openapi.json"):
            return await call_next(request)

        unblock_at = self.rate_limiter.is_blocked(ip)
        if unblock_at is not None:
            retry_after = max(1, int((unblock_at - _now()).total_seconds()))
            logger.warning("Blocked IP request", extra={"ip": ip, "path": endpoint})
            return self._error_response(
                403, ServiceErrorCode.IP_BLOCKED,
                "IP temporarily blocked due to suspicious activity", retry_after
            )

        is_limited, current_count, limit, reset_time = self.rate_limiter.is_rate_limited(ip, endpoint)
        if is_limited:
            retry_after = max(1, int((reset_time - _now()).total_seconds()))
            logger.warning(
                "Rate limit exceeded",
                extra={"ip": ip, "path": endpoint, "count": current_count, "limit": limit}
            )
            response = self._error_response(
                429, ServiceErrorCode.RATE_LIMIT_EXCEEDED,
                f"Rate limit exceeded. Maximum {limit} requests per minute.", retry_after
            )
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = "0"
            return response

        self.rate_limiter.add_request(ip, endpoint)
        response = await call_next(request)

        if response.status_code in (401, 403) and endpoint in AUTH_FAILURE_ENDPOINTS:
            self.rate_limiter.record_failed_attempt(ip)

        if response.status_code < 400:
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count - 1))
            response.headers["X-RateLimit-Reset"] = str(int(reset_time.timestamp()))

        return response
