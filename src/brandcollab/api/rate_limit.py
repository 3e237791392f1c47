"""Per-client request limits for OTP, login and apply endpoints.

Clients are keyed by the socket peer address. Behind a load balancer,
run uvicorn with ``--proxy-headers --forwarded-allow-ips=<balancer ip>``
so the peer address is the real client and X-Forwarded-For cannot be
forged by callers.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from brandcollab.settings import settings

# Limits shared across routers
OTP_LIMIT = "5/minute"
LOGIN_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["300/minute"],
    storage_uri="memory://",
    enabled=settings.env == "production",
)
