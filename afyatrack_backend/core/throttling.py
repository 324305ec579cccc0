from rest_framework.throttling import ScopedRateThrottle


class AuthRateThrottle(ScopedRateThrottle):
    """Per-client-address rate limit for credential endpoints.

    Views opt in with ``throttle_scope = 'auth'``. Counters live in the Django
    cache and expire with the rate window, so the limit holds across workers
    when the cache is shared (Redis in production).
    """

    def get_cache_key(self, request, view):
        return self.cache_format % {
            'scope': self.scope,
            'ident': self.get_ident(request),
        }
