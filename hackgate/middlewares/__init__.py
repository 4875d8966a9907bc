from hackgate.middlewares.db_middleware import DatabaseMiddleware
from hackgate.middlewares.auth_middleware import AdminMiddleware, IsAdmin
from hackgate.middlewares.rate_limit_middleware import RateLimitMiddleware

__all__ = ["DatabaseMiddleware", "AdminMiddleware", "IsAdmin", "RateLimitMiddleware"]
