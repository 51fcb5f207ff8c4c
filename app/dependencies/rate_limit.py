from fastapi import Request, Response
from fastapi_limiter import FastAPILimiter
from fastapi_limiter.depends import RateLimiter

_write_limiter = RateLimiter(times=10, seconds=60)


async def write_rate_limit(request: Request, response: Response) -> None:
    # The limiter is only initialised when Redis is reachable at startup.
    if FastAPILimiter.redis is None:
        return
    await _write_limiter(request, response)
