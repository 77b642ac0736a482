import os


def env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def env_str(name: str, default: str) -> str:
    value = os.environ.get(name)
    return value if value is not None and value.strip() != "" else default


bind = f"0.0.0.0:{env_int('PORT', 3000)}"

# One process by default: the store lock that keeps restores away from live
# requests is per process, and SQLite allows a single writer anyway.
workers = env_int("GUNICORN_WORKERS", 1)
threads = env_int("GUNICORN_THREADS", 8)
worker_class = env_str("GUNICORN_WORKER_CLASS", "gthread")

keepalive = env_int("GUNICORN_KEEPALIVE", 5)

timeout = env_int("GUNICORN_TIMEOUT", 60)
graceful_timeout = env_int("GUNICORN_GRACEFUL_TIMEOUT", 30)

# Log to stdout/stderr for container visibility
accesslog = "-"
errorlog = "-"
loglevel = env_str("GUNICORN_LOGLEVEL", "info")

# Photos and signatures are posted inline, so only the header limits are tightened here;
# Flask enforces MAX_CONTENT_LENGTH on bodies
limit_request_line = 8190
limit_request_fields = 100
limit_request_field_size = 8190
