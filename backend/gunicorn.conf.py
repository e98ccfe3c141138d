import os

# WSGI entry point (app factory); APP_ENV picks the config class
wsgi_app = "money.factory:create_app()"

bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
# Longer than the worst case of bounded retries on secrets, cache and JWKS
timeout = int(os.getenv("GUNICORN_TIMEOUT", "60"))
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; the app itself logs JSON
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Trust proxy headers from the gateway / load balancer
forwarded_allow_ips = "*"
proxy_protocol = False
