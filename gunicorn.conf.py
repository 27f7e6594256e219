import os

bind = "0.0.0.0:4000"
# a single worker keeps one refresh scheduler per deployment
workers = int(os.environ.get("PRICING_API_WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "main:configure_production_app()"
