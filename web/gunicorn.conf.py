import os

# Servimos la app WSGI de Django definida en config/wsgi.py
wsgi_app = "config.wsgi:application"
bind = f"0.0.0.0:{os.getenv('PORT', '8082')}"

# Workers: el flujo de pedidos es IO bloqueante (DB + HTTP), usamos threads
workers = min(max(2, (os.cpu_count() or 1) * 2), 8)
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# Timeouts: deben superar HTTP_TIMEOUT_SECS por cada llamada saliente
timeout = int(os.getenv("GUNI_TIMEOUT", "30"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

# Los logs de la app salen en JSON via settings.LOGGING
accesslog = None
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
