import logging

import azure.functions as func

from config import configure_logging, settings
from routes.combined import bp as combined_bp
from routes.health import bp as health_bp
from routes.history import bp as history_bp
from routes.store import bp as store_bp

configure_logging()

missing = settings.validate()
if missing:
    logging.getLogger(__name__).warning("Missing env vars (requests may fail): %s", ", ".join(missing))

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)
app.register_functions(health_bp)
app.register_functions(combined_bp)
app.register_functions(history_bp)
app.register_functions(store_bp)
