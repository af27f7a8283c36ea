import os

from branding import create_app
from branding.config import DevConfig

app = create_app(DevConfig)

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = app.config["PORT"]
    debug = os.getenv("DEBUG", "true").strip().lower() in {"1", "true", "yes", "on"}
    app.logger.info("Branding app server is listening on port %s", port)
    app.run(host=host, port=port, debug=debug)
