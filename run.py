"""
Local development entry point.

Creates the Flask app via create_app() and runs the dev server. Keeps startup
simple and avoids embedding app logic here.
"""

import os
from carecoach import create_app

# Allow overriding config via environment variable for dev/test flexibility
os.environ.setdefault("APP_CONFIG", "carecoach.config.DevConfig")

app = create_app()

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 5000)), debug=os.getenv("FLASK_DEBUG", "1") == "1")
