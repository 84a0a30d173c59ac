import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from ccl_pipeline.api.server import app  # noqa: E402

PORT = int(os.environ.get("PORT", "5002"))

if __name__ == "__main__":
    if os.environ.get("APP_ENV") == "production":
        from waitress import serve
        print(f"Starting production server with Waitress on port {PORT}...")
        serve(app, host="0.0.0.0", port=PORT)
    else:
        print("Starting development server...")
        app.run(debug=True, port=PORT, host="0.0.0.0")
