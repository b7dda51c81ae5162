"""
WSGI entry point for the quote analyzer.
Point the server at `wsgi:app` (e.g. `waitress-serve wsgi:app`).
"""
from main import app

application = app

if __name__ == "__main__":
    app.run(port=5000)
