#!/usr/bin/env python3
"""
Entry point for the Arena API.

Usage:
    python run.py

Environment Variables:
    FLASK_ENV: development, testing or production (default: development)
    PORT: Port to run on (default: 5000)
    STORE_BACKEND: sql, memory or auto (default: auto)
"""
import os

from arena.app import create_app


def run_server():
    """Run the API with the Flask development server."""
    app = create_app()
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('FLASK_ENV', 'development') == 'development'

    print(f"Starting Arena API on port {port} ({app.store.backend} store)...")
    app.run(host='0.0.0.0', port=port, debug=debug)


if __name__ == '__main__':
    run_server()
