"""Health check endpoint."""

from http.server import BaseHTTPRequestHandler
import json
import os

from src.utils.task_config import TaskCompletionConfig

SERVICE_NAME = "mortgage-crm-backend"


def health_payload() -> dict:
    """Service status plus the settings that change task completion behavior."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "supabase_configured": bool(
            os.environ.get("SUPABASE_URL") and os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        ),
        "unknown_requirement_policy": "block" if TaskCompletionConfig.blocks_unknown_requirements() else "allow",
        "auto_complete_window_days": TaskCompletionConfig.AUTO_COMPLETE_WINDOW_DAYS,
    }


class handler(BaseHTTPRequestHandler):
    """Health check handler for Vercel serverless function."""

    def do_GET(self):
        """Handle GET request."""
        self.send_response(200)
        self.send_header('Content-Type', 'application/json')
        self.end_headers()
        self.wfile.write(json.dumps(health_payload()).encode('utf-8'))

    def do_POST(self):
        """Handle POST request (same as GET for health check)."""
        self.do_GET()
