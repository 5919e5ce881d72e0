"""
Flask web app for table question answering.
Input: question typed in the chatbot page + table loaded from CSV at startup → output: answer + supporting cells.
"""
import logging
import os
import sys
from dataclasses import dataclass
from typing import Optional

# Ensure project root and src are on path
ROOT = os.path.dirname(os.path.abspath(__file__))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
sys.path.insert(0, os.path.join(ROOT, "src"))

from flask import Flask, current_app, render_template, request

from data_loader import MalformedInput, Table, load_table, table_to_frame
from inference import InferenceClient, InferenceError
from settings import ConfigMissing, Settings, load_settings

logger = logging.getLogger(__name__)

PREVIEW_ROWS = 20


@dataclass(frozen=True)
class AppContext:
    """Process-wide state built once at startup and shared read-only by request handlers."""
    settings: Settings
    table: Table
    client: InferenceClient


def build_context(settings: Optional[Settings] = None) -> AppContext:
    """Load settings (if not given), the CSV table and the inference client. Errors are fatal for startup."""
    settings = settings or load_settings()
    table = load_table(settings.csv_path)
    client = InferenceClient(settings.token, url=settings.model_url, max_attempts=settings.max_attempts)
    return AppContext(settings=settings, table=table, client=client)


def _table_preview(table: Table) -> str:
    frame = table_to_frame(table).head(PREVIEW_ROWS)
    return frame.to_html(index=False, classes="data-table", border=0)


def create_app(context: AppContext) -> Flask:
    app = Flask(__name__, root_path=ROOT)
    app.config["MAX_CONTENT_LENGTH"] = 64 * 1024  # one short form field
    app.config["TABLE_QA"] = context

    def chatbot_page(status: int = 200, **values):
        ctx: AppContext = current_app.config["TABLE_QA"]
        return render_template("index.html", table_preview=_table_preview(ctx.table), **values), status

    @app.route("/")
    def home():
        return render_template("home.html")

    @app.route("/chatbot")
    def chatbot():
        return chatbot_page()

    @app.route("/contact")
    def contact():
        return render_template("contact.html")

    @app.route("/query", methods=["POST"])
    def query():
        question = (request.form.get("query") or "").strip()
        if not question:
            return chatbot_page(400, error="Query cannot be empty")

        ctx: AppContext = current_app.config["TABLE_QA"]
        try:
            result = ctx.client.query(ctx.table, question)
        except InferenceError as e:
            logger.warning("Query %r failed: %s", question, e)
            return chatbot_page(500, query=question, error=f"Error connecting to AI model: {e}")

        return chatbot_page(query=question, **result.to_dict())

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        context = build_context()
    except (ConfigMissing, MalformedInput, OSError) as e:
        logger.critical("Startup failed: %s", e)
        sys.exit(1)
    create_app(context).run(host="0.0.0.0", port=context.settings.port)
