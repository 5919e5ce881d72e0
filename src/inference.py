"""
Ask the hosted table QA model (Hugging Face Inference API) a question about a table.
Input: table {column: [cells]} + question -> output: answer, cell coordinates, cells, aggregator.
"""
import argparse
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

try:
    from .data_loader import Table, load_table
    from .settings import DEFAULT_MAX_ATTEMPTS, DEFAULT_MODEL_URL, load_settings
except ImportError:
    from data_loader import Table, load_table
    from settings import DEFAULT_MAX_ATTEMPTS, DEFAULT_MODEL_URL, load_settings

logger = logging.getLogger(__name__)


class InferenceError(Exception):
    """Base class for failures of a single query against the remote model."""


class TransportError(InferenceError):
    """The request never got an HTTP response (connection refused, DNS, timeout...)."""


class RemoteError(InferenceError):
    """The service answered with a status we do not handle."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"failed to connect to AI model, status: {status}, response: {body}")


class DecodeError(InferenceError):
    """A 200 response whose body is not the expected answer object."""


class RetryExhausted(InferenceError):
    """The model kept reporting it was loading for every allowed attempt."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"max retries reached ({attempts}), failed to connect to AI model")


@dataclass
class InferenceResult:
    answer: str = ""
    coordinates: List[Tuple[int, int]] = field(default_factory=list)
    cells: List[str] = field(default_factory=list)
    aggregator: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "InferenceResult":
        """Decode the model's JSON answer. Missing fields stay empty; wrong types raise DecodeError."""
        if not isinstance(data, dict):
            raise DecodeError(f"expected a JSON object, got {type(data).__name__}")

        answer = data.get("answer", "")
        aggregator = data.get("aggregator", "")
        for name, value in (("answer", answer), ("aggregator", aggregator)):
            if not isinstance(value, str):
                raise DecodeError(f"'{name}' must be a string")

        cells = data.get("cells", [])
        if not isinstance(cells, list) or not all(isinstance(c, str) for c in cells):
            raise DecodeError("'cells' must be a list of strings")

        raw_coords = data.get("coordinates", [])
        if not isinstance(raw_coords, list):
            raise DecodeError("'coordinates' must be a list")
        coordinates = []
        for pair in raw_coords:
            if (
                not isinstance(pair, list)
                or len(pair) != 2
                or not all(isinstance(v, int) and not isinstance(v, bool) for v in pair)
            ):
                raise DecodeError(f"bad coordinate {pair!r}, expected [row, column]")
            coordinates.append((pair[0], pair[1]))

        return cls(answer=answer, coordinates=coordinates, cells=cells, aggregator=aggregator)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "answer": self.answer,
            "coordinates": [list(c) for c in self.coordinates],
            "cells": list(self.cells),
            "aggregator": self.aggregator,
        }


def _estimated_time(response: requests.Response) -> Optional[float]:
    """Seconds the service asks us to wait while the model loads, or None."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    value = data.get("estimated_time")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return max(0.0, float(value))


class InferenceClient:
    """Table question answering through the hosted inference endpoint."""

    def __init__(
        self,
        token: str,
        session: Optional[requests.Session] = None,
        url: str = DEFAULT_MODEL_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        timeout: Optional[float] = None,
    ):
        """
        token: Hugging Face API token, sent as a bearer token.
        session: HTTP session (anything with requests.Session.post); a new one if None.
        max_attempts: number of requests allowed while the model reports it is loading.
        sleep: called with the service's estimated_time between attempts.
        timeout: per-request timeout passed to requests; None waits indefinitely.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.token = token
        self.session = session if session is not None else requests.Session()
        self.url = url
        self.max_attempts = max_attempts
        self.sleep = sleep
        self.timeout = timeout

    def query(self, table: Table, question: str) -> InferenceResult:
        """
        Send table + question, waiting out the model's cold start.
        Raises TransportError, RemoteError, DecodeError or RetryExhausted.
        """
        payload = {"table": table, "query": question}
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self.session.post(self.url, json=payload, headers=headers, timeout=self.timeout)
            except requests.RequestException as e:
                raise TransportError(f"request to {self.url} failed: {e}") from e

            if response.status_code == 200:
                try:
                    data = response.json()
                except ValueError as e:
                    raise DecodeError(f"response is not JSON: {e}") from e
                return InferenceResult.from_json(data)

            if response.status_code == 503:
                wait = _estimated_time(response)
                if wait is not None:
                    logger.info(
                        "Model is currently loading, retrying in %.1f seconds (attempt %d/%d)",
                        wait, attempt, self.max_attempts,
                    )
                    self.sleep(wait)
                    continue

            logger.warning("Inference request failed with status %d", response.status_code)
            raise RemoteError(response.status_code, response.text)

        raise RetryExhausted(self.max_attempts)


def main():
    parser = argparse.ArgumentParser(description="Ask a question about a CSV table.")
    parser.add_argument("question", type=str)
    parser.add_argument("--csv", type=str, default=None, help="CSV file (default: TABLE_QA_CSV or data-series.csv)")
    parser.add_argument("--max_attempts", type=int, default=None)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = load_settings()
    table = load_table(args.csv or settings.csv_path)
    client = InferenceClient(
        settings.token,
        url=settings.model_url,
        max_attempts=args.max_attempts or settings.max_attempts,
    )
    result = client.query(table, args.question)
    print("Answer:", result.answer)
    print("Aggregator:", result.aggregator)
    print("Cells:", result.cells)
    print("Coordinates:", result.coordinates)
    return result


if __name__ == "__main__":
    main()
