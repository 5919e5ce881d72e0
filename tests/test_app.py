import pytest
import requests

from conftest import ANSWER_BODY, FakeSession, make_response
from app import AppContext, build_context, create_app
from data_loader import MalformedInput
from inference import InferenceClient
from settings import Settings

TABLE = {"Appliance": ["Refrigerator", "Coffee Maker"], "Energy_Consumption": ["1.2", "0.5"]}


def make_app(*outcomes):
    session = FakeSession(*outcomes)
    client = InferenceClient("hf_secret", session=session, sleep=lambda s: None)
    context = AppContext(settings=Settings(token="hf_secret"), table=TABLE, client=client)
    app = create_app(context)
    app.config["TESTING"] = True
    return app.test_client(), session


@pytest.mark.parametrize("path", ["/", "/chatbot", "/contact"])
def test_pages_render(path):
    client, _ = make_app(make_response(200, ANSWER_BODY))
    response = client.get(path)
    assert response.status_code == 200
    assert b"<html" in response.data


def test_chatbot_shows_table_preview():
    client, _ = make_app(make_response(200, ANSWER_BODY))
    page = client.get("/chatbot").get_data(as_text=True)
    assert "Coffee Maker" in page
    assert "Energy_Consumption" in page


def test_static_files_served():
    client, _ = make_app(make_response(200, ANSWER_BODY))
    assert client.get("/static/style.css").status_code == 200


def test_query_renders_answer():
    client, session = make_app(make_response(200, ANSWER_BODY))
    response = client.post("/query", data={"query": "total energy?"})
    page = response.get_data(as_text=True)

    assert response.status_code == 200
    assert "SUM &gt; 1.2, 0.5" in page
    assert "Aggregator: SUM" in page
    assert "(0, 3), (1, 3)" in page
    assert session.calls[0][1]["json"] == {"table": TABLE, "query": "total energy?"}


@pytest.mark.parametrize("data", [{}, {"query": ""}, {"query": "   "}])
def test_empty_query_is_rejected(data):
    client, session = make_app(make_response(200, ANSWER_BODY))
    response = client.post("/query", data=data)

    assert response.status_code == 400
    assert "Query cannot be empty" in response.get_data(as_text=True)
    assert session.calls == []


def test_remote_failure_is_rendered():
    client, _ = make_app(make_response(401, "Invalid credentials"))
    response = client.post("/query", data={"query": "total energy?"})
    page = response.get_data(as_text=True)

    assert response.status_code == 500
    assert "Error connecting to AI model" in page
    assert "401" in page


def test_connection_error_is_rendered():
    client, session = make_app(requests.ConnectionError("connection refused"))
    response = client.post("/query", data={"query": "total energy?"})
    page = response.get_data(as_text=True)

    assert response.status_code == 500
    assert "Error connecting to AI model" in page
    assert "connection refused" in page
    assert len(session.calls) == 1


def test_undecodable_answer_is_rendered():
    client, _ = make_app(make_response(200, "<html>not json</html>"))
    response = client.post("/query", data={"query": "total energy?"})
    page = response.get_data(as_text=True)

    assert response.status_code == 500
    assert "Error connecting to AI model" in page
    assert "response is not JSON" in page


def test_retry_exhausted_is_rendered():
    client, session = make_app(make_response(503, {"estimated_time": 0.0}))
    response = client.post("/query", data={"query": "total energy?"})

    assert response.status_code == 500
    assert "max retries reached" in response.get_data(as_text=True)
    assert len(session.calls) == 10


def test_build_context_loads_table(tmp_path):
    csv_path = tmp_path / "series.csv"
    csv_path.write_text("a,b\n1,2\n", encoding="utf-8")
    context = build_context(Settings(token="hf_abc", csv_path=str(csv_path), max_attempts=4))

    assert context.table == {"a": ["1"], "b": ["2"]}
    assert context.client.token == "hf_abc"
    assert context.client.max_attempts == 4


def test_build_context_fails_on_empty_csv(tmp_path):
    csv_path = tmp_path / "series.csv"
    csv_path.write_text("", encoding="utf-8")
    with pytest.raises(MalformedInput):
        build_context(Settings(token="hf_abc", csv_path=str(csv_path)))


def test_build_context_fails_on_non_utf8_csv(tmp_path):
    csv_path = tmp_path / "series.csv"
    csv_path.write_bytes(b"a,b\n\xff\xfe,1\n")
    with pytest.raises(MalformedInput):
        build_context(Settings(token="hf_abc", csv_path=str(csv_path)))
