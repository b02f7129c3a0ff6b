from flask import Flask

from pipo.api import create_app, register_endpoints
from pipo.ingestion import IngestRawDataOutput

URL = "/api/sentiment/ingest"


class FakeService:
    def __init__(self, output=None, error=None):
        self.output = output or IngestRawDataOutput()
        self.error = error
        self.calls = []

    def ingest_raw_data(self, records):
        self.calls.append(records)
        if self.error is not None:
            raise self.error
        return self.output


def make_client(service):
    app = Flask(__name__)
    register_endpoints(app, service)
    return app.test_client()


def test_ingest_accepts_and_reports_result():
    output = IngestRawDataOutput(ingested_data_count=4, errors=[ValueError("bad row")])
    service = FakeService(output=output)
    response = make_client(service).post(URL, json={"records": 5})
    assert response.status_code == 202
    assert response.get_json() == {
        "message": "Raw data ingested",
        "data": {"errors": ["bad row"], "ingested_data_count": 4},
    }
    assert service.calls == [5]


def test_missing_records_is_bad_request():
    service = FakeService()
    response = make_client(service).post(URL, json={})
    assert response.status_code == 400
    assert "error" in response.get_json()
    assert service.calls == []


def test_zero_records_is_bad_request():
    service = FakeService()
    assert make_client(service).post(URL, json={"records": 0}).status_code == 400
    assert service.calls == []


def test_wrongly_typed_records_is_bad_request():
    client = make_client(FakeService())
    for value in ("5", 2.5, True):
        assert client.post(URL, json={"records": value}).status_code == 400


def test_invalid_json_is_bad_request():
    client = make_client(FakeService())
    response = client.post(URL, data="{not json", content_type="application/json")
    assert response.status_code == 400


def test_service_failure_is_internal_error():
    service = FakeService(error=FileNotFoundError("no data"))
    response = make_client(service).post(URL, json={"records": 1})
    assert response.status_code == 500
    assert response.get_json() == {"error": "no data"}


def test_create_app_registers_endpoint_and_probes():
    service = FakeService()
    client = create_app(service, {"redis": lambda: None}).test_client()
    assert client.get("/api/health/live").status_code == 200
    assert client.get("/api/health/ready").status_code == 200
    assert client.post(URL, json={"records": 3}).status_code == 202
    assert service.calls == [3]