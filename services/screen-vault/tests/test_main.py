"""Tests for the HTTP routes with a mocked OCR client."""

import asyncio
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

import main
from ocr_client import OCRServiceError
from storage import storage

FITNESS_TEXTS = (
    "10 pts cardio 3.204 pasos 1.159 cal 2,02 km 42 min",
    "25 pts cardio 8.100 pasos 2.050 cal 6,3 km 75 min",
)


@pytest.fixture
def client():
    storage.clear_ocr_results()
    yield TestClient(main.app)
    storage.clear_ocr_results()


@pytest.fixture
def ocr(monkeypatch):
    """Install a mocked OCR client as if OCR_SERVICE_URL were configured."""
    mock_client = MagicMock()
    mock_client.health.return_value = {"status": "healthy", "ready": True}
    monkeypatch.setattr(main, "_ocr_client", mock_client)
    monkeypatch.setattr(main, "_ocr_available", True)
    return mock_client


def _files(image: bytes, *names: str, content_type: str = "image/png"):
    return [("files", (name, image, content_type)) for name in names]


class TestProcessFiles:
    def test_batch_returns_results_and_tables(self, client, ocr, sample_image_bytes: bytes):
        ocr.recognize.side_effect = [(text, 92.0) for text in FITNESS_TEXTS]

        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png", "b.png"))

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Se procesaron 2 de 2 archivos correctamente"
        assert body["total_files"] == 2
        assert body["processed_files"] == 2
        assert [r["original_name"] for r in body["results"]] == ["a.png", "b.png"]
        fitness = body["structured_data"][0]
        assert fitness["detected_pattern"] == "fitness_data"
        assert fitness["source_files"] == ["a.png", "b.png"]
        assert fitness["rows"][0] == ["a.png", "10", "3.204", "1.159", "2,02", "42"]

    def test_ocr_runs_outside_the_event_loop(self, client, ocr, sample_image_bytes: bytes):
        on_event_loop = []

        def recognize(image: bytes):
            try:
                asyncio.get_running_loop()
                on_event_loop.append(True)
            except RuntimeError:
                on_event_loop.append(False)
            return "hola", 90.0

        ocr.recognize.side_effect = recognize

        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png", "b.png"))

        assert resp.status_code == 200
        assert on_event_loop == [False, False]

    def test_single_file_has_no_tables(self, client, ocr, sample_image_bytes: bytes):
        ocr.recognize.return_value = (FITNESS_TEXTS[0], 92.0)

        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png"))

        assert resp.status_code == 200
        assert resp.json()["structured_data"] == []

    def test_partial_failure_counts(self, client, ocr, sample_image_bytes: bytes):
        ocr.recognize.side_effect = [OCRServiceError("bad"), (FITNESS_TEXTS[0], 80.0)]

        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png", "b.png"))

        body = resp.json()
        assert body["message"] == "Se procesaron 1 de 2 archivos correctamente"
        assert body["structured_data"] == []

    def test_all_failed_is_500(self, client, ocr, sample_image_bytes: bytes):
        ocr.recognize.side_effect = OCRServiceError("down")
        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png"))
        assert resp.status_code == 500
        assert resp.json()["detail"] == "No se pudieron procesar los archivos"

    def test_no_files(self, client, ocr):
        resp = client.post("/api/process-files")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No se han subido archivos"

    def test_wrong_content_type(self, client, ocr, sample_image_bytes: bytes):
        resp = client.post(
            "/api/process-files",
            files=_files(sample_image_bytes, "a.gif", content_type="image/gif"),
        )
        assert resp.status_code == 400
        ocr.recognize.assert_not_called()

    def test_file_too_large(self, client, ocr, monkeypatch, sample_image_bytes: bytes):
        monkeypatch.setattr(main.settings, "MAX_UPLOAD_BYTES", 10)
        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png"))
        assert resp.status_code == 400
        ocr.recognize.assert_not_called()

    def test_too_many_files(self, client, ocr, monkeypatch, sample_image_bytes: bytes):
        monkeypatch.setattr(main.settings, "MAX_FILES", 1)
        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png", "b.png"))
        assert resp.status_code == 400

    def test_ocr_not_configured(self, client, monkeypatch, sample_image_bytes: bytes):
        monkeypatch.setattr(main, "_ocr_available", False)
        monkeypatch.setattr(main, "_ocr_client", None)
        resp = client.post("/api/process-files", files=_files(sample_image_bytes, "a.png"))
        assert resp.status_code == 503


class TestAnalyze:
    def test_tables_from_texts(self, client):
        documents = [{"source_file": f"{i}.png", "text": text} for i, text in enumerate(FITNESS_TEXTS)]
        resp = client.post("/api/analyze", json={"documents": documents})
        assert resp.status_code == 200
        assert resp.json()["structured_data"][0]["detected_pattern"] == "fitness_data"

    def test_invalid_document_is_422(self, client):
        resp = client.post("/api/analyze", json={"documents": [{"source_file": "a.png", "text": 5}]})
        assert resp.status_code == 422


class TestResults:
    def test_list_and_clear(self, client, ocr, sample_image_bytes: bytes):
        ocr.recognize.return_value = ("hola", 90.0)
        client.post("/api/process-files", files=_files(sample_image_bytes, "a.png"))

        listed = client.get("/api/results").json()
        assert [r["original_name"] for r in listed] == ["a.png"]

        resp = client.delete("/api/results")
        assert resp.status_code == 200
        assert client.get("/api/results").json() == []


class TestDownloads:
    def _results(self, client, ocr, image: bytes):
        ocr.recognize.return_value = ("hola mundo", 90.0)
        return client.post("/api/process-files", files=_files(image, "a.png")).json()["results"]

    def test_csv(self, client, ocr, sample_image_bytes: bytes):
        results = self._results(client, ocr, sample_image_bytes)
        resp = client.post("/api/download/csv", json={"results": results})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/csv")
        assert 'filename="resultados_ocr.csv"' in resp.headers["content-disposition"]
        assert resp.text.splitlines()[0].startswith("Archivo,Nombre Original")

    def test_json(self, client, ocr, sample_image_bytes: bytes):
        results = self._results(client, ocr, sample_image_bytes)
        resp = client.post("/api/download/json", json={"results": results})
        assert 'filename="resultados_ocr.json"' in resp.headers["content-disposition"]
        assert resp.json()["total_results"] == 1

    def test_invalid_results_payload(self, client):
        assert client.post("/api/download/csv", json={"results": "nope"}).status_code == 422

    def test_structured_csv(self, client):
        table = {
            "title": "Datos Estructurados - Etiquetas",
            "columns": ["Archivo", "Cliente"],
            "rows": [["a.png", "Ana"], ["b.png", ""]],
            "detected_pattern": "labeled_data",
            "source_files": ["a.png", "b.png"],
        }
        resp = client.post("/api/download/structured-csv", json={"structured_data": table})
        assert resp.status_code == 200
        assert 'filename="Datos_Estructurados___Etiquetas.csv"' in resp.headers["content-disposition"]
        assert resp.text.splitlines() == ["Archivo,Cliente", "a.png,Ana", "b.png,"]


class TestHealth:
    def test_without_ocr(self, client, monkeypatch):
        monkeypatch.setattr(main, "_ocr_available", False)
        monkeypatch.setattr(main, "_ocr_client", None)
        assert client.get("/health").json() == {"status": "healthy", "ocr_available": False}

    def test_with_ocr(self, client, ocr):
        body = client.get("/health").json()
        assert body["ocr_available"] is True
        assert body["ocr_health"]["ready"] is True
