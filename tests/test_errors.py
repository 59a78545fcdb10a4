from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.exceptions import ResourceNotFoundError, TransportError
from app.main import app

client = TestClient(app)


class Item(BaseModel):
    name: str
    price: int


@app.post("/test-validation")
def create_item(item: Item):
    return item


@app.get("/test-custom-error")
def trigger_custom_error():
    raise ResourceNotFoundError(message="Item not found")


@app.get("/test-transport-error")
def trigger_transport_error():
    raise TransportError("TELEGRAM delivery failed", details={"question_id": "q1"})


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert "code" in data
    assert data["code"] == "HTTP_ERROR"


def test_validation_error_structure():
    response = client.post("/test-validation", json={"name": "foo", "price": "invalid"})
    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "details" in data
    assert len(data["details"]) > 0


def test_custom_exception():
    response = client.get("/test-custom-error")
    assert response.status_code == 404
    data = response.json()
    assert data["code"] == "NOT_FOUND"
    assert data["error"] == "Item not found"


def test_transport_error_maps_to_bad_gateway():
    response = client.get("/test-transport-error")
    assert response.status_code == 502
    assert response.json() == {
        "error": "TELEGRAM delivery failed",
        "code": "TRANSPORT_ERROR",
        "details": {"question_id": "q1"},
    }
