"""
Integration tests for the node HTTP API.
"""

import pytest
from prometheus_client import CollectorRegistry

from nftsale.core.metrics import SaleMetrics
from nftsale.core.node import build_host
from nftsale.core.node_api import create_app
from nftsale.core.storage import MemoryStorage

pytestmark = pytest.mark.integration

BUYER = "buyer"


@pytest.fixture
def registry():
    return CollectorRegistry()


@pytest.fixture
def client(registry):
    host, code_ids = build_host(storage=MemoryStorage(), metrics=SaleMetrics(registry))
    app = create_app(host, code_ids, registry=registry)
    app.config["TESTING"] = True
    test_client = app.test_client()
    test_client.code_ids = code_ids
    return test_client


@pytest.fixture
def deployed(client, setup_msg):
    """Token (buyer holds 10) and a linked sale, deployed over HTTP."""
    token = client.post(
        "/contracts/instantiate",
        json={
            "sender": "treasury",
            "code_id": client.code_ids["erc20"],
            "label": "payment token",
            "msg": {"name": "Payment", "symbol": "PAY", "initial_balances": [{"address": BUYER, "amount": "10"}]},
        },
    ).get_json()["contract_address"]
    response = client.post(
        "/contracts/instantiate",
        json={
            "sender": "owner",
            "code_id": client.code_ids["fixed_price_sale"],
            "label": "sale",
            "msg": setup_msg(payment_token_address=token, collection_code_id=client.code_ids["erc721"]),
        },
    )
    assert response.status_code == 201
    return {"token": token, "sale": response.get_json()["contract_address"], "setup": response.get_json()}


def _buy(client, deployed, amount="3"):
    return client.post(
        f"/contracts/{deployed['token']}/execute",
        json={"sender": BUYER, "msg": {"send": {"contract": deployed["sale"], "amount": amount, "msg": ""}}},
    )


def test_health_reports_height(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "height": 0}


def test_list_contracts_reports_code_ids(client, deployed):
    body = client.get("/contracts").get_json()

    assert body["success"] is True
    assert body["code_ids"] == {"erc20": 1, "erc721": 2, "fixed_price_sale": 3}
    assert len(body["contracts"]) == 3


def test_setup_result_lists_link_attributes(deployed):
    attributes = deployed["setup"]["attributes"]

    assert {"contract": deployed["sale"], "key": "action", "value": "link_collection"} in attributes


def test_sale_config_endpoint(client, deployed):
    response = client.get(f"/sale/{deployed['sale']}/config")

    assert response.status_code == 200
    config = response.get_json()["config"]
    assert config["link_state"] == "linked"
    assert config["unit_price"] == "3"
    assert config["next_token_id"] == 0


def test_sale_config_rejects_other_contracts(client, deployed):
    response = client.get(f"/sale/{deployed['token']}/config")

    assert response.status_code == 404
    assert response.get_json()["code"] == "not_a_sale"


def test_purchase_over_http(client, deployed):
    response = _buy(client, deployed)

    assert response.status_code == 200
    config = client.get(f"/sale/{deployed['sale']}/config").get_json()["config"]
    owner = client.post(
        f"/contracts/{config['collection_address']}/query",
        json={"msg": {"owner_of": {"token_id": "0"}}},
    ).get_json()["data"]
    assert owner == {"owner": BUYER}
    assert config["next_token_id"] == 1


def test_rejected_purchase_maps_error_code(client, deployed):
    response = _buy(client, deployed, amount="2")

    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    assert body["code"] == "wrong_payment_amount"


def test_malformed_query_field_is_400(client, deployed):
    _buy(client, deployed)
    collection = client.get(f"/sale/{deployed['sale']}/config").get_json()["config"]["collection_address"]

    response = client.post(
        f"/contracts/{collection}/query",
        json={"msg": {"tokens": {"owner": BUYER, "start_after": 0}}},
    )

    assert response.status_code == 400
    assert response.get_json()["code"] == "message_decode_error"


def test_unknown_contract_is_404(client):
    response = client.get("/contracts/wasm1missing")

    assert response.status_code == 404
    assert response.get_json()["code"] == "unknown_contract"


@pytest.mark.parametrize(
    "payload",
    [
        None,
        {"code_id": 1, "msg": {}},
        {"sender": "a", "code_id": "1", "msg": {}},
        {"sender": "a", "code_id": 1, "msg": "{}"},
    ],
)
def test_invalid_instantiate_payload(client, payload):
    response = client.post("/contracts/instantiate", json=payload)

    assert response.status_code == 400
    assert response.get_json()["code"] == "invalid_payload"


def test_unknown_route_uses_error_shape(client):
    response = client.get("/nowhere")

    assert response.status_code == 404
    assert response.get_json()["code"] == "not_found"


def test_metrics_endpoint_exposes_counters(client, deployed, registry):
    _buy(client, deployed)
    _buy(client, deployed, amount="2")

    response = client.get("/metrics")

    assert response.status_code == 200
    text = response.get_data(as_text=True)
    assert "nftsale_operations_total" in text
    assert "nftsale_contract_actions_total" in text

    def sample(name, **labels):
        return registry.get_sample_value(name, labels)

    assert sample("nftsale_operations_total", entry_point="execute", outcome="success") == 1.0
    assert sample("nftsale_operations_total", entry_point="execute", outcome="wrong_payment_amount") == 1.0
    assert sample("nftsale_contract_actions_total", contract="nftsale:fixed-price", action="mint") == 1.0
