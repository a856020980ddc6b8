from app import create_app
from app.config import BaseConfig


def test_home_lists_plugins():
    app = create_app("TestingConfig")
    client = app.test_client()
    response = client.get("/")
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    titles = [item["title"] for item in payload["data"]["plugins"]]
    assert "Unit Converter" in titles
    assert response.headers.get("Content-Security-Policy")
    assert response.headers.get("X-Request-ID")


def test_plugin_settings_come_from_config_file():
    app = create_app("TestingConfig")
    settings = app.config["PLUGIN_SETTINGS"]["unit_converter"]
    assert settings["suggestions"]["max_results"] == 3
    assert app.config["MAX_CONTENT_LENGTH"] == 1024 * 1024


def test_unknown_routes_return_json_errors():
    client = create_app("TestingConfig").test_client()
    response = client.get("/no/such/page")
    assert response.status_code == 404
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "not_found"


def test_oversized_payload_is_rejected():
    app = create_app("TestingConfig")
    app.config["MAX_CONTENT_LENGTH"] = 16
    client = app.test_client()
    response = client.post("/api/unit_converter/parse", json={"text": "1 meter to foot" * 10})
    assert response.status_code == 413
    assert response.get_json()["success"] is False


def test_manifests_only_carry_configured_summary():
    app = create_app("TestingConfig")
    (manifest,) = app.config["PLUGIN_MANIFESTS"]
    assert set(manifest) == {"title", "summary", "blueprint", "category", "api"}
    assert not any(key.startswith("SESSION_COOKIE") for key in vars(BaseConfig))
