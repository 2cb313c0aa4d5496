import json

from fastapi.testclient import TestClient

from core.config import AggregatedConfig
from core.config.schemas.server import PathsConfig
from vega_dev.api.app import create_app


def test_manifest_missing_404(client):
    r = client.get("/manifest.json")
    assert r.status_code == 404
    assert r.json() == {"error": "Manifest not found. Run build first."}


def test_manifest_served(client, tmp_path):
    data = [{"value": "demo", "display_name": "Demo", "version": "1.0"}]
    (tmp_path / "manifest.json").write_text(json.dumps(data), encoding="utf-8")
    r = client.get("/manifest.json")
    assert r.status_code == 200
    assert r.json() == data


def test_dist_module_served_as_json_exports(client, provider_file):
    provider_file(
        "demo",
        "catalog.py",
        """
        catalog = [{"title": "Home", "filter": ""}]
        genres = [{"title": "Action", "filter": "/action"}]

        def default(ctx):
            return catalog
        """,
    )
    expected = {
        "catalog": [{"title": "Home", "filter": ""}],
        "genres": [{"title": "Action", "filter": "/action"}],
    }
    assert client.get("/dist/demo/catalog.py").json() == expected
    # suffix fallback
    assert client.get("/dist/demo/catalog").json() == expected


def test_dist_non_module_streamed_raw(client, dist):
    (dist / "demo").mkdir()
    (dist / "demo" / "catalog.py.map").write_text(
        '{"version": 3}', encoding="utf-8"
    )
    r = client.get("/dist/demo/catalog.py.map")
    assert r.status_code == 200
    assert r.text == '{"version": 3}'


def test_dist_missing_file_404_with_hint(client):
    r = client.get("/dist/demo/nope")
    assert r.status_code == 404
    assert r.json() == {
        "error": "File not found: demo/nope",
        "hint": "Make sure to run build first",
    }


def test_dist_module_load_failure_500(client, provider_file):
    provider_file("demo", "broken.py", "raise ImportError('missing dep')\n")
    r = client.get("/dist/demo/broken.py")
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to load module", "details": "missing dep"}


def test_deeper_dist_paths_served_statically(client, dist):
    assets = dist / "demo" / "assets"
    assets.mkdir(parents=True)
    (assets / "logo.txt").write_text("logo", encoding="utf-8")
    r = client.get("/dist/demo/assets/logo.txt")
    assert r.status_code == 200
    assert r.text == "logo"


def test_dist_module_with_unencodable_export_500(client, provider_file):
    provider_file("demo", "meta.py", "rating = float('nan')\n")
    r = client.get("/dist/demo/meta.py")
    assert r.status_code == 500
    assert r.json()["error"] == "Failed to load module"


def test_static_dist_served_once_build_creates_it(tmp_path):
    cfg = AggregatedConfig(paths=PathsConfig(root=str(tmp_path)))
    client = TestClient(create_app(cfg))
    r = client.get("/dist/demo/assets/logo.txt")
    assert r.status_code == 404
    assert "availableEndpoints" in r.json()
    # what a POST /build after startup would produce
    assets = tmp_path / "dist" / "demo" / "assets"
    assets.mkdir(parents=True)
    (assets / "logo.txt").write_text("logo", encoding="utf-8")
    r = client.get("/dist/demo/assets/logo.txt")
    assert r.status_code == 200
    assert r.text == "logo"
