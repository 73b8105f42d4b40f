import base64
import httpx
from unittest.mock import patch
from tests.helpers import path_echo, refused, slow_on_second

def _data_uri(text: str) -> str:
    return "data:text/plain;charset=utf-8;base64," + base64.b64encode(text.encode()).decode()

class TestIntegrationAggregate:
    """Integration tests for the JSON aggregate endpoint"""

    def test_fetch_expands_and_encodes(self, make_api):
        """Test the prefix/inner expansion end to end"""
        with make_api(path_echo) as client:
            response = client.get(
                "/json",
                params=[("p", "http://origin/"), ("i", "ohai"), ("i", "lol")],
                headers={"Origin": "http://example.com", "Accept-Encoding": "gzip"},
            )

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/json;charset=utf-8"
        assert response.json() == {
            "http://origin/ohai": {"uri": _data_uri("/ohai")},
            "http://origin/lol": {"uri": _data_uri("/lol")},
        }

    def test_cors_and_gzip(self, make_api):
        """Test the response decorators wrap the aggregate"""
        with make_api(path_echo) as client:
            response = client.get(
                "/json?p=http://origin/ohai",
                headers={"Origin": "http://example.com", "Accept-Encoding": "gzip"},
            )

        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["content-encoding"] == "gzip"
        assert "Accept-Encoding" in response.headers["vary"]
        assert "http://origin/ohai" in response.json()

    def test_timeout_and_cache_header(self, make_api, test_settings):
        """Test a slow origin times out while the fast one bounds caching"""
        test_settings.ORIGIN_TIMEOUT = 0.1
        with make_api(slow_on_second) as client:
            response = client.get("/json?p=http://origin/ohai?&i=1&i=2")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "public,max-age=10"
        assert response.json() == {
            "http://origin/ohai?1": {"uri": _data_uri("/ohai")},
            "http://origin/ohai?2": {"err": "timeout 0.1s"},
        }

    def test_origin_without_cache_control(self, make_api):
        with make_api(path_echo) as client:
            response = client.get("/json?p=http://origin/a")

        assert response.headers["cache-control"] == "private,no-store,max-age=0"

    def test_malformed_cache_control_is_uncacheable(self, make_api):
        """Test an origin's odd max-age never fails the aggregate"""
        def handler(request):
            return httpx.Response(200, headers={"Cache-Control": "max-age=²".encode("latin-1")}, text="ok")

        with make_api(handler) as client:
            response = client.get("/json?p=http://origin/a")

        assert response.status_code == 200
        assert response.headers["cache-control"] == "private,no-store,max-age=0"
        assert response.json() == {"http://origin/a": {"uri": _data_uri("ok")}}

    def test_origin_failure_is_still_200(self, make_api):
        with make_api(refused) as client:
            response = client.get("/json?p=http://down/&i=a")

        assert response.status_code == 200
        body = response.json()
        assert list(body) == ["http://down/a"]
        assert "refused" in body["http://down/a"]["err"]
        assert "uri" not in body["http://down/a"]

    def test_missing_prefix(self, make_api):
        """Test a query without p is rejected before any fetch"""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        with make_api(handler) as client:
            response = client.get("/json?i=ohai")

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text.startswith("bad query parameters:")
        assert requests == []

    def test_unsupported_method(self, make_api):
        with make_api(path_echo) as client:
            response = client.post("/json?p=http://origin/a")
            head = client.head("/json?p=http://origin/a")

        assert response.status_code == 400
        assert response.text == "unsupported method"
        assert head.status_code == 400

    def test_options_with_origin_short_circuits(self, make_api):
        with make_api(path_echo) as client:
            response = client.options("/json", headers={"Origin": "http://example.com"})

        assert response.status_code == 200
        assert response.text == ""

    def test_cors_preflight(self, make_api):
        with make_api(path_echo) as client:
            response = client.options(
                "/json",
                headers={"Origin": "http://example.com", "Access-Control-Request-Method": "GET"},
            )

        assert response.status_code == 200
        assert "GET" in response.headers["access-control-allow-methods"]

    def test_options_without_origin(self, make_api):
        with make_api(path_echo) as client:
            response = client.options("/json")

        assert response.status_code == 400

    def test_custom_json_root(self, make_api, test_settings):
        test_settings.JSON_ROOT = "/aggregate"
        with make_api(path_echo) as client:
            assert client.get("/aggregate?p=http://origin/a").status_code == 200
            assert client.get("/json?p=http://origin/a").status_code == 404

    @patch("freeload.services.aggregate.AggregateResponse")
    def test_encoding_failure(self, mock_model, make_api):
        mock_model.return_value.model_dump_json.side_effect = ValueError("unserializable")
        with make_api(path_echo) as client:
            response = client.get("/json?p=http://origin/a")

        assert response.status_code == 500
        assert response.text == "JSON encoding error: unserializable"

class TestDiagnosticsEndpoints:
    """Test counters and utility endpoints"""

    def test_debug_vars(self, make_api):
        with make_api(path_echo) as client:
            client.get("/json?p=http://origin/&i=a&i=b")
            response = client.get("/debug/vars")

        assert response.status_code == 200
        data = response.json()
        assert data["responses"] == 1
        assert data["total_requests"] == 2
        assert data["success_requests"] == 2
        assert data["pending_requests"] == 0
        assert sum(data["latencies"].values()) == 2

    def test_health_endpoint(self, make_api):
        with make_api(path_echo) as client:
            response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_endpoint(self, make_api):
        with make_api(path_echo) as client:
            response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "freeload"
        assert "endpoints" in data
