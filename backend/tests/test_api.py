from sqlmodel import Session

from ioc_lens.core.errors import UpstreamUnavailable
from ioc_lens.services.storage import IndicatorStore


def _store(engine):
    return IndicatorStore(Session(engine, expire_on_commit=False))


def test_analyze_url_fresh_then_cached(client, retriever, reasoner, ioc_payload):
    r = client.post("/api/analyze-url", json={"url": "http://a.test"})
    assert r.status_code == 200
    body = r.json()
    assert body["origin"] == "fresh"
    assert body["indicators"] == ioc_payload
    assert "message" not in body

    r = client.post("/api/analyze-url", json={"url": "http://a.test"})
    cached = r.json()
    assert cached["origin"] == "cache"
    assert cached["id"] == body["id"]
    assert cached["message"] == "Retrieved from cache"
    assert len(retriever.calls) == 1
    assert len(reasoner.calls) == 1


def test_analyze_url_requires_url(client):
    r = client.post("/api/analyze-url", json={})
    assert r.status_code == 400
    assert r.json()["category"] == "validation"
    assert r.json()["message"] == "URL is required"


def test_bad_model_output_is_bad_gateway(client, reasoner):
    reasoner.responses["extract_iocs"] = {"indicators": "nope", "categories": []}

    r = client.post("/api/analyze-url", json={"url": "http://a.test"})

    assert r.status_code == 502
    body = r.json()
    assert body["category"] == "validation"
    assert body["errors"][0]["loc"] == "indicators"


def test_scrape_failure_is_reported(client, retriever):
    def down(url):
        raise UpstreamUnavailable(f"Could not fetch {url}: HTTP 404")

    retriever.fetch = down

    r = client.post("/api/analyze-url", json={"url": "http://gone.test"})
    assert r.status_code == 502
    assert r.json() == {"message": "Could not fetch http://gone.test: HTTP 404", "category": "upstream_unavailable"}


def test_analysis_is_owned_by_logged_in_user(client, engine, login):
    store = _store(engine)
    alice = store.create_user(email="alice@example.test", google_id="g-alice")
    login(alice)

    rid = client.post("/api/analyze-url", json={"url": "http://a.test"}).json()["id"]

    assert store.get_record_by_id(rid).user_id == alice.id


def test_generate_searches_ephemeral(client, ioc_payload, query_payload, engine):
    r = client.post("/api/generate-searches", json={"indicators": ioc_payload["indicators"]})

    assert r.status_code == 200
    assert r.json() == query_payload
    assert _store(engine).get_search_queries_by_record_id(1) is None


def test_generate_searches_persisted_and_readable(client, ioc_payload, query_payload):
    rid = client.post("/api/analyze-url", json={"url": "http://a.test"}).json()["id"]

    r = client.post("/api/generate-searches", json={"indicators": ioc_payload["indicators"], "iocId": rid})
    assert r.status_code == 200

    r = client.get(f"/api/iocs/{rid}/search-queries")
    assert r.status_code == 200
    body = r.json()
    assert body["iocId"] == rid
    assert body["qradar"] == query_payload["qradar"]
    assert body["sentinel"] == query_payload["sentinel"]

    detail = client.get(f"/api/iocs/{rid}").json()
    assert detail["url"] == "http://a.test"
    assert detail["searchQueries"]["qradar"] == query_payload["qradar"]


def test_generate_searches_rejects_bad_indicators(client, reasoner):
    r = client.post("/api/generate-searches", json={"indicators": [{"value": "1.2.3.4"}]})
    assert r.status_code == 400
    assert reasoner.calls == []

    r = client.post("/api/generate-searches", json={})
    assert r.status_code == 400


def test_generate_searches_unknown_record(client, reasoner, ioc_payload):
    r = client.post("/api/generate-searches", json={"indicators": ioc_payload["indicators"], "iocId": 999})
    assert r.status_code == 404
    assert reasoner.calls == []


def test_record_of_other_user_is_forbidden(client, engine, login, ioc_payload):
    store = _store(engine)
    alice = store.create_user(email="alice@example.test", google_id="g-alice")
    bob = store.create_user(email="bob@example.test", google_id="g-bob")
    record = store.create_record(url="http://a.test", indicators=ioc_payload, owner_user_id=alice.id)

    login(bob)
    r = client.get(f"/api/iocs/{record.id}")
    assert r.status_code == 403
    assert r.json()["category"] == "forbidden"

    login(alice)
    assert client.get(f"/api/iocs/{record.id}").status_code == 200


def test_missing_record(client):
    r = client.get("/api/iocs/4242")
    assert r.status_code == 404
    assert client.get("/api/iocs/4242/search-queries").status_code == 404


def test_history_requires_login(client):
    assert client.get("/api/history").status_code == 401


def test_history_lists_own_summaries(client, engine, login, ioc_payload):
    store = _store(engine)
    alice = store.create_user(email="alice@example.test", google_id="g-alice")
    store.create_record(url="http://other.test", indicators=ioc_payload)
    login(alice)

    client.post("/api/analyze-url", json={"url": "http://a.test"})
    client.post("/api/analyze-url", json={"url": "http://b.test"})

    r = client.get("/api/history")
    assert r.status_code == 200
    items = r.json()
    assert [i["url"] for i in items] == ["http://b.test", "http://a.test"]
    assert items[0]["summary"] == {
        "totalIndicators": 2,
        "categories": [{"name": "ip", "count": 1}, {"name": "domain", "count": 1}],
        "highestRiskLevel": "high",
    }
    assert "createdAt" in items[0]


def test_current_user_and_logout(client, engine, login):
    assert client.get("/api/current-user").json() is None

    alice = _store(engine).create_user(email="alice@example.test", username="Alice", google_id="g-alice")
    login(alice)
    assert client.get("/api/current-user").json() == {
        "id": alice.id,
        "email": "alice@example.test",
        "username": "Alice",
    }

    assert client.post("/api/logout").json() == {"success": True}


def test_cached_record_of_other_user_is_usable_by_requester(client, engine, login, query_payload, ioc_payload):
    store = _store(engine)
    alice = store.create_user(email="alice@example.test", google_id="g-alice")
    bob = store.create_user(email="bob@example.test", google_id="g-bob")
    carol = store.create_user(email="carol@example.test", google_id="g-carol")

    login(alice)
    rid = client.post("/api/analyze-url", json={"url": "http://shared.test"}).json()["id"]

    login(bob)
    served = client.post("/api/analyze-url", json={"url": "http://shared.test"}).json()
    assert served["origin"] == "cache"
    assert served["id"] == rid

    r = client.post("/api/generate-searches", json={"indicators": ioc_payload["indicators"], "iocId": rid})
    assert r.status_code == 200
    assert r.json() == query_payload
    assert client.get(f"/api/iocs/{rid}").status_code == 200
    assert [i["id"] for i in client.get("/api/history").json()] == [rid]

    # never requested the URL
    login(carol)
    assert client.get(f"/api/iocs/{rid}").status_code == 403
    assert client.get("/api/history").json() == []


def test_anonymous_cache_hit_hides_owned_record_id(client, engine, login, ioc_payload):
    store = _store(engine)
    alice = store.create_user(email="alice@example.test", google_id="g-alice")
    store.create_record(url="http://private.test", indicators=ioc_payload, owner_user_id=alice.id)

    body = client.post("/api/analyze-url", json={"url": "http://private.test"}).json()

    assert body["origin"] == "cache"
    assert body["id"] is None
    assert body["indicators"] == ioc_payload


def test_request_shape_errors_use_error_body(client, reasoner, ioc_payload):
    r = client.post("/api/generate-searches", json={"indicators": ioc_payload["indicators"], "iocId": "abc"})

    assert r.status_code == 400
    body = r.json()
    assert body["category"] == "validation"
    assert body["errors"][0]["loc"] == "body.iocId"
    assert body["message"].startswith("Invalid request: body.iocId")
    assert reasoner.calls == []
