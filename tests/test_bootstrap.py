import json

import httpx

from fantasy_cricket.core.config import Settings
from fantasy_cricket.core.http import HttpRetryingClient
from fantasy_cricket.services.bootstrap import load_documents


def test_packaged_documents_load():
    docs = load_documents(Settings())
    assert docs.tournament.event_id == "t20wc_2026"
    assert {m.match_id for m in docs.tournament.matches} >= {"wc_m1", "wc_m2", "wc_m3", "wc_m4"}
    assert len(docs.library.templates) >= 3
    assert docs.long_term.reopen_cost_points == 50
    assert docs.questions.configs_by_match["wc_m4"].multiplier_preset == [2, 1]


def test_local_override_wins(tmp_path):
    path = tmp_path / "library.json"
    path.write_text(json.dumps({"templates": [{"templateId": "only_one", "text": "Q?", "options": [{"label": "A"}]}]}))
    docs = load_documents(Settings(side_bet_library_path=str(path)))
    assert [t.template_id for t in docs.library.templates] == ["only_one"]


def test_remote_documents_fetched_with_retry(tmp_path):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if request.url.path.endswith("tournament.json") and calls.count(request.url.path) == 1:
            return httpx.Response(503)
        if request.url.path.endswith("tournament.json"):
            return httpx.Response(200, json={"eventId": "remote_cup", "teams": [], "players": [], "matches": []})
        return httpx.Response(404)

    client = HttpRetryingClient("https://data.example", transport=httpx.MockTransport(handler), backoff=0)
    docs = load_documents(Settings(data_base_url="https://data.example"), client=client, data_dir=tmp_path)
    assert docs.tournament.event_id == "remote_cup"
    assert calls.count("/tournament.json") == 2
    # 404 elsewhere and nothing packaged in tmp_path: empty defaults
    assert docs.library.templates == []
    assert docs.questions.questions_by_match == {}


def test_invalid_document_degrades_to_default(tmp_path):
    (tmp_path / "tournament.json").write_text(json.dumps({"teams": "not a list"}))
    docs = load_documents(Settings(event_id="fallback"), data_dir=tmp_path)
    assert docs.tournament.event_id == "fallback"
    assert docs.tournament.matches == []
