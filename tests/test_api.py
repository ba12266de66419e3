"""
Tests for the HTTP routes, end to end through FastAPI.
"""

import pytest
from fastapi.testclient import TestClient

from ghost.api.app import create_app
from ghost.integrations.farcaster import SignInResult
from ghost.integrations.neynar import NeynarError

from conftest import cookie_from

SIGN_IN = {"message": "m", "signature": "0xs", "nonce": "n", "username": "alice"}


@pytest.fixture
def app(settings, storage, sign_in_verifier, social_graph):
    return create_app(sign_in_verifier, social_graph, settings=settings, storage=storage)


@pytest.fixture
def client(app):
    return TestClient(app, follow_redirects=False)


def sign_in(client, **params):
    response = client.get("/auth/farcaster", params={**SIGN_IN, **params})
    assert response.status_code == 302
    return response


def create_team(client, name="trolls") -> str:
    response = client.post("/~", data={"name": name})
    assert response.status_code == 302
    return response.headers["location"].rsplit("/", 1)[1]


class TestSignIn:
    def test_success_sets_cookie_and_redirects(self, client):
        response = sign_in(client)
        
        assert response.headers["location"] == "/~"
        assert "_session=" in response.headers["set-cookie"]
        
        teams = client.get("/~")
        assert teams.status_code == 200
        assert teams.json()["user"]["id"] == "1001"
        assert teams.json()["teams"] == []

    def test_failure_redirects_home_with_toast_once(self, client, sign_in_verifier):
        sign_in_verifier.result = SignInResult(success=False, error="bad")
        
        response = client.get("/auth/farcaster", params=SIGN_IN)
        assert response.status_code == 302
        assert response.headers["location"] == "/"
        
        first = client.get("/").json()
        assert first["user"] is None
        assert first["flash"]["type"] == "error"
        assert first["flash"]["message"] == "Invalid signature"
        
        assert client.get("/").json()["flash"] is None

    def test_sign_in_after_failure_leaves_no_stale_flash(self, app, client, sign_in_verifier):
        sign_in_verifier.result = SignInResult(success=False, error="bad")
        client.get("/auth/farcaster", params=SIGN_IN)
        assert client.get("/").json()["flash"]["message"] == "Invalid signature"
        
        sign_in_verifier.result = SignInResult(success=True, fid=1001)
        response = sign_in(client)
        
        session = app.state.auth.sessions.get_session(cookie_from(response.headers["set-cookie"]))
        assert session.data == {"user_id": "1001"}

    def test_missing_credentials_never_reach_verifier(self, client, sign_in_verifier):
        response = client.get("/auth/farcaster", params={"message": "m"})
        assert response.headers["location"] == "/"
        assert sign_in_verifier.calls == []

    def test_signer_sign_in(self, client, social_graph):
        social_graph.add_profile(2002, "bob")
        social_graph.add_signer("uuid-b", 2002)
        
        response = client.get("/auth/neynar", params={"signerUuid": "uuid-b", "fid": "2002"})
        
        assert response.headers["location"] == "/~"
        assert client.get("/~").json()["user"]["signer_uuid"] == "uuid-b"

    def test_unknown_strategy(self, client):
        assert client.get("/auth/password").status_code == 404

    def test_signed_out_is_sent_home(self, client):
        response = client.get("/~")
        assert response.status_code == 302
        assert response.headers["location"] == "/"

    def test_logout(self, client):
        sign_in(client)
        response = client.post("/logout")
        
        assert response.headers["location"] == "/"
        assert client.get("/~").status_code == 302


class TestTeams:
    def test_create_and_show(self, client):
        sign_in(client)
        team_id = create_team(client)
        
        team = client.get(f"/~/teams/{team_id}").json()["team"]
        assert team["team"]["name"] == "trolls"
        assert [m["user"]["id"] for m in team["teammates"]] == ["1001"]

    def test_create_requires_name(self, client):
        sign_in(client)
        response = client.post("/~", data={"name": ""})
        
        assert response.status_code == 400
        assert response.json()["message"].startswith("name: ")
        assert client.get("/").json()["flash"]["type"] == "error"

    def test_non_member_is_forbidden(self, app, client, sign_in_verifier):
        sign_in(client)
        team_id = create_team(client)
        
        sign_in_verifier.result = SignInResult(success=True, fid=666)
        other = TestClient(app, follow_redirects=False)
        sign_in(other, username="mallory")
        
        response = other.get(f"/~/teams/{team_id}")
        assert response.status_code == 302
        assert response.headers["location"] == "/403"

    def test_add_teammate(self, client, social_graph):
        sign_in(client)
        team_id = create_team(client)
        social_graph.add_profile(2002, "bob")
        
        response = client.post(f"/~/teams/{team_id}", data={"intent": "addTeammate", "username": " Bob "})
        
        assert response.status_code == 200
        assert response.json()["message"] == "Added @bob"
        assert client.get("/").json()["flash"]["message"] == "Added @bob"

    def test_add_unknown_teammate(self, client):
        sign_in(client)
        team_id = create_team(client)
        
        response = client.post(f"/~/teams/{team_id}", data={"intent": "addTeammate", "username": "nobody"})
        
        assert response.status_code == 400
        assert response.json()["message"] == "@nobody not found, try again?"

    def test_unknown_intent(self, client):
        sign_in(client)
        team_id = create_team(client)
        
        response = client.post(f"/~/teams/{team_id}", data={"intent": "delete"})
        assert response.status_code == 400
        assert response.json()["message"] == "go away"


class TestConnectAndCast:
    def test_connect_then_cast(self, client, social_graph):
        sign_in(client)
        team_id = create_team(client)
        
        response = client.get(
            f"/api/teams/{team_id}/connect",
            params={"signerUuid": "uuid-a", "fid": "1001"},
        )
        assert response.status_code == 302
        assert response.headers["location"] == f"/~/teams/{team_id}"
        assert client.get("/").json()["flash"]["message"] == "Connected! Ghostwriters can now cast as @alice"
        
        response = client.post(f"/~/teams/{team_id}", data={
            "intent": "cast",
            "castContent": "gm",
            "authorId": "1001",
            "embed1": "",
            "embed2": "",
        })
        assert response.status_code == 200
        assert response.json()["message"] == "Cast published!"
        assert social_graph.published[0]["signer_uuid"] == "uuid-a"

    def test_connect_with_other_fid_is_forbidden(self, client):
        sign_in(client)
        team_id = create_team(client)
        
        response = client.get(f"/api/teams/{team_id}/connect", params={"signerUuid": "u", "fid": "42"})
        assert response.headers["location"] == "/403"

    def test_connect_with_missing_params_is_forbidden(self, client):
        sign_in(client)
        team_id = create_team(client)
        
        response = client.get(f"/api/teams/{team_id}/connect", params={"fid": "1001"})
        assert response.headers["location"] == "/403"

    def test_cast_without_grant_is_forbidden(self, client, social_graph):
        sign_in(client)
        team_id = create_team(client)
        
        response = client.post(f"/~/teams/{team_id}", data={
            "intent": "cast",
            "castContent": "gm",
            "authorId": "3003",
        })
        assert response.status_code == 302
        assert response.headers["location"] == "/403"
        assert social_graph.published == []

    def test_publish_failure_is_generic_and_reported(self, client, social_graph, monkeypatch):
        sign_in(client)
        team_id = create_team(client)
        client.get(f"/api/teams/{team_id}/connect", params={"signerUuid": "uuid-a", "fid": "1001"})
        
        async def rate_limited(*args, **kwargs):
            raise NeynarError("rate limited")
        
        social_graph.publish_cast = rate_limited
        captured = []
        monkeypatch.setattr(
            "ghost.core.outcomes.sentry.capture_exception",
            lambda error, **context: captured.append((error, context)),
        )
        
        response = client.post(f"/~/teams/{team_id}", data={
            "intent": "cast",
            "castContent": "gm",
            "authorId": "1001",
        })
        
        assert response.status_code == 500
        assert response.json() == {"error": "unexpected", "message": "Something went wrong, try again"}
        error, context = captured[0]
        assert isinstance(error, NeynarError)
        assert context["user_id"] == "1001"
        assert context["username"] == "alice"

    def test_channel_lookup_is_cached_across_casts(self, client, social_graph):
        sign_in(client)
        team_id = create_team(client)
        client.get(f"/api/teams/{team_id}/connect", params={"signerUuid": "uuid-a", "fid": "1001"})
        
        for text in ("gm", "gn"):
            response = client.post(f"/~/teams/{team_id}", data={
                "intent": "cast",
                "castContent": text,
                "authorId": "1001",
                "channelId": "memes",
            })
            assert response.status_code == 200
        
        assert social_graph.calls["lookup_channel"] == 1
        assert [c["channel_id"] for c in social_graph.published] == ["memes", "memes"]

    def test_unknown_channel_is_rejected(self, client, social_graph):
        sign_in(client)
        team_id = create_team(client)
        client.get(f"/api/teams/{team_id}/connect", params={"signerUuid": "uuid-a", "fid": "1001"})
        social_graph.missing_channels.add("nope")
        
        response = client.post(f"/~/teams/{team_id}", data={
            "intent": "cast",
            "castContent": "gm",
            "authorId": "1001",
            "channelId": "nope",
        })
        
        assert response.status_code == 400
        assert response.json()["message"] == "Channel /nope not found"
        assert social_graph.published == []
