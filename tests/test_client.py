import pytest

from youlin_client import (
    ChatState,
    ClientConfigError,
    ClientSettings,
    Gateway,
    GatewayError,
    ListingFeed,
    Marketplace,
    Modal,
    SessionContext,
)

from helpers import PASSWORD, client, set_energy, unique_city, unique_email


def make_gateway() -> Gateway:
    return Gateway(ClientSettings("http://testserver", "test-key"), client=client)


def signed_in_market(city: str, prefix: str = "user") -> Marketplace:
    m = Marketplace(make_gateway(), city=city)
    m.attach()
    assert m.submit_auth(unique_email(prefix), PASSWORD, is_login=False)
    return m


def test_settings_require_url_and_key(monkeypatch):
    monkeypatch.delenv("YOULIN_API_URL", raising=False)
    monkeypatch.delenv("YOULIN_API_KEY", raising=False)
    with pytest.raises(ClientConfigError) as exc:
        ClientSettings.from_env()
    assert "YOULIN_API_URL" in str(exc.value)
    assert "YOULIN_API_KEY" in str(exc.value)

    monkeypatch.setenv("YOULIN_API_URL", "https://api.example.com/")
    monkeypatch.setenv("YOULIN_API_KEY", "anon")
    s = ClientSettings.from_env()
    assert s.api_url == "https://api.example.com"
    assert s.api_key == "anon"


def test_gateway_surfaces_error_envelope():
    gw = make_gateway()
    with pytest.raises(GatewayError) as exc:
        gw.sign_in(unique_email(), "nope-nope")
    assert exc.value.status == 401
    assert exc.value.code == "invalid_credentials"


def test_session_listeners_only_hear_while_attached():
    ctx = SessionContext(make_gateway())
    seen = []
    ctx.attach(seen.append)
    identity = ctx.authenticate(unique_email(), PASSWORD, is_login=False)
    assert seen == [identity]
    assert ctx.energy == 10
    assert ctx.can_post_seek is True

    ctx.detach()
    ctx.sign_out()
    assert seen == [identity]
    assert ctx.identity is None
    assert ctx.gateway.token is None


def test_restore_with_rejected_token_signs_out():
    ctx = SessionContext(make_gateway())
    ctx.attach()
    assert ctx.restore("not-a-token") is None
    assert ctx.identity is None
    assert ctx.gateway.token is None


def test_feed_ignores_stale_responses():
    feed = ListingFeed(make_gateway(), unique_city())
    old = feed.issue()
    new = feed.issue()
    assert feed.apply(old, [{"id": "stale"}]) is False
    assert feed.listings == []
    assert feed.apply(new, [{"id": "fresh"}]) is True
    assert feed.listings == [{"id": "fresh"}]


def test_publish_requires_sign_in():
    m = Marketplace(make_gateway(), city=unique_city())
    m.attach()
    assert m.publish("Free books") is None
    assert m.active_modal is Modal.AUTH
    assert m.toast.message == "Please sign in first"


def test_publish_offer_and_seek_gate():
    m = signed_in_market(unique_city())
    created = m.publish("Free books", "two boxes")
    assert created is not None
    assert m.toast.kind == "success"
    assert m.toast.message == "Posted, energy +5"
    assert m.energy == 15
    assert [row["id"] for row in m.listings] == [created["id"]]

    set_energy(m.user.user_id, 0)
    m.session.refresh_energy()
    assert m.publish("Need a ladder", type="seek") is None
    assert m.toast.kind == "error"
    assert len(m.listings) == 1


def test_switching_city_reloads_feed():
    first, second = unique_city(), unique_city()
    m = signed_in_market(first)
    m.publish("Lamp")
    m.set_city(second)
    assert m.listings == []
    m.set_city(first)
    assert [row["title"] for row in m.listings] == ["Lamp"]


def test_edit_and_revoke_own_listing():
    m = signed_in_market(unique_city())
    listing = m.publish("Old chair")
    m.open_profile()
    assert m.active_modal is Modal.PROFILE
    assert [row["id"] for row in m.my_listings] == [listing["id"]]

    m.start_edit(listing)
    assert m.save_edit("Old armchair", "still comfy")
    assert m.listings[0]["title"] == "Old armchair"

    assert m.revoke(listing, confirm=lambda prompt: False) is False
    assert len(m.listings) == 1
    assert m.revoke(listing, confirm=lambda prompt: True) is True
    assert m.toast.message == "Revoked"
    assert m.listings == []
    assert m.my_listings[0]["status"] == "inactive"


def test_chat_between_neighbours():
    city = unique_city()
    owner = signed_in_market(city, "owner")
    listing = owner.publish("Spare tent")

    asker = signed_in_market(city, "asker")
    assert asker.open_chat(listing) is True
    assert asker.active_modal is Modal.CHAT
    assert asker.chat.state is ChatState.ACTIVE
    assert not asker.chat.is_ephemeral

    msg = asker.send_message("Could I borrow it this weekend?")
    assert msg["receiver_id"] == owner.user.user_id
    assert asker.chat.messages[-1]["id"] == msg["id"]

    inbox = owner.open_inbox()
    assert [c["id"] for c in inbox] == [asker.chat.conversation.id]

    asker.close_modal()
    assert asker.chat is None


def test_chat_with_own_listing_is_refused():
    m = signed_in_market(unique_city())
    listing = m.publish("Bread maker")
    assert m.open_chat(listing) is False
    assert m.toast.kind == "error"
    assert m.chat is None


def test_ephemeral_chat_keeps_messages_locally(monkeypatch):
    city = unique_city()
    owner = signed_in_market(city, "owner")
    listing = owner.publish("Sewing machine")
    asker = signed_in_market(city, "asker")

    def ephemeral_open(listing_id):
        return {
            "kind": "ephemeral",
            "conversation": {
                "id": None,
                "item_id": listing_id,
                "participant1_id": asker.user.user_id,
                "participant2_id": owner.user.user_id,
            },
            "messages": [],
        }

    monkeypatch.setattr(asker.gateway, "open_conversation", ephemeral_open)
    monkeypatch.setattr(asker.gateway, "send_message", lambda *a, **kw: pytest.fail("ephemeral chat must not hit the API"))

    assert asker.open_chat(listing)
    assert asker.chat.is_ephemeral
    assert asker.toast.message.startswith("Demo mode")
    msg = asker.send_message("hello")
    assert msg["id"].startswith("local-")
    assert msg["receiver_id"] == owner.user.user_id
    assert asker.chat.conversation.messages == [msg]


def test_sign_out_clears_identity_and_chat():
    city = unique_city()
    owner = signed_in_market(city, "owner")
    listing = owner.publish("Board games")
    asker = signed_in_market(city, "asker")
    asker.open_chat(listing)

    asker.sign_out()
    assert asker.user is None
    assert asker.chat is None
    assert asker.energy == 10
    assert asker.toast.message == "Signed out"


def test_publish_survives_failed_energy_refresh(monkeypatch):
    m = signed_in_market(unique_city())
    m.active_modal = Modal.PUBLISH

    def session_down():
        raise GatewayError("network down", code="network_error")

    monkeypatch.setattr(m.gateway, "session", session_down)
    created = m.publish("Free books")
    assert created is not None
    assert m.active_modal is None
    assert m.energy == 15
    assert m.toast.message == "Posted, energy +5"
    assert [row["id"] for row in m.listings] == [created["id"]]


def test_profile_and_city_picker_load_from_service():
    m = signed_in_market(unique_city())
    m.publish("Desk")
    m.open_profile()
    assert m.profile["energy"] == 15
    assert m.profile["active_listings"] == 1
    assert m.profile["tier"]["title"] == "Firefly"

    m.open_city_picker()
    assert m.active_modal is Modal.CITY
    assert "上海市" in m.cities
    m.set_city(m.cities[0])
    assert m.active_modal is None


def test_reload_chat_reads_stored_history():
    city = unique_city()
    owner = signed_in_market(city, "owner")
    listing = owner.publish("Projector")
    asker = signed_in_market(city, "asker")
    asker.open_chat(listing)
    asker.send_message("still free?")
    asker.chat.messages = []

    asker.reload_chat()
    assert [msg["content"] for msg in asker.chat.messages] == ["still free?"]
