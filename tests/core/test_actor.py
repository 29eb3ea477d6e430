"""Tests for the acting-user dependency."""

from src.core.actor import Actor, encode_actor_name, get_actor


class TestGetActor:
    async def test_decodes_percent_encoded_name(self):
        header = encode_actor_name("Nguyễn Văn An")
        assert header.isascii()

        actor = await get_actor(x_user_id=7, x_user_name=header)

        assert actor == Actor(id=7, name="Nguyễn Văn An")

    async def test_plain_ascii_name_passes_through(self):
        actor = await get_actor(x_user_id=None, x_user_name="  kho.vien  ")
        assert actor.name == "kho.vien"

    async def test_missing_headers(self):
        assert await get_actor(x_user_id=None, x_user_name=None) == Actor()
