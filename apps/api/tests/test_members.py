from __future__ import annotations

import pytest
from httpx import AsyncClient

from conftest import ALICE, ANONYMOUS, BOB, CAROL, as_user, create_board


async def _add(client: AsyncClient, board_id: int, principal: str, actor: str = ALICE):
  return await client.post(f"/boards/{board_id}/members", json={"principal": principal}, headers=as_user(actor))


async def _members(client: AsyncClient, board_id: int, actor: str = ALICE) -> list[tuple[str, str]]:
  res = await client.get(f"/boards/{board_id}/members", headers=as_user(actor))
  assert res.status_code == 200, res.text
  return [(m["userId"], m["role"]) for m in res.json()]


@pytest.mark.anyio
async def test_invited_principal_becomes_member_and_can_leave(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  res = await _add(client, board_id, "never-seen-before")
  assert res.status_code == 200, res.text
  assert ("never-seen-before", "member") in await _members(client, board_id)

  left = await client.post(f"/boards/{board_id}/leave", headers=as_user("never-seen-before"))
  assert left.status_code == 200, left.text
  assert await _members(client, board_id) == [(ALICE, "owner")]

  owner_leave = await client.post(f"/boards/{board_id}/leave", headers=as_user(ALICE))
  assert owner_leave.status_code == 409


@pytest.mark.anyio
async def test_add_member_rules(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  assert (await _add(client, board_id, BOB)).status_code == 200
  assert (await _add(client, board_id, BOB)).status_code == 409
  assert (await _add(client, board_id, ANONYMOUS)).status_code == 400
  # members cannot invite
  assert (await _add(client, board_id, CAROL, actor=BOB)).status_code == 403


@pytest.mark.anyio
async def test_remove_member(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  await _add(client, board_id, BOB)

  assert (await client.delete(f"/boards/{board_id}/members/{ALICE}", headers=as_user(BOB))).status_code == 403
  assert (await client.delete(f"/boards/{board_id}/members/{ALICE}", headers=as_user(ALICE))).status_code == 409
  assert (await client.delete(f"/boards/{board_id}/members/{CAROL}", headers=as_user(ALICE))).status_code == 404

  res = await client.delete(f"/boards/{board_id}/members/{BOB}", headers=as_user(ALICE))
  assert res.status_code == 200, res.text
  assert (await client.get(f"/boards/{board_id}", headers=as_user(BOB))).status_code == 403


@pytest.mark.anyio
async def test_transfer_ownership_swaps_roles(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  await _add(client, board_id, BOB)

  assert (
    await client.post(f"/boards/{board_id}/transfer-ownership", json={"newOwnerId": CAROL}, headers=as_user(ALICE))
  ).status_code == 404

  res = await client.post(f"/boards/{board_id}/transfer-ownership", json={"newOwnerId": BOB}, headers=as_user(ALICE))
  assert res.status_code == 200, res.text
  roles = dict(await _members(client, board_id))
  assert roles == {ALICE: "member", BOB: "owner"}
  board = (await client.get(f"/boards/{board_id}", headers=as_user(ALICE))).json()["board"]
  assert board["ownerId"] == BOB

  # the former owner lost owner rights and can now leave
  assert (await client.delete(f"/boards/{board_id}", headers=as_user(ALICE))).status_code == 403
  assert (await client.post(f"/boards/{board_id}/leave", headers=as_user(ALICE))).status_code == 200


@pytest.mark.anyio
async def test_member_profiles(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  await _add(client, board_id, BOB)
  await _add(client, board_id, CAROL)
  await client.put("/profile", json={"username": "alice", "email": "alice@example.com"}, headers=as_user(ALICE))
  await client.put("/profile", json={"username": "carol", "email": "carol@example.com"}, headers=as_user(CAROL))

  res = await client.get(f"/boards/{board_id}/members/profiles", headers=as_user(BOB))
  assert res.status_code == 200, res.text
  assert [p["username"] for p in res.json()] == ["alice", "carol"]
