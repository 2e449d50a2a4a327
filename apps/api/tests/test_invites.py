from __future__ import annotations

import re

import pytest
from httpx import AsyncClient

from conftest import ALICE, BOB, CAROL, as_user, create_board

CODE_RE = re.compile(r"^[A-HJ-NP-Z2-9]{4}-[A-HJ-NP-Z2-9]{4}$")


async def _invite(client: AsyncClient, board_id: int) -> str:
  res = await client.post(f"/boards/{board_id}/invites", headers=as_user(ALICE))
  assert res.status_code == 200, res.text
  return res.json()["code"]


@pytest.mark.anyio
async def test_generated_code_format_and_listing(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  first = await _invite(client, board_id)
  second = await _invite(client, board_id)
  assert CODE_RE.match(first), first
  assert CODE_RE.match(second), second
  assert first != second

  res = await client.get(f"/boards/{board_id}/invites", headers=as_user(ALICE))
  assert res.status_code == 200, res.text
  assert [i["inviteCode"] for i in res.json()] == [first, second]


@pytest.mark.anyio
async def test_invite_details_are_public_and_minimal(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE, "Launch")
  code = await _invite(client, board_id)

  res = await client.get(f"/invites/{code}")
  assert res.status_code == 200, res.text
  assert res.json() == {"boardName": "Launch", "memberCount": 1}

  unknown = await client.get("/invites/ZZZZ-ZZZZ")
  assert unknown.status_code == 404
  assert unknown.json()["detail"]["code"] == "not_found"


@pytest.mark.anyio
async def test_join_consumes_code_exactly_once(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  code = await _invite(client, board_id)

  res = await client.post(f"/invites/{code}/join", headers=as_user(BOB))
  assert res.status_code == 200, res.text
  assert res.json() == {"boardId": board_id}

  members = (await client.get(f"/boards/{board_id}/members", headers=as_user(BOB))).json()
  assert [(m["userId"], m["role"]) for m in members] == [(ALICE, "owner"), (BOB, "member")]

  again = await client.post(f"/invites/{code}/join", headers=as_user(CAROL))
  assert again.status_code == 404
  assert (await client.get(f"/boards/{board_id}/invites", headers=as_user(ALICE))).json() == []


@pytest.mark.anyio
async def test_join_accepts_lowercase_code(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  code = await _invite(client, board_id)
  res = await client.post(f"/invites/{code.lower()}/join", headers=as_user(BOB))
  assert res.status_code == 200, res.text


@pytest.mark.anyio
async def test_existing_member_cannot_join_again(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  code = await _invite(client, board_id)
  res = await client.post(f"/invites/{code}/join", headers=as_user(ALICE))
  assert res.status_code == 409
  # the code stays usable for someone else
  assert (await client.post(f"/invites/{code}/join", headers=as_user(BOB))).status_code == 200


@pytest.mark.anyio
async def test_join_requires_authentication(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  code = await _invite(client, board_id)
  assert (await client.post(f"/invites/{code}/join")).status_code == 401


@pytest.mark.anyio
async def test_only_owner_manages_invites(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  await client.post(f"/boards/{board_id}/members", json={"principal": BOB}, headers=as_user(ALICE))
  code = await _invite(client, board_id)

  assert (await client.post(f"/boards/{board_id}/invites", headers=as_user(BOB))).status_code == 403
  assert (await client.get(f"/boards/{board_id}/invites", headers=as_user(BOB))).status_code == 403
  assert (await client.delete(f"/invites/{code}", headers=as_user(BOB))).status_code == 403


@pytest.mark.anyio
async def test_revoked_code_cannot_be_used(client: AsyncClient) -> None:
  board_id = await create_board(client, ALICE)
  code = await _invite(client, board_id)

  res = await client.delete(f"/invites/{code}", headers=as_user(ALICE))
  assert res.status_code == 200, res.text
  assert (await client.get(f"/invites/{code}")).status_code == 404
  assert (await client.post(f"/invites/{code}/join", headers=as_user(BOB))).status_code == 404
  assert (await client.delete(f"/invites/{code}", headers=as_user(ALICE))).status_code == 404


@pytest.mark.anyio
async def test_invite_lookup_rate_limited(client: AsyncClient, test_settings) -> None:
  test_settings.rate_limit_invite_lookup_ip_per_minute = 2
  for _ in range(2):
    r = await client.get("/invites/ZZZZ-ZZZZ")
    assert r.status_code == 404, r.text
  r = await client.get("/invites/ZZZZ-ZZZZ")
  assert r.status_code == 429, r.text
  assert r.headers.get("retry-after")
