#!/usr/bin/env python3
"""Walk through register, login, upload, share, list and delete against a running server."""

import asyncio
import json
import sys
from typing import Any, Dict

import click
import httpx


def _show(label: str, response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        body = response.content[:80]
    print(f"{label}: {response.status_code} {json.dumps(body) if not isinstance(body, bytes) else body!r}")
    return body


async def _signup(client: httpx.AsyncClient, admin_token: str, login: str, password: str) -> str:
    _show(f"register {login}", await client.post("/api/register", json={"token": admin_token, "login": login, "pswd": password}))
    body = _show(f"login {login}", await client.post("/api/auth", json={"login": login, "pswd": password}))
    return body["response"]["token"]


async def run(base: str, admin_token: str, password: str) -> int:
    async with httpx.AsyncClient(base_url=base, timeout=10.0) as client:
        owner = await _signup(client, admin_token, "demoowner1", password)
        reader = await _signup(client, admin_token, "demoreader1", password)
        owner_headers: Dict[str, str] = {"token": owner}
        reader_headers: Dict[str, str] = {"token": reader}

        meta = {"name": "plan", "public": False, "grant": []}
        body = _show(
            "upload private",
            await client.post("/api/docs", headers=owner_headers, data={"meta": json.dumps(meta), "json": json.dumps({"v": 1})}),
        )
        private_id = body["data"]["id"]
        _show("reader fetch private", await client.get(f"/api/docs/{private_id}", headers=reader_headers))

        meta["grant"] = ["demoreader1"]
        body = _show(
            "upload shared",
            await client.post("/api/docs", headers=owner_headers, data={"meta": json.dumps(meta), "json": json.dumps({"v": 2})}),
        )
        shared_id = body["data"]["id"]
        _show("reader fetch shared", await client.get(f"/api/docs/{shared_id}", headers=reader_headers))

        _show("owner listing", await client.get("/api/docs", headers=owner_headers))
        _show("reader listing", await client.get("/api/docs", params={"login": "demoowner1"}, headers=reader_headers))

        _show("delete shared", await client.delete(f"/api/docs/{shared_id}", headers=owner_headers))
        _show("fetch deleted", await client.get(f"/api/docs/{shared_id}", headers=owner_headers))
        _show("logout", await client.delete(f"/api/auth/{reader}"))
    return 0


@click.command()
@click.option("--base", default="http://127.0.0.1:8080", help="Base URL of the docstore server")
@click.option("--admin-token", envvar="DOCSTORE_ADMIN_TOKEN", required=True, help="Admin token used for registration")
@click.option("--password", default="Demo-pass1", help="Password for the demo users")
def main(base: str, admin_token: str, password: str) -> None:
    sys.exit(asyncio.run(run(base, admin_token, password)))


if __name__ == "__main__":
    main()
