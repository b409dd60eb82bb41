#!/usr/bin/env python3
"""
Seed script — creates a small dataset for poking at the photo stream.

Creates:
  • 8 users (via POST /session)
  • A follow graph (each user follows 3 others)
  • 3 photos per user (24 total), placeholder bytes
  • Some likes and comments across photos
  • A couple of bans so filtered streams can be compared

Run after the API is up:
  python scripts/seed_data.py --api-url http://localhost:8000

Identifiers are printed so you can use them as bearer tokens in curl.
"""
import argparse
import base64
import json
import os
import random
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Optional


BASE_USERS = [
    "alice_pics",
    "bob_lens",
    "carol_snaps",
    "dave_frames",
    "eve_focus",
    "frank_film",
    "grace_grain",
    "henry_hdr",
]

SAMPLE_COMMENTS = [
    "nice!",
    "Great light in this one.",
    "Where was this taken?",
    "Love the colours 😍",
    "That composition though.",
    "Instant classic.",
]

PNG_HEADER = b"\x89PNG\r\n\x1a\n"


@dataclass
class ApiClient:
    base_url: str

    def request(
        self,
        method: str,
        path: str,
        data: Optional[dict] = None,
        token: Optional[str] = None,
    ) -> dict:
        url = f"{self.base_url}{path}"
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        body = json.dumps(data).encode() if data is not None else None
        req = urllib.request.Request(url, data=body, headers=headers, method=method)
        try:
            with urllib.request.urlopen(req, timeout=10) as resp:
                raw = resp.read()
                return json.loads(raw) if raw else {}
        except urllib.error.HTTPError as e:
            print(f"  HTTP {e.code} on {method} {path}: {e.read().decode()}")
            return {}

    def post(self, path: str, data: Optional[dict] = None, token: Optional[str] = None) -> dict:
        return self.request("POST", path, data, token)

    def get(self, path: str, token: Optional[str] = None) -> dict:
        return self.request("GET", path, token=token)


def wait_for_api(client: ApiClient, retries: int = 15) -> None:
    print(f"Waiting for API at {client.base_url} ...")
    for _ in range(retries):
        try:
            if client.get("/health").get("status") == "ok":
                print("  API is ready!\n")
                return
        except urllib.error.URLError:
            pass
        time.sleep(3)
    raise RuntimeError(f"API not reachable at {client.base_url} after {retries} retries")


def fake_image() -> str:
    return base64.b64encode(PNG_HEADER + os.urandom(64)).decode()


def main(api_url: str) -> None:
    client = ApiClient(api_url)
    wait_for_api(client)

    # ── Log in (creates users on first run) ──────────────────────────────
    print("Logging in users...")
    tokens: dict[str, str] = {}
    for username in BASE_USERS:
        identifier = client.post("/session", {"name": username}).get("identifier", "")
        if identifier:
            tokens[username] = identifier
            print(f"  ✓ {username} ({identifier})")
        else:
            print(f"  ✗ Failed to log in {username}")

    if not tokens:
        print("No users available — aborting")
        return
    names = list(tokens)

    # ── Follow graph ─────────────────────────────────────────────────────
    print("\nCreating follow relationships...")
    for follower in names:
        for followed in random.sample([n for n in names if n != follower], k=min(3, len(names) - 1)):
            client.post(f"/users/{followed}/follows", token=tokens[follower])
    print("  ✓ Follow graph created")

    # ── Photos ───────────────────────────────────────────────────────────
    print("\nUploading photos...")
    photo_ids: list[str] = []
    for username in names:
        for _ in range(3):
            result = client.post("/photos", {"image_base64": fake_image()}, token=tokens[username])
            if result.get("photo_id"):
                photo_ids.append(result["photo_id"])
    print(f"  ✓ {len(photo_ids)} photos uploaded")

    # ── Likes and comments ───────────────────────────────────────────────
    print("\nAdding likes and comments...")
    likes = comments = 0
    for photo_id in photo_ids:
        for username in random.sample(names, k=random.randint(0, 4)):
            client.post(f"/photos/{photo_id}/likes", token=tokens[username])
            likes += 1
        if random.random() < 0.5:
            username = random.choice(names)
            client.post(
                f"/photos/{photo_id}/comments",
                {"content": random.choice(SAMPLE_COMMENTS)},
                token=tokens[username],
            )
            comments += 1
    print(f"  ✓ {likes} likes, {comments} comments added")

    # ── Bans ─────────────────────────────────────────────────────────────
    print("\nAdding bans...")
    viewer = names[0]
    for banned in names[1:3]:
        client.post(f"/users/{banned}/bans", token=tokens[viewer])
        print(f"  ✓ {viewer} banned {banned}")

    # ── Summary ──────────────────────────────────────────────────────────
    stream = client.get("/stream", token=tokens[viewer])
    print(f"\n{viewer}'s stream has {len(stream.get('photos', []))} photos")

    print("\n" + "=" * 60)
    print("Seed complete! Here are some commands to try:\n")
    t = tokens[viewer]
    print(f"# Get the stream for '{viewer}':")
    print(f"  curl -s -H 'Authorization: Bearer {t}' '{api_url}/stream' | python3 -m json.tool\n")
    print("# Upload a photo:")
    print(f"  curl -s -X POST '{api_url}/photos' \\")
    print(f"    -H 'Authorization: Bearer {t}' -H 'Content-Type: application/json' \\")
    print(f"    -d '{{\"image_base64\": \"{fake_image()}\"}}' | python3 -m json.tool\n")
    print("# Check Jaeger traces: http://localhost:16686")
    print("# Check Prometheus: http://localhost:9090")
    print("=" * 60)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Photo Stream system")
    parser.add_argument("--api-url", default="http://localhost:8000", help="API base URL")
    args = parser.parse_args()
    main(args.api_url)
