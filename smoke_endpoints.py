import httpx
import asyncio
import json

BASE_URL = "http://127.0.0.1:8000"
TEST_YEAR = 2025
TEST_MANAGERS = ["Smoke Whiz Kids", "Smoke Hammers", "Smoke Rays"]
TEST_PLAYER_ID = "smoke-player-1"

async def check_endpoint(client: httpx.AsyncClient, method: str, url: str, endpoint_name: str, expected_status: int = 200, body=None):
    print(f"\n--- Testing {endpoint_name} ---")
    print(f"{method} {url}")
    try:
        response = await client.request(method, url, json=body, timeout=30.0)
        print(f"Status Code: {response.status_code}")
        print(f"Response: {response.json()}")
        if response.status_code != expected_status:
            print(f"ISSUE: Expected status {expected_status}, got {response.status_code}")
            return None
    except httpx.RequestError as e:
        print(f"ISSUE: Request failed: {e}")
        return None
    except json.JSONDecodeError:
        print(f"ISSUE: Could not decode JSON response: {response.text}")
        return None
    return response.json()

async def main():
    await asyncio.sleep(5) # Give the server some time to start up
    async with httpx.AsyncClient() as client:
        # 1. / (read_root)
        await check_endpoint(client, "GET", f"{BASE_URL}/", "read_root")

        # 2. /managers (create_manager), reusing managers left by an earlier run
        existing = await check_endpoint(client, "GET", f"{BASE_URL}/managers", "list_managers") or []
        by_name = {m["name"]: m["id"] for m in existing}
        manager_ids = []
        for name in TEST_MANAGERS:
            if name not in by_name:
                created = await check_endpoint(client, "POST", f"{BASE_URL}/managers", "create_manager", body={"name": name})
                if created is None:
                    return
                by_name[name] = created["id"]
            manager_ids.append(by_name[name])

        # 3. /drafts/active (get_active_draft); a draft left active blocks creation
        active = await client.get(f"{BASE_URL}/drafts/active", timeout=30.0)
        if active.status_code == 200:
            print(f"\nDeactivating leftover draft {active.json()['id']}")
            await check_endpoint(client, "POST", f"{BASE_URL}/drafts/{active.json()['id']}/toggle-active", "toggle_active")

        # 4. /drafts (create_draft)
        draft = await check_endpoint(client, "POST", f"{BASE_URL}/drafts", "create_draft", body={
            "year": TEST_YEAR,
            "type": "smoke",
            "is_snake_draft": True,
            "initial_rounds": 2,
            "draft_order": manager_ids,
        })
        if draft is None:
            return
        draft_url = f"{BASE_URL}/drafts/{draft['id']}"

        # 5. /drafts/{draft_id}/rounds (add_round, remove_round)
        await check_endpoint(client, "POST", f"{draft_url}/rounds", "add_round")
        await check_endpoint(client, "DELETE", f"{draft_url}/rounds/last", "remove_round")

        # 6. /drafts/{draft_id}/trades (propose_trade): swap the second-round picks of the first two managers
        a, b = manager_ids[0], manager_ids[1]
        second_round = {p["manager_id"]: p["overall_pick_number"] for p in draft["rounds"][1]["picks"]}
        asset = lambda overall: {"type": "DraftPick", "draft_id": draft["id"], "overall_pick_number": overall}
        proposal = {
            "participants": [
                {"manager_id": a, "assets": [asset(second_round[a])]},
                {"manager_id": b, "assets": [asset(second_round[b])]},
            ],
            "asset_map": {a: [asset(second_round[b])], b: [asset(second_round[a])]},
            "notes": "smoke test swap",
        }
        await check_endpoint(client, "POST", f"{draft_url}/trades/validate", "validate_trade", body=proposal)
        await check_endpoint(client, "POST", f"{draft_url}/trades", "propose_trade", body=proposal)
        await check_endpoint(client, "GET", f"{draft_url}/trades", "list_draft_trades")

        # 7. /drafts/{draft_id}/picks (mark_pick_complete) and /advance (advance_pick)
        await check_endpoint(client, "POST", f"{draft_url}/picks", "mark_pick_complete", body={
            "round_number": 1, "manager_id": a, "player_id": TEST_PLAYER_ID,
        })
        await check_endpoint(client, "POST", f"{draft_url}/advance", "advance_pick", body={"skip_completed": True})
        await check_endpoint(client, "GET", f"{draft_url}/current-pick", "get_current_pick")
        await check_endpoint(client, "GET", f"{draft_url}/display-pick?pick=1&round=2", "get_display_pick_number")
        await check_endpoint(client, "PUT", f"{draft_url}/active-pick", "update_active_pick", body={"round": 2, "pick": 1})
        await check_endpoint(client, "GET", f"{draft_url}/selections", "list_selections")

        # 8. Error paths
        await check_endpoint(client, "POST", f"{draft_url}/picks", "mark_pick_complete (duplicate player)", 409, body={
            "round_number": 2, "manager_id": a, "player_id": TEST_PLAYER_ID,
        })
        await check_endpoint(client, "PUT", f"{draft_url}/active-pick", "update_active_pick (out of range)", 422, body={"round": 9, "pick": 1})

        # 9. /drafts/{draft_id}/reset (reset_draft) and cleanup
        await check_endpoint(client, "POST", f"{draft_url}/reset", "reset_draft")
        await check_endpoint(client, "DELETE", draft_url, "delete_draft")
        await check_endpoint(client, "GET", draft_url, "get_draft (deleted)", 404)


if __name__ == "__main__":
    asyncio.run(main())
