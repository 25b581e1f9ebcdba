import time
import subprocess
import httpx
import sys
import os
import signal

BASE_URL = "http://127.0.0.1:8000"
API_PREFIX = "/v1"
SERVER_CMD = [sys.executable, "-m", "uvicorn", "ambureview.app.main:app", "--host", "127.0.0.1", "--port", "8000"]

# Seeded by ambureview/seed_data.py
ADMIN_CREDENTIALS = {"username": "admin", "password": "admin123"}
PERSIST_AMBULANCE = {"code": "AMB-PERSIST", "plate": "9999-ZZZ", "name": "Persistence check"}


def wait_for_server(retries=10, delay=2):
    url = f"{BASE_URL}/health"
    print(f"Waiting for server at {url}...")
    for i in range(retries):
        try:
            resp = httpx.get(url)
            if resp.status_code == 200:
                print("✅ Server is up!")
                return True
        except httpx.ConnectError:
            pass
        except Exception as e:
            print(f"Connect error: {e}")
        time.sleep(delay)
    print("❌ Server failed to start.")
    return False


def login():
    resp = httpx.post(f"{BASE_URL}{API_PREFIX}/auth/login", json=ADMIN_CREDENTIALS)
    if resp.status_code != 200:
        print(f"❌ Login Failed: {resp.status_code} {resp.text}")
        raise Exception("Login failed (did you run seed_data.py?)")
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def run_verification():
    # 1. Start Server (First Run)
    print("\n--- [Step 1] Starting Server (Initial) ---")
    proc = subprocess.Popen(
        SERVER_CMD,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, "DB_ECHO": "True", "SCHEDULER_ENABLED": "False"}
    )

    try:
        if not wait_for_server():
            server_logs = proc.communicate(timeout=2)
            print("Server Stdout:", server_logs[0].decode())
            print("Server Stderr:", server_logs[1].decode())
            raise Exception("Server start failed")

        # 2. Create an ambulance and complete its daily check
        print("\n--- [Step 2] Creating Ambulance (Persistence Test) ---")
        headers = login()
        resp = httpx.post(f"{BASE_URL}{API_PREFIX}/ambulances", json=PERSIST_AMBULANCE, headers=headers)

        if resp.status_code == 409:
            print("⚠️ Ambulance already exists (persistence working from previous run?)")
        elif resp.status_code == 201:
            ambulance_id = resp.json()["id"]
            print(f"✅ Ambulance Created (id={ambulance_id})")
            resp = httpx.post(
                f"{BASE_URL}{API_PREFIX}/ambulances/{ambulance_id}/workflow/dailyCheck",
                json={"status": True},
                headers=headers,
            )
            print(f"Workflow: {resp.status_code} {resp.text}")
        else:
            print(f"❌ Creation Failed: {resp.status_code} {resp.text}")
            raise Exception("Ambulance creation failed")

    finally:
        print("\n--- [Step 3] Stopping Server ---")
        proc.send_signal(signal.SIGTERM)
        proc.wait()

    time.sleep(2)  # Wait for port release

    # 3. Restart Server
    print("\n--- [Step 4] Restarting Server (Verification) ---")
    proc2 = subprocess.Popen(
        SERVER_CMD,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        env={**os.environ, "SCHEDULER_ENABLED": "False"}
    )

    try:
        if not wait_for_server():
            raise Exception("Server restart failed")

        print("\n--- [Step 5] Looking Up Ambulance (Post-Restart) ---")
        headers = login()
        resp = httpx.get(f"{BASE_URL}{API_PREFIX}/ambulances", headers=headers)
        found = [a for a in resp.json() if a["code"] == PERSIST_AMBULANCE["code"]]

        if found:
            print("✅ Ambulance Persisted!")
            print(found[0])
        else:
            print(f"❌ Ambulance Missing After Restart: {resp.status_code} {resp.text}")
            raise Exception("Ambulance lost after restart")

    finally:
        print("\n--- [Step 6] Stopping Server ---")
        proc2.send_signal(signal.SIGTERM)
        proc2.wait()


if __name__ == "__main__":
    run_verification()
