import argparse
import sys
import time
import requests


def fetch_user(server_url="http://localhost:8026", session_cookie=None):
    """
    Ask the server who is logged in.

    Args:
        server_url (str): URL of the server
        session_cookie (str): value of the "__session" cookie from a browser login

    Returns:
        dict or None: the user profile, None when logged out or unreachable
    """
    cookies = {"__session": session_cookie} if session_cookie else None
    try:
        response = requests.get(f"{server_url}/api/auth/me", cookies=cookies, timeout=5)
    except requests.RequestException as e:
        print(f"Error connecting to server: {e}")
        return None
    if response.status_code != 200:
        print(f"Session check failed with status code {response.status_code}")
        return None
    return response.json()


def describe_user(user):
    if not user:
        return "Not logged in. Open /api/auth/login in a browser to authenticate."
    name = user.get("name") or user.get("nickname") or user.get("sub", "unknown")
    email = user.get("email")
    return f"Logged in as {name}" + (f" <{email}>" if email else "")


def describe_status(status):
    line = f"[{status['state']}] mode={status['mode']} fps={status['fps']}"
    if status.get("error"):
        return f"{line} error: {status['error']}"
    if status.get("detector_loading"):
        return f"{line} loading {status['mode']} model..."
    if status["mode"] == "face":
        guidance = status.get("guidance") or {}
        return f"{line} faces={status['face_count']} {guidance.get('type', '')}: {guidance.get('message', '')}"
    labels = ", ".join(f"{d['label']} {round(d['confidence'] * 100)}%" for d in status["detections"])
    return f"{line} objects={status['detection_count']} {labels}"


def watch_camera(server_url, mode="object", device_id=None, label=None, duration=10.0, interval=1.0):
    """Start the camera, print status while it runs, then stop it."""
    response = requests.post(
        f"{server_url}/api/camera/start",
        json={"mode": mode, "device_id": device_id},
        timeout=30,
    )
    if response.status_code != 200:
        print(f"Error: {response.json().get('detail', response.text)}")
        return False
    try:
        if label:
            requests.put(f"{server_url}/api/camera/filter", json={"label": label}, timeout=5)
        deadline = time.time() + duration
        while time.time() < deadline:
            status = requests.get(f"{server_url}/api/camera/status", timeout=5).json()
            print(describe_status(status))
            time.sleep(interval)
    finally:
        requests.post(f"{server_url}/api/camera/stop", timeout=5)
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check the login session and watch camera detections")
    parser.add_argument("--url", default="http://localhost:8026", help="URL of the server")
    parser.add_argument("--session", default=None, help="Value of the __session cookie")
    parser.add_argument("--camera", action="store_true", help="Start the camera and print detections")
    parser.add_argument("--mode", choices=["object", "face"], default="object", help="Detection mode")
    parser.add_argument("--device", default=None, help="Camera device id")
    parser.add_argument("--label", default=None, help="Only show this object label")
    parser.add_argument("--duration", type=float, default=10.0, help="Seconds to watch the camera")
    args = parser.parse_args(argv)

    try:
        print(describe_user(fetch_user(args.url, args.session)))
        if args.camera:
            watch_camera(args.url, args.mode, args.device, args.label, args.duration)
    except KeyboardInterrupt:
        print("\nProgram interrupted. Exiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
