"""
Command-line client for a running redesign relay.

Architectural role:
- Provides a terminal interface over the two HTTP endpoints.
- Encodes a local photo as a data URI and starts a redesign.
- In poll mode, polls the status endpoint until a terminal state.

Request lifecycle:
1. Read and encode the photo.
2. `POST /api/start-redesign` with the photo and optional labels.
3. Wait-mode response (`imageUrl`) -> print and exit.
4. Poll-mode response (`id`) -> `GET /api/get-redesign?id=...` every
   `--interval` seconds until `succeeded`, `failed` or `canceled`.

Error handling strategy:
- Relay error bodies are printed to stderr; exit code 1.
- Transport failures propagate as `requests` exceptions and are reported
  without a traceback.
"""

import argparse
import base64
import mimetypes
import sys
import time

import requests


TERMINAL_STATUSES = ("succeeded", "failed", "canceled")


def encode_photo(path: str) -> str:
    mime = mimetypes.guess_type(path)[0] or "image/png"
    with open(path, "rb") as f:
        encoded = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _first_url(output):
    if isinstance(output, list):
        return output[0] if output else None
    return output


def _report_error(response) -> int:
    try:
        body = response.json()
    except ValueError:
        body = {"error": response.text}
    details = body.get("details")
    message = body.get("error", "Request failed")
    print(f"Error ({response.status_code}): {message}" + (f" - {details}" if details else ""), file=sys.stderr)
    return 1


def poll_until_done(session, base_url: str, job_id: str, interval: float, timeout: float) -> dict:
    """Poll the status endpoint until the job reaches a terminal state."""
    while True:
        response = session.get(f"{base_url}/api/get-redesign", params={"id": job_id}, timeout=timeout)
        response.raise_for_status()
        job = response.json()
        status = job.get("status")
        print(f"status: {status}", file=sys.stderr)
        if status in TERMINAL_STATUSES:
            return job
        time.sleep(interval)


def run(args, session=None) -> int:
    session = session or requests.Session()
    base_url = args.url.rstrip("/")

    payload = {"image": encode_photo(args.photo)}
    if args.prompt:
        payload["userPrompt"] = args.prompt
    if args.style:
        payload["style"] = args.style
    if args.room_type:
        payload["roomType"] = args.room_type

    response = session.post(f"{base_url}/api/start-redesign", json=payload, timeout=args.timeout)
    if response.status_code >= 400:
        return _report_error(response)

    body = response.json()
    if body.get("imageUrl"):
        print(body["imageUrl"])
        return 0

    job_id = body.get("id")
    if not job_id:
        print(f"Unexpected response: {body}", file=sys.stderr)
        return 1

    job = poll_until_done(session, base_url, job_id, args.interval, args.timeout)
    if job.get("status") != "succeeded":
        print(f"Redesign {job.get('status')}: {job.get('error') or 'no details'}", file=sys.stderr)
        return 1

    print(_first_url(job.get("output")))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Redesign a room photo through a running relay.")
    parser.add_argument("photo", help="Path to the room photo")
    parser.add_argument("--style", help="Style tag, e.g. scandinavian_minimalist")
    parser.add_argument("--room-type", dest="room_type", help="Room type tag, e.g. kitchen")
    parser.add_argument("--prompt", help="Free-text redesign goal")
    parser.add_argument("--url", default="http://localhost:3001", help="Relay base URL")
    parser.add_argument("--interval", type=float, default=2.0, help="Seconds between status polls")
    parser.add_argument("--timeout", type=float, default=300.0, help="Per-request timeout in seconds")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        code = run(args)
    except requests.exceptions.RequestException as err:
        print(f"Relay request failed: {err}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
