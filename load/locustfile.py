import os
import struct
import zlib

from locust import HttpUser, between, events, task

FOLDER = os.getenv("UPLOAD_FOLDER", "loadtest")
UPLOAD_PATH = "/api/upload"

P95_UPLOAD_MS = 400
P95_HEAD_MS = 100


def _tiny_png() -> bytes:
    """Return a valid 1x1 PNG."""

    def chunk(tag: bytes, data: bytes) -> bytes:
        body = tag + data
        return struct.pack(">I", len(data)) + body + struct.pack(">I", zlib.crc32(body))

    ihdr = struct.pack(">IIBBBBB", 1, 1, 8, 2, 0, 0, 0)
    idat = zlib.compress(b"\x00\xff\x00\x00")
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", idat) + chunk(b"IEND", b"")


PNG = _tiny_png()


class AdminUploader(HttpUser):
    """Simulate admin editors uploading, probing and removing images."""

    host = os.environ.get("HOST", "http://localhost:8000")
    wait_time = between(1, 3)

    @task(3)
    def upload_probe_delete(self) -> None:
        """Upload an image, check it exists, then delete it."""

        resp = self.client.post(
            UPLOAD_PATH,
            files={"file": ("pixel.png", PNG, "image/png")},
            data={"folder": FOLDER},
        )
        if resp.status_code != 200:
            return
        url = resp.json()["url"]
        self.client.head(UPLOAD_PATH, params={"url": url}, name="head_upload")
        self.client.delete(UPLOAD_PATH, params={"url": url}, name="delete_upload")

    @task
    def probe_unknown(self) -> None:
        """Probe a foreign URL, which must answer exists=false."""

        self.client.get(
            UPLOAD_PATH,
            params={"url": "https://unrelated.example/x.png"},
            name="probe_foreign",
        )


@events.test_stop.add_listener
def verify_thresholds(environment, **kwargs) -> None:
    """Fail the test run when p95 targets are not met."""

    failures: list[str] = []
    upload = environment.stats.get(UPLOAD_PATH, "POST")
    if upload and upload.get_response_time_percentile(0.95) > P95_UPLOAD_MS:
        failures.append(f"upload p95>{P95_UPLOAD_MS}ms")
    head = environment.stats.get("head_upload", "HEAD")
    if head and head.get_response_time_percentile(0.95) > P95_HEAD_MS:
        failures.append(f"head p95>{P95_HEAD_MS}ms")
    if failures:
        print("Performance thresholds not met:", ", ".join(failures))
        environment.process_exit_code = 1
