"""Runs the Lighthouse CLI against an already running Chrome."""

import asyncio
import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from config import settings

logger = logging.getLogger(__name__)

DEFAULT_LIGHTHOUSE_CONFIG: Dict[str, Any] = {"extends": "lighthouse:default"}


class LighthouseError(Exception):
    pass


def build_lighthouse_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Default Lighthouse config with the caller's top-level keys layered on top."""
    return {**DEFAULT_LIGHTHOUSE_CONFIG, **(overrides or {})}


async def run_lighthouse(
    url: str,
    port: int,
    config: Optional[Dict[str, Any]] = None,
    timeout_seconds: Optional[int] = None,
) -> Dict[str, Any]:
    """Audit `url` through the Chrome debugging `port` and return the parsed report."""
    timeout = timeout_seconds or settings.LIGHTHOUSE_TIMEOUT_SECONDS
    with tempfile.TemporaryDirectory(prefix="lighthouse-") as tmpdir:
        config_path = Path(tmpdir) / "config.json"
        output_path = Path(tmpdir) / "report.json"
        config_path.write_text(json.dumps(build_lighthouse_config(config)), encoding="utf-8")

        proc = await asyncio.create_subprocess_exec(
            settings.LIGHTHOUSE_BIN,
            url,
            f"--port={port}",
            f"--config-path={config_path}",
            "--output=json",
            f"--output-path={output_path}",
            "--disable-storage-reset",
            "--quiet",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise LighthouseError(f"Lighthouse timed out after {timeout}s")

        if proc.returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()[-500:]
            raise LighthouseError(f"Lighthouse exited with code {proc.returncode}: {detail}")
        if not output_path.exists():
            raise LighthouseError("Lighthouse did not write a report.")

        try:
            report = json.loads(output_path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise LighthouseError(f"Lighthouse report is not valid JSON: {exc}")

    if not isinstance(report, dict) or not report:
        raise LighthouseError("Lighthouse audit did not return a valid report.")
    return report
