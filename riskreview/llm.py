"""Bedrock inference client for the review call."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError, ProfileNotFound

from riskreview.config import (
    BEDROCK_MAX_TOKENS,
    BEDROCK_MODEL_ID,
    BEDROCK_PROFILE,
    BEDROCK_REGION,
    BEDROCK_TEMPERATURE,
    USAGE_LOG_PATH,
)

logger = logging.getLogger(__name__)

# (chars_so_far, elapsed_seconds, message) -> None
ProgressCallback = Callable[[int, float, str], None]

_session = None
_client = None
_usage_logger = None

_STREAM_ERROR_KEYS = (
    "internalServerException",
    "modelStreamErrorException",
    "throttlingException",
    "validationException",
)


# ── Usage log ────────────────────────────────────────────────────────────────


def _get_usage_logger() -> logging.Logger:
    """Lazy-init a dedicated TSV file logger for token usage."""
    global _usage_logger
    if _usage_logger is not None:
        return _usage_logger

    usage = logging.getLogger("riskreview.usage")
    usage.setLevel(logging.INFO)
    usage.propagate = False

    log_path = Path(USAGE_LOG_PATH)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    needs_header = not log_path.exists() or log_path.stat().st_size == 0

    if not usage.handlers:
        handler = logging.FileHandler(str(log_path), mode="a")
        handler.setFormatter(logging.Formatter("%(message)s"))
        usage.addHandler(handler)

    if needs_header:
        usage.info("timestamp\tmodel\ttool\tinput_tokens\toutput_tokens\tlatency_ms")

    _usage_logger = usage
    return usage


def _log_usage(tool: str, input_tokens: int, output_tokens: int, latency_ms: int) -> None:
    logger.info(
        "Bedrock usage [%s]: input=%d output=%d latency=%dms model=%s",
        tool,
        input_tokens,
        output_tokens,
        latency_ms,
        BEDROCK_MODEL_ID,
    )
    _get_usage_logger().info(
        "%s\t%s\t%s\t%d\t%d\t%d",
        datetime.now(timezone.utc).isoformat(),
        BEDROCK_MODEL_ID,
        tool,
        input_tokens,
        output_tokens,
        latency_ms,
    )


# ── Bedrock client ───────────────────────────────────────────────────────────


def _get_session() -> boto3.Session:
    global _session
    if _session is None:
        _session = boto3.Session(profile_name=BEDROCK_PROFILE, region_name=BEDROCK_REGION)
    return _session


def is_configured() -> bool:
    """True when AWS credentials are available for the Bedrock profile.

    Without credentials the review runs in fallback mode, which is a
    supported configuration rather than an error.
    """
    try:
        credentials = _get_session().get_credentials()
    except ProfileNotFound:
        logger.info("AWS profile %r not found; AI review disabled", BEDROCK_PROFILE)
        return False
    except BotoCoreError as e:
        logger.warning("Could not resolve AWS credentials; AI review disabled: %s", e)
        return False
    return credentials is not None


def _get_client():
    """Lazy-init the Bedrock Runtime client."""
    global _client
    if _client is None:
        _client = _get_session().client(
            "bedrock-runtime",
            config=BotoConfig(
                retries={"max_attempts": 2, "mode": "adaptive"},
                read_timeout=120,
                connect_timeout=10,
            ),
        )
        logger.info(
            "Bedrock client initialized: profile=%s region=%s model=%s",
            BEDROCK_PROFILE,
            BEDROCK_REGION,
            BEDROCK_MODEL_ID,
        )
    return _client


def invoke(
    system_prompt: str,
    user_message: str,
    tool: str = "unknown",
    max_tokens: int = BEDROCK_MAX_TOKENS,
    on_progress: ProgressCallback | None = None,
) -> tuple[str, str]:
    """
    Stream a completion from Bedrock and return ``(text, stop_reason)``.

    Raises:
        RuntimeError: If the call fails before any text was received, or the
            stream reports an error event
    """
    body = {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": max_tokens,
        "temperature": BEDROCK_TEMPERATURE,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_message}],
    }

    start = time.monotonic()
    logger.info("Bedrock stream starting [%s] model=%s", tool, BEDROCK_MODEL_ID)

    text_chunks: list[str] = []
    total_chars = 0
    input_tokens = 0
    output_tokens = 0
    stop_reason = "unknown"

    try:
        response = _get_client().invoke_model_with_response_stream(
            modelId=BEDROCK_MODEL_ID,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body),
        )

        for event in response["body"]:
            if "chunk" not in event:
                for key in _STREAM_ERROR_KEYS:
                    if key in event:
                        err_msg = event[key].get("message", str(event[key]))
                        raise RuntimeError(f"Bedrock stream error ({key}): {err_msg}")
                logger.warning("Unknown non-chunk event in stream: %s", list(event))
                continue

            try:
                chunk = json.loads(event["chunk"]["bytes"])
            except (json.JSONDecodeError, KeyError) as parse_err:
                logger.warning("Malformed stream chunk, skipping: %s", parse_err)
                continue

            chunk_type = chunk.get("type", "")
            if chunk_type == "content_block_delta":
                delta = chunk.get("delta", {})
                if delta.get("type") == "text_delta":
                    text = delta.get("text", "")
                    text_chunks.append(text)
                    total_chars += len(text)
                    if on_progress and len(text_chunks) % 20 == 0:
                        elapsed = time.monotonic() - start
                        try:
                            on_progress(total_chars, elapsed, f"streaming {total_chars} chars")
                        except Exception as cb_err:
                            logger.warning("on_progress callback raised: %s", cb_err)
            elif chunk_type == "message_delta":
                stop_reason = chunk.get("delta", {}).get("stop_reason", "unknown")
                output_tokens = chunk.get("usage", {}).get("output_tokens", 0)
            elif chunk_type == "message_start":
                input_tokens = chunk.get("message", {}).get("usage", {}).get("input_tokens", 0)

    except RuntimeError:
        raise
    except (BotoCoreError, ClientError) as e:
        latency_ms = int((time.monotonic() - start) * 1000)
        if not text_chunks:
            logger.error("Bedrock inference failed after %dms: %s", latency_ms, e)
            raise RuntimeError(f"Bedrock inference failed: {e}") from e
        logger.error(
            "Bedrock stream failed after %dms with %d chars received: %s",
            latency_ms,
            total_chars,
            e,
        )
        stop_reason = "stream_error"

    latency_ms = int((time.monotonic() - start) * 1000)
    _log_usage(tool, input_tokens, output_tokens, latency_ms)

    if stop_reason == "max_tokens":
        logger.warning("Response truncated (max_tokens=%d) for tool=%s", max_tokens, tool)

    full_text = "".join(text_chunks)
    if not full_text:
        logger.warning("Empty response from Bedrock stream for tool=%s", tool)
    return full_text, stop_reason
