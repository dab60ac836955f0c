"""
Incremental parser for OpenAI-style server-sent-event streams.

Bytes arrive in arbitrary chunks: a multi-byte character or a JSON frame may
be split across reads. The parser carries the undecoded bytes and the
partial line between feeds and only parses whole lines.
"""
import codecs
import json
import logging

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
DONE_FRAME = b"data: [DONE]\n\n"


class SSEStreamParser:
    """
    Feed raw bytes, get back content deltas in arrival order.

    Usage:
        parser = SSEStreamParser()
        async for chunk in response.aiter_bytes():
            for delta in parser.feed(chunk):
                ...
            if parser.done:
                break
        for delta in parser.flush():
            ...
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._retry_line: str | None = None
        self.done = False

    def feed(self, chunk: bytes) -> list[str]:
        if self.done:
            return []
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def flush(self) -> list[str]:
        """Parse whatever is left once the body has ended."""
        if self.done:
            return []

        self._buffer += self._decoder.decode(b"", final=True)
        leftover, self._buffer = self._buffer, ""

        deltas = []
        for raw in leftover.split("\n"):
            line = raw.rstrip("\r")
            payload = self._data_payload(line)
            if payload is None or payload == DONE_SENTINEL:
                continue
            try:
                frame = json.loads(payload)
            except ValueError:
                logger.warning("Discarding unparseable trailing SSE line", extra={"line_length": len(line)})
                continue
            content = self._delta_content(frame)
            if content:
                deltas.append(content)

        self.done = True
        return deltas

    def _drain(self) -> list[str]:
        deltas = []
        while not self.done:
            newline = self._buffer.find("\n")
            if newline == -1:
                break

            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]
            if line.endswith("\r"):
                line = line[:-1]

            payload = self._data_payload(line)
            if payload is None:
                continue
            if payload == DONE_SENTINEL:
                self.done = True
                break

            try:
                frame = json.loads(payload)
            except ValueError:
                if line == self._retry_line:
                    # Already waited for more data once; the line is just malformed
                    logger.warning("Dropping malformed SSE data line", extra={"line_length": len(line)})
                    self._retry_line = None
                    continue
                self._retry_line = line
                self._buffer = line + "\n" + self._buffer
                break

            self._retry_line = None
            content = self._delta_content(frame)
            if content:
                deltas.append(content)
        return deltas

    @staticmethod
    def _data_payload(line: str) -> str | None:
        # Comments (":"), blank lines and non-data fields carry no content
        if not line.strip() or line.startswith(":"):
            return None
        if not line.startswith("data: "):
            return None
        return line[6:].strip()

    @staticmethod
    def _delta_content(frame) -> str | None:
        if not isinstance(frame, dict):
            return None
        choices = frame.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return None
        delta = choices[0].get("delta") or {}
        content = delta.get("content") if isinstance(delta, dict) else None
        return content if isinstance(content, str) else None


def encode_delta_frame(content: str) -> bytes:
    """Re-emit one delta as an OpenAI-style SSE frame."""
    frame = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(frame, ensure_ascii=False)}\n\n".encode("utf-8")


def encode_error_frame(code: str, message: str) -> bytes:
    """Terminal frame for a failure after the response has started."""
    frame = {"error": {"code": code, "message": message}}
    return f"data: {json.dumps(frame, ensure_ascii=False)}\n\n".encode("utf-8")
