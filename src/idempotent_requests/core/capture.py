"""Response channel and write-through capture.

The interceptor and the downstream pipeline talk to the outgoing response
through the small ResponseWriter interface. Adapters supply a
BufferedResponse as the real channel; the interceptor wraps it in a
ResponseCapture when the response has to be recorded for replay.

ResponseCapture is a tee: each status, header and body write is forwarded to
the wrapped writer unchanged and a copy of the status and body is retained.
Writers may set the status before or after writing, and may write the body in
any number of chunks; the captured body is their concatenation.

Memory:
    The retained copy grows with the response. With max_bytes set, the
    capture stops retaining once the body exceeds the limit and flags itself
    as overflowed; the caller still receives every byte, but the response is
    not stored for replay.

Examples:
    >>> real = BufferedResponse()
    >>> capture = ResponseCapture(real)
    >>> capture.write("hel")
    >>> capture.write(b"lo")
    >>> capture.set_status(201)
    >>> capture.captured_status(), capture.captured_body()
    (201, b'hello')
    >>> real.status, real.body
    (201, b'hello')
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ResponseWriter(Protocol):
    """Outgoing response channel written by the interceptor and the pipeline."""

    @property
    def status(self) -> int:
        """Current status code."""
        ...

    def set_status(self, status: int) -> None: ...

    def set_header(self, name: str, value: str) -> None: ...

    def add_header(self, name: str, value: str) -> None: ...

    def write(self, data: bytes | str) -> None: ...


class BufferedResponse:
    """In-memory response channel.

    Adapters create one per request, hand it to the interceptor and then turn
    its status, headers and body into their framework's response.

    Attributes:
        charset: Encoding used for str writes.
        headers: Response headers in the order they were set.
    """

    def __init__(self, charset: str = "utf-8") -> None:
        self.charset = charset
        self.headers: list[tuple[str, str]] = []
        self._status = 200
        self._chunks: list[bytes] = []

    @property
    def status(self) -> int:
        return self._status

    def set_status(self, status: int) -> None:
        self._status = status

    def set_header(self, name: str, value: str) -> None:
        """Set a header, replacing any previous value (case-insensitive)."""
        lowered = name.lower()
        self.headers = [(k, v) for k, v in self.headers if k.lower() != lowered]
        self.headers.append((name, value))

    def add_header(self, name: str, value: str) -> None:
        """Append a header without replacing existing ones (e.g. Set-Cookie)."""
        self.headers.append((name, value))

    def write(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode(self.charset)
        self._chunks.append(bytes(data))

    @property
    def body(self) -> bytes:
        return b"".join(self._chunks)


class ResponseCapture:
    """Write-through wrapper retaining the status and body written to a response.

    Attributes:
        max_bytes: Retention limit for the body; 0 means unlimited.
        overflowed: True once the body exceeded max_bytes.
    """

    def __init__(self, writer: ResponseWriter, max_bytes: int = 0, charset: str = "utf-8") -> None:
        """Wrap writer.

        Args:
            writer: The real response channel.
            max_bytes: Largest body retained for replay; 0 means unlimited.
            charset: Encoding applied to str writes before retaining them.
        """
        self._writer = writer
        self._charset = charset
        self._chunks: list[bytes] = []
        self._size = 0
        self.max_bytes = max_bytes
        self.overflowed = False

    @property
    def status(self) -> int:
        return self._writer.status

    def set_status(self, status: int) -> None:
        self._writer.set_status(status)

    def set_header(self, name: str, value: str) -> None:
        self._writer.set_header(name, value)

    def add_header(self, name: str, value: str) -> None:
        self._writer.add_header(name, value)

    def write(self, data: bytes | str) -> None:
        if isinstance(data, str):
            data = data.encode(self._charset)
        data = bytes(data)
        self._writer.write(data)
        if self.overflowed:
            return
        self._size += len(data)
        if self.max_bytes and self._size > self.max_bytes:
            # keep delivering, stop retaining
            self.overflowed = True
            self._chunks = []
            return
        self._chunks.append(data)

    def captured_status(self) -> int:
        """Status code of the response as last set by the pipeline."""
        return self._writer.status

    def captured_body(self) -> bytes:
        """Concatenation of every body write, or b"" after an overflow."""
        return b"".join(self._chunks)
