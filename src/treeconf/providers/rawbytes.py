"""Raw bytes provider."""


class RawBytesProvider:
    """Provider handing over an in-memory byte buffer."""

    def __init__(self, data: bytes):
        self.data = bytes(data)

    def read_bytes(self) -> bytes:
        return self.data
