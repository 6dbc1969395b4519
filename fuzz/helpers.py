import atheris

BOUNDARY_CHARS = list(b"0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-_")


class EnhancedDataProvider(atheris.FuzzedDataProvider):
    def ConsumeRandomBytes(self) -> bytes:
        return self.ConsumeBytes(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeRandomString(self) -> str:
        return self.ConsumeUnicodeNoSurrogates(self.ConsumeIntInRange(0, self.remaining_bytes()))

    def ConsumeBoundary(self) -> bytes:
        """A non-empty boundary made of characters browsers actually send."""
        size = self.ConsumeIntInRange(1, 70)
        return bytes(self.PickValueInList(BOUNDARY_CHARS) for _ in range(size))
