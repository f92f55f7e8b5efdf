class BridgeWatchError(Exception):
    pass


class FetchError(BridgeWatchError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class StoreWriteError(BridgeWatchError):
    pass


class NotifyError(BridgeWatchError):
    pass


class StoreCorruptError(BridgeWatchError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
