"""Exception taxonomy for fare and route resolution."""


class FareEngineError(Exception):
    """Base class for all fare engine failures reported to callers."""


class CheckpointNotFound(FareEngineError):
    """Pickup checkpoint does not appear in any route sequence."""

    def __init__(self, checkpoint: str):
        self.checkpoint = checkpoint
        super().__init__(f"Checkpoint '{checkpoint}' is not on any route")


class UnknownCheckpoint(FareEngineError):
    """Checkpoint has no database ID on the resolved route."""

    def __init__(self, checkpoint: str, route_id: int):
        self.checkpoint = checkpoint
        self.route_id = route_id
        super().__init__(
            f"Checkpoint '{checkpoint}' has no ID on route {route_id}"
        )


class InvalidLocation(FareEngineError):
    """Checkpoint is absent from the local fallback sequence."""

    def __init__(self, from_checkpoint: str, to_checkpoint: str):
        self.from_checkpoint = from_checkpoint
        self.to_checkpoint = to_checkpoint
        super().__init__(
            f"Invalid locations: {from_checkpoint} or {to_checkpoint}"
        )


class FareUnavailable(FareEngineError):
    """Neither the remote fare matrix nor the local fallback produced a fare."""


class MalformedFareResponse(FareEngineError):
    """Fare matrix service answered with a body that fails schema validation."""
