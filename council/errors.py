"""Fatal council errors. Any of these aborts the whole query."""


class CouncilError(RuntimeError):
    """Base class for errors that abort a council query."""


class NoProvidersAvailableError(CouncilError):
    """None of the configured worker providers is available."""


class NoWorkerResponsesError(CouncilError):
    """Every worker failed during fan-out."""


class ChairmanUnavailableError(CouncilError):
    """The chairman provider is not registered."""

    def __init__(self, provider_id: str) -> None:
        self.provider_id = provider_id
        super().__init__(f"Chairman provider {provider_id} not available")
