class CreditGateError(Exception):
    """Base class for every fault raised by the orchestrator."""


class ConfigurationError(CreditGateError):
    """Missing plan id, agent id, wallet or token address. Not retried."""


class AuthenticationError(CreditGateError):
    """Missing or rejected credential."""


class UpstreamProviderError(CreditGateError):
    """A completion, tool server, ledger or chain call failed."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source


class MalformedResponse(CreditGateError):
    """Completion output could not be parsed into the expected shape."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class InvalidToolSelection(MalformedResponse):
    """Completion output is not a valid call against the tool catalog."""


class ToolExecutionError(CreditGateError):
    """The tool server was reached but the tool reported a failure."""

    def __init__(self, tool_name: str, output_text: str):
        super().__init__(f"Tool '{tool_name}' failed: {output_text}")
        self.tool_name = tool_name
        self.output_text = output_text
