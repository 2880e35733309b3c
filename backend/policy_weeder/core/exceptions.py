"""
Exception classes for policy analysis.
"""


class PolicyAnalysisError(Exception):
    """Base exception for policy analysis errors."""

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class MalformedPolicyError(PolicyAnalysisError):
    """Raised when a policy lacks the identity fields needed for analysis."""

    def __init__(self, reason: str, policy_id: str | None = None):
        self.reason = reason
        self.policy_id = policy_id
        label = policy_id or "<unknown>"
        super().__init__(f"Malformed policy {label}: {reason}", "MALFORMED_POLICY")
