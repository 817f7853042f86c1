"""Exception hierarchy for the analyzer."""


class SmellsError(Exception):
    """Base class for every error the analyzer raises on purpose."""


class ConfigError(SmellsError):
    """Configuration is missing, unreadable or invalid."""


class OracleError(SmellsError):
    """The language server could not be started or broke the protocol."""


class SnapshotError(SmellsError):
    """A snapshot file could not be read or parsed."""


class GateFailure(SmellsError):
    """The analysis ran fine but its findings fail the configured gate."""


class ThresholdExceededError(GateFailure):
    def __init__(self, dead_count: int, threshold: int):
        self.dead_count = dead_count
        self.threshold = threshold
        super().__init__(f"Found {dead_count} dead entities, threshold is {threshold}")


class NewIssuesFoundError(GateFailure):
    def __init__(self, issues):
        self.issues = list(issues)
        super().__init__(f"Found {len(self.issues)} new errors")
