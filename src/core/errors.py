class VectorStoreError(Exception):
    """Base class for retrieval index failures"""


class IndexAbsent(VectorStoreError):
    """The tenant has no persisted index yet"""

    def __init__(self, tenant_id: str):
        super().__init__(f"No index stored for tenant '{tenant_id}'")
        self.tenant_id = tenant_id


class CorruptIndex(VectorStoreError):
    """A persisted index exists but cannot be parsed"""

    def __init__(self, tenant_id: str, reason: str):
        super().__init__(f"Index for tenant '{tenant_id}' is corrupt: {reason}")
        self.tenant_id = tenant_id
        self.reason = reason


class DimensionMismatch(VectorStoreError):
    """A vector does not match the dimensionality of the tenant's index"""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Expected a vector of length {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class PersistenceError(VectorStoreError):
    """Writing the index failed; the persisted state should be re-verified"""


class EmbeddingProviderError(Exception):
    """The embedding provider could not embed a piece of text"""


class UnknownTenant(LookupError):
    def __init__(self, tenant_id: str):
        super().__init__(f"Unknown tenant '{tenant_id}'")
        self.tenant_id = tenant_id
